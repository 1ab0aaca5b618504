"""
Sentiment flip detection.

A flip means the previous answer carried one polarity and the current answer
carries the opposite one. Polarity comes from a pluggable classifier:

- LexiconSentimentClassifier: fixed positive/negative word lists, substring
  match over the whole text. The default; what the dashboard has always used.
- VaderSentimentClassifier: NLTK's VADER analyser, a rule-based statistical
  scorer that handles negation and intensifiers.

Neither looks at the brand-specific clause; both only tell whether polarity
words are present in the text.
"""
from __future__ import annotations

import functools
import logging
from typing import FrozenSet, Iterable, Optional, Protocol

import nltk
from nltk.sentiment.vader import SentimentIntensityAnalyzer

from brand_drift.errors import InvalidInputError, SentimentBackendError


logger = logging.getLogger(__name__)


POSITIVE = "positive"
NEGATIVE = "negative"

POSITIVE_WORDS: FrozenSet[str] = frozenset({
    "good", "great", "excellent", "best", "amazing", "outstanding", "superior",
})

NEGATIVE_WORDS: FrozenSet[str] = frozenset({
    "bad", "poor", "worst", "terrible", "awful", "inferior", "disappointing",
})


class SentimentClassifier(Protocol):
    """Anything that reports which polarities a text expresses."""

    def polarities(self, text: str) -> FrozenSet[str]:
        """Return a subset of {"positive", "negative"}."""
        ...


class LexiconSentimentClassifier:
    """Polarity from fixed word lists (case-insensitive substring match)."""

    def __init__(
        self,
        positive_words: Iterable[str] = POSITIVE_WORDS,
        negative_words: Iterable[str] = NEGATIVE_WORDS,
    ):
        self.positive_words = frozenset(w.lower() for w in positive_words)
        self.negative_words = frozenset(w.lower() for w in negative_words)

    def polarities(self, text: str) -> FrozenSet[str]:
        text_lower = text.lower()
        found = set()
        if any(word in text_lower for word in self.positive_words):
            found.add(POSITIVE)
        if any(word in text_lower for word in self.negative_words):
            found.add(NEGATIVE)
        return frozenset(found)

    def __repr__(self) -> str:
        return (
            f"LexiconSentimentClassifier(positive={len(self.positive_words)}, "
            f"negative={len(self.negative_words)})"
        )


# =============================================================================
# VADER backend (lazy resource loading)
# =============================================================================

@functools.lru_cache(maxsize=None)
def setup_nlp() -> bool:
    """
    Make sure the VADER lexicon is available, downloading it if needed.

    Call this at worker startup, NOT at import time, so importing the package
    never touches the network. The outcome is cached per process; call
    ``setup_nlp.cache_clear()`` to retry after a failed download.

    Returns:
        True if the lexicon is available, False otherwise
    """
    try:
        nltk.data.find("sentiment/vader_lexicon.zip")
    except LookupError:
        logger.info("Downloading NLTK vader_lexicon...")
        if not nltk.download("vader_lexicon", quiet=True):
            logger.warning("NLTK vader_lexicon download failed")
            return False
    return True


class VaderSentimentClassifier:
    """Polarity from the compound score of NLTK's VADER analyser.

    compound >= threshold is positive, compound <= -threshold is negative.
    """

    def __init__(self, analyzer: Optional[SentimentIntensityAnalyzer] = None, threshold: float = 0.05):
        self._analyzer = analyzer
        self.threshold = threshold

    @property
    def analyzer(self) -> SentimentIntensityAnalyzer:
        if self._analyzer is None:
            if not setup_nlp():
                raise SentimentBackendError(
                    "NLTK vader_lexicon is not available. "
                    "Run nltk.download('vader_lexicon') or set DRIFT_SENTIMENT_BACKEND=lexicon."
                )
            self._analyzer = SentimentIntensityAnalyzer()
        return self._analyzer

    def polarities(self, text: str) -> FrozenSet[str]:
        if not text.strip():
            return frozenset()
        compound = self.analyzer.polarity_scores(text)["compound"]
        if compound >= self.threshold:
            return frozenset({POSITIVE})
        if compound <= -self.threshold:
            return frozenset({NEGATIVE})
        return frozenset()

    def __repr__(self) -> str:
        return f"VaderSentimentClassifier(threshold={self.threshold})"


@functools.lru_cache(maxsize=None)
def _shared_vader() -> VaderSentimentClassifier:
    # One analyser per process; loading the lexicon is the expensive part
    return VaderSentimentClassifier()


def get_sentiment_classifier(name: str = "lexicon") -> SentimentClassifier:
    """Select a sentiment backend by config name ("lexicon" or "vader")."""
    if name == "lexicon":
        return LexiconSentimentClassifier()
    if name == "vader":
        return _shared_vader()
    raise InvalidInputError(
        f"Unknown sentiment backend: '{name}'. Valid options: 'lexicon', 'vader'"
    )


# =============================================================================
# Flip detection
# =============================================================================


def detect_sentiment_change(
    previous: str,
    current: str,
    classifier: Optional[SentimentClassifier] = None,
) -> bool:
    """Detect whether sentiment flipped between two texts.

    Args:
        previous: Previous answer text
        current: Current answer text
        classifier: Polarity classifier (defaults to the word lists)

    Returns:
        True if previous was positive and current negative, or the reverse
    """
    classifier = classifier or LexiconSentimentClassifier()
    prev = classifier.polarities(previous)
    curr = classifier.polarities(current)

    return (POSITIVE in prev and NEGATIVE in curr) or (NEGATIVE in prev and POSITIVE in curr)


def sentiment_label(polarities: FrozenSet[str]) -> Optional[str]:
    """Collapse a polarity set into the label stored on a snapshot."""
    if POSITIVE in polarities and NEGATIVE in polarities:
        return "mixed"
    if POSITIVE in polarities:
        return POSITIVE
    if NEGATIVE in polarities:
        return NEGATIVE
    return None
