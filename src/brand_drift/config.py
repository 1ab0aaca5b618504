"""
Configuration for drift detection.

Settings default from environment variables so the sampling workers can be
tuned without code changes. Score weights and thresholds are policy
constants carried over from the dashboard; they have not been calibrated
against labelled drift events.
"""
import functools
import os
from dataclasses import dataclass, field
from typing import Literal

from brand_drift.errors import InvalidInputError


SENTIMENT_BACKENDS = ("lexicon", "vader")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidInputError(f"{name} must be an integer, got '{raw}'") from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ScoreWeights:
    """Weights of the drift score formula."""

    similarity_weight: float = 0.4   # per point of lost content similarity
    mention_points: float = 5.0      # per added or removed mention
    sentiment_points: float = 20.0   # sentiment flip
    positioning_points: float = 15.0  # positioning change


@dataclass
class DriftThresholds:
    """Cut-offs applied to similarity and drift score."""

    drift: int = 10                   # has_drift when score is strictly above
    medium: int = 30                  # significance >= medium
    high: int = 60                    # significance == high
    positioning_similarity: int = 70  # positioning changed below this similarity
    rewrite_similarity: int = 50      # "major rewrite" alert below this similarity
    removed_mentions_alert: int = 2   # should_alert when more mentions than this vanish


@dataclass
class DriftConfig:
    """Configuration for drift analysis."""

    # Characters of context kept on each side of a brand mention
    mention_window: int = field(
        default_factory=lambda: _env_int("DRIFT_MENTION_WINDOW", 50)
    )

    # Compare mention windows on collapsed whitespace / casefolded text
    normalize_mentions: bool = field(
        default_factory=lambda: _env_bool("DRIFT_NORMALIZE_MENTIONS", False)
    )

    # Ceiling on snapshot length before edit distance runs (0 disables)
    max_content_length: int = field(
        default_factory=lambda: _env_int("DRIFT_MAX_CONTENT_LENGTH", 8000)
    )

    sentiment_backend: Literal["lexicon", "vader"] = field(
        default_factory=lambda: os.getenv("DRIFT_SENTIMENT_BACKEND", "lexicon")
    )

    weights: ScoreWeights = field(default_factory=ScoreWeights)
    thresholds: DriftThresholds = field(default_factory=DriftThresholds)

    def __post_init__(self) -> None:
        if self.mention_window < 0:
            raise InvalidInputError(
                f"mention_window must be >= 0, got {self.mention_window}"
            )
        if self.max_content_length < 0:
            raise InvalidInputError(
                f"max_content_length must be >= 0, got {self.max_content_length}"
            )
        if self.sentiment_backend not in SENTIMENT_BACKENDS:
            raise InvalidInputError(
                f"Unknown sentiment backend: '{self.sentiment_backend}'. "
                f"Valid options: {', '.join(SENTIMENT_BACKENDS)}"
            )

    @classmethod
    def from_env(cls) -> "DriftConfig":
        """Create config from environment variables."""
        return cls()


@functools.lru_cache(maxsize=None)
def get_default_config() -> DriftConfig:
    """Environment-derived config, built on first use rather than at import.

    A malformed DRIFT_* variable therefore surfaces as InvalidInputError from
    the first analysis call, not as an import failure.
    """
    return DriftConfig.from_env()
