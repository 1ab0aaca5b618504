"""
Pydantic models for LLM answer snapshots and drift results.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from brand_drift.hashing import content_hash

if TYPE_CHECKING:
    from brand_drift.config import DriftConfig
    from brand_drift.sentiment import SentimentClassifier


Significance = Literal["low", "medium", "high"]

SIGNIFICANCE_ORDER: Dict[str, int] = {"low": 0, "medium": 1, "high": 2}


class Snapshot(BaseModel):
    """Immutable capture of one LLM answer for a brand/prompt/provider.

    The hash is filled from ``content`` when the sampling pipeline did not
    supply one.
    """

    model_config = ConfigDict(frozen=True)

    hash: str = ""  # SHA-256 of content
    content: str
    mentions: List[str] = Field(default_factory=list)
    sentiment: Optional[str] = None  # "positive", "negative", "mixed"
    timestamp: datetime

    @model_validator(mode="before")
    @classmethod
    def _fill_hash(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("hash"):
            content = data.get("content")
            if isinstance(content, str):
                data = {**data, "hash": content_hash(content)}
        return data

    @classmethod
    def capture(
        cls,
        content: str,
        brand_name: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        config: Optional["DriftConfig"] = None,
        classifier: Optional["SentimentClassifier"] = None,
    ) -> "Snapshot":
        """Build a snapshot the way the sampling pipeline records an answer.

        Args:
            content: Raw LLM answer text
            brand_name: Brand whose mention windows are recorded (optional)
            timestamp: Capture time (defaults to now)
            config: Drift config for mention window and sentiment backend
            classifier: Sentiment classifier overriding the configured backend

        Returns:
            Snapshot with hash, mentions and sentiment label filled in
        """
        from brand_drift.config import get_default_config
        from brand_drift.mentions import extract_mentions
        from brand_drift.sentiment import get_sentiment_classifier, sentiment_label

        config = config or get_default_config()
        classifier = classifier or get_sentiment_classifier(config.sentiment_backend)

        mentions: List[str] = []
        if brand_name:
            mentions = extract_mentions(content, brand_name, window=config.mention_window)

        return cls(
            content=content,
            mentions=mentions,
            sentiment=sentiment_label(classifier.polarities(content)),
            timestamp=timestamp or datetime.now(),
        )


class SnapshotComparison(BaseModel):
    """Ordered pair of snapshots for the same brand, prompt and provider."""

    previous: Snapshot
    current: Snapshot


class _ApiModel(BaseModel):
    """Models consumed by the dashboard API, serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api_dict(self) -> Dict[str, Any]:
        """Dump with the camelCase keys the UI and alerting consumers read."""
        return self.model_dump(by_alias=True, mode="json")


class DriftChanges(_ApiModel):
    """What changed between two snapshots."""

    mentions_added: List[str] = Field(default_factory=list)
    mentions_removed: List[str] = Field(default_factory=list)
    sentiment_changed: bool = False
    positioning_changed: bool = False
    content_similarity: int = 100  # 0-100


class DriftResult(_ApiModel):
    """Result of comparing two snapshots of an LLM answer about a brand."""

    has_drift: bool
    drift_score: int  # 0-100, higher = more drift
    changes: DriftChanges
    significance: Significance
    alerts: List[str] = Field(default_factory=list)


class DriftAlert(BaseModel):
    """Summary of drift across a brand's snapshot history."""

    brand_name: str
    significance: Significance
    headline: str
    details: str
    results: List[DriftResult]
    periods: List[Tuple[datetime, datetime]]  # (previous, current) timestamps per result
    generated_at: datetime


class DriftAlertRecord(BaseModel):
    """
    Persistent record of an alerting comparison.

    Flat, table-like schema so the JSONL store loads straight into a
    DataFrame or a SQL table.
    """

    # Identity
    record_id: str  # UUID
    brand_name: str
    prompt_id: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None

    # Compared snapshots
    previous_hash: str
    current_hash: str
    previous_timestamp: datetime
    current_timestamp: datetime

    # Primitives
    drift_score: int
    significance: Significance
    content_similarity: int
    mentions_added_count: int
    mentions_removed_count: int
    sentiment_changed: bool
    positioning_changed: bool
    alerts: List[str]

    created_at: datetime
