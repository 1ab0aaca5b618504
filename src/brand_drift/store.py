"""
Drift Alert Store - JSONL persistence for alerting comparisons.

Drift analysis itself never persists anything. The sampling worker decides
when a result is worth keeping (usually when should_alert() fires) and
appends a flat DriftAlertRecord here.
"""
from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

from brand_drift.models import SIGNIFICANCE_ORDER, DriftAlertRecord


class DriftAlertStore:
    """
    Append-only alert log, one JSON record per line.

    Appends are a single write, so several sampling workers can share a
    file. The flat record schema reads straight into pandas with
    ``pd.read_json(path, lines=True)``.
    """

    DEFAULT_PATH = ".cache/drift/alerts.jsonl"

    def __init__(self, path: Optional[str] = None):
        """
        Open (and create the directory for) an alert log.

        Args:
            path: JSONL file location (default: .cache/drift/alerts.jsonl)
        """
        self.path = Path(path or self.DEFAULT_PATH)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: DriftAlertRecord) -> None:
        """Append one alert record."""
        with self.path.open("a", encoding="utf-8") as f:
            f.write(record.model_dump_json() + "\n")

    def _iter_records(self) -> Iterator[DriftAlertRecord]:
        if not self.path.exists():
            return
        with self.path.open(encoding="utf-8") as f:
            for raw in f:
                if raw.strip():
                    yield DriftAlertRecord.model_validate_json(raw)

    def _where(self, predicate: Callable[[DriftAlertRecord], bool]) -> List[DriftAlertRecord]:
        return [r for r in self._iter_records() if predicate(r)]

    def load_all(self) -> List[DriftAlertRecord]:
        """Every stored record, in append order."""
        return list(self._iter_records())

    def query_by_brand(self, brand_name: str) -> List[DriftAlertRecord]:
        """Alerts for one brand, matched case-insensitively."""
        wanted = brand_name.casefold()
        return self._where(lambda r: r.brand_name.casefold() == wanted)

    def query_by_provider(self, provider: str) -> List[DriftAlertRecord]:
        """Alerts raised for one LLM provider, matched case-insensitively."""
        wanted = provider.casefold()
        return self._where(lambda r: (r.provider or "").casefold() == wanted)

    def query_high_drift(self, threshold: int = 60) -> List[DriftAlertRecord]:
        """Alerts whose drift score is at least ``threshold`` (60 = high tier)."""
        return self._where(lambda r: r.drift_score >= threshold)

    def filter_by_significance(self, min_significance: str = "medium") -> List[DriftAlertRecord]:
        """
        Alerts at or above a significance tier.

        Args:
            min_significance: "low", "medium" or "high" (any case)

        Raises:
            ValueError: Unknown tier
        """
        floor = SIGNIFICANCE_ORDER.get(min_significance.lower())
        if floor is None:
            raise ValueError(
                f"Invalid significance: '{min_significance}'. "
                f"Valid options: {', '.join(SIGNIFICANCE_ORDER)}"
            )
        return self._where(lambda r: SIGNIFICANCE_ORDER[r.significance] >= floor)

    def to_dataframe(self) -> Any:
        """Alerts as a pandas DataFrame (needs the ``analysis`` extra)."""
        import pandas as pd

        if not self.path.exists():
            return pd.DataFrame()
        return pd.read_json(self.path, lines=True)

    def count(self) -> int:
        return sum(1 for _ in self._iter_records())

    def clear(self) -> None:
        """Delete the alert log."""
        self.path.unlink(missing_ok=True)

    def summary(self) -> Dict[str, Any]:
        """Counts and averages across all alerts, for dashboards and health checks."""
        records = self.load_all()
        if not records:
            return {"count": 0, "message": "No drift alerts stored"}

        n = len(records)
        tiers = Counter(r.significance for r in records)
        created = sorted(r.created_at for r in records)

        return {
            "count": n,
            "by_significance": {tier: tiers.get(tier, 0) for tier in ("high", "medium", "low")},
            "sentiment_flips": sum(r.sentiment_changed for r in records),
            "avg_drift_score": round(sum(r.drift_score for r in records) / n, 2),
            "avg_content_similarity": round(sum(r.content_similarity for r in records) / n, 2),
            "unique_brands": len({r.brand_name.casefold() for r in records}),
            "date_range": {
                "earliest": created[0].isoformat(),
                "latest": created[-1].isoformat(),
            },
        }

    def __len__(self) -> int:
        return self.count()

    def __repr__(self) -> str:
        return f"DriftAlertStore(path={self.path}, count={self.count()})"
