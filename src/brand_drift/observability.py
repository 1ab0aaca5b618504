"""
Structured Logging for drift detection.

Every comparison emits one ``DRIFT | {json}`` line, and batch/history runs
emit ``RUN | {json}`` lines when they start, finish or fail, followed by a
``RUN_SUMMARY`` line. Lines are greppable in worker logs and parse as JSON
after the first ``|``.
"""
from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional


logger = logging.getLogger("brand_drift.observability")

TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_structured_logging(level: int = logging.INFO, json_format: bool = False) -> None:
    """Send drift events to stderr on their own handler.

    Args:
        level: Logging level (default INFO)
        json_format: Emit only the message, so each line is "PREFIX | {json}"
    """
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(message)s")
        if json_format
        else logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    )

    logger.handlers = [handler]
    logger.setLevel(level)
    logger.propagate = False


def _now() -> str:
    return datetime.now().isoformat()


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def _emit(prefix: str, payload: Dict[str, Any], level: int = logging.INFO) -> None:
    logger.log(level, f"{prefix} | {json.dumps(payload, default=str)}")


# =============================================================================
# Events
# =============================================================================


@dataclass
class DriftEvent:
    """One snapshot comparison and the decision taken on it."""

    brand_name: str
    drift_score: int
    significance: str
    has_drift: bool
    should_alert: bool
    content_similarity: int
    alerts: List[str] = field(default_factory=list)
    short_circuit: bool = False  # identical hashes, nothing computed
    provider: Optional[str] = None
    prompt_id: Optional[str] = None
    timestamp: str = field(default_factory=_now)


@dataclass
class RunEvent:
    """Start, completion or failure of a batch or history run."""

    operation: str  # "drift_batch", "drift_history"
    status: str = "started"  # "started", "completed", "failed"
    details: Dict[str, Any] = field(default_factory=dict)
    duration_ms: Optional[float] = None
    timestamp: str = field(default_factory=_now)


def log_drift_event(
    brand_name: str,
    drift_score: int,
    significance: str,
    has_drift: bool,
    should_alert: bool,
    content_similarity: int,
    **kwargs
) -> None:
    """Log a drift decision; alerting comparisons go out at WARNING.

    Extra keyword arguments (alerts, short_circuit, provider, prompt_id) are
    copied onto the DriftEvent.
    """
    event = DriftEvent(
        brand_name=brand_name,
        drift_score=drift_score,
        significance=significance,
        has_drift=has_drift,
        should_alert=should_alert,
        content_similarity=content_similarity,
        **kwargs
    )
    _emit("DRIFT", asdict(event), logging.WARNING if should_alert else logging.INFO)


def log_run_event(operation: str, status: str = "started", **kwargs) -> None:
    """Log a run lifecycle event; failures go out at ERROR."""
    event = RunEvent(operation=operation, status=status, **kwargs)
    _emit("RUN", asdict(event), logging.ERROR if status == "failed" else logging.INFO)


@contextmanager
def timed_operation(operation: str, **context) -> Iterator[Dict[str, Any]]:
    """Bracket a run with started/completed (or failed) events.

    The yielded dict is merged into the completion event's details, so the
    caller can attach counts gathered during the run:

        with timed_operation("drift_batch", size=20) as timer:
            timer["alerting"] = 3
    """
    start = time.perf_counter()
    extra: Dict[str, Any] = {}
    log_run_event(operation, details=dict(context))

    try:
        yield extra
    except Exception as e:
        log_run_event(
            operation,
            status="failed",
            duration_ms=_elapsed_ms(start),
            details={**context, "error": str(e)},
        )
        raise

    log_run_event(
        operation,
        status="completed",
        duration_ms=_elapsed_ms(start),
        details={**context, **extra},
    )


# =============================================================================
# Run Summary
# =============================================================================


@dataclass
class DriftRunSummary:
    """Tallies comparisons over a batch or history run."""

    compared: int = 0
    drifted: int = 0
    alerting: int = 0
    errors: List[str] = field(default_factory=list)
    started: float = field(default_factory=time.perf_counter)

    def record_result(self, has_drift: bool, alerting: bool) -> None:
        self.compared += 1
        self.drifted += int(has_drift)
        self.alerting += int(alerting)

    def record_error(self, error: str) -> None:
        self.errors.append(error)

    @property
    def drift_rate(self) -> float:
        return round(self.drifted / self.compared, 3) if self.compared else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration_ms": _elapsed_ms(self.started),
            "compared": self.compared,
            "drifted": self.drifted,
            "alerting": self.alerting,
            "drift_rate": self.drift_rate,
            "error_count": len(self.errors),
        }

    def log_summary(self) -> None:
        _emit("RUN_SUMMARY", self.to_dict())
