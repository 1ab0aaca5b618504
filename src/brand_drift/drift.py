"""
Drift Engine for LLM answers about a brand.

Compares two time-ordered snapshots of an LLM's answer to the same prompt and
decides whether, and how, the answer changed:

- Content similarity from character edit distance (structural rewrite)
- Brand mention windows that appeared or disappeared
- Sentiment flips between the two answers
- An aggregate 0-100 drift score with a low/medium/high significance tier
- Human-readable alert strings and the policy deciding whether to surface them

Everything here is pure and synchronous: identical inputs give identical
results, so comparisons can be fanned out across threads or processes freely.
"""
from __future__ import annotations

import concurrent.futures
import logging
import uuid
from datetime import datetime
from typing import List, Optional, Sequence, Tuple, Union

from brand_drift.config import DriftConfig, DriftThresholds, ScoreWeights, get_default_config
from brand_drift.errors import InvalidInputError, ResourceLimitExceededError
from brand_drift.hashing import content_hash
from brand_drift.mentions import diff_mentions, extract_mentions
from brand_drift.models import (
    SIGNIFICANCE_ORDER,
    DriftAlert,
    DriftAlertRecord,
    DriftChanges,
    DriftResult,
    Snapshot,
    SnapshotComparison,
)
from brand_drift.observability import DriftRunSummary, log_drift_event, timed_operation
from brand_drift.sentiment import (
    SentimentClassifier,
    detect_sentiment_change,
    get_sentiment_classifier,
)
from brand_drift.similarity import calculate_similarity, round_half_up


logger = logging.getLogger(__name__)


# =============================================================================
# Scoring
# =============================================================================


def score_drift(
    content_similarity: int,
    mentions_added: int,
    mentions_removed: int,
    sentiment_changed: bool,
    positioning_changed: bool,
    weights: Optional[ScoreWeights] = None,
) -> int:
    """Combine the individual change signals into a 0-100 drift score.

    score = 0.4 * (100 - similarity)
          + 5 per added or removed mention
          + 20 if sentiment flipped
          + 15 if positioning changed

    Args:
        content_similarity: 0-100 edit-distance similarity
        mentions_added: Number of new mention windows
        mentions_removed: Number of vanished mention windows
        sentiment_changed: Whether sentiment flipped
        positioning_changed: Whether similarity fell below the positioning threshold
        weights: Score weights (defaults to ScoreWeights())

    Returns:
        Integer drift score clamped to [0, 100]
    """
    weights = weights or ScoreWeights()

    score = (100 - content_similarity) * weights.similarity_weight
    score += (mentions_added + mentions_removed) * weights.mention_points
    score += weights.sentiment_points if sentiment_changed else 0
    score += weights.positioning_points if positioning_changed else 0

    return max(0, min(100, round_half_up(score)))


def classify_significance(drift_score: int, thresholds: Optional[DriftThresholds] = None) -> str:
    """Bucket a drift score into "low", "medium" or "high"."""
    thresholds = thresholds or DriftThresholds()
    if drift_score >= thresholds.high:
        return "high"
    if drift_score >= thresholds.medium:
        return "medium"
    return "low"


# =============================================================================
# Alert Policy
# =============================================================================


def build_alerts(
    mentions_added: int,
    mentions_removed: int,
    sentiment_changed: bool,
    positioning_changed: bool,
    content_similarity: int,
    thresholds: Optional[DriftThresholds] = None,
) -> List[str]:
    """Human-readable flags for a comparison, in fixed order."""
    thresholds = thresholds or DriftThresholds()
    alerts: List[str] = []

    if mentions_added > 0:
        alerts.append(f"{mentions_added} new mention(s) detected")
    if mentions_removed > 0:
        alerts.append(f"{mentions_removed} mention(s) removed")
    if sentiment_changed:
        alerts.append("Sentiment change detected")
    if positioning_changed:
        alerts.append("Significant positioning change detected")
    # Independent of the positioning flag
    if content_similarity < thresholds.rewrite_similarity:
        alerts.append("Major content rewrite detected")

    return alerts


def should_alert(result: DriftResult, thresholds: Optional[DriftThresholds] = None) -> bool:
    """Decide whether a drift result merits surfacing as an alert.

    Fires on high significance, a sentiment flip, or more than two vanished
    mentions.
    """
    thresholds = thresholds or DriftThresholds()
    return (
        result.significance == "high"
        or result.changes.sentiment_changed
        or len(result.changes.mentions_removed) > thresholds.removed_mentions_alert
    )


# =============================================================================
# Main Drift Analysis
# =============================================================================


def no_drift_result() -> DriftResult:
    """Result for byte-identical snapshots."""
    return DriftResult(
        has_drift=False,
        drift_score=0,
        changes=DriftChanges(),
        significance="low",
        alerts=[],
    )


def _validate(comparison: SnapshotComparison, brand_name: str) -> None:
    if not isinstance(brand_name, str) or not brand_name.strip():
        raise InvalidInputError("Brand name is required for drift analysis")

    for label, snapshot in (("previous", comparison.previous), ("current", comparison.current)):
        if not isinstance(snapshot.content, str):
            raise InvalidInputError(
                f"{label} snapshot content must be text, got {type(snapshot.content).__name__}"
            )


def _snapshot_hash(snapshot: Snapshot) -> str:
    return snapshot.hash or content_hash(snapshot.content)


def _check_length(content: str, limit: int, label: str) -> None:
    if limit and len(content) > limit:
        raise ResourceLimitExceededError(len(content), limit, label=f"{label} snapshot content")


def analyze_drift(
    comparison: SnapshotComparison,
    brand_name: str,
    config: Optional[DriftConfig] = None,
    classifier: Optional[SentimentClassifier] = None,
) -> DriftResult:
    """Analyze drift between two snapshots of an LLM answer about a brand.

    Identical hashes short-circuit to a zero-drift result. Otherwise content
    similarity, mention changes and sentiment flips are computed independently
    and combined into the drift score.

    Args:
        comparison: Previous and current snapshot for the same prompt/provider
        brand_name: Brand whose mentions are tracked
        config: Drift config (defaults to the environment-derived config)
        classifier: Sentiment classifier overriding config.sentiment_backend

    Returns:
        DriftResult with score, significance, changes and alerts

    Raises:
        InvalidInputError: Missing brand name or non-text content
        ResourceLimitExceededError: Content longer than config.max_content_length
    """
    config = config or get_default_config()
    _validate(comparison, brand_name)

    previous = comparison.previous
    current = comparison.current

    if _snapshot_hash(previous) == _snapshot_hash(current):
        logger.debug(f"Identical content for {brand_name}, skipping drift computation")
        result = no_drift_result()
        log_drift_event(
            brand_name=brand_name,
            drift_score=0,
            significance="low",
            has_drift=False,
            should_alert=False,
            content_similarity=100,
            short_circuit=True,
        )
        return result

    # Edit distance is quadratic; refuse oversized input before running it
    _check_length(previous.content, config.max_content_length, "previous")
    _check_length(current.content, config.max_content_length, "current")

    thresholds = config.thresholds
    classifier = classifier or get_sentiment_classifier(config.sentiment_backend)

    content_similarity = calculate_similarity(previous.content, current.content)

    previous_mentions = extract_mentions(previous.content, brand_name, window=config.mention_window)
    current_mentions = extract_mentions(current.content, brand_name, window=config.mention_window)
    mentions_added, mentions_removed = diff_mentions(
        previous_mentions, current_mentions, normalize=config.normalize_mentions
    )

    sentiment_changed = detect_sentiment_change(previous.content, current.content, classifier)
    positioning_changed = content_similarity < thresholds.positioning_similarity

    drift_score = score_drift(
        content_similarity=content_similarity,
        mentions_added=len(mentions_added),
        mentions_removed=len(mentions_removed),
        sentiment_changed=sentiment_changed,
        positioning_changed=positioning_changed,
        weights=config.weights,
    )

    result = DriftResult(
        has_drift=drift_score > thresholds.drift,
        drift_score=drift_score,
        changes=DriftChanges(
            mentions_added=mentions_added,
            mentions_removed=mentions_removed,
            sentiment_changed=sentiment_changed,
            positioning_changed=positioning_changed,
            content_similarity=content_similarity,
        ),
        significance=classify_significance(drift_score, thresholds),
        alerts=build_alerts(
            mentions_added=len(mentions_added),
            mentions_removed=len(mentions_removed),
            sentiment_changed=sentiment_changed,
            positioning_changed=positioning_changed,
            content_similarity=content_similarity,
            thresholds=thresholds,
        ),
    )

    log_drift_event(
        brand_name=brand_name,
        drift_score=result.drift_score,
        significance=result.significance,
        has_drift=result.has_drift,
        should_alert=should_alert(result, thresholds),
        content_similarity=content_similarity,
        alerts=result.alerts,
    )

    return result


# =============================================================================
# Snapshot History
# =============================================================================


def analyze_snapshot_history(
    brand_name: str,
    snapshots: Sequence[Snapshot],
    config: Optional[DriftConfig] = None,
    classifier: Optional[SentimentClassifier] = None,
) -> DriftAlert:
    """Analyze drift across a brand's snapshot history.

    Snapshots are ordered by timestamp and consecutive pairs are compared.
    The alert's significance is the highest significance among the pairs.

    Args:
        brand_name: Brand the snapshots are about
        snapshots: Snapshots of the same prompt/provider, in any order
        config: Drift config
        classifier: Sentiment classifier override

    Returns:
        DriftAlert summarizing every consecutive comparison
    """
    if len(snapshots) < 2:
        return DriftAlert(
            brand_name=brand_name,
            significance="low",
            headline=f"Insufficient data for {brand_name} drift analysis",
            details=f"Only {len(snapshots)} snapshot(s) provided. Need at least 2.",
            results=[],
            periods=[],
            generated_at=datetime.now(),
        )

    config = config or get_default_config()
    ordered = sorted(snapshots, key=lambda s: s.timestamp)
    results: List[DriftResult] = []
    periods: List[Tuple[datetime, datetime]] = []
    max_significance = "low"
    summary = DriftRunSummary()

    with timed_operation("drift_history", brand_name=brand_name, snapshots=len(ordered)) as timer:
        for previous, current in zip(ordered, ordered[1:]):
            result = analyze_drift(
                SnapshotComparison(previous=previous, current=current),
                brand_name,
                config=config,
                classifier=classifier,
            )
            results.append(result)
            periods.append((previous.timestamp, current.timestamp))
            summary.record_result(result.has_drift, should_alert(result, config.thresholds))

            if SIGNIFICANCE_ORDER[result.significance] > SIGNIFICANCE_ORDER[max_significance]:
                max_significance = result.significance

        timer.update(summary.to_dict())

    if max_significance == "high":
        headline = f"HIGH: Major answer drift detected for {brand_name}"
    elif max_significance == "medium":
        headline = f"MEDIUM: Notable answer changes for {brand_name}"
    else:
        headline = f"LOW: Routine answer variation for {brand_name}"

    details_lines = []
    for (period_from, period_to), result in zip(periods, results):
        details_lines.append(
            f"[{result.significance.upper()}] {period_from.isoformat()} -> "
            f"{period_to.isoformat()}: Score {result.drift_score}"
        )
        if result.alerts:
            details_lines.append(f"   Alerts: {', '.join(result.alerts)}")

    return DriftAlert(
        brand_name=brand_name,
        significance=max_significance,
        headline=headline,
        details="\n".join(details_lines),
        results=results,
        periods=periods,
        generated_at=datetime.now(),
    )


# =============================================================================
# Batch Analysis
# =============================================================================


def analyze_drift_batch(
    items: Sequence[Tuple[SnapshotComparison, str]],
    config: Optional[DriftConfig] = None,
    max_workers: Optional[int] = None,
    use_processes: bool = False,
    return_exceptions: bool = False,
) -> List[Union[DriftResult, Exception]]:
    """Analyze many independent comparisons in parallel.

    Each (comparison, brand_name) pair is analyzed on its own worker; results
    come back in input order. Edit distance is CPU-bound, so use_processes
    gives real parallelism at the cost of pickling the snapshots.

    Args:
        items: (comparison, brand_name) pairs
        config: Drift config shared by every comparison
        max_workers: Worker count (executor default when None)
        use_processes: Use a process pool instead of a thread pool
        return_exceptions: Return a failing item's exception in its slot
            instead of raising it

    Returns:
        One DriftResult (or exception) per item
    """
    config = config or get_default_config()
    if not items:
        return []

    executor_cls = (
        concurrent.futures.ProcessPoolExecutor
        if use_processes
        else concurrent.futures.ThreadPoolExecutor
    )
    # Thread workers share one classifier; process workers build their own
    classifier = None if use_processes else get_sentiment_classifier(config.sentiment_backend)
    summary = DriftRunSummary()
    results: List[Union[DriftResult, Exception]] = []

    with timed_operation("drift_batch", size=len(items), processes=use_processes) as timer:
        with executor_cls(max_workers=max_workers) as executor:
            futures = [
                executor.submit(analyze_drift, comparison, brand_name, config, classifier)
                for comparison, brand_name in items
            ]
            for future in futures:
                try:
                    result = future.result()
                except Exception as e:
                    if not return_exceptions:
                        raise
                    summary.record_error(str(e))
                    results.append(e)
                    continue
                summary.record_result(result.has_drift, should_alert(result, config.thresholds))
                results.append(result)

        timer.update(summary.to_dict())

    summary.log_summary()
    return results


# =============================================================================
# Alert Records
# =============================================================================


def build_alert_record(
    result: DriftResult,
    comparison: SnapshotComparison,
    brand_name: str,
    prompt_id: Optional[str] = None,
    provider: Optional[str] = None,
    model: Optional[str] = None,
) -> DriftAlertRecord:
    """Flatten a drift result into a record for the alert store."""
    return DriftAlertRecord(
        record_id=str(uuid.uuid4()),
        brand_name=brand_name,
        prompt_id=prompt_id,
        provider=provider,
        model=model,
        previous_hash=_snapshot_hash(comparison.previous),
        current_hash=_snapshot_hash(comparison.current),
        previous_timestamp=comparison.previous.timestamp,
        current_timestamp=comparison.current.timestamp,
        drift_score=result.drift_score,
        significance=result.significance,
        content_similarity=result.changes.content_similarity,
        mentions_added_count=len(result.changes.mentions_added),
        mentions_removed_count=len(result.changes.mentions_removed),
        sentiment_changed=result.changes.sentiment_changed,
        positioning_changed=result.changes.positioning_changed,
        alerts=list(result.alerts),
        created_at=datetime.now(),
    )
