"""
Report Formatting - Plain-text summaries of drift results.

Pure rendering: no I/O, same input always gives the same text.
"""
from __future__ import annotations

from typing import List

from brand_drift.models import DriftAlert, DriftResult


MENTION_PREVIEW_CHARS = 100


def mention_preview(text: str, limit: int = MENTION_PREVIEW_CHARS) -> str:
    """First ``limit`` characters of a mention, always followed by an ellipsis."""
    return f"{text[:limit]}..."


def _mention_section(title: str, mentions: List[str]) -> List[str]:
    lines = [f"{title} ({len(mentions)}):"]
    for i, mention in enumerate(mentions, start=1):
        lines.append(f'  {i}. "{mention_preview(mention)}"')
    lines.append("")
    return lines


def format_drift_report(result: DriftResult) -> str:
    """Render a drift result as a multi-line text summary.

    Sections, in order: score header, new mentions, removed mentions,
    sentiment, positioning, content similarity, alerts. Empty sections are
    omitted.

    Args:
        result: DriftResult to render

    Returns:
        Report text ending with a newline
    """
    changes = result.changes
    lines = [
        f"Drift Score: {result.drift_score}/100 ({result.significance} significance)",
        "",
    ]

    if changes.mentions_added:
        lines.extend(_mention_section("New Mentions", changes.mentions_added))

    if changes.mentions_removed:
        lines.extend(_mention_section("Removed Mentions", changes.mentions_removed))

    if changes.sentiment_changed:
        lines.append("Sentiment: Changed")

    if changes.positioning_changed:
        lines.append("Positioning: Changed")

    lines.append(f"Content Similarity: {changes.content_similarity}%")
    lines.append("")

    if result.alerts:
        lines.append("Alerts:")
        for alert in result.alerts:
            lines.append(f"  - {alert}")

    return "\n".join(lines) + "\n"


def format_drift_history(alert: DriftAlert) -> str:
    """Render a brand's drift history as a text report.

    Args:
        alert: DriftAlert from analyze_snapshot_history()

    Returns:
        Formatted report string
    """
    lines = [
        "=" * 60,
        f"LLM ANSWER DRIFT: {alert.brand_name}",
        "=" * 60,
        "",
        alert.headline,
        "",
    ]

    if not alert.results:
        lines.append(alert.details)
        lines.append("=" * 60)
        return "\n".join(lines)

    for (period_from, period_to), result in zip(alert.periods, alert.results):
        changes = result.changes
        lines.append(
            f"[{result.significance.upper()}] {period_from.isoformat()} -> {period_to.isoformat()}"
        )
        lines.append(f"   Drift Score: {result.drift_score}/100")
        lines.append(f"   Content Similarity: {changes.content_similarity}%")

        if changes.sentiment_changed:
            lines.append("   Sentiment: Changed")

        if changes.mentions_added:
            lines.append("")
            lines.append("   NEW MENTIONS:")
            for mention in changes.mentions_added[:3]:
                lines.append(f"   + {mention_preview(mention)}")

        if changes.mentions_removed:
            lines.append("")
            lines.append("   MENTIONS REMOVED:")
            for mention in changes.mentions_removed[:3]:
                lines.append(f"   - {mention_preview(mention)}")

        lines.append("")

    lines.append("=" * 60)
    compared = len(alert.results)
    drifted = sum(1 for r in alert.results if r.has_drift)
    lines.append(f"{drifted} of {compared} comparison(s) drifted")
    lines.append("=" * 60)

    return "\n".join(lines)
