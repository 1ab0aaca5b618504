#!/usr/bin/env python3
"""
Drift Check Script.

Compares saved LLM answers for a brand and prints a drift report:
1. Two-file mode: previous answer vs current answer
2. History mode: every *.txt answer in a directory, in filename order

Exit code is 1 when the alert policy fires, 2 on invalid input, 0 otherwise.

Usage:
    python scripts/check_drift.py previous.txt current.txt --brand Acme
    python scripts/check_drift.py previous.txt current.txt --brand Acme --json
    python scripts/check_drift.py --history answers/ --brand Acme
    python scripts/check_drift.py a.txt b.txt --brand Acme --store .cache/drift/alerts.jsonl
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from brand_drift.config import DriftConfig
from brand_drift.drift import (
    analyze_drift,
    analyze_snapshot_history,
    build_alert_record,
    should_alert,
)
from brand_drift.errors import DriftError
from brand_drift.models import Snapshot, SnapshotComparison
from brand_drift.observability import setup_structured_logging
from brand_drift.report import format_drift_history, format_drift_report
from brand_drift.store import DriftAlertStore


EXIT_OK = 0
EXIT_ALERT = 1
EXIT_INVALID = 2


# =============================================================================
# Logging Setup
# =============================================================================


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the drift check."""
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    setup_structured_logging(level=level)


# =============================================================================
# Snapshot Loading
# =============================================================================


def load_snapshot(path: Path) -> Snapshot:
    """Read an answer file into a snapshot timestamped with its mtime."""
    return Snapshot(
        content=path.read_text(encoding="utf-8"),
        timestamp=datetime.fromtimestamp(path.stat().st_mtime),
    )


def load_history(directory: Path) -> List[Snapshot]:
    """Load every *.txt answer in a directory, ordered by filename.

    Timestamps are synthesised from filename order so that sorting by
    timestamp keeps that order even when files share an mtime.
    """
    paths = sorted(directory.glob("*.txt"))
    base = datetime.fromtimestamp(min((p.stat().st_mtime for p in paths), default=0))
    return [
        Snapshot(
            content=path.read_text(encoding="utf-8"),
            timestamp=base + timedelta(seconds=i),
        )
        for i, path in enumerate(paths)
    ]


# =============================================================================
# Commands
# =============================================================================


def run_pair(args: argparse.Namespace, config: DriftConfig) -> int:
    """Compare two answer files."""
    comparison = SnapshotComparison(
        previous=load_snapshot(Path(args.previous)),
        current=load_snapshot(Path(args.current)),
    )
    result = analyze_drift(comparison, args.brand, config=config)
    alerting = should_alert(result, config.thresholds)

    if args.json:
        print(json.dumps({**result.to_api_dict(), "shouldAlert": alerting}, indent=2))
    else:
        print(format_drift_report(result))

    if alerting and args.store:
        store = DriftAlertStore(args.store)
        store.append(build_alert_record(
            result,
            comparison,
            args.brand,
            prompt_id=args.prompt_id,
            provider=args.provider,
            model=args.model,
        ))

    return EXIT_ALERT if alerting else EXIT_OK


def run_history(args: argparse.Namespace, config: DriftConfig) -> int:
    """Compare consecutive answers in a directory."""
    snapshots = load_history(Path(args.history))
    alert = analyze_snapshot_history(args.brand, snapshots, config=config)

    if args.json:
        print(alert.model_dump_json(indent=2))
    else:
        print(format_drift_history(alert))

    alerting = any(should_alert(r, config.thresholds) for r in alert.results)
    return EXIT_ALERT if alerting else EXIT_OK


def main() -> int:
    """Main entry point for the drift check script."""
    parser = argparse.ArgumentParser(
        description="Detect drift between saved LLM answers about a brand"
    )
    parser.add_argument("previous", nargs="?", help="Previous answer file")
    parser.add_argument("current", nargs="?", help="Current answer file")
    parser.add_argument(
        "--brand", "-b",
        required=True,
        help="Brand name whose mentions are tracked"
    )
    parser.add_argument(
        "--history",
        type=str,
        default=None,
        help="Directory of *.txt answers to compare in filename order"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON instead of a text report"
    )
    parser.add_argument(
        "--store",
        type=str,
        default=None,
        help="Append alerting results to this JSONL file"
    )
    parser.add_argument("--prompt-id", default=None, help="Prompt ID recorded with stored alerts")
    parser.add_argument("--provider", default=None, help="LLM provider recorded with stored alerts")
    parser.add_argument("--model", default=None, help="LLM model recorded with stored alerts")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args()

    if not args.history and not (args.previous and args.current):
        parser.error("provide PREVIOUS and CURRENT files, or --history DIR")

    load_dotenv()
    setup_logging(args.verbose)

    try:
        config = DriftConfig.from_env()
        if args.history:
            return run_history(args, config)
        return run_pair(args, config)
    except DriftError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_INVALID
    except OSError as e:
        print(f"ERROR: Failed to read answers: {e}", file=sys.stderr)
        return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
