from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from pienote.internal_core.config import load_config
from pienote.internal_core.contracts import UsagePatterns
from pienote.internal_core.store import JsonFileUsageStore
from pienote.patterns.decision_support import DecisionSupportAlert
from pienote.patterns.tracker import UsageStatistics, UsageTracker, build_usage_statistics


def format_report(
    stats: UsageStatistics,
    patterns: UsagePatterns,
    *,
    history_size: int,
    alerts: Sequence[DecisionSupportAlert] = (),
    list_patterns: bool = False,
) -> list[str]:
    if stats.total_notes <= 0:
        return ["total_notes: 0", "Pattern tracking will appear after you create a few notes."]

    lines = [f"total_notes: {stats.total_notes}", f"history_size: {history_size}"]
    for item in stats.problems:
        lines.append(f"problem: {item.display_name}: {item.count} ({item.percent}%)")
    lines.append(f"orders_verification_rate: {stats.orders_verification_percent}%")

    if list_patterns:
        for pattern in patterns.repeated_patterns:
            lines.append(f"pattern: {pattern.count}x {pattern.signature}")

    for alert in alerts:
        lines.append(f"alert[{alert.level}]: {alert.title}: {alert.message}")
    return lines


def main(argv: Sequence[str] | None = None) -> None:
    config = load_config()
    parser = argparse.ArgumentParser(
        description="Summarize PIE note usage patterns from the local JSON store"
    )
    parser.add_argument(
        "--store-dir",
        default=str(config.storage_dir_path()),
        help=f"Directory holding the usage JSON documents (default: {config.PIE_STORAGE_DIR})",
    )
    parser.add_argument(
        "--list-patterns",
        action="store_true",
        help="Print every repeated documentation signature in addition to the summary.",
    )
    parser.add_argument(
        "--alerts",
        action="store_true",
        help="Evaluate decision-support alerts against the stored data.",
    )
    args = parser.parse_args(argv)

    directory = Path(args.store_dir).expanduser()
    if not directory.is_dir():
        raise SystemExit(f"store directory not found: {directory}")

    store = JsonFileUsageStore(directory, config.PIE_STORAGE_MAX_BYTES)
    patterns = store.load_patterns()
    history = store.load_history()

    alerts: list[DecisionSupportAlert] = []
    if args.alerts:
        alerts = UsageTracker(store, config).alerts()

    for line in format_report(
        build_usage_statistics(patterns),
        patterns,
        history_size=len(history),
        alerts=alerts,
        list_patterns=args.list_patterns,
    ):
        print(line)
    for notice in store.drain_notices():
        print(f"notice: {notice.key}: {notice.message}")


if __name__ == "__main__":
    main()
