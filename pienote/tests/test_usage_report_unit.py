from pathlib import Path

import pytest

from pienote.internal_core.contracts import RepeatedPattern, UsagePatterns
from pienote.internal_core.store import JsonFileUsageStore
from pienote.patterns.decision_support import DecisionSupportAlert
from pienote.patterns.tracker import build_usage_statistics
from pienote.scripts.usage_report import format_report, main


def test_format_report_empty_store() -> None:
    lines = format_report(build_usage_statistics(UsagePatterns()), UsagePatterns(), history_size=0)
    assert lines == ["total_notes: 0", "Pattern tracking will appear after you create a few notes."]


def test_format_report_lists_problems_patterns_and_alerts() -> None:
    patterns = UsagePatterns(
        total_notes=4,
        counts_by_problem={"diabetes": 3, "other": 1},
        orders_checked_count=1,
        repeated_patterns=[RepeatedPattern(signature="diabetes-bg-check", problem="diabetes", count=3)],
    )
    alert = DecisionSupportAlert(level="info", code="privacy_reminder", title="Privacy", message="Lock it.")
    lines = format_report(
        build_usage_statistics(patterns),
        patterns,
        history_size=4,
        alerts=[alert],
        list_patterns=True,
    )
    assert lines == [
        "total_notes: 4",
        "history_size: 4",
        "problem: Diabetes Management: 3 (75%)",
        "problem: Other: 1 (25%)",
        "orders_verification_rate: 25%",
        "pattern: 3x diabetes-bg-check",
        "alert[info]: Privacy: Lock it.",
    ]


def test_main_prints_report_from_store(tmp_path: Path, capsys) -> None:
    store = JsonFileUsageStore(tmp_path, max_bytes=1_000_000)
    store.save_patterns(UsagePatterns(total_notes=2, counts_by_problem={"first-aid": 2}, orders_checked_count=2))

    main(["--store-dir", str(tmp_path)])

    out = capsys.readouterr().out.splitlines()
    assert out[0] == "total_notes: 2"
    assert "history_size: 0" in out
    assert "problem: First Aid / Minor Injury: 2 (100%)" in out


def test_main_reports_malformed_documents(tmp_path: Path, capsys) -> None:
    (tmp_path / "patterns.json").write_text("[broken", encoding="utf-8")

    main(["--store-dir", str(tmp_path)])

    out = capsys.readouterr().out.splitlines()
    assert out[0] == "total_notes: 0"
    assert out[-1].startswith("notice: patterns: ")


def test_main_rejects_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        main(["--store-dir", str(tmp_path / "missing")])
