import random

from pienote.internal_core.config import load_config
from pienote.internal_core.contracts import HistoryEntry, RepeatedPattern, UsagePatterns
from pienote.patterns.decision_support import CLINICAL_TIPS, build_decision_support_alerts

DAY_MS = 24 * 60 * 60 * 1000
NOW_MS = 1_760_000_000_000


def _codes(patterns: UsagePatterns, history=(), last_check=NOW_MS) -> list[str]:
    alerts = build_decision_support_alerts(
        patterns,
        list(history),
        last_check,
        now_ms=NOW_MS,
        config=load_config(),
        rng=random.Random(7),
    )
    return [alert.code for alert in alerts]


def test_no_alerts_for_fresh_store_with_recent_order_check() -> None:
    assert _codes(UsagePatterns()) == []


def test_order_review_when_never_checked_or_stale() -> None:
    alerts = build_decision_support_alerts(
        UsagePatterns(),
        [],
        None,
        now_ms=NOW_MS,
        config=load_config(),
        rng=random.Random(1),
    )
    assert [alert.code for alert in alerts] == ["order_review"]
    assert alerts[0].level == "warning"
    assert alerts[0].title == "Medical Order Review"
    assert alerts[0].message in CLINICAL_TIPS

    assert _codes(UsagePatterns(), last_check=NOW_MS - 31 * DAY_MS) == ["order_review"]
    assert _codes(UsagePatterns(), last_check=NOW_MS - 30 * DAY_MS) == []


def test_documentation_completeness_needs_more_than_min_notes() -> None:
    low_ratio = UsagePatterns(total_notes=16, orders_checked_count=9)
    alerts = build_decision_support_alerts(
        low_ratio, [], NOW_MS, now_ms=NOW_MS, config=load_config()
    )
    assert [alert.code for alert in alerts] == ["documentation_completeness"]
    assert "56%" in alerts[0].message

    assert _codes(UsagePatterns(total_notes=15, orders_checked_count=0)) == []
    assert _codes(UsagePatterns(total_notes=16, orders_checked_count=10)) == []


def test_frequent_visits_counts_recent_history_only() -> None:
    recent = [HistoryEntry(problem="other", timestamp=NOW_MS - index * DAY_MS // 2) for index in range(8)]
    stale = [HistoryEntry(problem="other", timestamp=NOW_MS - 8 * DAY_MS) for _ in range(8)]
    assert _codes(UsagePatterns(total_notes=8), recent) == ["frequent_visits"]
    assert _codes(UsagePatterns(total_notes=8), recent[:7] + stale) == []


def test_diabetes_management_alert() -> None:
    patterns = UsagePatterns(total_notes=5, counts_by_problem={"diabetes": 5})
    history = [HistoryEntry(problem="diabetes", timestamp=NOW_MS - index * DAY_MS) for index in range(3)]
    assert _codes(patterns, history) == ["diabetes_management"]
    assert _codes(patterns, history[:2]) == []


def test_documentation_variation_names_problem() -> None:
    patterns = UsagePatterns(
        total_notes=13,
        counts_by_problem={"first-aid": 13},
        repeated_patterns=[RepeatedPattern(signature="first-aid-ice-applied", problem="first-aid", count=13)],
    )
    alerts = build_decision_support_alerts(patterns, [], NOW_MS, now_ms=NOW_MS, config=load_config())
    assert [alert.code for alert in alerts] == ["documentation_variation"]
    assert "Similar First Aid / Minor Injury documentation pattern used 13 times." in alerts[0].message

    patterns.repeated_patterns[0].count = 12
    assert _codes(patterns) == []


def test_privacy_reminder_fires_on_exact_multiples() -> None:
    fired = []
    for total in range(1, 80):
        patterns = UsagePatterns(total_notes=total, orders_checked_count=total)
        if "privacy_reminder" in _codes(patterns):
            fired.append(total)
    assert fired == [25, 50, 75]


def test_alerts_keep_rule_order() -> None:
    patterns = UsagePatterns(
        total_notes=25,
        counts_by_problem={"diabetes": 25},
        orders_checked_count=0,
        repeated_patterns=[RepeatedPattern(signature="diabetes-bg-check", problem="diabetes", count=25)],
    )
    history = [HistoryEntry(problem="diabetes", timestamp=NOW_MS - index) for index in range(8)]
    assert _codes(patterns, history, last_check=None) == [
        "order_review",
        "documentation_completeness",
        "frequent_visits",
        "diabetes_management",
        "documentation_variation",
        "privacy_reminder",
    ]
