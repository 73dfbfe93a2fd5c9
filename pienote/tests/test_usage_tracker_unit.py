from dataclasses import replace
import random

import pytest

from pienote.encounter.state import EncounterState
from pienote.internal_core.config import load_config
from pienote.internal_core.contracts import HistoryEntry, NoteSummary, UsagePatterns
from pienote.internal_core.store import InMemoryUsageStore
from pienote.patterns.tracker import (
    UsageTracker,
    append_history,
    build_usage_statistics,
    record_finalized_note,
    summarize_encounter,
)

DAY_MS = 24 * 60 * 60 * 1000
NOW_MS = 1_760_000_000_000


def _diabetes_state(**values) -> EncounterState:
    state = EncounterState.empty().select_problem("diabetes")
    for field_id, value in values.items():
        state = state.with_intervention_value(field_id.replace("_", "-"), value)
    return state


def test_record_finalized_note_counts_and_signature() -> None:
    summary = NoteSummary(
        problem="diabetes",
        intervention_field_ids=["orders-checked", "bg-check"],
        orders_checked=True,
    )
    patterns = record_finalized_note(UsagePatterns(), summary)
    assert patterns.total_notes == 1
    assert patterns.counts_by_problem == {"diabetes": 1}
    assert patterns.orders_checked_count == 1
    assert patterns.repeated_patterns[0].signature == "diabetes-bg-check,orders-checked"
    assert patterns.repeated_patterns[0].count == 1


def test_record_finalized_note_is_pure() -> None:
    original = UsagePatterns()
    record_finalized_note(original, NoteSummary(problem="other"))
    assert original.total_notes == 0
    assert original.repeated_patterns == []


def test_repeated_patterns_sorted_by_count_with_stable_ties() -> None:
    first = NoteSummary(problem="first-aid", intervention_field_ids=["ice-applied"])
    second = NoteSummary(problem="other", intervention_field_ids=["custom-intervention"])
    third = NoteSummary(problem="medication", intervention_field_ids=["dose"])

    patterns = UsagePatterns()
    for summary in (first, second, third, second):
        patterns = record_finalized_note(patterns, summary)

    assert [item.signature for item in patterns.repeated_patterns] == [
        "other-custom-intervention",
        "first-aid-ice-applied",
        "medication-dose",
    ]
    assert [item.count for item in patterns.repeated_patterns] == [2, 1, 1]
    assert patterns.orders_checked_count == 0


def test_summarize_encounter_uses_every_intervention_key() -> None:
    state = _diabetes_state(orders_checked=True, bg_check="110", insulin_type="Per student's orders")
    summary = summarize_encounter(state)
    assert summary.problem == "diabetes"
    assert summary.intervention_field_ids == ["bg-check", "insulin-type", "orders-checked"]
    assert summary.orders_checked is True

    with pytest.raises(ValueError):
        summarize_encounter(EncounterState.empty())


def test_append_history_evicts_oldest_first() -> None:
    history: list[HistoryEntry] = []
    for index in range(5):
        history = append_history(history, HistoryEntry(problem="other", timestamp=index), max_notes=3)
    assert [item.timestamp for item in history] == [2, 3, 4]


def test_build_usage_statistics_percentages() -> None:
    patterns = UsagePatterns(
        total_notes=3,
        counts_by_problem={"first-aid": 1, "diabetes": 2},
        orders_checked_count=2,
    )
    stats = build_usage_statistics(patterns)
    assert stats.total_notes == 3
    assert [(item.key, item.display_name, item.count, item.percent) for item in stats.problems] == [
        ("diabetes", "Diabetes Management", 2, 67),
        ("first-aid", "First Aid / Minor Injury", 1, 33),
    ]
    assert stats.orders_verification_percent == 67
    assert build_usage_statistics(UsagePatterns()).problems == []


def test_tracker_finalize_persists_patterns_and_history() -> None:
    store = InMemoryUsageStore()
    tracker = UsageTracker(store, load_config(), rng=random.Random(3))
    outcome = tracker.finalize(_diabetes_state(bg_check="90", orders_checked=True), now_ms=NOW_MS)

    assert outcome.patterns.total_notes == 1
    assert outcome.history_size == 1
    assert outcome.notices == []
    assert store.load_patterns().total_notes == 1
    assert store.load_history()[0].timestamp == NOW_MS
    assert store.load_last_order_check() == NOW_MS
    assert "order_review" not in {alert.code for alert in outcome.alerts}


def test_tracker_without_orders_leaves_last_check_unset() -> None:
    store = InMemoryUsageStore()
    outcome = UsageTracker(store, load_config()).finalize(_diabetes_state(bg_check="90"), now_ms=NOW_MS)
    assert store.load_last_order_check() is None
    assert "order_review" in {alert.code for alert in outcome.alerts}


def test_frequent_visits_alert_on_eighth_note_within_window() -> None:
    tracker = UsageTracker(InMemoryUsageStore(), load_config())
    codes: list[set[str]] = []
    for index in range(8):
        state = EncounterState.empty().select_problem("first-aid").with_intervention_value("ice-applied", True)
        outcome = tracker.finalize(state, now_ms=NOW_MS + index * (DAY_MS // 4))
        codes.append({alert.code for alert in outcome.alerts})

    assert all("frequent_visits" not in item for item in codes[:7])
    assert "frequent_visits" in codes[7]


def test_privacy_reminder_on_multiples_of_configured_interval() -> None:
    config = replace(load_config(), PIE_PRIVACY_REMINDER_EVERY=3)
    tracker = UsageTracker(InMemoryUsageStore(), config)
    fired: list[int] = []
    for index in range(1, 7):
        outcome = tracker.finalize(EncounterState.empty().select_problem("other"), now_ms=NOW_MS + index)
        if "privacy_reminder" in {alert.code for alert in outcome.alerts}:
            fired.append(outcome.patterns.total_notes)
    assert fired == [3, 6]


def test_history_window_respects_config() -> None:
    config = replace(load_config(), PIE_MAX_HISTORY_NOTES=2)
    tracker = UsageTracker(InMemoryUsageStore(), config)
    for index in range(4):
        outcome = tracker.finalize(EncounterState.empty().select_problem("other"), now_ms=NOW_MS + index)
    assert outcome.history_size == 2
    assert outcome.patterns.total_notes == 4


def test_tracker_without_store_runs_in_memory() -> None:
    tracker = UsageTracker(None, load_config())
    outcome = tracker.finalize(_diabetes_state(bg_check="100"), now_ms=NOW_MS)
    assert outcome.patterns.total_notes == 1
    assert tracker.statistics().total_notes == 1


def test_storage_failure_surfaces_notice_and_keeps_counting() -> None:
    tracker = UsageTracker(InMemoryUsageStore(max_bytes=10), load_config())
    outcome = tracker.finalize(_diabetes_state(bg_check="100"), now_ms=NOW_MS)
    assert outcome.patterns.total_notes == 1
    assert {notice.kind for notice in outcome.notices} == {"quota_exceeded"}
    assert outcome.notices[0].message.startswith("Storage full.")
