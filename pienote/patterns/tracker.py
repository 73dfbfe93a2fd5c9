from __future__ import annotations

"""
Record finalized notes into usage counters and a bounded history window.

Design intent:
- Counting rules are pure functions over pydantic models.
- UsageTracker is the only place that talks to the store.
- Only field ids and counts are kept; note text never leaves the encounter.
"""

import logging
import random
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from pienote.catalog.problems import PROBLEM_CATALOG, ProblemDefinition
from pienote.encounter.state import EncounterState
from pienote.internal_core.config import NoteBuilderConfig, load_config
from pienote.internal_core.contracts import (
    HistoryEntry,
    NoteSummary,
    RepeatedPattern,
    StorageNotice,
    UsagePatterns,
)
from pienote.internal_core.store import InMemoryUsageStore, UsageStore
from pienote.note.formatting import is_checked
from pienote.patterns.decision_support import (
    DecisionSupportAlert,
    build_decision_support_alerts,
    round_percent,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinalizeOutcome:
    patterns: UsagePatterns
    history_size: int
    alerts: list[DecisionSupportAlert] = field(default_factory=list)
    notices: list[StorageNotice] = field(default_factory=list)


@dataclass(frozen=True)
class ProblemUsage:
    key: str
    display_name: str
    count: int
    percent: int


@dataclass(frozen=True)
class UsageStatistics:
    total_notes: int
    problems: list[ProblemUsage]
    orders_verification_percent: int


def pattern_signature(summary: NoteSummary) -> str:
    return f"{summary.problem}-" + ",".join(sorted(summary.intervention_field_ids))


def summarize_encounter(state: EncounterState) -> NoteSummary:
    if not state.selected_problem:
        raise ValueError("Cannot summarize an encounter without a selected problem.")
    return NoteSummary(
        problem=state.selected_problem,
        intervention_field_ids=state.touched_intervention_ids(),
        orders_checked=is_checked(state.intervention_values.get("orders-checked")),
    )


def record_finalized_note(patterns: UsagePatterns, summary: NoteSummary) -> UsagePatterns:
    counts = dict(patterns.counts_by_problem)
    counts[summary.problem] = counts.get(summary.problem, 0) + 1

    signature = pattern_signature(summary)
    repeated: list[RepeatedPattern] = []
    matched = False
    for item in patterns.repeated_patterns:
        if item.signature == signature:
            repeated.append(item.model_copy(update={"count": item.count + 1}))
            matched = True
        else:
            repeated.append(item.model_copy())
    if not matched:
        repeated.append(RepeatedPattern(signature=signature, problem=summary.problem, count=1))
    # sorted() is stable, so ties keep first-seen order.
    repeated = sorted(repeated, key=lambda item: item.count, reverse=True)

    return UsagePatterns(
        total_notes=patterns.total_notes + 1,
        counts_by_problem=counts,
        orders_checked_count=patterns.orders_checked_count + (1 if summary.orders_checked else 0),
        repeated_patterns=repeated,
    )


def append_history(
    history: Sequence[HistoryEntry],
    entry: HistoryEntry,
    max_notes: int,
) -> list[HistoryEntry]:
    updated = list(history)
    updated.append(entry)
    if max_notes <= 0:
        return []
    if len(updated) > max_notes:
        updated = updated[len(updated) - max_notes:]
    return updated


def build_usage_statistics(
    patterns: UsagePatterns,
    catalog: dict[str, ProblemDefinition] | None = None,
) -> UsageStatistics:
    problems = catalog if catalog is not None else PROBLEM_CATALOG
    total = patterns.total_notes
    if total <= 0:
        return UsageStatistics(total_notes=0, problems=[], orders_verification_percent=0)

    ordered = sorted(patterns.counts_by_problem.items(), key=lambda item: item[1], reverse=True)
    usage: list[ProblemUsage] = []
    for key, count in ordered:
        definition = problems.get(key)
        usage.append(
            ProblemUsage(
                key=key,
                display_name=definition.display_name if definition is not None else key,
                count=count,
                percent=round_percent(count / total),
            )
        )
    return UsageStatistics(
        total_notes=total,
        problems=usage,
        orders_verification_percent=round_percent(patterns.orders_checked_count / total),
    )


def _now_ms() -> int:
    return int(time.time() * 1000)


class UsageTracker:
    """Finalize encounters against a usage store and derive advisory alerts."""

    def __init__(
        self,
        store: Optional[UsageStore] = None,
        config: NoteBuilderConfig | None = None,
        *,
        rng: random.Random | None = None,
    ):
        self._store = store if store is not None else InMemoryUsageStore()
        self._config = config or load_config()
        self._rng = rng

    @property
    def store(self) -> UsageStore:
        return self._store

    def finalize(self, state: EncounterState, *, now_ms: int | None = None) -> FinalizeOutcome:
        timestamp = _now_ms() if now_ms is None else int(now_ms)
        summary = summarize_encounter(state)

        patterns = record_finalized_note(self._store.load_patterns(), summary)
        history = append_history(
            self._store.load_history(),
            HistoryEntry(timestamp=timestamp, **summary.model_dump()),
            self._config.PIE_MAX_HISTORY_NOTES,
        )
        self._store.save_patterns(patterns)
        self._store.save_history(history)
        if summary.orders_checked:
            self._store.save_last_order_check(timestamp)

        logger.info(
            "note finalized problem=%s fields=%d total_notes=%d history_size=%d",
            summary.problem,
            len(summary.intervention_field_ids),
            patterns.total_notes,
            len(history),
        )
        alerts = build_decision_support_alerts(
            patterns,
            history,
            self._store.load_last_order_check(),
            now_ms=timestamp,
            config=self._config,
            rng=self._rng,
        )
        return FinalizeOutcome(
            patterns=patterns,
            history_size=len(history),
            alerts=alerts,
            notices=self._store.drain_notices(),
        )

    def alerts(self, *, now_ms: int | None = None) -> List[DecisionSupportAlert]:
        timestamp = _now_ms() if now_ms is None else int(now_ms)
        return build_decision_support_alerts(
            self._store.load_patterns(),
            self._store.load_history(),
            self._store.load_last_order_check(),
            now_ms=timestamp,
            config=self._config,
            rng=self._rng,
        )

    def statistics(self, catalog: dict[str, ProblemDefinition] | None = None) -> UsageStatistics:
        return build_usage_statistics(self._store.load_patterns(), catalog)
