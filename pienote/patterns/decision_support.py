from __future__ import annotations

"""
Advisory decision-support nudges derived from usage patterns.

Design intent:
- Deterministic threshold rules, evaluated in a fixed order.
- Advisory only: alerts never block documentation.
- Use conservative language (consider/remember/document).
"""

import math
import random
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from pienote.catalog.problems import PROBLEM_CATALOG, ProblemDefinition
from pienote.internal_core.config import NoteBuilderConfig, load_config
from pienote.internal_core.contracts import HistoryEntry, UsagePatterns

AlertLevel = Literal["info", "warning"]

DAY_MS = 24 * 60 * 60 * 1000

CLINICAL_TIPS: tuple[str, ...] = (
    "Illinois School Code requires annual medical order review. Best practice: verify orders monthly. "
    'Document "medical orders reviewed and followed" in diabetes and medication notes.',
    "Always document the 5 Rights: Right Student, Right Medication, Right Dose, Right Route, Right Time. "
    "This protects you legally and ensures patient safety.",
    "For PRN medications: Document the specific reason for administration and the student's response "
    "to treatment within 30-60 minutes.",
    "Delegation of care to unlicensed personnel requires RN assessment, training documentation, "
    "and ongoing supervision per Illinois Nurse Practice Act.",
    "Emergency medications (EpiPens, Diastat, glucagon) require staff training documentation. "
    "Update emergency action plans annually and after any incident.",
    "FERPA compliance: Never discuss student health information in hallways, staff rooms, or via "
    'unsecured email. Use "need to know" principle.',
    "Maintain daily medication logs separate from health office visit logs. Reconcile controlled "
    "substance counts monthly for accountability.",
)


@dataclass(frozen=True)
class DecisionSupportAlert:
    level: AlertLevel
    code: str
    title: str
    message: str


def build_decision_support_alerts(
    patterns: UsagePatterns,
    history: Sequence[HistoryEntry],
    last_order_check_ms: Optional[int],
    *,
    now_ms: int,
    config: NoteBuilderConfig | None = None,
    rng: random.Random | None = None,
    catalog: dict[str, ProblemDefinition] | None = None,
) -> list[DecisionSupportAlert]:
    cfg = config or load_config()
    chooser = rng or random.Random()
    problems = catalog if catalog is not None else PROBLEM_CATALOG

    alerts: list[DecisionSupportAlert] = []
    for alert in (
        _order_review_alert(last_order_check_ms, now_ms=now_ms, config=cfg, rng=chooser),
        _documentation_completeness_alert(patterns, config=cfg),
        _frequent_visits_alert(history, now_ms=now_ms, config=cfg),
        _diabetes_management_alert(patterns, history, now_ms=now_ms, config=cfg),
        _documentation_variation_alert(patterns, config=cfg, catalog=problems),
        _privacy_reminder_alert(patterns, config=cfg),
    ):
        if alert is not None:
            alerts.append(alert)
    return alerts


def _order_review_alert(
    last_order_check_ms: Optional[int],
    *,
    now_ms: int,
    config: NoteBuilderConfig,
    rng: random.Random,
) -> DecisionSupportAlert | None:
    if last_order_check_ms is not None:
        days_since_check = (now_ms - int(last_order_check_ms)) // DAY_MS
        if days_since_check <= config.PIE_ORDER_CHECK_DAYS:
            return None
    return DecisionSupportAlert(
        level="warning",
        code="order_review",
        title="Medical Order Review",
        message=rng.choice(CLINICAL_TIPS),
    )


def _documentation_completeness_alert(
    patterns: UsagePatterns,
    *,
    config: NoteBuilderConfig,
) -> DecisionSupportAlert | None:
    if patterns.total_notes <= config.PIE_DOC_COMPLETENESS_MIN_NOTES:
        return None
    ratio = patterns.orders_checked_count / patterns.total_notes
    if ratio >= config.PIE_DOC_COMPLETENESS_RATIO:
        return None
    return DecisionSupportAlert(
        level="info",
        code="documentation_completeness",
        title="Documentation Best Practice",
        message=(
            f"Order verification documented in {round_percent(ratio)}% of notes. "
            "Illinois Nurse Practice Act requires following physician orders. "
            "Document verification for legal protection."
        ),
    )


def _frequent_visits_alert(
    history: Sequence[HistoryEntry],
    *,
    now_ms: int,
    config: NoteBuilderConfig,
) -> DecisionSupportAlert | None:
    window_ms = config.PIE_FREQUENT_VISIT_DAYS * DAY_MS
    recent = [item for item in history if now_ms - item.timestamp < window_ms]
    if len(recent) < config.PIE_FREQUENT_VISIT_COUNT:
        return None
    return DecisionSupportAlert(
        level="warning",
        code="frequent_visits",
        title="Frequent Office Visits",
        message=(
            f"{len(recent)} notes documented in past {config.PIE_FREQUENT_VISIT_DAYS} days. "
            "Consider: Is care plan needed? Is there a pattern? "
            "Document parent communication and any referrals."
        ),
    )


def _diabetes_management_alert(
    patterns: UsagePatterns,
    history: Sequence[HistoryEntry],
    *,
    now_ms: int,
    config: NoteBuilderConfig,
) -> DecisionSupportAlert | None:
    if patterns.counts_by_problem.get("diabetes", 0) < config.PIE_DIABETES_ALERT_TOTAL:
        return None
    window_ms = config.PIE_ORDER_CHECK_DAYS * DAY_MS
    recent = [
        item for item in history
        if item.problem == "diabetes" and now_ms - item.timestamp < window_ms
    ]
    if len(recent) < config.PIE_DIABETES_ALERT_RECENT:
        return None
    return DecisionSupportAlert(
        level="info",
        code="diabetes_management",
        title="Diabetes Management",
        message=(
            "Multiple diabetes encounters documented. Reminder: Illinois requires Diabetes Care Plan on file. "
            "Consider: Are BG logs being reviewed? Is parent communication documented?"
        ),
    )


def _documentation_variation_alert(
    patterns: UsagePatterns,
    *,
    config: NoteBuilderConfig,
    catalog: dict[str, ProblemDefinition],
) -> DecisionSupportAlert | None:
    if not patterns.repeated_patterns:
        return None
    top = patterns.repeated_patterns[0]
    if top.count <= config.PIE_REPEATED_PATTERN_ALERT_COUNT:
        return None
    definition = catalog.get(top.problem)
    problem_name = definition.display_name if definition is not None else top.problem
    return DecisionSupportAlert(
        level="info",
        code="documentation_variation",
        title="Clinical Documentation Insight",
        message=(
            f"Similar {problem_name} documentation pattern used {top.count} times. "
            "Consider: Are assessments thorough? Does evaluation reflect student-specific response? "
            "Varied documentation demonstrates critical thinking."
        ),
    )


def _privacy_reminder_alert(
    patterns: UsagePatterns,
    *,
    config: NoteBuilderConfig,
) -> DecisionSupportAlert | None:
    every = config.PIE_PRIVACY_REMINDER_EVERY
    if every <= 0 or patterns.total_notes <= 0 or patterns.total_notes % every != 0:
        return None
    return DecisionSupportAlert(
        level="info",
        code="privacy_reminder",
        title="FERPA Reminder",
        message=(
            "Health records are protected by FERPA and HIPAA. Remember: Store notes securely, "
            "share only with authorized personnel, obtain consent for external releases. "
            "Keep student identifiers private."
        ),
    )


def round_percent(ratio: float) -> int:
    # Half-up, not banker's rounding.
    return int(math.floor(ratio * 100 + 0.5))
