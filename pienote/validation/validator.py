from __future__ import annotations

"""
Validate raw clinical inputs before they enter encounter state.

Three response policies:
- silent clamp: negative numbers become 0;
- advisory: warning-band values pass with a warning signal;
- gated commit: critical values need an explicit human acknowledgment,
  otherwise the field is cleared.
"""

import logging
import re
from typing import TYPE_CHECKING, Any, Callable, Optional

from pienote.catalog.limits import CLINICAL_LIMITS, ClinicalLimits
from pienote.catalog.problems import (
    ProblemDefinition,
    UnknownProblemError,
    all_numeric_field_ids,
    get_problem,
)
from pienote.validation.signals import FieldValue, SafetySignal, ValidationResult

if TYPE_CHECKING:
    from pienote.encounter.state import EncounterState


ConfirmCallable = Callable[[str], bool]

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")


def validate_field(
    field_id: str,
    raw_value: Any,
    state: Optional["EncounterState"] = None,
    *,
    confirm: ConfirmCallable | None = None,
    limits: ClinicalLimits = CLINICAL_LIMITS,
    catalog: dict[str, ProblemDefinition] | None = None,
) -> ValidationResult:
    """Validate one raw field value.

    `confirm` receives the alert message and returns the user's decision.
    A missing confirm capability is treated as a denial.
    """
    resolved_id = str(field_id or "").strip()
    if resolved_id not in _numeric_field_ids(state, catalog):
        return ValidationResult(accepted_value=_passthrough(raw_value))

    text = _raw_text(raw_value)
    if not text:
        return ValidationResult(accepted_value=None)

    number = _parse_number(text)
    if number is None:
        return ValidationResult(
            accepted_value=None,
            signals=[
                SafetySignal(
                    severity="info",
                    field=resolved_id,
                    code="numeric_parse_error",
                    message=f"Value for {resolved_id} must be a number.",
                )
            ],
        )

    number = max(number, 0.0)
    accepted = _format_number(number)

    if resolved_id == "carbs-consumed":
        return _validate_carbs(resolved_id, number, accepted, confirm=confirm, limits=limits)
    if resolved_id == "insulin-admin":
        return _validate_insulin(resolved_id, number, accepted, confirm=confirm, limits=limits)
    if resolved_id == "bg-check":
        return _validate_bg(resolved_id, number, accepted, confirm=confirm, limits=limits)
    return ValidationResult(accepted_value=accepted)


def _validate_carbs(
    field_id: str,
    number: float,
    accepted: str,
    *,
    confirm: ConfirmCallable | None,
    limits: ClinicalLimits,
) -> ValidationResult:
    critical = limits.CARB_CRITICAL_THRESHOLD
    if number > critical:
        signal = SafetySignal(
            severity="critical",
            field=field_id,
            code="carbs_critical",
            message=(
                f"CRITICAL: Carbohydrate value of {_format_number(number)}g exceeds safe limit "
                f"({_format_number(critical)}g). This is unusually high for a single meal. "
                "Verify this is not a data entry error. "
                f"Acknowledge to cap at {_format_number(critical)}g, or decline to re-enter."
            ),
            requires_acknowledgment=True,
        )
        if not _ask(confirm, signal):
            return ValidationResult(accepted_value=None, signals=[signal], blocked=True, acknowledged=False)
        return ValidationResult(
            accepted_value=_format_number(critical),
            signals=[signal],
            acknowledged=True,
        )

    if number > limits.CARB_WARNING_THRESHOLD:
        signal = SafetySignal(
            severity="warning",
            field=field_id,
            code="carbs_warning",
            message=(
                f"{_format_number(number)}g is unusually high for a single meal "
                "(typical range: 30-100g). Verify accuracy and document reason if correct."
            ),
        )
        return ValidationResult(accepted_value=accepted, signals=[signal])
    return ValidationResult(accepted_value=accepted)


def _validate_insulin(
    field_id: str,
    number: float,
    accepted: str,
    *,
    confirm: ConfirmCallable | None,
    limits: ClinicalLimits,
) -> ValidationResult:
    if number > limits.INSULIN_CRITICAL_THRESHOLD:
        signal = SafetySignal(
            severity="critical",
            field=field_id,
            code="insulin_critical",
            message=(
                f"CRITICAL: Insulin dose of {_format_number(number)} units exceeds safe threshold "
                f"({_format_number(limits.INSULIN_CRITICAL_THRESHOLD)} units). "
                "Verify medical orders, dose calculation, insulin-to-carb ratio and correction factor "
                "before proceeding."
            ),
            requires_acknowledgment=True,
        )
        if not _ask(confirm, signal):
            return ValidationResult(accepted_value=None, signals=[signal], blocked=True, acknowledged=False)
        return ValidationResult(accepted_value=accepted, signals=[signal], acknowledged=True)

    if number > limits.INSULIN_WARNING_THRESHOLD:
        signal = SafetySignal(
            severity="warning",
            field=field_id,
            code="insulin_warning",
            message=(
                f"{_format_number(number)} units is a high dose. Verify medical orders, "
                "insulin-to-carb ratio, and correction factor. Consider RN consultation."
            ),
        )
        return ValidationResult(accepted_value=accepted, signals=[signal])
    return ValidationResult(accepted_value=accepted)


def _validate_bg(
    field_id: str,
    number: float,
    accepted: str,
    *,
    confirm: ConfirmCallable | None,
    limits: ClinicalLimits,
) -> ValidationResult:
    if 0 < number < limits.BG_CRITICAL_LOW:
        signal = SafetySignal(
            severity="critical",
            field=field_id,
            code="bg_critical_low",
            message=(
                f"CRITICAL HYPOGLYCEMIA: BG {_format_number(number)} mg/dL is dangerously low. "
                "Give 15g fast-acting carbs, recheck in 15 minutes, stay with student, notify parent, "
                "consider glucagon if unable to swallow."
            ),
            requires_acknowledgment=True,
        )
    elif number > limits.BG_CRITICAL_HIGH:
        signal = SafetySignal(
            severity="critical",
            field=field_id,
            code="bg_critical_high",
            message=(
                f"CRITICAL HYPERGLYCEMIA: BG {_format_number(number)} mg/dL is dangerously high. "
                "Check for ketones, verify correction factor per orders, notify parent immediately, "
                "consider MD consultation, monitor for DKA symptoms."
            ),
            requires_acknowledgment=True,
        )
    else:
        return ValidationResult(accepted_value=accepted)

    if not _ask(confirm, signal):
        return ValidationResult(accepted_value=None, signals=[signal], blocked=True, acknowledged=False)
    return ValidationResult(accepted_value=accepted, signals=[signal], acknowledged=True)


def coerce_numeric(raw_value: Any) -> str | None:
    """Apply only the parse and clamp rules: None for non-numbers, negatives become "0".

    Band checks and the acknowledgment gate are left to `validate_field`.
    """
    number = _parse_number(_raw_text(raw_value))
    if number is None:
        return None
    return _format_number(max(number, 0.0))


def _ask(confirm: ConfirmCallable | None, signal: SafetySignal) -> bool:
    acknowledged = bool(confirm(signal.message)) if confirm is not None else False
    logger.info(
        "validation gate field=%s code=%s acknowledged=%s",
        signal.field,
        signal.code,
        acknowledged,
    )
    return acknowledged


def _numeric_field_ids(
    state: Optional["EncounterState"],
    catalog: dict[str, ProblemDefinition] | None,
) -> frozenset[str]:
    problem_key = getattr(state, "selected_problem", None)
    if problem_key:
        try:
            return get_problem(problem_key, catalog).numeric_field_ids()
        except UnknownProblemError:
            pass
    return all_numeric_field_ids(catalog)


def _passthrough(raw_value: Any) -> FieldValue | None:
    if raw_value is None or isinstance(raw_value, (bool, str)):
        return raw_value
    return str(raw_value)


def _raw_text(raw_value: Any) -> str:
    if raw_value is None or isinstance(raw_value, bool):
        return ""
    if isinstance(raw_value, float):
        return _format_number(raw_value)
    return str(raw_value).strip()


def _parse_number(text: str) -> float | None:
    if not _NUMBER_RE.match(text):
        return None
    return float(text)


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)
