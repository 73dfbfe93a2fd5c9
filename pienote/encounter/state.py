from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from pienote.catalog.problems import (
    OTHER_SPECIFY,
    OTHER_SUFFIX,
    TIME_SUFFIX,
    ProblemDefinition,
    get_problem,
)
from pienote.validation.signals import FieldValue, ValidationResult


class UnknownFieldError(ValueError):
    """Raised when a field id does not belong to the selected problem."""


@dataclass(frozen=True)
class EncounterState:
    selected_problem: Optional[str] = None
    intervention_values: dict[str, FieldValue] = field(default_factory=dict)
    evaluation_values: dict[str, FieldValue] = field(default_factory=dict)
    use_structured_prefix: bool = True

    @classmethod
    def empty(cls, *, use_structured_prefix: bool = True) -> "EncounterState":
        return cls(use_structured_prefix=use_structured_prefix)

    def select_problem(
        self,
        key: str,
        catalog: dict[str, ProblemDefinition] | None = None,
    ) -> "EncounterState":
        """Switch category. Answers from a different category are discarded, never merged."""
        problem = get_problem(key, catalog)
        if problem.key == self.selected_problem:
            return self
        return EncounterState(
            selected_problem=problem.key,
            intervention_values={},
            evaluation_values=dict(problem.default_evaluation_values()),
            use_structured_prefix=self.use_structured_prefix,
        )

    def with_intervention_value(
        self,
        field_id: str,
        value: FieldValue | None,
        catalog: dict[str, ProblemDefinition] | None = None,
    ) -> "EncounterState":
        problem = self._require_problem(catalog)
        if field_id not in problem.intervention_keys():
            raise UnknownFieldError(
                f"Unknown intervention field {field_id!r} for problem {problem.key!r}"
            )
        values = _assign(self.intervention_values, field_id, value)
        spec = problem.get_field(field_id)
        if spec is not None and spec.has_other_option:
            if value is None or OTHER_SPECIFY not in str(value):
                values.pop(field_id + OTHER_SUFFIX, None)
        return replace(self, intervention_values=values)

    def with_evaluation_value(
        self,
        field_id: str,
        value: FieldValue | None,
        catalog: dict[str, ProblemDefinition] | None = None,
    ) -> "EncounterState":
        problem = self._require_problem(catalog)
        if field_id not in problem.evaluation_keys():
            raise UnknownFieldError(
                f"Unknown evaluation field {field_id!r} for problem {problem.key!r}"
            )
        values = _assign(self.evaluation_values, field_id, value)
        spec = problem.get_field(field_id)
        if spec is not None and spec.has_time_input and not value:
            values.pop(field_id + TIME_SUFFIX, None)
        return replace(self, evaluation_values=values)

    def with_value(
        self,
        field_id: str,
        value: FieldValue | None,
        catalog: dict[str, ProblemDefinition] | None = None,
    ) -> "EncounterState":
        problem = self._require_problem(catalog)
        if field_id in problem.intervention_keys():
            return self.with_intervention_value(field_id, value, catalog)
        if field_id in problem.evaluation_keys():
            return self.with_evaluation_value(field_id, value, catalog)
        raise UnknownFieldError(f"Unknown field {field_id!r} for problem {problem.key!r}")

    def apply_validation(
        self,
        field_id: str,
        result: ValidationResult,
        catalog: dict[str, ProblemDefinition] | None = None,
    ) -> "EncounterState":
        # Rejected values clear the field.
        return self.with_value(field_id, result.accepted_value, catalog)

    def with_structured_prefix(self, enabled: bool) -> "EncounterState":
        return replace(self, use_structured_prefix=bool(enabled))

    def reset(self) -> "EncounterState":
        return EncounterState(use_structured_prefix=self.use_structured_prefix)

    def has_data_entered(self) -> bool:
        if self.selected_problem:
            return True
        return any(
            _is_filled(value)
            for value in (*self.intervention_values.values(), *self.evaluation_values.values())
        )

    def touched_intervention_ids(self) -> list[str]:
        return sorted(self.intervention_values)

    def _require_problem(self, catalog: dict[str, ProblemDefinition] | None) -> ProblemDefinition:
        if not self.selected_problem:
            raise UnknownFieldError("No problem selected for this encounter.")
        return get_problem(self.selected_problem, catalog)


def _assign(
    values: dict[str, FieldValue],
    field_id: str,
    value: FieldValue | None,
) -> dict[str, FieldValue]:
    updated = dict(values)
    if value is None:
        updated.pop(field_id, None)
    else:
        updated[field_id] = value
    return updated


def _is_filled(value: object) -> bool:
    if isinstance(value, str):
        return value != ""
    return bool(value)
