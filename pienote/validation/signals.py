from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

Severity = Literal["info", "warning", "critical"]
FieldValue = Union[str, bool]


@dataclass(frozen=True)
class SafetySignal:
    severity: Severity
    field: str
    code: str
    message: str
    requires_acknowledgment: bool = False


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one raw field value.

    accepted_value is None when the field must be cleared (unset).
    acknowledged is None when no acknowledgment was requested.
    """

    accepted_value: FieldValue | None
    signals: list[SafetySignal] = field(default_factory=list)
    blocked: bool = False
    acknowledged: bool | None = None

    @property
    def is_unset(self) -> bool:
        return self.accepted_value is None

    @property
    def highest_severity(self) -> Severity | None:
        ranked = {"info": 0, "warning": 1, "critical": 2}
        if not self.signals:
            return None
        return max(self.signals, key=lambda item: ranked[item.severity]).severity
