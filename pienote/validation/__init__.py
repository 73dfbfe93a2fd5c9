"""
Field validation boundary for the PIE note builder.

Design intent:
- Never silently accept implausible clinical values.
- Keep the acknowledgment prompt injectable so no UI is assumed.
"""
from .signals import SafetySignal, Severity, ValidationResult
from .validator import ConfirmCallable, coerce_numeric, validate_field

__all__ = ["ConfirmCallable", "SafetySignal", "Severity", "ValidationResult", "coerce_numeric", "validate_field"]
