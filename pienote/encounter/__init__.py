"""
Encounter state boundary.

Design intent:
- Hold one encounter's answers as an immutable value.
- Every update returns a new state; the caller keeps the only reference.
"""
from .state import EncounterState, UnknownFieldError

__all__ = ["EncounterState", "UnknownFieldError"]
