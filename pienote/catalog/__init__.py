"""
Static encounter catalog for the PIE note builder.

Design intent:
- Declare every form field per problem category in one place.
- Keep clinical thresholds as plain constants consumed by validation.
"""
from .limits import CLINICAL_LIMITS, ClinicalLimits
from .problems import (
    PROBLEM_CATALOG,
    FieldSpec,
    ProblemDefinition,
    UnknownProblemError,
    get_problem,
    list_problems,
)

__all__ = [
    "CLINICAL_LIMITS",
    "ClinicalLimits",
    "PROBLEM_CATALOG",
    "FieldSpec",
    "ProblemDefinition",
    "UnknownProblemError",
    "get_problem",
    "list_problems",
]
