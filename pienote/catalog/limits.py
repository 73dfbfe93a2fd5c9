from __future__ import annotations

"""
Clinical thresholds consumed by field validation.

Design intent:
- Keep every safety threshold in one immutable table.
- Blood glucose warning band is a display hint only; it never gates input.
"""

from dataclasses import dataclass
from typing import Literal


BGRange = Literal["critical_low", "low", "in_range", "high", "critical_high"]


@dataclass(frozen=True)
class ClinicalLimits:
    # Blood glucose (mg/dL)
    BG_CRITICAL_LOW: float = 40
    BG_WARNING_LOW: float = 70
    BG_WARNING_HIGH: float = 250
    BG_CRITICAL_HIGH: float = 400
    # Insulin (units)
    INSULIN_WARNING_THRESHOLD: float = 20
    INSULIN_CRITICAL_THRESHOLD: float = 50
    # Carbohydrates (grams)
    CARB_WARNING_THRESHOLD: float = 150
    CARB_CRITICAL_THRESHOLD: float = 250


CLINICAL_LIMITS = ClinicalLimits()


def bg_range_hint(value: float, limits: ClinicalLimits = CLINICAL_LIMITS) -> BGRange | None:
    """Classify a blood glucose reading for UI coloring. Returns None for non-positive readings."""
    if value <= 0:
        return None
    if value < limits.BG_CRITICAL_LOW:
        return "critical_low"
    if value < limits.BG_WARNING_LOW:
        return "low"
    if value > limits.BG_CRITICAL_HIGH:
        return "critical_high"
    if value > limits.BG_WARNING_HIGH:
        return "high"
    return "in_range"
