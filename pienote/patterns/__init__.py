"""
Usage pattern boundary.

Design intent:
- Count finalized notes by category and by touched-field signature.
- Derive advisory nudges from those counts; never block documentation.
"""
from .decision_support import CLINICAL_TIPS, DecisionSupportAlert, build_decision_support_alerts
from .tracker import (
    FinalizeOutcome,
    UsageStatistics,
    UsageTracker,
    append_history,
    build_usage_statistics,
    record_finalized_note,
    summarize_encounter,
)

__all__ = [
    "CLINICAL_TIPS",
    "DecisionSupportAlert",
    "FinalizeOutcome",
    "UsageStatistics",
    "UsageTracker",
    "append_history",
    "build_decision_support_alerts",
    "build_usage_statistics",
    "record_finalized_note",
    "summarize_encounter",
]
