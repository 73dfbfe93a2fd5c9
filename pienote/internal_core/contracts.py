from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

StorageKey = Literal["patterns", "history", "last_order_check"]
StorageFailureKind = Literal["unavailable", "quota_exceeded", "malformed"]


class RepeatedPattern(BaseModel):
    model_config = ConfigDict(extra="forbid")

    signature: str
    problem: str
    count: int = 0


class UsagePatterns(BaseModel):
    model_config = ConfigDict(extra="forbid")

    total_notes: int = 0
    counts_by_problem: Dict[str, int] = Field(default_factory=dict)
    orders_checked_count: int = 0
    repeated_patterns: List[RepeatedPattern] = Field(default_factory=list)


class NoteSummary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    problem: str
    intervention_field_ids: List[str] = Field(default_factory=list)
    orders_checked: bool = False


class HistoryEntry(NoteSummary):
    timestamp: int


class StorageNotice(BaseModel):
    model_config = ConfigDict(extra="forbid")

    key: StorageKey
    kind: StorageFailureKind
    operation: Literal["load", "save"]
    message: str


class LastOrderCheck(BaseModel):
    model_config = ConfigDict(extra="forbid")

    timestamp: Optional[int] = None
