from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _project_root() -> Path:
    # pienote/internal_core/config.py -> pienote -> project root
    return Path(__file__).resolve().parents[2]


def _getenv_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return default if value is None else value


def _getenv_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


def _getenv_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _getenv_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


@dataclass(frozen=True)
class NoteBuilderConfig:
    PIE_STORAGE_ENABLED: bool
    PIE_STORAGE_DIR: str
    PIE_STORAGE_MAX_BYTES: int
    PIE_MAX_HISTORY_NOTES: int
    PIE_USE_STRUCTURED_PREFIX: bool
    PIE_ORDER_CHECK_DAYS: int
    PIE_FREQUENT_VISIT_DAYS: int
    PIE_FREQUENT_VISIT_COUNT: int
    PIE_DOC_COMPLETENESS_RATIO: float
    PIE_DOC_COMPLETENESS_MIN_NOTES: int
    PIE_REPEATED_PATTERN_ALERT_COUNT: int
    PIE_DIABETES_ALERT_TOTAL: int
    PIE_DIABETES_ALERT_RECENT: int
    PIE_PRIVACY_REMINDER_EVERY: int
    PIE_LOG_LEVEL: str

    def storage_dir_path(self, repo_root: Path | None = None) -> Path:
        root = repo_root if repo_root is not None else _project_root()
        return (root / self.PIE_STORAGE_DIR).resolve()


def load_config() -> NoteBuilderConfig:
    return NoteBuilderConfig(
        PIE_STORAGE_ENABLED=_getenv_bool("PIE_STORAGE_ENABLED", True),
        PIE_STORAGE_DIR=_getenv_str("PIE_STORAGE_DIR", "./tmp/pienote_store"),
        PIE_STORAGE_MAX_BYTES=_getenv_int("PIE_STORAGE_MAX_BYTES", 5 * 1024 * 1024),
        PIE_MAX_HISTORY_NOTES=_getenv_int("PIE_MAX_HISTORY_NOTES", 100),
        PIE_USE_STRUCTURED_PREFIX=_getenv_bool("PIE_USE_STRUCTURED_PREFIX", True),
        PIE_ORDER_CHECK_DAYS=_getenv_int("PIE_ORDER_CHECK_DAYS", 30),
        PIE_FREQUENT_VISIT_DAYS=_getenv_int("PIE_FREQUENT_VISIT_DAYS", 7),
        PIE_FREQUENT_VISIT_COUNT=_getenv_int("PIE_FREQUENT_VISIT_COUNT", 8),
        PIE_DOC_COMPLETENESS_RATIO=_getenv_float("PIE_DOC_COMPLETENESS_RATIO", 0.6),
        PIE_DOC_COMPLETENESS_MIN_NOTES=_getenv_int("PIE_DOC_COMPLETENESS_MIN_NOTES", 15),
        PIE_REPEATED_PATTERN_ALERT_COUNT=_getenv_int("PIE_REPEATED_PATTERN_ALERT_COUNT", 12),
        PIE_DIABETES_ALERT_TOTAL=_getenv_int("PIE_DIABETES_ALERT_TOTAL", 5),
        PIE_DIABETES_ALERT_RECENT=_getenv_int("PIE_DIABETES_ALERT_RECENT", 3),
        PIE_PRIVACY_REMINDER_EVERY=_getenv_int("PIE_PRIVACY_REMINDER_EVERY", 25),
        PIE_LOG_LEVEL=_getenv_str("PIE_LOG_LEVEL", "INFO"),
    )
