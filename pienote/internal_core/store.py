from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from threading import RLock
from typing import Dict, List, Optional

from pydantic import ValidationError

from .config import NoteBuilderConfig
from .contracts import (
    HistoryEntry,
    LastOrderCheck,
    StorageFailureKind,
    StorageKey,
    StorageNotice,
    UsagePatterns,
)

logger = logging.getLogger(__name__)

QUOTA_EXCEEDED_MESSAGE = "Storage full. Consider clearing old notes from the local note store."
UNAVAILABLE_MESSAGE = "Saved usage data is unavailable. Notes still work; patterns will not be kept."
MALFORMED_MESSAGE = "Saved usage data could not be read and was ignored."


class StorageUnavailableError(RuntimeError):
    """Raised inside a store when the backing medium cannot be used."""


class StorageQuotaExceededError(StorageUnavailableError):
    """Raised when a write would push the store past its byte budget."""


class UsageStore:
    """Typed load/save boundary over a raw key -> JSON text medium.

    Failures never propagate: loads fall back to defaults, saves become
    no-ops, and a StorageNotice is recorded for the caller to surface.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._notices: List[StorageNotice] = []

    def _read_raw(self, key: StorageKey) -> Optional[str]:
        raise NotImplementedError

    def _write_raw(self, key: StorageKey, text: str) -> None:
        raise NotImplementedError

    def load_patterns(self) -> UsagePatterns:
        payload = self._load(key="patterns")
        if payload is None:
            return UsagePatterns()
        try:
            return UsagePatterns.model_validate(payload)
        except ValidationError:
            self._record(key="patterns", kind="malformed", operation="load")
            return UsagePatterns()

    def save_patterns(self, patterns: UsagePatterns) -> bool:
        return self._save(key="patterns", payload=patterns.model_dump())

    def load_history(self) -> List[HistoryEntry]:
        payload = self._load(key="history")
        if payload is None:
            return []
        if not isinstance(payload, list):
            self._record(key="history", kind="malformed", operation="load")
            return []
        try:
            return [HistoryEntry.model_validate(item) for item in payload]
        except ValidationError:
            self._record(key="history", kind="malformed", operation="load")
            return []

    def save_history(self, history: List[HistoryEntry]) -> bool:
        return self._save(key="history", payload=[item.model_dump() for item in history])

    def load_last_order_check(self) -> Optional[int]:
        payload = self._load(key="last_order_check")
        if payload is None:
            return None
        try:
            return LastOrderCheck.model_validate(payload).timestamp
        except ValidationError:
            self._record(key="last_order_check", kind="malformed", operation="load")
            return None

    def save_last_order_check(self, timestamp_ms: int) -> bool:
        return self._save(
            key="last_order_check",
            payload=LastOrderCheck(timestamp=int(timestamp_ms)).model_dump(),
        )

    def notices(self) -> List[StorageNotice]:
        with self._lock:
            return list(self._notices)

    def drain_notices(self) -> List[StorageNotice]:
        with self._lock:
            drained = list(self._notices)
            self._notices.clear()
        return drained

    def _load(self, *, key: StorageKey) -> object:
        with self._lock:
            try:
                text = self._read_raw(key)
            except StorageUnavailableError:
                self._record(key=key, kind="unavailable", operation="load")
                return None
        if text is None or not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            self._record(key=key, kind="malformed", operation="load")
            return None

    def _save(self, *, key: StorageKey, payload: object) -> bool:
        text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
        with self._lock:
            try:
                self._write_raw(key, text)
            except StorageQuotaExceededError:
                self._record(key=key, kind="quota_exceeded", operation="save")
                return False
            except StorageUnavailableError:
                self._record(key=key, kind="unavailable", operation="save")
                return False
        return True

    def _record(self, *, key: StorageKey, kind: StorageFailureKind, operation: str) -> None:
        logger.warning("usage store %s failed key=%s kind=%s", operation, key, kind)
        message = {
            "quota_exceeded": QUOTA_EXCEEDED_MESSAGE,
            "unavailable": UNAVAILABLE_MESSAGE,
            "malformed": MALFORMED_MESSAGE,
        }[kind]
        with self._lock:
            self._notices.append(
                StorageNotice(key=key, kind=kind, operation=operation, message=message)
            )


class InMemoryUsageStore(UsageStore):
    def __init__(self, max_bytes: Optional[int] = None):
        super().__init__()
        self._max_bytes = max_bytes
        self._documents: Dict[str, str] = {}

    def _read_raw(self, key: StorageKey) -> Optional[str]:
        return self._documents.get(key)

    def _write_raw(self, key: StorageKey, text: str) -> None:
        if self._max_bytes is not None:
            others = sum(len(value.encode("utf-8")) for name, value in self._documents.items() if name != key)
            if others + len(text.encode("utf-8")) > self._max_bytes:
                raise StorageQuotaExceededError(f"Quota exceeded writing {key}")
        self._documents[key] = text


class JsonFileUsageStore(UsageStore):
    """One JSON document per key under a directory; last write wins."""

    def __init__(self, directory: Path, max_bytes: int):
        super().__init__()
        self._directory = Path(directory)
        self._max_bytes = max_bytes

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: StorageKey) -> Path:
        return self._directory / f"{key}.json"

    def _read_raw(self, key: StorageKey) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageUnavailableError(f"Cannot read {path.name}") from exc

    def _write_raw(self, key: StorageKey, text: str) -> None:
        encoded = text.encode("utf-8")
        if self._used_bytes(exclude=key) + len(encoded) > self._max_bytes:
            raise StorageQuotaExceededError(f"Quota exceeded writing {key}")

        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(encoded)
            os.replace(tmp_path, path)
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot write {path.name}") from exc

    def _used_bytes(self, *, exclude: StorageKey) -> int:
        total = 0
        if not self._directory.is_dir():
            return 0
        for path in self._directory.glob("*.json"):
            if path.name == f"{exclude}.json":
                continue
            try:
                total += path.stat().st_size
            except OSError:
                continue
        return total


def open_usage_store(config: NoteBuilderConfig) -> Optional[JsonFileUsageStore]:
    if not config.PIE_STORAGE_ENABLED:
        return None
    return JsonFileUsageStore(config.storage_dir_path(), config.PIE_STORAGE_MAX_BYTES)
