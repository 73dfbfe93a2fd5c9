from .config import NoteBuilderConfig, load_config
from .store import (
    InMemoryUsageStore,
    UsageStore,
    JsonFileUsageStore,
    StorageQuotaExceededError,
    StorageUnavailableError,
    open_usage_store,
)

__all__ = [
    "NoteBuilderConfig",
    "load_config",
    "InMemoryUsageStore",
    "UsageStore",
    "JsonFileUsageStore",
    "StorageQuotaExceededError",
    "StorageUnavailableError",
    "open_usage_store",
]
