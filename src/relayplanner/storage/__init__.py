"""Schedule persistence: remote database, local store, fallback policy."""

from relayplanner.storage.base import (
    FallbackScheduleRepository,
    RepositoryError,
    SaveResult,
    ScheduleRepository,
    StoreKind,
)
from relayplanner.storage.local_store import LocalScheduleRepository
from relayplanner.storage.sql_store import SqlScheduleRepository

__all__ = [
    "FallbackScheduleRepository",
    "LocalScheduleRepository",
    "RepositoryError",
    "SaveResult",
    "ScheduleRepository",
    "SqlScheduleRepository",
    "StoreKind",
]
