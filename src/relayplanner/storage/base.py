"""Schedule repository interface and the cloud-then-local fallback policy."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from relayplanner.domain.models import ScheduleEntry

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Raised when a schedule store cannot be read or written."""


class StoreKind(Enum):
    """Where a schedule was persisted."""

    CLOUD = "cloud"
    LOCAL = "local"


@dataclass
class SaveResult:
    """Outcome of saving a schedule.

    Attributes:
        store: The store that persisted the entries.
        entry_count: Number of entries written.
        fallback_reason: Why the primary store was skipped, if it was.
    """

    store: StoreKind
    entry_count: int
    fallback_reason: Optional[str] = None

    @property
    def message(self) -> str:
        """Short status line for the user."""
        if self.store == StoreKind.CLOUD:
            return "Saved to cloud"
        return "Saved locally"


class ScheduleRepository(ABC):
    """Abstract base class for a driver schedule store."""

    @abstractmethod
    def load(self, owner_id: str) -> list[ScheduleEntry]:
        """Load an owner's entries.

        Raises:
            RepositoryError: If the store cannot be read.
        """
        pass

    @abstractmethod
    def save(self, owner_id: str, entries: Sequence[ScheduleEntry]) -> SaveResult:
        """Replace an owner's entries with the given ones.

        Raises:
            RepositoryError: If the store cannot be written.
        """
        pass


class FallbackScheduleRepository(ScheduleRepository):
    """Uses a primary store and falls back to a secondary one.

    Loading falls back when the primary fails or has no entries for the
    owner. Saving falls back when the primary raises RepositoryError. A
    failure of the fallback store itself is raised to the caller.
    """

    def __init__(self, primary: ScheduleRepository, fallback: ScheduleRepository):
        self.primary = primary
        self.fallback = fallback

    def load(self, owner_id: str) -> list[ScheduleEntry]:
        try:
            entries = self.primary.load(owner_id)
        except RepositoryError as exc:
            logger.warning("Primary schedule store failed to load %s: %s", owner_id, exc)
            entries = []
        if entries:
            return entries
        logger.debug("Loading schedule for %s from fallback store", owner_id)
        return self.fallback.load(owner_id)

    def save(self, owner_id: str, entries: Sequence[ScheduleEntry]) -> SaveResult:
        try:
            return self.primary.save(owner_id, entries)
        except RepositoryError as exc:
            logger.warning("Primary schedule store failed to save %s: %s", owner_id, exc)
            result = self.fallback.save(owner_id, entries)
            result.fallback_reason = str(exc)
            return result
