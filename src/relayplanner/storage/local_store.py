"""Local key-value schedule store backed by JSON files."""

import json
import logging
from pathlib import Path
from typing import Sequence, Union

from relayplanner.domain.models import ScheduleEntry
from relayplanner.storage.base import (
    RepositoryError,
    SaveResult,
    ScheduleRepository,
    StoreKind,
)

logger = logging.getLogger(__name__)

KEY_PREFIX = "mr_schedule_"


class LocalScheduleRepository(ScheduleRepository):
    """Keeps each owner's entries under the key ``mr_schedule_<owner_id>``.

    Each key is a JSON file in the store directory holding a list of
    ``{job_id, start_at, end_at, note}`` objects. A missing key loads as an
    empty schedule; an unreadable one raises RepositoryError.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def key_for(self, owner_id: str) -> str:
        return f"{KEY_PREFIX}{owner_id}"

    def path_for(self, owner_id: str) -> Path:
        return self.directory / f"{self.key_for(owner_id)}.json"

    def load(self, owner_id: str) -> list[ScheduleEntry]:
        path = self.path_for(owner_id)
        if not path.exists():
            return []
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return [ScheduleEntry.from_dict(item) for item in raw or []]
        except OSError as exc:
            raise RepositoryError(f"Could not read {path}: {exc}") from exc
        except (ValueError, KeyError, TypeError) as exc:
            raise RepositoryError(f"Unreadable schedule in {path}: {exc}") from exc

    def save(self, owner_id: str, entries: Sequence[ScheduleEntry]) -> SaveResult:
        path = self.path_for(owner_id)
        payload = json.dumps([e.to_dict() for e in entries], indent=2)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(payload, encoding="utf-8")
        except OSError as exc:
            raise RepositoryError(f"Could not write {path}: {exc}") from exc

        logger.debug("Saved %d entries for %s to %s", len(entries), owner_id, path)
        return SaveResult(store=StoreKind.LOCAL, entry_count=len(entries))
