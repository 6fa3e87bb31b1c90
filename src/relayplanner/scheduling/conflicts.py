"""Conflict detection between schedule entries.

Two entries conflict when they fall on the same weekday and their
half-open time intervals intersect. Conflicts are only flagged for
rendering; nothing is resolved or rejected here.
"""

from datetime import timezone, tzinfo
from typing import Sequence

from relayplanner.domain.models import ScheduleEntry


class ConflictDetector:
    """Flags pairwise overlaps among one driver's entries.

    The weekday comparison does not look at the full date, so entries are
    expected to be scoped to a single week before being passed in.
    """

    def __init__(self, tz: tzinfo = timezone.utc):
        self.tz = tz

    def weekday(self, entry: ScheduleEntry) -> int:
        """Weekday (Monday = 0) of an entry's start in the planner timezone."""
        return entry.start_at.astimezone(self.tz).weekday()

    def overlaps(self, a: ScheduleEntry, b: ScheduleEntry) -> bool:
        """Check if two entries conflict."""
        return a.overlaps(b) and self.weekday(a) == self.weekday(b)

    def conflicting_pairs(
        self,
        entries: Sequence[ScheduleEntry],
    ) -> list[tuple[int, int]]:
        """Index pairs (i, j) with i < j of conflicting entries."""
        pairs = []
        for i in range(len(entries)):
            for j in range(i + 1, len(entries)):
                if self.overlaps(entries[i], entries[j]):
                    pairs.append((i, j))
        return pairs

    def conflicts(self, entries: Sequence[ScheduleEntry]) -> list[bool]:
        """Per-entry "has conflict" flags, aligned with the input order.

        An entry is compared with every other position in the list, never
        with itself, even if an equal entry appears twice.
        """
        flags = [False] * len(entries)
        for i, j in self.conflicting_pairs(entries):
            flags[i] = True
            flags[j] = True
        return flags
