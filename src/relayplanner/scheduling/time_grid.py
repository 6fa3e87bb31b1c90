"""Weekly time grid for rendering and editing schedule entries.

The grid is 7 day columns by N slot rows, where N covers the configured
grid hours at the configured slot size. It maps grid coordinates to
timestamps and back, and pointer pixels to grid cells. The grid owns no
state of its own; it is a projection of schedule entries.
"""

import math
from datetime import datetime, time, timedelta
from typing import Iterable, Optional

from relayplanner.domain.models import (
    GridPlacement,
    PlannerConfig,
    ScheduleEntry,
    WeekWindow,
    to_utc,
)

DAYS_PER_WEEK = 7


class TimeGrid:
    """Maps between (day, slot) grid coordinates and absolute timestamps.

    Example:
        >>> grid = TimeGrid()
        >>> week = grid.config.week_of(date(2024, 1, 15))
        >>> grid.slot_to_timestamp(week, 0, 2)  # Monday 09:00
        >>> grid.placement_of(week, entry)
    """

    def __init__(self, config: Optional[PlannerConfig] = None):
        self.config = config or PlannerConfig()

    @property
    def total_slots(self) -> int:
        """Slot rows per day column."""
        return self.config.total_slots

    @property
    def slot_minutes(self) -> int:
        return self.config.slot_minutes

    def slot_to_timestamp(
        self,
        week: WeekWindow,
        day_index: int,
        slot_index: int,
    ) -> datetime:
        """Convert a grid coordinate to a UTC timestamp.

        Input is not clamped: a slot index outside the grid gives a time
        outside the grid hours.
        """
        day = week.day_start(day_index).replace(
            hour=self.config.grid_start_hour, minute=0, second=0, microsecond=0
        )
        return to_utc(day + timedelta(minutes=slot_index * self.slot_minutes))

    def placement_of(self, week: WeekWindow, entry: ScheduleEntry) -> GridPlacement:
        """Compute where an entry lands on the grid.

        The day index is the calendar-day offset from the week start in the
        planner timezone, so a 23- or 25-hour DST day still counts as one.
        It is not clipped. The span is at least one slot, so a zero or
        negative length entry still shows.
        """
        start = self.config.local(entry.start_at)
        end = self.config.local(entry.end_at)
        day_index = (start.date() - week.start.date()).days

        start_minutes = (start.hour - self.config.grid_start_hour) * 60 + start.minute
        start_slot = max(0, start_minutes // self.slot_minutes)

        end_minutes = (end.hour - self.config.grid_start_hour) * 60 + end.minute
        end_slot = min(
            self.total_slots, math.ceil(max(0, end_minutes) / self.slot_minutes)
        )
        span = max(1, end_slot - start_slot)

        return GridPlacement(day_index=day_index, start_slot=start_slot, span=span)

    def cell_at(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> tuple[int, int]:
        """Convert a pointer position in grid pixels to a (column, row) cell.

        Args:
            x: Pointer offset from the grid's left edge.
            y: Pointer offset from the grid's top edge.
            width: Measured grid width in pixels.
            height: Measured grid height in pixels.

        Returns:
            Column clamped to [0, 6] and row clamped to [0, total_slots - 1].
        """
        column = 0
        row = 0
        if width > 0:
            column = math.floor(x / (width / DAYS_PER_WEEK))
        if height > 0:
            row = math.floor(y / (height / self.total_slots))
        column = min(DAYS_PER_WEEK - 1, max(0, column))
        row = min(self.total_slots - 1, max(0, row))
        return column, row

    def week_entries(
        self,
        week: WeekWindow,
        entries: Iterable[ScheduleEntry],
    ) -> list[ScheduleEntry]:
        """Entries whose start falls within the week."""
        return [e for e in entries if week.contains(e.start_at)]

    def slot_time(self, slot: int) -> time:
        """Wall-clock time a slot row starts at."""
        minutes = self.config.grid_start_hour * 60 + slot * self.slot_minutes
        hours, mins = divmod(minutes, 60)
        return time(hour=hours % 24, minute=mins)

    def slot_label(self, slot: int) -> str:
        """Human-readable start time of a slot row, e.g. '09:30'."""
        return self.slot_time(slot).strftime("%H:%M")
