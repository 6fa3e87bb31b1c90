"""Interactive placement of entries on the weekly grid.

A drag on the grid is modelled as a Gesture captured when the pointer goes
down, plus a pure reducer that recomputes the entry for each pointer
position. The hosting UI owns the event loop; it calls into this module on
every pointer-move tick and drops the gesture on release. Whatever the last
call produced is the final state.
"""

import dataclasses
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from relayplanner.domain.models import (
    GestureType,
    ResizeMode,
    ScheduleEntry,
    WeekWindow,
)
from relayplanner.scheduling.time_grid import TimeGrid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Gesture:
    """State captured when a drag starts on an entry.

    Attributes:
        job_id: Job of the entry being dragged.
        gesture_type: Move, resize-top or resize-bottom.
        start_at: Entry start when the gesture began.
        end_at: Entry end when the gesture began.
        day_index: Day column the entry was on; pinned for the gesture.
        week: Week the grid was showing.
    """

    job_id: str
    gesture_type: GestureType
    start_at: datetime
    end_at: datetime
    day_index: int
    week: WeekWindow


class PlacementController:
    """Turns pointer positions into updated schedule entries.

    Example:
        >>> controller = PlacementController(grid)
        >>> gesture = controller.begin(week, entry, GestureType.MOVE)
        >>> entries = controller.pointer_move(entries, gesture, x, y, 700, 560)
    """

    def __init__(
        self,
        grid: Optional[TimeGrid] = None,
        resize_mode: Optional[ResizeMode] = None,
    ):
        self.grid = grid or TimeGrid()
        self.resize_mode = resize_mode or self.grid.config.resize_mode

    def begin(
        self,
        week: WeekWindow,
        entry: ScheduleEntry,
        gesture_type: GestureType,
    ) -> Gesture:
        """Start a gesture on an entry."""
        placement = self.grid.placement_of(week, entry)
        return Gesture(
            job_id=entry.job_id,
            gesture_type=gesture_type,
            start_at=entry.start_at,
            end_at=entry.end_at,
            day_index=placement.day_index,
            week=week,
        )

    def apply_gesture(
        self,
        entry: ScheduleEntry,
        gesture: Gesture,
        row: int,
    ) -> ScheduleEntry:
        """Recompute an entry for the pointer being over a slot row.

        The day column is always the one pinned at gesture start.

        Args:
            entry: The entry as it currently stands.
            gesture: Gesture captured at pointer-down.
            row: Slot row under the pointer.

        Returns:
            A new entry; the input is not modified.
        """
        slot = timedelta(minutes=self.grid.slot_minutes)

        if gesture.gesture_type == GestureType.MOVE:
            new_start = self._timestamp(gesture, row)
            slot_count = self._round_half_up(
                (gesture.end_at - gesture.start_at) / slot
            )
            new_end = new_start + slot * max(1, slot_count)
            return dataclasses.replace(entry, start_at=new_start, end_at=new_end)

        if gesture.gesture_type == GestureType.RESIZE_TOP:
            new_start = self._timestamp(gesture, row)
            if self.resize_mode == ResizeMode.STRICT and new_start > entry.end_at - slot:
                new_start = entry.end_at - slot
            return dataclasses.replace(entry, start_at=new_start)

        # Resize-bottom: the end is exclusive of the row under the pointer
        new_end = self._timestamp(gesture, max(row + 1, 1))
        if self.resize_mode == ResizeMode.STRICT and new_end < entry.start_at + slot:
            new_end = entry.start_at + slot
        return dataclasses.replace(entry, end_at=new_end)

    def pointer_move(
        self,
        entries: Sequence[ScheduleEntry],
        gesture: Gesture,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> list[ScheduleEntry]:
        """Apply a pointer-move tick to the dragged entry in a list.

        Every entry with the gesture's job_id is updated; others are kept.
        """
        _column, row = self.grid.cell_at(x, y, width, height)
        logger.debug(
            "Pointer %s on %s at row %d", gesture.gesture_type.value, gesture.job_id, row
        )
        return [
            self.apply_gesture(e, gesture, row) if e.job_id == gesture.job_id else e
            for e in entries
        ]

    def _timestamp(self, gesture: Gesture, row: int) -> datetime:
        return self.grid.slot_to_timestamp(gesture.week, gesture.day_index, row)

    @staticmethod
    def _round_half_up(value: float) -> int:
        return math.floor(value + 0.5)
