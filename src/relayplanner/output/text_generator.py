"""Text rendering of a driver's week.

This module draws the weekly time grid as plain text:
- One column per day and one row per slot
- Entry labels at their start slot, continuation marks below
- Conflict markers and a per-entry listing
"""

from pathlib import Path
from typing import Optional, Sequence, Union

from relayplanner.domain.models import Job, ScheduleEntry, WeekWindow
from relayplanner.scheduling.conflicts import ConflictDetector
from relayplanner.scheduling.time_grid import DAYS_PER_WEEK, TimeGrid

CELL_WIDTH = 12


class WeekViewGenerator:
    """Generates a text view of one week of schedule entries.

    Example:
        >>> generator = WeekViewGenerator(grid)
        >>> print(generator.generate_to_string(week, entries, jobs_map))
    """

    def __init__(self, grid: Optional[TimeGrid] = None):
        self.grid = grid or TimeGrid()
        self.detector = ConflictDetector(self.grid.config.tz)

    def generate(
        self,
        week: WeekWindow,
        entries: Sequence[ScheduleEntry],
        jobs_map: dict[str, Job],
        output_path: Union[str, Path],
    ) -> str:
        """Render the week and save it to a file.

        Returns:
            The generated text content.
        """
        content = self.generate_to_string(week, entries, jobs_map)
        Path(output_path).write_text(content)
        return content

    def generate_to_string(
        self,
        week: WeekWindow,
        entries: Sequence[ScheduleEntry],
        jobs_map: dict[str, Job],
    ) -> str:
        """Render the week and return it as a string."""
        week_entries = self.grid.week_entries(week, entries)
        conflicts = self.detector.conflicts(week_entries)
        placements = [self.grid.placement_of(week, e) for e in week_entries]

        lines = []
        lines.append("=" * 80)
        lines.append(f"WEEK OF {week.start.date().isoformat()}")
        lines.append("=" * 80)

        header = " " * 6 + "".join(
            f"| {d.strftime('%a %d'):<{CELL_WIDTH - 2}}" for d in week.days()
        )
        lines.append(header)
        lines.append("-" * len(header))

        for slot in range(self.grid.total_slots):
            cells = []
            for day in range(DAYS_PER_WEEK):
                cells.append(self._cell(day, slot, week_entries, placements, conflicts, jobs_map))
            lines.append(f"{self.grid.slot_label(slot):<6}" + "".join(cells))

        lines.append("")
        lines.append("-" * 80)
        lines.append("ENTRIES")
        lines.append("-" * 80)
        if not week_entries:
            lines.append("No entries this week.")
        for entry, conflict in sorted(
            zip(week_entries, conflicts), key=lambda pair: pair[0].start_at
        ):
            start = self.grid.config.local(entry.start_at)
            end = self.grid.config.local(entry.end_at)
            marker = "  CONFLICT" if conflict else ""
            lines.append(
                f"{start.strftime('%a %H:%M')}-{end.strftime('%H:%M')}  "
                f"{self._label(entry, jobs_map)}{marker}"
            )

        lines.append("")
        lines.append(f"Total entries: {len(week_entries)}")
        lines.append(f"Conflicting entries: {sum(conflicts)}")
        return "\n".join(lines) + "\n"

    def _cell(
        self,
        day: int,
        slot: int,
        entries: Sequence[ScheduleEntry],
        placements: list,
        conflicts: list[bool],
        jobs_map: dict[str, Job],
    ) -> str:
        for entry, placement, conflict in zip(entries, placements, conflicts):
            if placement.day_index != day or not placement.contains_slot(slot):
                continue
            mark = "!" if conflict else " "
            if slot == placement.start_slot:
                text = self._label(entry, jobs_map)
            else:
                text = "  ..."
            return f"|{mark}{text[:CELL_WIDTH - 2]:<{CELL_WIDTH - 2}}"
        return "|" + " " * (CELL_WIDTH - 1)

    @staticmethod
    def _label(entry: ScheduleEntry, jobs_map: dict[str, Job]) -> str:
        job = jobs_map.get(entry.job_id)
        return job.display_name if job else entry.job_id
