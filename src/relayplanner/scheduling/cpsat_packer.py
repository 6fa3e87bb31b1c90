"""OR-Tools CP-SAT packing of jobs into working-day windows.

This module provides a constraint programming alternative to the greedy
auto-scheduler. Jobs are placed on whole hours inside the working day,
never overlapping each other or the driver's existing entries, and as early
as possible.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ortools.sat.python import cp_model

from relayplanner.domain.models import Job, PlannerConfig, ScheduleEntry

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 1440


@dataclass
class PackingResult:
    """Result from the CP-SAT packer.

    Attributes:
        entries: New entries, one per job in input order (empty unless feasible).
        status: Solver status (OPTIMAL, FEASIBLE, etc.).
        objective_value: Final objective value.
        solve_time_seconds: Time taken to solve.
    """

    entries: list[ScheduleEntry] = field(default_factory=list)
    status: str = "UNKNOWN"
    objective_value: int = 0
    solve_time_seconds: float = 0.0

    @property
    def is_optimal(self) -> bool:
        return self.status == "OPTIMAL"

    @property
    def is_feasible(self) -> bool:
        return self.status in ("OPTIMAL", "FEASIBLE")


class CPSATPacker:
    """Packs jobs into working hours with OR-Tools CP-SAT.

    Times are modelled in wall-clock minutes from midnight of the cursor's
    day. Each job starts on a whole hour between the working-day start and
    the last hour it can start while still ending by the working-day end. A
    job longer than the working day starts at the working-day start.
    """

    def __init__(
        self,
        config: Optional[PlannerConfig] = None,
        horizon_days: int = 14,
        time_limit_seconds: float = 10.0,
        num_workers: int = 0,
    ):
        self.config = config or PlannerConfig()
        self.horizon_days = max(1, horizon_days)
        self.time_limit_seconds = time_limit_seconds
        self.num_workers = num_workers

    def pack(
        self,
        jobs: Sequence[tuple[Job, int]],
        cursor: datetime,
        existing_entries: Sequence[ScheduleEntry] = (),
    ) -> PackingResult:
        """Place jobs at or after the cursor around existing entries.

        Args:
            jobs: (job, whole hours) pairs to place.
            cursor: Earliest allowed start.
            existing_entries: Entries that new jobs must not overlap.

        Returns:
            PackingResult with the new entries and solver statistics.
        """
        if not jobs:
            return PackingResult(status="OPTIMAL")

        cursor = self.config.local(cursor)
        origin = cursor.replace(hour=0, minute=0, second=0, microsecond=0)
        cursor_minute = cursor.hour * 60 + cursor.minute
        horizon = self.horizon_days * MINUTES_PER_DAY
        open_hour = self.config.workday_start_hour
        close_hour = self.config.workday_end_hour

        model = cp_model.CpModel()
        intervals = []
        starts: list[cp_model.IntVar] = []
        ends: list[cp_model.IntVar] = []

        for index, (job, hours) in enumerate(jobs):
            duration = hours * 60
            latest_hour = max(open_hour, close_hour - hours)

            day = model.NewIntVar(0, self.horizon_days - 1, f"day_{index}")
            hour = model.NewIntVar(open_hour, latest_hour, f"hour_{index}")
            start = model.NewIntVar(0, horizon, f"start_{index}")
            end = model.NewIntVar(0, horizon + MINUTES_PER_DAY, f"end_{index}")

            model.Add(start == day * MINUTES_PER_DAY + hour * 60)
            model.Add(start >= cursor_minute)
            intervals.append(
                model.NewIntervalVar(start, duration, end, f"job_{job.id}_{index}")
            )
            starts.append(start)
            ends.append(end)

        # Existing entries are merged first so they never conflict with each other
        for busy_index, (busy_start, busy_end) in enumerate(
            self._busy_minutes(existing_entries, origin, horizon)
        ):
            intervals.append(
                model.NewIntervalVar(
                    busy_start, busy_end - busy_start, busy_end, f"busy_{busy_index}"
                )
            )

        model.AddNoOverlap(intervals)
        model.Minimize(sum(ends))

        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = self.time_limit_seconds
        if self.num_workers > 0:
            solver.parameters.num_workers = self.num_workers

        status = solver.Solve(model)

        status_map = {
            cp_model.OPTIMAL: "OPTIMAL",
            cp_model.FEASIBLE: "FEASIBLE",
            cp_model.INFEASIBLE: "INFEASIBLE",
            cp_model.MODEL_INVALID: "MODEL_INVALID",
            cp_model.UNKNOWN: "UNKNOWN",
        }
        status_str = status_map.get(status, "UNKNOWN")

        if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            logger.debug("CP-SAT packing of %d jobs: %s", len(jobs), status_str)
            return PackingResult(status=status_str, solve_time_seconds=solver.WallTime())

        entries = []
        for (job, hours), start in zip(jobs, starts):
            start_at = origin + timedelta(minutes=solver.Value(start))
            entries.append(
                ScheduleEntry(
                    job_id=job.id,
                    start_at=start_at,
                    end_at=start_at + timedelta(hours=hours),
                    note=None,
                )
            )

        return PackingResult(
            entries=entries,
            status=status_str,
            objective_value=int(solver.ObjectiveValue()),
            solve_time_seconds=solver.WallTime(),
        )

    def _busy_minutes(
        self,
        entries: Sequence[ScheduleEntry],
        origin: datetime,
        horizon: int,
    ) -> list[tuple[int, int]]:
        """Merged [start, end) minute ranges of entries inside the horizon."""
        ranges = []
        for entry in entries:
            start = self._minute_of(entry.start_at, origin)
            end = self._minute_of(entry.end_at, origin)
            start, end = max(0, start), min(horizon + MINUTES_PER_DAY, end)
            if end > start:
                ranges.append((start, end))

        merged: list[tuple[int, int]] = []
        for start, end in sorted(ranges):
            if merged and start <= merged[-1][1]:
                merged[-1] = (merged[-1][0], max(merged[-1][1], end))
            else:
                merged.append((start, end))
        return merged

    def _minute_of(self, moment: datetime, origin: datetime) -> int:
        local = self.config.local(moment)
        days = (local.date() - origin.date()).days
        return days * MINUTES_PER_DAY + local.hour * 60 + local.minute
