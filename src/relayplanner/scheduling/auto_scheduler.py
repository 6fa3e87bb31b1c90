"""Auto-scheduler for placing unscheduled jobs on a driver's calendar.

This module provides the AutoScheduler, which takes the driver's active
jobs and existing entries and appends an entry for every job that does not
have one yet. The default strategy packs jobs back to back from the next
hour in input order, rolling a job to 09:00 the next day when it would run
past the end of the working day.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from relayplanner.domain.models import Job, PlannerConfig, ScheduleEntry
from relayplanner.domain.policies import DefaultDurationPolicy, DurationPolicy
from relayplanner.scheduling.cpsat_packer import CPSATPacker

logger = logging.getLogger(__name__)


class SolverType(Enum):
    """Packing strategy for new entries."""

    GREEDY = "greedy"  # Back-to-back from the cursor, FIFO
    CPSAT = "cpsat"  # OR-Tools CP-SAT, avoids existing entries
    HYBRID = "hybrid"  # Try CP-SAT, fall back to greedy


@dataclass
class SchedulerConfig:
    """Configuration for the auto-scheduler.

    Attributes:
        solver_type: Which packing strategy to use.
        priority: Optional sort key applied to candidate jobs before packing.
            None keeps input order.
        horizon_days: Days ahead the CP-SAT strategy may place jobs in.
        time_limit_seconds: CP-SAT solver time limit.
    """

    solver_type: SolverType = SolverType.GREEDY
    priority: Optional[Callable[[Job], Any]] = None
    horizon_days: int = 14
    time_limit_seconds: float = 10.0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AutoScheduler:
    """Assigns unscheduled jobs to sequential time windows.

    Existing entries are carried through unchanged and a job that already has
    an entry is never scheduled again, so re-running on the scheduler's own
    output is a no-op. The greedy strategy does not look at existing entries
    when placing; overlaps are left for the ConflictDetector to flag.

    Example:
        >>> scheduler = AutoScheduler()
        >>> entries = scheduler.schedule(jobs, existing_entries)
    """

    def __init__(
        self,
        config: Optional[PlannerConfig] = None,
        scheduler_config: Optional[SchedulerConfig] = None,
        duration_policy: Optional[DurationPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the scheduler.

        Args:
            config: Planner configuration (working hours, timezone).
            scheduler_config: Strategy configuration.
            duration_policy: Policy for estimating job durations.
            clock: Returns the current time; defaults to the system clock.
        """
        self.config = config or PlannerConfig()
        self.scheduler_config = scheduler_config or SchedulerConfig()
        self.duration_policy = duration_policy or DefaultDurationPolicy()
        self.clock = clock or _utc_now

    def schedule(
        self,
        jobs: Iterable[Job],
        existing_entries: Optional[Iterable[ScheduleEntry]] = None,
        now: Optional[datetime] = None,
    ) -> list[ScheduleEntry]:
        """Schedule every job that has no entry yet.

        Args:
            jobs: Candidate jobs, already filtered to the driver's active jobs.
            existing_entries: Entries already on the calendar.
            now: Current time; defaults to the scheduler's clock.

        Returns:
            Existing entries followed by the new ones, in append order.
        """
        entries, _stats = self.schedule_with_stats(jobs, existing_entries, now)
        return entries

    def schedule_with_stats(
        self,
        jobs: Iterable[Job],
        existing_entries: Optional[Iterable[ScheduleEntry]] = None,
        now: Optional[datetime] = None,
    ) -> tuple[list[ScheduleEntry], dict]:
        """Schedule jobs and return statistics.

        Returns:
            Tuple of (entries, stats_dict).
        """
        entries = list(existing_entries or [])
        candidates = self.unscheduled(jobs, entries)
        stats = {
            "candidate_jobs": len(candidates),
            "scheduled_jobs": 0,
            "unscheduled_jobs": 0,
            "method": "none",
        }
        if not candidates:
            return entries, stats

        if self.scheduler_config.priority is not None:
            candidates = sorted(candidates, key=self.scheduler_config.priority)

        cursor = self.initial_cursor(now or self.clock())
        new_entries = None
        solver_type = self.scheduler_config.solver_type

        if solver_type in (SolverType.CPSAT, SolverType.HYBRID):
            packer = CPSATPacker(
                config=self.config,
                horizon_days=self.scheduler_config.horizon_days,
                time_limit_seconds=self.scheduler_config.time_limit_seconds,
            )
            result = packer.pack(
                [(job, self.job_hours(job)) for job in candidates], cursor, entries
            )
            stats["cpsat_status"] = result.status
            stats["cpsat_time"] = result.solve_time_seconds
            if result.is_feasible:
                new_entries = result.entries
                stats["method"] = "cpsat"
            elif solver_type == SolverType.CPSAT:
                logger.warning(
                    "CP-SAT could not place %d jobs (%s); leaving them unscheduled",
                    len(candidates),
                    result.status,
                )
                stats["unscheduled_jobs"] = len(candidates)
                return entries, stats
            else:
                logger.info("CP-SAT returned %s, falling back to greedy", result.status)

        if new_entries is None:
            new_entries = self.pack_greedy(candidates, cursor)
            stats["method"] = "greedy"

        stats["scheduled_jobs"] = len(new_entries)
        return entries + new_entries, stats

    def unscheduled(
        self,
        jobs: Iterable[Job],
        entries: Iterable[ScheduleEntry],
    ) -> list[Job]:
        """Jobs without an entry, in input order. Repeated job IDs count once."""
        scheduled_ids = {e.job_id for e in entries}
        candidates = []
        for job in jobs:
            if job.id in scheduled_ids:
                continue
            scheduled_ids.add(job.id)
            candidates.append(job)
        return candidates

    def job_hours(self, job: Job) -> int:
        """Whole hours a job is booked for."""
        return self.duration_policy.estimate_whole_hours(job.distance_mi)

    def initial_cursor(self, now: datetime) -> datetime:
        """Top of the next hour, but not before the start of the working day.

        Returned in planner wall-clock time. Late in the evening this can be
        midnight of the following day.
        """
        local_now = self.config.local(now)
        midnight = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
        hour = max(self.config.workday_start_hour, local_now.hour + 1)
        return midnight + timedelta(hours=hour)

    def pack_greedy(self, jobs: list[Job], cursor: datetime) -> list[ScheduleEntry]:
        """Pack jobs back to back from the cursor, in the order given.

        A job whose end would fall after the working-day end hour starts at
        the working-day start hour on the next calendar day instead.
        """
        cursor = self.config.local(cursor)
        new_entries = []
        for job in jobs:
            length = timedelta(hours=self.job_hours(job))
            start = cursor
            end = cursor + length

            if end.hour > self.config.workday_end_hour:
                start = (cursor + timedelta(days=1)).replace(
                    hour=self.config.workday_start_hour, minute=0, second=0, microsecond=0
                )
                end = start + length
                logger.debug("Job %s rolled over to %s", job.id, start.isoformat())

            new_entries.append(
                ScheduleEntry(job_id=job.id, start_at=start, end_at=end, note=None)
            )
            cursor = end

        return new_entries


def auto_schedule(
    jobs: Iterable[Job],
    existing_entries: Optional[Iterable[ScheduleEntry]] = None,
    now: Optional[datetime] = None,
) -> list[ScheduleEntry]:
    """Schedule jobs with the default greedy strategy."""
    return AutoScheduler().schedule(jobs, existing_entries, now)

