"""Planner session for one driver.

This module provides the high-level Planner class that owns a driver's
in-memory entries and coordinates auto-scheduling, grid editing, conflict
flags, export, and persistence.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from relayplanner.domain.models import (
    GestureType,
    GridPlacement,
    Job,
    PlannerConfig,
    ScheduleEntry,
    WeekWindow,
    to_utc,
)
from relayplanner.output.ics_generator import CalendarEvent, ICSGenerator
from relayplanner.scheduling.auto_scheduler import AutoScheduler, SchedulerConfig
from relayplanner.scheduling.conflicts import ConflictDetector
from relayplanner.scheduling.placement import Gesture, PlacementController
from relayplanner.scheduling.time_grid import TimeGrid
from relayplanner.storage.base import SaveResult, ScheduleRepository

logger = logging.getLogger(__name__)


class Planner:
    """One driver's weekly planner.

    The planner only ever plans jobs in an active stage. Entries are
    addressed by (job_id, start_at); callers must keep that pair when they
    hold on to an entry, or removal finds nothing.

    Example:
        >>> planner = Planner("driver-1", jobs=jobs, repository=repo)
        >>> planner.load()
        >>> planner.auto_schedule()
        >>> planner.save().message
        'Saved to cloud'
    """

    def __init__(
        self,
        owner_id: str,
        jobs: Optional[Iterable[Job]] = None,
        entries: Optional[Iterable[ScheduleEntry]] = None,
        config: Optional[PlannerConfig] = None,
        scheduler_config: Optional[SchedulerConfig] = None,
        repository: Optional[ScheduleRepository] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the planner.

        Args:
            owner_id: Driver the entries belong to.
            jobs: The driver's jobs; inactive ones are dropped.
            entries: Initial entries.
            config: Planner configuration.
            scheduler_config: Auto-scheduler strategy configuration.
            repository: Where load() and save() go.
            clock: Returns the current time; defaults to the system clock.
        """
        self.owner_id = owner_id
        self.config = config or PlannerConfig()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.repository = repository

        self.grid = TimeGrid(self.config)
        self.detector = ConflictDetector(self.config.tz)
        self.controller = PlacementController(self.grid)
        self.scheduler = AutoScheduler(
            config=self.config,
            scheduler_config=scheduler_config,
            clock=self.clock,
        )

        self.jobs: list[Job] = self.active_jobs(jobs or [])
        self.entries: list[ScheduleEntry] = list(entries or [])
        self.gesture: Optional[Gesture] = None

    @staticmethod
    def active_jobs(jobs: Iterable[Job]) -> list[Job]:
        """Jobs in a stage that still needs planning."""
        return [job for job in jobs if job.is_active]

    @property
    def jobs_map(self) -> dict[str, Job]:
        return {job.id: job for job in self.jobs}

    def set_jobs(self, jobs: Iterable[Job]) -> None:
        """Replace the job list, keeping only active jobs."""
        self.jobs = self.active_jobs(jobs)

    def unscheduled_jobs(self) -> list[Job]:
        """Active jobs that have no entry yet."""
        scheduled = {e.job_id for e in self.entries}
        return [job for job in self.jobs if job.id not in scheduled]

    def current_week(self) -> WeekWindow:
        """The week containing the clock's current time."""
        return self.config.week_of(self.clock())

    # Editing

    def add_manual(self, job_id: str, day: Optional[date] = None) -> ScheduleEntry:
        """Add an entry with the default manual window on a day (default today)."""
        if day is None:
            day = self.config.local(self.clock()).date()
        start = datetime.combine(
            day, time(self.config.manual_start_hour, 0), tzinfo=self.config.tz
        )
        entry = ScheduleEntry(
            job_id=job_id,
            start_at=start,
            end_at=start + timedelta(hours=self.config.manual_duration_hours),
            note=None,
        )
        self.entries.append(entry)
        logger.debug("Added %s manually at %s", job_id, entry.start_at.isoformat())
        return entry

    def remove(self, job_id: str, start_at: datetime) -> bool:
        """Remove entries matching (job_id, start_at).

        Returns:
            True if anything was removed.
        """
        key = (job_id, to_utc(start_at))
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.key != key]
        return len(self.entries) != before

    def auto_schedule(self, now: Optional[datetime] = None) -> list[ScheduleEntry]:
        """Give every unscheduled active job an entry.

        Returns:
            The entries that were added.
        """
        before = len(self.entries)
        self.entries, stats = self.scheduler.schedule_with_stats(
            self.jobs, self.entries, now
        )
        logger.info(
            "Auto-scheduled %d of %d jobs for %s (%s)",
            stats["scheduled_jobs"],
            stats["candidate_jobs"],
            self.owner_id,
            stats["method"],
        )
        return self.entries[before:]

    # Grid view

    def week_entries(self, week: Optional[WeekWindow] = None) -> list[ScheduleEntry]:
        return self.grid.week_entries(week or self.current_week(), self.entries)

    def conflicts(self, week: Optional[WeekWindow] = None) -> list[bool]:
        """Conflict flags aligned with week_entries()."""
        return self.detector.conflicts(self.week_entries(week))

    def placements(self, week: Optional[WeekWindow] = None) -> list[GridPlacement]:
        """Grid placements aligned with week_entries()."""
        week = week or self.current_week()
        return [self.grid.placement_of(week, e) for e in self.week_entries(week)]

    # Gestures

    def begin_gesture(
        self,
        week: WeekWindow,
        job_id: str,
        start_at: datetime,
        gesture_type: GestureType,
    ) -> Optional[Gesture]:
        """Start dragging the entry (job_id, start_at); None if it is gone."""
        key = (job_id, to_utc(start_at))
        for entry in self.entries:
            if entry.key == key:
                self.gesture = self.controller.begin(week, entry, gesture_type)
                return self.gesture
        return None

    def pointer_move(self, x: float, y: float, width: float, height: float) -> None:
        """Apply a pointer-move tick to the active gesture, if any."""
        if self.gesture is None:
            return
        self.entries = self.controller.pointer_move(
            self.entries, self.gesture, x, y, width, height
        )

    def end_gesture(self) -> None:
        """Finish the gesture; entries keep their last computed times."""
        self.gesture = None

    # Export

    def calendar_events(self, week: Optional[WeekWindow] = None) -> list[CalendarEvent]:
        """The week's entries enriched with job titles for export."""
        jobs_map = self.jobs_map
        events = []
        for entry in self.week_entries(week):
            job = jobs_map.get(entry.job_id)
            events.append(
                CalendarEvent(
                    job_id=entry.job_id,
                    start_at=entry.start_at,
                    end_at=entry.end_at,
                    title=job.display_name if job else entry.job_id,
                    description=f"Job {entry.job_id}",
                )
            )
        return events

    def export_ics(
        self,
        week: Optional[WeekWindow] = None,
        output_path: Optional[Union[str, Path]] = None,
        generator: Optional[ICSGenerator] = None,
    ) -> str:
        """Export the week as .ics text, optionally writing it to a file."""
        generator = generator or ICSGenerator(clock=self.clock)
        events = self.calendar_events(week)
        if output_path is None:
            return generator.generate_to_string(events)
        return generator.generate(events, output_path)

    # Persistence

    def load(self) -> list[ScheduleEntry]:
        """Replace the in-memory entries with the repository's."""
        if self.repository is None:
            raise ValueError("Planner has no repository")
        self.entries = self.repository.load(self.owner_id)
        return self.entries

    def save(self) -> SaveResult:
        """Persist the in-memory entries.

        Raises:
            RepositoryError: If no store could persist the entries.
        """
        if self.repository is None:
            raise ValueError("Planner has no repository")
        result = self.repository.save(self.owner_id, self.entries)
        logger.info("%s for %s (%d entries)", result.message, self.owner_id, result.entry_count)
        return result
