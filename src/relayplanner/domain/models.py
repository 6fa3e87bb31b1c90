"""Domain models for the driver planner.

This module contains the core data structures used throughout the planner,
including jobs, schedule entries, the week window, and grid placements.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from typing import Any, Optional, Union
from zoneinfo import ZoneInfo


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC. Naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO-8601 timestamp (a trailing ``Z`` is accepted)."""
    if isinstance(value, datetime):
        return to_utc(value)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(text))


def resolve_timezone(name: str) -> tzinfo:
    """Resolve a timezone name, with ``UTC`` mapped to the fixed UTC zone."""
    if name.upper() in ("UTC", "Z"):
        return timezone.utc
    return ZoneInfo(name)


class JobStatus(Enum):
    """Pipeline stages of a delivery job."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    COLLECTED = "collected"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Stages a driver still has to plan for
ACTIVE_STATUSES = frozenset({
    JobStatus.ACCEPTED,
    JobStatus.COLLECTED,
    JobStatus.IN_TRANSIT,
    JobStatus.PENDING,
})


class GestureType(Enum):
    """Pointer gestures the planner grid supports on an entry."""

    MOVE = "move"
    RESIZE_TOP = "resize-top"
    RESIZE_BOTTOM = "resize-bottom"


class ResizeMode(Enum):
    """How resize gestures treat an entry whose bounds would cross.

    PERMISSIVE keeps whatever the pointer produced, so a resize can leave
    start_at at or after end_at. STRICT keeps at least one slot between them.
    """

    PERMISSIVE = "permissive"
    STRICT = "strict"


@dataclass
class Job:
    """A delivery job as seen by the planner.

    Attributes:
        id: Unique job identifier.
        status: Current pipeline stage.
        distance_mi: Trip distance in miles, if known.
        title: Job reference shown to the driver.
        company: Dealer company name.
        vehicle_make: Vehicle being delivered.
    """

    id: str
    status: JobStatus = JobStatus.PENDING
    distance_mi: Optional[float] = None
    title: Optional[str] = None
    company: Optional[str] = None
    vehicle_make: Optional[str] = None

    @property
    def is_active(self) -> bool:
        """Whether the job is still in a stage that needs planning."""
        return self.status in ACTIVE_STATUSES

    @property
    def display_name(self) -> str:
        """Best available label for the job."""
        return self.title or self.company or self.vehicle_make or self.id

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Job":
        """Build a job from a record such as a JSON object or database row."""
        status = data.get("status") or JobStatus.PENDING.value
        return cls(
            id=str(data["id"]),
            status=status if isinstance(status, JobStatus) else JobStatus(status),
            distance_mi=data.get("distance_mi"),
            title=data.get("title"),
            company=data.get("company"),
            vehicle_make=data.get("vehicle_make"),
        )


@dataclass
class ScheduleEntry:
    """A scheduled occupancy window for one job, owned by one driver.

    Timestamps are normalized to UTC on construction. Entries are identified
    by the compound key (job_id, start_at); there is no synthetic ID.

    Attributes:
        job_id: The job this window is reserved for.
        start_at: Start of the window.
        end_at: End of the window (exclusive).
        note: Free text, ignored by the scheduling algorithms.
    """

    job_id: str
    start_at: datetime
    end_at: datetime
    note: Optional[str] = None

    def __post_init__(self):
        self.start_at = to_utc(self.start_at)
        self.end_at = to_utc(self.end_at)

    @property
    def key(self) -> tuple[str, datetime]:
        """Compound key used to address the entry for removal."""
        return (self.job_id, self.start_at)

    @property
    def duration(self) -> timedelta:
        """Length of the window (negative if the bounds are inverted)."""
        return self.end_at - self.start_at

    def overlaps(self, other: "ScheduleEntry") -> bool:
        """Half-open interval intersection test."""
        return self.start_at < other.end_at and other.start_at < self.end_at

    def to_dict(self) -> dict[str, Any]:
        """Persisted representation with ISO-8601 timestamps."""
        return {
            "job_id": self.job_id,
            "start_at": self.start_at.isoformat(),
            "end_at": self.end_at.isoformat(),
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScheduleEntry":
        return cls(
            job_id=str(data["job_id"]),
            start_at=parse_timestamp(data["start_at"]),
            end_at=parse_timestamp(data["end_at"]),
            note=data.get("note"),
        )


@dataclass(frozen=True)
class WeekWindow:
    """The Monday-to-Monday span used to filter and display entries.

    Attributes:
        start: Monday 00:00 wall-clock time in the planner timezone.
    """

    start: datetime

    @classmethod
    def for_date(
        cls,
        day: Union[date, datetime],
        tz: tzinfo = timezone.utc,
    ) -> "WeekWindow":
        """Get the week containing a date. Sunday belongs to the prior Monday."""
        if isinstance(day, datetime):
            day = to_utc(day).astimezone(tz).date()
        monday = day - timedelta(days=day.weekday())
        return cls(datetime.combine(monday, time(0, 0), tzinfo=tz))

    @property
    def end(self) -> datetime:
        """Exclusive end of the week."""
        return self.start + timedelta(days=7)

    def contains(self, moment: datetime) -> bool:
        """Check if a timestamp falls in [start, start + 7 days)."""
        return self.start <= to_utc(moment) < self.end

    def shift(self, weeks: int) -> "WeekWindow":
        """Get the week a number of weeks before or after this one."""
        return WeekWindow(self.start + timedelta(weeks=weeks))

    def day_start(self, day_index: int) -> datetime:
        """Midnight of a day in the week (may lie outside it)."""
        return self.start + timedelta(days=day_index)

    def days(self) -> list[date]:
        """The seven calendar dates of the week."""
        return [self.day_start(i).date() for i in range(7)]


@dataclass(frozen=True)
class GridPlacement:
    """Where an entry lands on the weekly time grid.

    Attributes:
        day_index: Day offset from the week start (may be outside 0-6).
        start_slot: First slot row (inclusive).
        span: Number of slot rows covered, always at least 1.
    """

    day_index: int
    start_slot: int
    span: int

    @property
    def end_slot(self) -> int:
        """Last slot row (exclusive)."""
        return self.start_slot + self.span

    def contains_slot(self, slot: int) -> bool:
        """Check if a slot row falls within this placement."""
        return self.start_slot <= slot < self.end_slot


@dataclass
class PlannerConfig:
    """Configuration for the planner grid and working day.

    Attributes:
        grid_start_hour: First hour shown on the grid.
        grid_end_hour: Hour the grid ends (exclusive).
        slot_minutes: Size of one grid row in minutes.
        workday_start_hour: Hour auto-scheduled jobs start from each day.
        workday_end_hour: Latest hour an auto-scheduled job may end in.
        manual_start_hour: Start hour of a manually added entry.
        manual_duration_hours: Length of a manually added entry.
        timezone: Name of the wall-clock timezone used for hours and weekdays.
        resize_mode: Whether resize gestures may invert an entry.
    """

    grid_start_hour: int = 8
    grid_end_hour: int = 20
    slot_minutes: int = 30
    workday_start_hour: int = 9
    workday_end_hour: int = 18
    manual_start_hour: int = 9
    manual_duration_hours: int = 2
    timezone: str = "UTC"
    resize_mode: ResizeMode = ResizeMode.PERMISSIVE
    _tz: Optional[tzinfo] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        if not 0 <= self.grid_start_hour < self.grid_end_hour <= 24:
            raise ValueError(
                f"Invalid grid hours {self.grid_start_hour}-{self.grid_end_hour}"
            )
        if self.slot_minutes <= 0 or 60 % self.slot_minutes != 0:
            raise ValueError(f"slot_minutes must divide 60, got {self.slot_minutes}")
        if not 0 <= self.workday_start_hour < self.workday_end_hour <= 24:
            raise ValueError(
                f"Invalid workday hours {self.workday_start_hour}-{self.workday_end_hour}"
            )
        self._tz = resolve_timezone(self.timezone)

    @property
    def tz(self) -> tzinfo:
        """The resolved planner timezone."""
        return self._tz

    @property
    def slots_per_hour(self) -> int:
        return 60 // self.slot_minutes

    @property
    def total_slots(self) -> int:
        """Number of slot rows in each day column."""
        return (self.grid_end_hour - self.grid_start_hour) * self.slots_per_hour

    def local(self, moment: datetime) -> datetime:
        """Convert a timestamp to planner wall-clock time."""
        return to_utc(moment).astimezone(self.tz)

    def week_of(self, moment: Union[date, datetime]) -> WeekWindow:
        """Week window containing a date or timestamp."""
        return WeekWindow.for_date(moment, self.tz)
