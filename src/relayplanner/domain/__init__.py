"""Domain models and business rules for driver planning."""

from relayplanner.domain.models import (
    ACTIVE_STATUSES,
    GestureType,
    GridPlacement,
    Job,
    JobStatus,
    PlannerConfig,
    ResizeMode,
    ScheduleEntry,
    WeekWindow,
)
from relayplanner.domain.policies import (
    DefaultDurationPolicy,
    DurationPolicy,
    estimate_hours,
)

__all__ = [
    # Models
    "ACTIVE_STATUSES",
    "GestureType",
    "GridPlacement",
    "Job",
    "JobStatus",
    "PlannerConfig",
    "ResizeMode",
    "ScheduleEntry",
    "WeekWindow",
    # Policies
    "DefaultDurationPolicy",
    "DurationPolicy",
    "estimate_hours",
]
