"""Validation module for checking a driver's schedule entries.

Validation reports problems; it never modifies or rejects entries. The
planner grid tolerates all of these states, so callers decide what to do
with the result (for example, warn before saving).
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from relayplanner.domain.models import PlannerConfig, ScheduleEntry
from relayplanner.scheduling.conflicts import ConflictDetector


class ValidationErrorType(Enum):
    """Types of validation errors."""

    INVERTED_INTERVAL = "inverted_interval"
    DUPLICATE_JOB = "duplicate_job"
    OUTSIDE_GRID = "outside_grid"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    job_id: Optional[str] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.job_id:
            parts.append(f"Job {self.job_id}:")
        parts.append(self.message)
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a set of entries."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)


class EntryValidator:
    """Validates one driver's schedule entries.

    Errors:
    - An entry whose end is not after its start
    - More than one entry for the same job
    - An entry outside the grid hours, or running past midnight

    Overlapping entries on the same weekday are reported as warnings.

    Example:
        >>> validator = EntryValidator()
        >>> result = validator.validate(entries)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def __init__(self, config: Optional[PlannerConfig] = None):
        self.config = config or PlannerConfig()
        self.detector = ConflictDetector(self.config.tz)

    def validate(self, entries: Sequence[ScheduleEntry]) -> ValidationResult:
        """Validate entries.

        Args:
            entries: The entries to check, typically one week's worth.

        Returns:
            ValidationResult with is_valid flag, errors and warnings.
        """
        result = ValidationResult(is_valid=True)

        for entry in entries:
            self._validate_entry(entry, result)

        counts = Counter(e.job_id for e in entries)
        for job_id, count in counts.items():
            if count > 1:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.DUPLICATE_JOB,
                        message=f"{count} entries for the same job",
                        job_id=job_id,
                        details={"count": count},
                    )
                )

        for i, j in self.detector.conflicting_pairs(entries):
            result.add_warning(
                f"Jobs {entries[i].job_id} and {entries[j].job_id} overlap"
            )

        return result

    def _validate_entry(self, entry: ScheduleEntry, result: ValidationResult) -> None:
        """Validate a single entry."""
        if entry.end_at <= entry.start_at:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.INVERTED_INTERVAL,
                    message=(
                        f"Ends at {entry.end_at.isoformat()} which is not after "
                        f"its start {entry.start_at.isoformat()}"
                    ),
                    job_id=entry.job_id,
                )
            )
            return

        start = self.config.local(entry.start_at)
        end = self.config.local(entry.end_at)
        grid_start = self.config.grid_start_hour * 60
        grid_end = self.config.grid_end_hour * 60
        start_minutes = start.hour * 60 + start.minute
        end_minutes = end.hour * 60 + end.minute

        if start.date() != end.date():
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.OUTSIDE_GRID,
                    message="Runs past midnight",
                    job_id=entry.job_id,
                )
            )
        elif start_minutes < grid_start or end_minutes > grid_end:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.OUTSIDE_GRID,
                    message=(
                        f"{start.strftime('%H:%M')}-{end.strftime('%H:%M')} is outside "
                        f"grid hours {self.config.grid_start_hour:02d}:00-"
                        f"{self.config.grid_end_hour:02d}:00"
                    ),
                    job_id=entry.job_id,
                    details={"start_minutes": start_minutes, "end_minutes": end_minutes},
                )
            )
