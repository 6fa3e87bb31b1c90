"""Policy definitions for planning rules.

This module contains configurable policies that define business rules
for estimating how long a job occupies a driver. Policies are kept separate
from the scheduling engine to allow independent testing and easy modification.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


def coerce_distance(distance: Any) -> float:
    """Coerce a raw distance value to miles; garbage becomes 0."""
    if isinstance(distance, bool):
        return 0.0
    try:
        miles = float(distance)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(miles) or math.isinf(miles):
        return 0.0
    return miles


class DurationPolicy(ABC):
    """Abstract base class for job duration estimates."""

    @abstractmethod
    def estimate_hours(self, distance: Any) -> float:
        """Estimate the hours a job occupies, given its trip distance.

        Args:
            distance: Trip distance in miles. Missing or invalid values
                are treated as 0.

        Returns:
            Estimated occupied duration in hours.
        """
        pass

    def estimate_whole_hours(self, distance: Any) -> int:
        """Estimated duration rounded up to whole hours."""
        return math.ceil(self.estimate_hours(distance))


@dataclass
class DefaultDurationPolicy(DurationPolicy):
    """Default duration policy implementation.

    - Known distance: drive time at an average of 35 mph
    - Unknown or zero distance: a flat 1-hour placeholder drive
    - Plus 30 minutes for loading and unloading
    - Clamped to 1-10 hours so one job never takes a whole day
    """

    average_speed_mph: float = 35.0
    placeholder_drive_hours: float = 1.0
    buffer_hours: float = 0.5
    min_hours: float = 1.0
    max_hours: float = 10.0

    def estimate_hours(self, distance: Any) -> float:
        miles = coerce_distance(distance)
        if miles > 0:
            drive_hours = miles / self.average_speed_mph
        else:
            drive_hours = self.placeholder_drive_hours
        hours = max(self.min_hours, drive_hours + self.buffer_hours)
        return min(hours, self.max_hours)


_DEFAULT_POLICY = DefaultDurationPolicy()


def estimate_hours(distance: Any) -> float:
    """Estimate job hours with the default policy."""
    return _DEFAULT_POLICY.estimate_hours(distance)
