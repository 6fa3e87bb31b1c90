"""Scheduling engine for placing delivery jobs on a driver's week."""

from relayplanner.scheduling.auto_scheduler import (
    AutoScheduler,
    SchedulerConfig,
    SolverType,
    auto_schedule,
)
from relayplanner.scheduling.conflicts import ConflictDetector
from relayplanner.scheduling.cpsat_packer import CPSATPacker, PackingResult
from relayplanner.scheduling.placement import Gesture, PlacementController
from relayplanner.scheduling.time_grid import TimeGrid

__all__ = [
    # Auto-scheduling
    "AutoScheduler",
    "SchedulerConfig",
    "SolverType",
    "auto_schedule",
    # Solvers
    "CPSATPacker",
    "PackingResult",
    # Grid and editing
    "ConflictDetector",
    "Gesture",
    "PlacementController",
    "TimeGrid",
]
