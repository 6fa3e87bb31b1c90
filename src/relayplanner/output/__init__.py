"""Output generation for planner weeks (.ics, text)."""

from relayplanner.output.ics_generator import CalendarEvent, ICSGenerator
from relayplanner.output.text_generator import WeekViewGenerator

__all__ = [
    "CalendarEvent",
    "ICSGenerator",
    "WeekViewGenerator",
]
