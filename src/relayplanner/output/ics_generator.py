"""iCalendar (.ics) export of schedule entries.

This module writes a VCALENDAR document with one VEVENT per entry, so a
driver can load their planned week into any calendar application.
"""

import random
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from relayplanner.domain.models import to_utc

PRODID = "-//MotorRelay//Planner//EN"
UID_DOMAIN = "motorrelay"

_NEWLINES = re.compile(r"\r?\n")


@dataclass
class CalendarEvent:
    """One event to export.

    Attributes:
        job_id: Job the event is for; used in the UID.
        start_at: Event start.
        end_at: Event end.
        title: SUMMARY line, omitted when empty.
        description: DESCRIPTION line, omitted when empty.
    """

    job_id: Optional[str]
    start_at: datetime
    end_at: datetime
    title: Optional[str] = None
    description: Optional[str] = None


def make_uid_factory(seed: Optional[int] = None) -> Callable[[], str]:
    """Build a random hex suffix generator; a seed makes it repeatable."""
    rng = random.Random(seed)

    def next_suffix() -> str:
        return f"{rng.getrandbits(52):013x}"

    return next_suffix


def format_timestamp(moment: datetime) -> str:
    """UTC basic form, e.g. 20240115T110000Z."""
    return to_utc(moment).strftime("%Y%m%dT%H%M%SZ")


def single_line(text: str) -> str:
    """Replace line breaks with spaces so a field stays on one line."""
    return _NEWLINES.sub(" ", text)


class ICSGenerator:
    """Generates .ics calendar documents.

    UIDs combine the job reference with a random suffix. Collisions are
    possible but not guarded against. Pass a seeded uid_factory and a fixed
    clock for byte-for-byte repeatable output.

    Example:
        >>> generator = ICSGenerator()
        >>> generator.generate(events, "planner.ics")
    """

    def __init__(
        self,
        uid_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.uid_factory = uid_factory or make_uid_factory()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def generate(
        self,
        events: Iterable[CalendarEvent],
        output_path: Union[str, Path],
    ) -> str:
        """Generate the document and save it to a file.

        Args:
            events: Events to export.
            output_path: Path to save the .ics file.

        Returns:
            The generated text content.
        """
        content = self.generate_to_string(events)
        # write_bytes keeps the CRLF line endings intact on every platform
        Path(output_path).write_bytes(content.encode("utf-8"))
        return content

    def generate_to_string(self, events: Iterable[CalendarEvent]) -> str:
        """Generate the document and return it as a string."""
        stamp = format_timestamp(self.clock())
        lines = [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            f"PRODID:{PRODID}",
        ]
        for event in events:
            lines.extend(self._event_lines(event, stamp))
        lines.append("END:VCALENDAR")
        return "\r\n".join(lines)

    def _event_lines(self, event: CalendarEvent, stamp: str) -> list[str]:
        reference = event.job_id or event.title or "job"
        lines = [
            "BEGIN:VEVENT",
            f"UID:{reference}-{self.uid_factory()}@{UID_DOMAIN}",
            f"DTSTAMP:{stamp}",
            f"DTSTART:{format_timestamp(event.start_at)}",
            f"DTEND:{format_timestamp(event.end_at)}",
        ]
        if event.title:
            lines.append(f"SUMMARY:{single_line(event.title)}")
        if event.description:
            lines.append(f"DESCRIPTION:{single_line(event.description)}")
        lines.append("END:VEVENT")
        return lines
