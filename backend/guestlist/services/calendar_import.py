"""
iCalendar (.ics) import for bulk gig creation.

Each VEVENT block is parsed on its own with ``icalendar`` and only the
fields a guest list needs are read: DTSTART, SUMMARY, DESCRIPTION and UID.
Parsing never raises; events that cannot be used are skipped and described
in ``ParseResult.errors``.
"""
import io
import logging
import zipfile
import zlib
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional

from icalendar import Calendar

logger = logging.getLogger(__name__)

ICS_EXTENSION = ".ics"
ZIP_EXTENSION = ".zip"

_EVENT_BEGIN = "BEGIN:VEVENT"
_EVENT_END = "END:VEVENT"


@dataclass
class ParsedEvent:
    id: str
    dj_name: str
    start: datetime
    description: Optional[str] = None

    @property
    def local_start(self) -> datetime:
        """Start as naive local time; UTC starts are converted"""
        if self.start.tzinfo is not None:
            return self.start.astimezone().replace(tzinfo=None)
        return self.start

    @property
    def date(self) -> date:
        return self.local_start.date()


@dataclass
class ParseResult:
    events: List[ParsedEvent] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def clean_text(value: Any) -> str:
    """Put a decoded TEXT value on one line with single spaces"""
    return " ".join(str(value).split())


def event_blocks(content: str) -> Iterator[str]:
    """Yield each complete ``BEGIN:VEVENT``..``END:VEVENT`` block; unterminated ones are dropped"""
    normalized = content.replace("\r\n", "\n").replace("\r", "\n")
    for chunk in normalized.split(_EVENT_BEGIN)[1:]:
        end = chunk.find(_EVENT_END)
        if end != -1:
            yield f"{_EVENT_BEGIN}{chunk[:end]}{_EVENT_END}\n"


def parse_event_block(block: str):
    """Parse one VEVENT block into its icalendar component"""
    event_ics = (
        "BEGIN:VCALENDAR\n"
        "VERSION:2.0\n"
        "PRODID:-//guestlist//calendar import//EN\n"
        f"{block}"
        "END:VCALENDAR\n"
    )
    calendar = Calendar.from_ical(event_ics)
    for component in calendar.walk("VEVENT"):
        return component
    return None


def event_start(dtstart) -> datetime:
    """
    Start of an event from its DTSTART property.

    An all-day DATE starts at local midnight. A UTC DATE-TIME stays
    UTC-aware; any TZID is dropped and the wall-clock time kept as naive
    local time.
    """
    value = dtstart.dt
    if not isinstance(value, datetime):
        return datetime.combine(value, time())
    if value.tzinfo is None or "TZID" in dtstart.params:
        return value.replace(tzinfo=None)
    return value.astimezone(timezone.utc)


def _timestamp_ms(start: datetime) -> int:
    return int(start.timestamp() * 1000)


def _failed_properties(component) -> List[str]:
    return [name.upper() for name, _ in getattr(component, "errors", [])]


def parse_ical_content(content: str) -> ParseResult:
    """Parse raw iCalendar text into events and per-event errors"""
    result = ParseResult()

    for index, block in enumerate(event_blocks(content), start=1):
        try:
            component = parse_event_block(block)
        except Exception as e:
            logger.warning(f"Failed to parse event {index}: {e}")
            result.errors.append(f"Failed to parse event: {e}")
            continue
        if component is None:
            continue

        # icalendar leaves out a DTSTART it cannot read and records it in ``errors``
        dtstart = component.get("DTSTART")
        bad_dtstart = dtstart is None and "DTSTART" in _failed_properties(component)
        summary = clean_text(component.get("SUMMARY", ""))

        if dtstart is None and not bad_dtstart:
            result.errors.append("Event missing DTSTART")
            continue
        if not summary:
            shown = dtstart.to_ical().decode() if dtstart is not None else "an unreadable date"
            result.errors.append(f"Event on {shown} missing SUMMARY")
            continue

        uid = clean_text(component.get("UID", ""))
        description = clean_text(component.get("DESCRIPTION", ""))
        try:
            if dtstart is None:
                raise ValueError("unreadable DTSTART")
            start = event_start(dtstart)
            event = ParsedEvent(
                id=uid or f"event-{index}-{_timestamp_ms(start)}",
                dj_name=summary,
                start=start,
                description=description or None,
            )
            # Starts near the datetime limits overflow when moved to local time
            event.local_start
        except (AttributeError, TypeError, ValueError, OverflowError, OSError):
            result.errors.append(f"Could not parse date for event: {summary}")
            continue

        result.events.append(event)

    result.events = dedupe_events(result.events)
    return result


def dedupe_events(events: Iterable[ParsedEvent]) -> List[ParsedEvent]:
    """Drop repeated ids; the last occurrence wins, first position is kept"""
    unique: Dict[str, ParsedEvent] = {}
    for event in events:
        unique[event.id] = event
    return list(unique.values())


def _decode(data: bytes) -> str:
    return data.decode("utf-8-sig", errors="replace")


def parse_zip_content(data: bytes) -> ParseResult:
    """Parse every .ics entry of a ZIP archive and merge the results"""
    result = ParseResult()
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            names = [
                info.filename for info in zf.infolist()
                if not info.is_dir()
                and info.filename.lower().endswith(ICS_EXTENSION)
                and not info.filename.startswith("__MACOSX/")
            ]
            if not names:
                return ParseResult(errors=["No .ics files found in ZIP archive"])

            events: List[ParsedEvent] = []
            for name in names:
                parsed = parse_ical_content(_decode(zf.read(name)))
                events.extend(parsed.events)
                result.errors.extend(f"{name}: {error}" for error in parsed.errors)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, NotImplementedError, OSError, RuntimeError) as e:
        logger.warning(f"Calendar ZIP could not be read: {e}")
        return ParseResult(errors=[f"Failed to read ZIP file: {e}"])

    result.events = dedupe_events(events)
    return result


def parse_calendar_file(filename: str, data: bytes) -> ParseResult:
    """Dispatch on the file extension (.ics or .zip)"""
    lowered = (filename or "").lower()
    if lowered.endswith(ZIP_EXTENSION):
        result = parse_zip_content(data)
    elif lowered.endswith(ICS_EXTENSION):
        if not data:
            return ParseResult(errors=["Could not read file content"])
        result = parse_ical_content(_decode(data))
    else:
        return ParseResult(errors=["Unsupported file format. Please upload a .ics or .zip file"])

    logger.info(f"📅 Parsed {filename}: {len(result.events)} events, {len(result.errors)} errors")
    return result


def filter_events_by_date_range(
    events: Iterable[ParsedEvent],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[ParsedEvent]:
    """Keep events whose day falls within [start, end], whole days inclusive"""
    return [
        event for event in events
        if (start is None or event.date >= start) and (end is None or event.date <= end)
    ]


def sort_events_by_date(events: Iterable[ParsedEvent]) -> List[ParsedEvent]:
    return sorted(events, key=lambda event: event.local_start)
