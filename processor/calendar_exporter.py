"""Export of a single calendar configuration as an iCalendar file."""
import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Iterable, Optional

from ics import Calendar, Event

from adapters.exceptions import (
    AdapterNotFoundError,
    AdapterUnavailableError,
    CalendarGenerationError,
    CalendarNotFoundError,
)
from processor.models import CalendarEvent

logger = logging.getLogger(__name__)

EXPORT_WINDOW = timedelta(days=365)


@dataclass
class CalendarExport:
    """Rendered calendar ready to be sent as a download."""
    body: str
    calendar_name: str
    content_type: str = 'text/calendar'
    filename: str = 'calendar.ics'


def build_calendar(events: Iterable[CalendarEvent]) -> Calendar:
    """Convert raw events into an ics Calendar."""
    calendar = Calendar()
    for event in sorted(events, key=lambda e: (e.start, e.uid)):
        ics_event = Event(
            name=event.summary,
            begin=event.start,
            uid=event.uid,
            description=event.description or None,
            location=event.location or None
        )
        if event.all_day:
            # DTEND of an all-day event is the exclusive date after the last day
            first_day = event.start.date()
            end_day = event.end.date() if event.end else first_day
            if end_day <= first_day:
                end_day = first_day + timedelta(days=1)
            # ics writes DATE values from the UTC instant
            ics_event.begin = datetime.combine(first_day, time.min, tzinfo=timezone.utc)
            ics_event.make_all_day()
            ics_event.end = datetime.combine(end_day, time.min, tzinfo=timezone.utc)
        elif event.end:
            ics_event.end = event.end
        calendar.events.add(ics_event)
    return calendar


def export_calendar(
    configuration_id: str,
    calendar_store,
    registry,
    now: Optional[datetime] = None
) -> CalendarExport:
    """
    Render one calendar covering one year either side of now.

    Args:
        configuration_id: Identifier of the calendar configuration
        calendar_store: Source of CalendarConfiguration records
        registry: AdapterRegistry resolving configuration class names
        now: Centre of the export window (default: current time)

    Returns:
        CalendarExport with the iCalendar body

    Raises:
        CalendarNotFoundError: If the configuration does not exist
        AdapterUnavailableError: If the calendar's adapter is not registered
        CalendarGenerationError: If fetching or rendering the events fails
    """
    configuration = calendar_store.get_calendar_configuration(configuration_id)
    if configuration is None:
        raise CalendarNotFoundError(configuration_id)

    calendar_name = configuration.calendar_name
    try:
        adapter = registry.get(configuration.class_name)
    except AdapterNotFoundError as e:
        logger.error(f"No adapter for calendar '{calendar_name}': {e}")
        raise AdapterUnavailableError(calendar_name) from e

    now = now or datetime.now(timezone.utc)
    try:
        event_set = adapter.get_events(configuration, now - EXPORT_WINDOW, now + EXPORT_WINDOW)
        body = ''.join(build_calendar(event_set.events).serialize_iter())
    except Exception as e:
        logger.error(
            f"Error exporting calendar '{calendar_name}': {e}",
            exc_info=True
        )
        raise CalendarGenerationError(calendar_name) from e

    logger.info(
        f"Exported calendar '{calendar_name}' with {len(event_set.events)} events"
    )
    return CalendarExport(body=body, calendar_name=calendar_name)
