"""Collects display events across all of a user's calendars."""
import logging
from datetime import date, datetime, time, timedelta, tzinfo
from typing import List

from processor.models import CalendarConfiguration, CalendarEvent, DisplayEvent

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = 'The calendar "{name}" is currently unavailable.'


def _local_midnight(day: date, zone: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=zone)


def to_display_events(
    event: CalendarEvent,
    calendar_name: str,
    start: datetime,
    end: datetime,
    zone: tzinfo
) -> List[DisplayEvent]:
    """
    Expand an event into one DisplayEvent per zone-local day it touches
    within [start, end).

    Args:
        event: Raw calendar event
        calendar_name: Name of the calendar the event came from
        start: Interval start
        end: Interval end (exclusive)
        zone: Viewer's time zone

    Returns:
        List of DisplayEvent objects in chronological order
    """
    if event.all_day:
        first_day = event.start.date()
        last_day = event.end.date() - timedelta(days=1) if event.end else first_day
        last_day = max(first_day, last_day)
    else:
        local_start = event.start.astimezone(zone)
        local_end = (event.end or event.start).astimezone(zone)
        first_day = local_start.date()
        last_day = local_end.date()
        # An end exactly at midnight does not touch the following day
        if local_end > local_start and local_end.time() == time.min:
            last_day -= timedelta(days=1)

    multi_day = last_day > first_day
    display_events = []
    day = first_day
    while day <= last_day:
        day_start = _local_midnight(day, zone)
        day_end = _local_midnight(day + timedelta(days=1), zone)
        if day_end > start and day_start < end:
            display_events.append(DisplayEvent(
                event=event,
                calendar_name=calendar_name,
                day_start=day_start,
                day_end=day_end,
                all_day=event.all_day,
                multi_day=multi_day
            ))
        day += timedelta(days=1)
    return display_events


class CalendarEventAggregator:
    """Builds the display event list for a user's displayed calendars."""

    def __init__(self, calendar_store, registry):
        """
        Args:
            calendar_store: Source of CalendarConfiguration records
            registry: AdapterRegistry resolving configuration class names
        """
        self.calendar_store = calendar_store
        self.registry = registry

    def get_event_list(
        self,
        errors: List[str],
        subject: str,
        start: datetime,
        end: datetime,
        zone: tzinfo
    ) -> List[DisplayEvent]:
        """
        Fetch and expand the events of every displayed calendar.

        A calendar that fails is logged and reported through errors; the
        remaining calendars are still processed.

        Args:
            errors: List collecting user-facing error messages
            subject: Identifier of the requesting user
            start: Interval start
            end: Interval end (exclusive)
            zone: Viewer's time zone

        Returns:
            Display events sorted chronologically
        """
        display_events: List[DisplayEvent] = []
        configurations = self.calendar_store.get_calendar_configurations(subject)

        for configuration in configurations:
            try:
                display_events.extend(
                    self._get_calendar_events(configuration, start, end, zone)
                )
            except Exception as e:
                logger.warning(
                    f"Failed to retrieve calendar '{configuration.calendar_name}' "
                    f"for user '{subject}': {e}",
                    exc_info=True
                )
                errors.append(UNAVAILABLE_MESSAGE.format(name=configuration.calendar_name))

        display_events.sort(key=DisplayEvent.sort_key)
        logger.info(
            f"Collected {len(display_events)} display events from "
            f"{len(configurations)} calendars"
        )
        return display_events

    def _get_calendar_events(
        self,
        configuration: CalendarConfiguration,
        start: datetime,
        end: datetime,
        zone: tzinfo
    ) -> List[DisplayEvent]:
        adapter = self.registry.get(configuration.class_name)
        event_set = adapter.get_events(configuration, start, end)

        display_events = []
        for event in event_set.events:
            display_events.extend(to_display_events(
                event, configuration.calendar_name, start, end, zone
            ))
        return display_events
