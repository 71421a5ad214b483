"""Adapter for events declared directly in a calendar configuration."""
from datetime import datetime, timedelta, timezone
from typing import List

from adapters.base import AbstractCalendarAdapter, AdapterParameter
from processor.models import CalendarConfiguration, CalendarEvent, CalendarEventSet


class ConfiguredEventsAdapter(AbstractCalendarAdapter):
    """
    Serves the events listed under a configuration's ``events`` parameter.

    Each entry is a mapping in the shape of ``CalendarEvent.to_dict()``.
    Naive timestamps are taken as UTC.
    """

    def __init__(self, cache):
        super().__init__(
            title_key='configured.title',
            description_key='configured.description',
            parameters=[
                AdapterParameter('events', 'configured.events', required=True),
                AdapterParameter('cache_ttl_seconds', 'configured.cacheTtl')
            ]
        )
        self.cache = cache

    def get_events(
        self,
        configuration: CalendarConfiguration,
        start: datetime,
        end: datetime
    ) -> CalendarEventSet:
        key = self.get_cache_key(configuration, start, end)

        cached = self.cache.get(key)
        if cached is not None:
            self.log.debug(f"Retrieved calendar event set from cache, key: {key}")
            return cached

        events = [
            event for event in self._parse_events(configuration)
            if _overlaps(event, start, end)
        ]
        ttl = int(configuration.parameters.get('cache_ttl_seconds', -1))
        return self.insert_event_set_into_cache(self.cache, key, events, ttl)

    def get_cache_key(
        self,
        configuration: CalendarConfiguration,
        start: datetime,
        end: datetime
    ) -> str:
        return (
            f"configured:{configuration.configuration_id}:"
            f"{int(start.timestamp())}:{int(end.timestamp())}"
        )

    def _parse_events(self, configuration: CalendarConfiguration) -> List[CalendarEvent]:
        return [
            _with_utc_default(CalendarEvent.from_dict(data))
            for data in configuration.parameters.get('events', [])
        ]


def _with_utc_default(event: CalendarEvent) -> CalendarEvent:
    if event.start.tzinfo is not None and (event.end is None or event.end.tzinfo is not None):
        return event
    return CalendarEvent(
        uid=event.uid,
        summary=event.summary,
        start=_aware(event.start),
        end=_aware(event.end) if event.end else None,
        all_day=event.all_day,
        location=event.location,
        description=event.description
    )


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _overlaps(event: CalendarEvent, start: datetime, end: datetime) -> bool:
    if event.all_day:
        # Match on calendar date; to_display_events trims to the viewer's zone
        first_day = event.start.date()
        end_day = event.end.date() if event.end else first_day
        if end_day <= first_day:
            end_day = first_day + timedelta(days=1)
        return (
            first_day < (end + timedelta(days=1)).date()
            and end_day > (start - timedelta(days=1)).date()
        )
    event_end = event.end or event.start
    if event_end == event.start:
        return start <= event.start < end
    return event.start < end and event_end > start
