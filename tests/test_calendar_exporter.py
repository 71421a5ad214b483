"""Unit tests for calendar export."""
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from adapters.exceptions import (
    AdapterUnavailableError,
    CalendarExportError,
    CalendarGenerationError,
    CalendarNotFoundError,
)
from adapters.registry import AdapterRegistry, build_default_registry
from processor.calendar_exporter import build_calendar, export_calendar
from processor.models import CalendarConfiguration, CalendarEvent
from storage.cache import MemoryCache

NOW = datetime(2024, 7, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def configuration():
    return CalendarConfiguration(
        configuration_id='7',
        subject='alice',
        calendar_name='Team Calendar',
        class_name='configured',
        parameters={
            'events': [
                {
                    'uid': 'kickoff@example.com',
                    'summary': 'Project kickoff',
                    'start': '2024-07-02T14:00:00+00:00',
                    'end': '2024-07-02T15:00:00+00:00',
                    'location': 'Main hall'
                },
                {
                    'uid': 'ancient@example.com',
                    'summary': 'Too old',
                    'start': '2020-01-01T10:00:00+00:00',
                    'end': '2020-01-01T11:00:00+00:00'
                }
            ]
        }
    )


@pytest.fixture
def calendar_store(configuration):
    store = Mock()
    store.get_calendar_configuration.side_effect = (
        lambda configuration_id: configuration if configuration_id == '7' else None
    )
    return store


def test_export_renders_icalendar(calendar_store):
    registry = build_default_registry(MemoryCache('export-test'))

    export = export_calendar('7', calendar_store, registry, now=NOW)

    assert export.content_type == 'text/calendar'
    assert export.filename == 'calendar.ics'
    assert export.calendar_name == 'Team Calendar'
    assert 'BEGIN:VCALENDAR' in export.body
    assert 'SUMMARY:Project kickoff' in export.body
    assert 'Too old' not in export.body


def test_export_window_is_one_year_each_side(calendar_store):
    adapter = Mock()
    adapter.get_events.return_value = Mock(events=frozenset())
    registry = AdapterRegistry()
    registry.register('configured', lambda: adapter)

    export_calendar('7', calendar_store, registry, now=NOW)

    _, start, end = adapter.get_events.call_args.args
    assert start == NOW - timedelta(days=365)
    assert end == NOW + timedelta(days=365)


def test_unknown_configuration(calendar_store):
    with pytest.raises(CalendarNotFoundError):
        export_calendar('8', calendar_store, AdapterRegistry(), now=NOW)


def test_adapter_not_found(calendar_store):
    with pytest.raises(AdapterUnavailableError) as exc_info:
        export_calendar('7', calendar_store, AdapterRegistry(), now=NOW)

    assert exc_info.value.calendar_name == 'Team Calendar'
    assert isinstance(exc_info.value, CalendarExportError)
    assert exc_info.value.__cause__ is not None


def test_generation_failure(calendar_store):
    adapter = Mock()
    adapter.get_events.side_effect = RuntimeError('feed unreadable')
    registry = AdapterRegistry()
    registry.register('configured', lambda: adapter)

    with pytest.raises(CalendarGenerationError) as exc_info:
        export_calendar('7', calendar_store, registry, now=NOW)

    assert exc_info.value.calendar_name == 'Team Calendar'
    assert 'Team Calendar' in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_build_calendar_all_day_event():
    calendar = build_calendar([
        CalendarEvent(
            uid='holiday@example.com',
            summary='Holiday',
            start=datetime(2024, 12, 25, tzinfo=timezone.utc),
            end=datetime(2024, 12, 26, tzinfo=timezone.utc),
            all_day=True
        )
    ])

    assert len(calendar.events) == 1
    assert next(iter(calendar.events)).all_day
    body = ''.join(calendar.serialize_iter())
    assert 'DTSTART;VALUE=DATE:20241225' in body
    assert 'DTEND;VALUE=DATE:20241226' in body


@pytest.mark.parametrize('end,expected_end', [
    (datetime(2024, 3, 7, tzinfo=timezone.utc), '20240307'),
    (datetime(2024, 3, 9, tzinfo=timezone.utc), '20240309'),
    (None, '20240307'),
])
def test_build_calendar_all_day_end_is_exclusive(end, expected_end):
    calendar = build_calendar([
        CalendarEvent(
            uid='conference@example.com',
            summary='Conference',
            start=datetime(2024, 3, 6, tzinfo=timezone.utc),
            end=end,
            all_day=True
        )
    ])

    body = ''.join(calendar.serialize_iter())
    assert 'DTSTART;VALUE=DATE:20240306' in body
    assert f'DTEND;VALUE=DATE:{expected_end}' in body


def test_build_calendar_all_day_east_of_utc_keeps_dates():
    calendar = build_calendar([
        CalendarEvent(
            uid='holiday@example.com',
            summary='Holiday',
            start=datetime(2024, 3, 6, tzinfo=timezone(timedelta(hours=2))),
            all_day=True
        )
    ])

    body = ''.join(calendar.serialize_iter())
    assert 'DTSTART;VALUE=DATE:20240306' in body
    assert 'DTEND;VALUE=DATE:20240307' in body
