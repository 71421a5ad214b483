"""Grouping of display events into per-day buckets for the viewer's zone."""
import logging
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Dict, List, Optional, Sequence

from processor.models import DayBuckets, DisplayEvent

logger = logging.getLogger(__name__)

DAY_KEY_FORMAT = '%Y-%m-%d'
TODAY_LABEL = 'Today'
TOMORROW_LABEL = 'Tomorrow'


def day_key(instant: datetime, zone: tzinfo) -> str:
    """Orderable YYYY-MM-DD key for the calendar date of instant in zone."""
    return instant.astimezone(zone).strftime(DAY_KEY_FORMAT)


def day_label(instant: datetime, zone: tzinfo) -> str:
    """User-facing name such as 'Wednesday March 6'."""
    local = instant.astimezone(zone)
    return f"{local:%A} {local:%B} {local.day}"


def midnight(instant: datetime, zone: tzinfo) -> datetime:
    return datetime.combine(instant.astimezone(zone).date(), time.min, tzinfo=zone)


def bucket_events_by_day(
    events: Sequence[DisplayEvent],
    zone: tzinfo,
    reference: Optional[datetime] = None
) -> DayBuckets:
    """
    Separate events by day according to the viewer's time zone.

    Events are keyed by a string that uniquely identifies the date and still
    sorts chronologically. Buckets are kept in the order their day is first
    seen, so callers must pass events already in display order.

    Args:
        events: Display events in display order
        zone: Viewer's time zone
        reference: Instant defining "today" (default: now)

    Returns:
        DayBuckets with the day -> events map and the day -> label map

    Raises:
        ValueError: If events or zone is None, or reference is naive
    """
    if events is None:
        raise ValueError("events must not be None")
    if zone is None:
        raise ValueError("zone must not be None")
    if reference is None:
        reference = datetime.now(timezone.utc)
    elif reference.tzinfo is None:
        raise ValueError("reference must be timezone-aware")

    today_start = midnight(reference, zone)
    tomorrow_start = datetime.combine(
        today_start.date() + timedelta(days=1), time.min, tzinfo=zone
    )
    today = day_key(today_start, zone)
    tomorrow = day_key(tomorrow_start, zone)

    day_map: Dict[str, List[DisplayEvent]] = {}
    label_map: Dict[str, str] = {}
    for event in events:
        day = day_key(event.day_start, zone)

        if day not in day_map:
            day_map[day] = []
            if day == today:
                label_map[day] = TODAY_LABEL
            elif day == tomorrow:
                label_map[day] = TOMORROW_LABEL
            else:
                label_map[day] = day_label(event.day_start, zone)

        day_map[day].append(event)

    if logger.isEnabledFor(logging.DEBUG):
        sizes = {day: len(bucket) for day, bucket in day_map.items()}
        logger.debug(
            f"Prepared {len(day_map)} day buckets for {len(events)} events: {sizes}"
        )

    return DayBuckets(day_map=day_map, label_map=label_map)
