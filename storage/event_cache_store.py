"""Helper for storing parsed calendar event sets in a cache."""
import logging
from typing import Iterable

from processor.models import CalendarEvent, CalendarEventSet

logger = logging.getLogger(__name__)


def insert_event_set_into_cache(
    cache,
    key: str,
    events: Iterable[CalendarEvent],
    seconds_to_live: int = -1
) -> CalendarEventSet:
    """
    Create a CalendarEventSet, store it in the cache and copy the cached
    element's expiration time into it.

    Args:
        cache: Cache backend (MemoryCache or DynamoDBEventSetCache)
        key: Key for the event set
        events: Calendar events to cache
        seconds_to_live: Lifetime in cache. < 0 uses the cache default,
            0 never expires

    Returns:
        The cached CalendarEventSet with its expiration time populated
    """
    event_set = CalendarEventSet(key, events)
    time_to_live = seconds_to_live if seconds_to_live >= 0 else None

    if logger.isEnabledFor(logging.DEBUG):
        message = f"Storing calendar event set to cache, key: {key}"
        if seconds_to_live > 0:
            message += f" with expiration in {seconds_to_live} seconds"
        logger.debug(message)

    element = cache.put(key, event_set, time_to_live=time_to_live)
    event_set.set_expiration_time(element.expiration_time)
    return event_set
