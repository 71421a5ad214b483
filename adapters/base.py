"""Base class for calendar adapters."""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from processor.models import CalendarConfiguration, CalendarEvent, CalendarEventSet
from storage.event_cache_store import insert_event_set_into_cache


@dataclass(frozen=True)
class AdapterParameter:
    """Configuration parameter understood by an adapter."""
    name: str
    label_key: str
    required: bool = False


class AbstractCalendarAdapter(ABC):
    """Common behaviour for adapters that produce calendar event sets."""

    def __init__(
        self,
        title_key: Optional[str] = None,
        description_key: Optional[str] = None,
        parameters: Optional[List[AdapterParameter]] = None
    ):
        self.log = logging.getLogger(
            f"{type(self).__module__}.{type(self).__name__}"
        )
        self.title_key = title_key
        self.description_key = description_key
        self.parameters = list(parameters) if parameters else []

    @abstractmethod
    def get_events(
        self,
        configuration: CalendarConfiguration,
        start: datetime,
        end: datetime
    ) -> CalendarEventSet:
        """Return the configuration's events overlapping [start, end)."""

    def get_link(
        self,
        configuration: CalendarConfiguration,
        start: datetime,
        end: datetime
    ) -> Optional[str]:
        return None

    def insert_event_set_into_cache(
        self,
        cache,
        key: str,
        events: Iterable[CalendarEvent],
        seconds_to_live: int = -1
    ) -> CalendarEventSet:
        """
        Store events in the cache and return the CalendarEventSet with the
        cache's expiration time copied in.

        Args:
            cache: Cache to insert the event set into
            key: Key for the event set
            events: Calendar events to cache
            seconds_to_live: < 0 for the cache default, 0 for unlimited
        """
        return insert_event_set_into_cache(cache, key, events, seconds_to_live)
