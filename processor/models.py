"""Data models for calendar event processing."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Optional


@dataclass(frozen=True)
class CalendarEvent:
    """Raw event as produced by a calendar adapter."""
    uid: str
    summary: str
    start: datetime
    end: Optional[datetime] = None
    all_day: bool = False
    location: str = ''
    description: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'uid': self.uid,
            'summary': self.summary,
            'start': self.start.isoformat(),
            'end': self.end.isoformat() if self.end else None,
            'all_day': self.all_day,
            'location': self.location,
            'description': self.description
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CalendarEvent':
        end = data.get('end')
        return cls(
            uid=data['uid'],
            summary=data.get('summary') or '',
            start=datetime.fromisoformat(data['start']),
            end=datetime.fromisoformat(end) if end else None,
            all_day=bool(data.get('all_day', False)),
            location=data.get('location') or '',
            description=data.get('description') or ''
        )


class CalendarEventSet:
    """
    Cached set of calendar events.

    The expiration time is assigned once, after the cache has accepted the
    entry, and mirrors whatever expiry the cache recorded. A value of None
    after assignment means the set never expires due to elapsed time.
    """

    def __init__(self, key: str, events: Iterable[CalendarEvent]):
        self.key = key
        self.events: FrozenSet[CalendarEvent] = frozenset(events)
        self._expiration_time: Optional[float] = None
        self._expiration_assigned = False

    @property
    def expiration_time(self) -> Optional[float]:
        return self._expiration_time

    @property
    def expiration_assigned(self) -> bool:
        return self._expiration_assigned

    def set_expiration_time(self, expiration_time: Optional[float]) -> None:
        if self._expiration_assigned:
            raise RuntimeError(
                f"Expiration time already assigned for event set '{self.key}'"
            )
        self._expiration_time = expiration_time
        self._expiration_assigned = True

    def __len__(self) -> int:
        return len(self.events)

    def __repr__(self) -> str:
        return (
            f"CalendarEventSet(key={self.key!r}, events={len(self.events)}, "
            f"expiration_time={self._expiration_time!r})"
        )


@dataclass(frozen=True)
class DisplayEvent:
    """Event resolved for display on a single day in the viewer's zone."""
    event: CalendarEvent
    calendar_name: str
    day_start: datetime
    day_end: datetime
    all_day: bool = False
    multi_day: bool = False

    def sort_key(self) -> tuple:
        return (self.day_start, self.event.start, self.event.summary, self.event.uid)

    def to_dict(self) -> Dict[str, Any]:
        zone = self.day_start.tzinfo
        start = self.event.start.astimezone(zone)
        end = self.event.end.astimezone(zone) if self.event.end else None
        return {
            'uid': self.event.uid,
            'summary': self.event.summary,
            'description': self.event.description,
            'location': self.event.location,
            'calendar': self.calendar_name,
            'start': start.isoformat(),
            'end': end.isoformat() if end else None,
            'dayStart': self.day_start.isoformat(),
            'dayEnd': self.day_end.isoformat(),
            'allDay': self.all_day,
            'multiDay': self.multi_day
        }


@dataclass
class DayBuckets:
    """Events grouped by day key, with a display label for each day."""
    day_map: Dict[str, List[DisplayEvent]]
    label_map: Dict[str, str]


@dataclass
class CalendarConfiguration:
    """A calendar subscribed to by a user."""
    configuration_id: str
    subject: str
    calendar_name: str
    class_name: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    displayed: bool = True
