"""Lookup of calendar adapters by configured identifier."""
import logging
import threading
from typing import Callable, Dict

from adapters.base import AbstractCalendarAdapter
from adapters.configured import ConfiguredEventsAdapter
from adapters.exceptions import AdapterNotFoundError

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[], AbstractCalendarAdapter]


class AdapterRegistry:
    """
    Maps adapter identifiers to factories.

    An adapter is created the first time its identifier is requested and the
    same instance is returned afterwards.
    """

    def __init__(self):
        self._factories: Dict[str, AdapterFactory] = {}
        self._instances: Dict[str, AbstractCalendarAdapter] = {}
        self._lock = threading.Lock()

    def register(self, identifier: str, factory: AdapterFactory) -> None:
        with self._lock:
            self._factories[identifier] = factory
            self._instances.pop(identifier, None)

    def get(self, identifier: str) -> AbstractCalendarAdapter:
        with self._lock:
            adapter = self._instances.get(identifier)
            if adapter is not None:
                return adapter

            factory = self._factories.get(identifier)
            if factory is None:
                raise AdapterNotFoundError(identifier)

            adapter = factory()
            self._instances[identifier] = adapter
            logger.debug(f"Created calendar adapter for '{identifier}'")
            return adapter

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._factories


def build_default_registry(cache) -> AdapterRegistry:
    """Register the built-in adapters, sharing one event cache."""
    registry = AdapterRegistry()
    factory = lambda: ConfiguredEventsAdapter(cache)
    registry.register('configured', factory)
    registry.register(
        f"{ConfiguredEventsAdapter.__module__}.{ConfiguredEventsAdapter.__name__}",
        factory
    )
    return registry
