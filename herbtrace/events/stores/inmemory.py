"""In-memory implementation of EventStore."""

from collections import defaultdict
from uuid import UUID

from herbtrace.errors import ValidationError
from herbtrace.events.models import Event, EventFilter
from herbtrace.events.store import EventStore


class InMemoryEventStore(EventStore):
    """In-memory implementation of EventStore for testing and development.

    Keeps a per-entity index so history retrieval does not scan the
    whole log. Events are frozen, so they are shared rather than copied.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._events: dict[UUID, Event] = {}
        self._by_entity: dict[UUID, list[UUID]] = defaultdict(list)

    async def append(self, event: Event) -> UUID:
        """Append an event."""
        if event.id in self._events:
            raise ValidationError(f"Event {event.id} already recorded")
        self._events[event.id] = event
        self._by_entity[event.entity_id].append(event.id)
        return event.id

    async def get(self, event_id: UUID) -> Event | None:
        """Get an event by ID."""
        return self._events.get(event_id)

    async def history_of(self, entity_id: UUID) -> list[Event]:
        """All events of an entity ordered by timestamp, then id."""
        events = [self._events[event_id] for event_id in self._by_entity.get(entity_id, [])]
        return sorted(events, key=lambda e: e.sort_key)

    async def list_events(
        self,
        event_filter: EventFilter | None = None,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Event]:
        """List events matching the filter in history order."""
        event_filter = event_filter or EventFilter()
        results = sorted(
            (e for e in self._events.values() if event_filter.matches(e)),
            key=lambda e: e.sort_key,
        )
        end = None if limit is None else offset + limit
        return results[offset:end]

    async def count_events(self, event_filter: EventFilter | None = None) -> int:
        """Count events matching the filter."""
        event_filter = event_filter or EventFilter()
        return sum(1 for e in self._events.values() if event_filter.matches(e))

    async def discard(self, event_id: UUID) -> None:
        """Remove an event whose append was aborted before commit."""
        event = self._events.pop(event_id, None)
        if event is not None:
            self._by_entity[event.entity_id].remove(event_id)
