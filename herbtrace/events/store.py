"""EventStore abstract interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from herbtrace.events.models import Event, EventFilter


class EventStore(ABC):
    """Abstract interface for the append-only event log.

    There is deliberately no update operation. ``discard`` exists only to
    undo an append whose audit entry could not be written.
    """

    @abstractmethod
    async def append(self, event: Event) -> UUID:
        """Append an event."""
        pass

    @abstractmethod
    async def get(self, event_id: UUID) -> Event | None:
        """Get an event by ID."""
        pass

    @abstractmethod
    async def history_of(self, entity_id: UUID) -> list[Event]:
        """All events of an entity ordered by timestamp, then id."""
        pass

    @abstractmethod
    async def list_events(
        self,
        event_filter: EventFilter | None = None,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Event]:
        """List events matching the filter in history order."""
        pass

    @abstractmethod
    async def count_events(self, event_filter: EventFilter | None = None) -> int:
        """Count events matching the filter."""
        pass

    @abstractmethod
    async def discard(self, event_id: UUID) -> None:
        """Remove an event whose append was aborted before commit."""
        pass
