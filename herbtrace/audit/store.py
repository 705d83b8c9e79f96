"""AuditStore abstract interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from herbtrace.audit.models import AuditEntry


class AuditStore(ABC):
    """Abstract interface for immutable audit entry storage.

    Entries are never updated or deleted once committed, including when
    the audited entity is deactivated.
    """

    @abstractmethod
    async def append(self, entry: AuditEntry) -> UUID:
        """Append an audit entry."""
        pass

    @abstractmethod
    async def get(self, entry_id: UUID) -> AuditEntry | None:
        """Get an audit entry by ID."""
        pass

    @abstractmethod
    async def get_by_event(self, event_id: UUID) -> AuditEntry | None:
        """Get the audit entry wrapping an event."""
        pass

    @abstractmethod
    async def history_of(
        self,
        entity_id: UUID,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[AuditEntry]:
        """Entries of an entity ordered by event timestamp ascending."""
        pass

    @abstractmethod
    async def count_for(self, entity_id: UUID) -> int:
        """Number of entries for an entity."""
        pass

    @abstractmethod
    async def all_entries(self) -> list[AuditEntry]:
        """Every entry in log (sequence) order."""
        pass

    @abstractmethod
    async def last_entry(self) -> AuditEntry | None:
        """Most recently appended entry."""
        pass
