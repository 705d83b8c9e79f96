"""In-memory implementation of AuditStore."""

from uuid import UUID

from herbtrace.audit.models import AuditEntry
from herbtrace.audit.store import AuditStore


class InMemoryAuditStore(AuditStore):
    """In-memory implementation of AuditStore for testing and development.

    Uses simple dict storage with linear scan for queries.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._entries: dict[UUID, AuditEntry] = {}

    async def append(self, entry: AuditEntry) -> UUID:
        """Append an audit entry."""
        self._entries[entry.id] = entry
        return entry.id

    async def get(self, entry_id: UUID) -> AuditEntry | None:
        """Get an audit entry by ID."""
        return self._entries.get(entry_id)

    async def get_by_event(self, event_id: UUID) -> AuditEntry | None:
        """Get the audit entry wrapping an event."""
        for entry in self._entries.values():
            if entry.event_id == event_id:
                return entry
        return None

    async def history_of(
        self,
        entity_id: UUID,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[AuditEntry]:
        """Entries of an entity ordered by event timestamp ascending."""
        results = sorted(
            (e for e in self._entries.values() if e.entity_id == entity_id),
            key=lambda e: e.sort_key,
        )
        end = None if limit is None else offset + limit
        return results[offset:end]

    async def count_for(self, entity_id: UUID) -> int:
        """Number of entries for an entity."""
        return sum(1 for e in self._entries.values() if e.entity_id == entity_id)

    async def all_entries(self) -> list[AuditEntry]:
        """Every entry in log (sequence) order."""
        return sorted(self._entries.values(), key=lambda e: e.sequence)

    async def last_entry(self) -> AuditEntry | None:
        """Most recently appended entry."""
        if not self._entries:
            return None
        return max(self._entries.values(), key=lambda e: e.sequence)
