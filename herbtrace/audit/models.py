"""Audit trail models."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from herbtrace.entities.enums import EntityKind
from herbtrace.events.enums import EventType

GENESIS_HASH = "GENESIS"


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class AuditEntry(BaseModel):
    """Tamper-evidence wrapper around one recorded event.

    The hash covers the event's semantically significant fields; see
    ``herbtrace.audit.hashing``. ``prev_hash`` is only meaningful when
    the trail runs in chained mode.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    sequence: int = Field(..., ge=0, description="Position in the whole log")
    event_id: UUID = Field(..., description="Wrapped event")
    entity_id: UUID = Field(..., description="Entity the event is about")
    entity_kind: EntityKind = Field(..., description="Kind of the entity")
    event_type: EventType = Field(..., description="Type of the wrapped event")
    timestamp: datetime = Field(..., description="Event time")
    operator: str = Field(..., description="Operator identity")
    recorded_at: datetime = Field(default_factory=utc_now, description="When audited")
    prev_hash: str | None = Field(default=None, description="Previous entry hash (chained mode)")
    hash: str = Field(..., description="SHA-256 content hash")
    verified: bool = Field(default=True, description="Hash verified at write time")

    @property
    def sort_key(self) -> tuple[datetime, str]:
        """History order: event timestamp, then event id."""
        return (self.timestamp, str(self.event_id))


class BrokenEntry(BaseModel):
    """An audit entry that failed verification."""

    entry_id: UUID
    event_id: UUID
    entity_id: UUID
    reason: str = Field(..., description="hash_mismatch or chain_broken")


class IntegrityReport(BaseModel):
    """Outcome of an integrity sweep.

    Broken entries are findings for human review; nothing is corrected.
    """

    scope: str = Field(..., description="Entity id, or 'log' for the whole log")
    valid: bool
    score: float = Field(..., ge=0.0, le=1.0, description="Fraction of entries that verify")
    total: int = Field(..., ge=0)
    broken_entries: list[BrokenEntry] = Field(default_factory=list)
    chained: bool = False
    checked_at: datetime = Field(default_factory=utc_now)
