"""Event model for the supply-chain event log."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from herbtrace.entities.enums import EntityKind
from herbtrace.entities.models import GeoPoint
from herbtrace.events.enums import EventType


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class Event(BaseModel):
    """An immutable fact about an entity's handling.

    Events are append-only: once recorded they are never modified or
    deleted. A correction is a new event.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    entity_id: UUID = Field(..., description="Entity the event is about")
    entity_kind: EntityKind = Field(..., description="Kind of the entity")
    event_type: EventType = Field(..., description="Type from the closed vocabulary")
    timestamp: datetime = Field(
        default_factory=utc_now, description="When it happened (caller or server time)"
    )
    recorded_at: datetime = Field(default_factory=utc_now, description="When it was appended")
    operator: str = Field(..., min_length=1, description="Operator identity")
    location: str | None = Field(default=None, description="Where it happened")
    coordinates: GeoPoint | None = Field(default=None, description="Geocoordinate")
    payload: dict[str, Any] = Field(default_factory=dict, description="Event data")
    notes: str = Field(default="", description="Free-text notes")
    attachments: tuple[str, ...] = Field(
        default=(), description="Opaque references into the attachment store"
    )
    verified: bool = Field(default=False, description="Confirmed by an inspector")

    @property
    def sort_key(self) -> tuple[datetime, str]:
        """History order: timestamp, then id."""
        return (self.timestamp, str(self.id))


class EventFilter(BaseModel):
    """Exact-match filters for listing events."""

    entity_id: UUID | None = None
    entity_kind: EntityKind | None = None
    event_type: EventType | None = None
    operator: str | None = None

    def matches(self, event: Event) -> bool:
        """Return True when the event satisfies every set filter."""
        return (
            (self.entity_id is None or event.entity_id == self.entity_id)
            and (self.entity_kind is None or event.entity_kind == self.entity_kind)
            and (self.event_type is None or event.event_type == self.event_type)
            and (self.operator is None or event.operator == self.operator)
        )
