"""Status projector: derives entity state from event history.

Status is never written directly. It is a pure function of the ordered
event history, recomputed after every append, so replaying the same
history always yields the same state.

Status only moves forward: an event whose mapped status ranks below
the status already reached is kept in history but does not regress the
status. Such events are reported as sequence anomalies for the
compliance engine.
"""

from collections.abc import Iterable

from pydantic import BaseModel, Field

from herbtrace.entities.enums import EntityKind, LifecycleStatus, PlantStage
from herbtrace.events.enums import EventType
from herbtrace.events.models import Event

STATUS_TRANSITIONS: dict[EntityKind, dict[EventType, LifecycleStatus]] = {
    EntityKind.LOT: {
        EventType.PLANTED: LifecycleStatus.PLANTED,
        EventType.HARVESTED: LifecycleStatus.HARVESTED,
        EventType.PROCESSING_COMPLETED: LifecycleStatus.PROCESSED,
        EventType.PACKAGED: LifecycleStatus.PACKAGED,
        EventType.SHIPPED: LifecycleStatus.IN_TRANSIT,
        EventType.RECEIVED: LifecycleStatus.RECEIVED,
        EventType.SOLD: LifecycleStatus.SOLD,
    },
    EntityKind.PLANT: {
        EventType.GROWTH_RECORDED: LifecycleStatus.GROWING,
        EventType.HARVESTED: LifecycleStatus.HARVESTED,
    },
    EntityKind.PRODUCT: {
        EventType.PROCESSING_COMPLETED: LifecycleStatus.PROCESSED,
        EventType.PACKAGED: LifecycleStatus.PACKAGED,
        EventType.SHIPPED: LifecycleStatus.IN_TRANSIT,
        EventType.RECEIVED: LifecycleStatus.RECEIVED,
        EventType.SOLD: LifecycleStatus.SOLD,
    },
}

STAGE_PAYLOAD_KEY = "stage"


class SequenceAnomaly(BaseModel):
    """A lifecycle event recorded after a later stage was already reached."""

    event_id: str = Field(..., description="Offending event")
    event_type: EventType = Field(..., description="Its type")
    implied_status: LifecycleStatus = Field(..., description="Status the event maps to")
    reached_status: LifecycleStatus = Field(..., description="Status already reached")


class Projection(BaseModel):
    """Derived state of an entity."""

    status: LifecycleStatus = LifecycleStatus.ACTIVE
    active: bool = True
    lifecycle_stage: PlantStage | None = None
    anomalies: list[SequenceAnomaly] = Field(default_factory=list)
    event_count: int = 0


def mapped_status(event: Event) -> LifecycleStatus | None:
    """Status an event moves its entity to, if any."""
    return STATUS_TRANSITIONS[event.entity_kind].get(event.event_type)


def _stage_from(event: Event) -> PlantStage | None:
    if event.event_type == EventType.HARVESTED:
        return PlantStage.HARVESTED
    if event.event_type == EventType.GROWTH_RECORDED:
        try:
            return PlantStage(event.payload.get(STAGE_PAYLOAD_KEY))
        except ValueError:
            return None
    return None


def project(kind: EntityKind, events: Iterable[Event]) -> Projection:
    """Fold an event history into the entity's current state.

    Args:
        kind: Kind of the entity the history belongs to
        events: Its events, in any order (they are sorted here)

    Returns:
        The derived Projection
    """
    ordered = sorted(events, key=lambda e: e.sort_key)
    projection = Projection(
        lifecycle_stage=PlantStage.SEEDLING if kind == EntityKind.PLANT else None,
        event_count=len(ordered),
    )

    for event in ordered:
        if event.event_type == EventType.ENTITY_DEACTIVATED:
            projection.active = False
        elif event.event_type == EventType.ENTITY_REACTIVATED:
            projection.active = True

        status = mapped_status(event)
        if status is not None:
            if status.rank >= projection.status.rank:
                projection.status = status
            else:
                projection.anomalies.append(
                    SequenceAnomaly(
                        event_id=str(event.id),
                        event_type=event.event_type,
                        implied_status=status,
                        reached_status=projection.status,
                    )
                )

        if projection.lifecycle_stage is not None:
            stage = _stage_from(event)
            if stage is not None and stage.rank > projection.lifecycle_stage.rank:
                projection.lifecycle_stage = stage

    return projection
