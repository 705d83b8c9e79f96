"""Closed event vocabulary for supply-chain events."""

from enum import Enum

from herbtrace.entities.enums import EntityKind


class EventType(str, Enum):
    """Every event type the system accepts, grouped by supply-chain stage."""

    # Seed / propagation
    SEED_RECEIVED = "seed_received"
    SEED_TESTED = "seed_tested"
    SEED_APPROVED = "seed_approved"
    LOT_CREATED = "lot_created"
    LOT_UPDATED = "lot_updated"

    # Planting
    PLANTED = "planted"
    PLANT_TAGGED = "plant_tagged"
    PLANT_UPDATED = "plant_updated"
    GROWTH_RECORDED = "growth_recorded"

    # Cultivation
    WATERED = "watered"
    FERTILIZED = "fertilized"
    PEST_TREATMENT = "pest_treatment"
    PRUNED = "pruned"

    # Harvest
    HARVEST_SCHEDULED = "harvest_scheduled"
    HARVESTED = "harvested"
    HARVEST_TESTED = "harvest_tested"

    # Processing
    PROCESSING_STARTED = "processing_started"
    PROCESSING_STEP = "processing_step"
    PROCESSING_COMPLETED = "processing_completed"

    # Quality
    QUALITY_TESTED = "quality_tested"
    QUALITY_APPROVED = "quality_approved"
    QUALITY_FAILED = "quality_failed"

    # Distribution
    PACKAGED = "packaged"
    SHIPPED = "shipped"
    RECEIVED = "received"
    RETAIL_READY = "retail_ready"
    SOLD = "sold"

    # Audit
    AUDIT_STARTED = "audit_started"
    AUDIT_COMPLETED = "audit_completed"
    COMPLIANCE_CHECK = "compliance_check"

    # Alerts
    CONTAMINATION_ALERT = "contamination_alert"
    RECALL_INITIATED = "recall_initiated"
    SECURITY_INCIDENT = "security_incident"

    # Administrative
    ENTITY_DEACTIVATED = "entity_deactivated"
    ENTITY_REACTIVATED = "entity_reactivated"


# Valid for every entity kind
_COMMON_EVENTS = frozenset({
    EventType.QUALITY_TESTED,
    EventType.QUALITY_APPROVED,
    EventType.QUALITY_FAILED,
    EventType.AUDIT_STARTED,
    EventType.AUDIT_COMPLETED,
    EventType.COMPLIANCE_CHECK,
    EventType.CONTAMINATION_ALERT,
    EventType.RECALL_INITIATED,
    EventType.SECURITY_INCIDENT,
    EventType.ENTITY_DEACTIVATED,
    EventType.ENTITY_REACTIVATED,
})

EVENT_VOCABULARY: dict[EntityKind, frozenset[EventType]] = {
    EntityKind.LOT: _COMMON_EVENTS | {
        EventType.LOT_CREATED,
        EventType.LOT_UPDATED,
        EventType.SEED_RECEIVED,
        EventType.SEED_TESTED,
        EventType.SEED_APPROVED,
        EventType.PLANTED,
        EventType.HARVEST_SCHEDULED,
        EventType.HARVESTED,
        EventType.HARVEST_TESTED,
        EventType.PROCESSING_STARTED,
        EventType.PROCESSING_STEP,
        EventType.PROCESSING_COMPLETED,
        EventType.PACKAGED,
        EventType.SHIPPED,
        EventType.RECEIVED,
        EventType.RETAIL_READY,
        EventType.SOLD,
    },
    EntityKind.PLANT: _COMMON_EVENTS | {
        EventType.PLANT_TAGGED,
        EventType.PLANT_UPDATED,
        EventType.PLANTED,
        EventType.GROWTH_RECORDED,
        EventType.WATERED,
        EventType.FERTILIZED,
        EventType.PEST_TREATMENT,
        EventType.PRUNED,
        EventType.HARVEST_SCHEDULED,
        EventType.HARVESTED,
        EventType.HARVEST_TESTED,
    },
    EntityKind.PRODUCT: _COMMON_EVENTS | {
        EventType.PROCESSING_STARTED,
        EventType.PROCESSING_STEP,
        EventType.PROCESSING_COMPLETED,
        EventType.PACKAGED,
        EventType.SHIPPED,
        EventType.RECEIVED,
        EventType.RETAIL_READY,
        EventType.SOLD,
    },
}

# Events only the service itself may record
SYSTEM_EVENTS = frozenset({
    EventType.LOT_CREATED,
    EventType.PLANT_TAGGED,
    EventType.LOT_UPDATED,
    EventType.PLANT_UPDATED,
})


def allowed_event_types(kind: EntityKind) -> frozenset[EventType]:
    """Return the vocabulary for an entity kind."""
    return EVENT_VOCABULARY[kind]


def parse_event_type(kind: EntityKind, value: "EventType | str") -> EventType | None:
    """Resolve ``value`` against the vocabulary of ``kind``.

    Accepts either the enum, its value ("harvested") or its name
    ("HARVESTED"). Returns None when the type is unknown or not valid
    for the kind.
    """
    if isinstance(value, EventType):
        event_type = value
    else:
        try:
            event_type = EventType(value)
        except ValueError:
            event_type = EventType.__members__.get(str(value).upper())
    if event_type is None or event_type not in EVENT_VOCABULARY[kind]:
        return None
    return event_type
