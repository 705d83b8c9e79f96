"""Event domain: the append-only supply-chain event log and status projector."""

from herbtrace.events.enums import EVENT_VOCABULARY, EventType, allowed_event_types
from herbtrace.events.models import Event, EventFilter
from herbtrace.events.projector import Projection, SequenceAnomaly, project

__all__ = [
    "EVENT_VOCABULARY",
    "Event",
    "EventFilter",
    "EventType",
    "Projection",
    "SequenceAnomaly",
    "allowed_event_types",
    "project",
]
