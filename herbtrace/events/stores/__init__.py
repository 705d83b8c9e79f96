"""Event store implementations."""

from herbtrace.events.store import EventStore
from herbtrace.events.stores.inmemory import InMemoryEventStore

__all__ = [
    "EventStore",
    "InMemoryEventStore",
]
