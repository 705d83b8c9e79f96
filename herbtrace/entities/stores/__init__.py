"""Entity store implementations."""

from herbtrace.entities.store import EntityStore
from herbtrace.entities.stores.inmemory import InMemoryEntityStore

__all__ = [
    "EntityStore",
    "InMemoryEntityStore",
]
