"""Audit store implementations."""

from herbtrace.audit.store import AuditStore
from herbtrace.audit.stores.inmemory import InMemoryAuditStore

__all__ = [
    "AuditStore",
    "InMemoryAuditStore",
]
