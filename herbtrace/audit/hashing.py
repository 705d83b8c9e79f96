"""Content hashing for audit entries.

The digest is SHA-256 over a canonical JSON serialization (sorted keys)
of the entry's entity id, event type, event timestamp and operator. In
chained mode the previous entry's hash is part of the input, forming a
linear hash chain over the whole log.
"""

import hashlib
import json
from datetime import datetime
from uuid import UUID

from herbtrace.audit.models import AuditEntry
from herbtrace.events.enums import EventType


def compute_hash(
    entity_id: UUID,
    event_type: EventType,
    timestamp: datetime,
    operator: str,
    prev_hash: str | None = None,
) -> str:
    """Hash the significant fields of an audited event."""
    hash_input = {
        "entity_id": str(entity_id),
        "event_type": event_type.value,
        "timestamp": timestamp.isoformat(),
        "operator": operator,
    }
    if prev_hash is not None:
        hash_input["prev_hash"] = prev_hash
    serialized = json.dumps(hash_input, sort_keys=True)
    return hashlib.sha256(serialized.encode()).hexdigest()


def entry_hash(entry: AuditEntry) -> str:
    """Recompute an entry's hash from its stored fields."""
    return compute_hash(
        entry.entity_id,
        entry.event_type,
        entry.timestamp,
        entry.operator,
        entry.prev_hash,
    )
