"""Audit trail: tamper-evident wrapping and integrity verification.

Every recorded event gets exactly one AuditEntry. Verification
recomputes each entry's hash from its stored fields and reports
mismatches as findings; it never raises on tampering and never
corrects anything.
"""

import asyncio
from uuid import UUID

from herbtrace.audit.hashing import compute_hash, entry_hash
from herbtrace.audit.models import GENESIS_HASH, AuditEntry, BrokenEntry, IntegrityReport
from herbtrace.audit.store import AuditStore
from herbtrace.events.models import Event
from herbtrace.observability.logging import get_logger
from herbtrace.observability.metrics import BROKEN_AUDIT_ENTRIES, INTEGRITY_SWEEPS

logger = get_logger(__name__)

LOG_SCOPE = "log"


class AuditTrail:
    """Append and verify audit entries.

    In chained mode each entry's hash also covers the previous entry's
    hash, so reordering or removing entries inside the log breaks the
    chain at that point. Unchained mode only detects edits to
    individual entries. In both modes an entry edited in place is
    reported on its own, never also on its successor.
    """

    def __init__(self, store: AuditStore, chain_hashes: bool = False) -> None:
        """Initialize the audit trail.

        Args:
            store: Backing audit store
            chain_hashes: Chain every hash over its predecessor's hash
        """
        self._store = store
        self._chain_hashes = chain_hashes
        # Serializes sequence numbers and chain links across entities
        self._append_lock = asyncio.Lock()

    @property
    def chained(self) -> bool:
        """Whether entries are hash-chained."""
        return self._chain_hashes

    async def append(self, event: Event) -> AuditEntry:
        """Wrap an event in a new audit entry and store it."""
        async with self._append_lock:
            last = await self._store.last_entry()
            sequence = last.sequence + 1 if last else 0
            prev_hash = None
            if self._chain_hashes:
                prev_hash = last.hash if last else GENESIS_HASH

            entry = AuditEntry(
                sequence=sequence,
                event_id=event.id,
                entity_id=event.entity_id,
                entity_kind=event.entity_kind,
                event_type=event.event_type,
                timestamp=event.timestamp,
                operator=event.operator,
                prev_hash=prev_hash,
                hash=compute_hash(
                    event.entity_id,
                    event.event_type,
                    event.timestamp,
                    event.operator,
                    prev_hash,
                ),
            )
            await self._store.append(entry)

        logger.debug(
            "audit_entry_appended",
            entry_id=str(entry.id),
            event_id=str(event.id),
            sequence=sequence,
        )
        return entry

    async def history_of(
        self,
        entity_id: UUID,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[AuditEntry]:
        """Audit entries of an entity, oldest event first.

        Windowed retrieval returns a slice of the same total order.
        """
        return await self._store.history_of(entity_id, offset=offset, limit=limit)

    async def count_for(self, entity_id: UUID) -> int:
        """Number of audit entries for an entity."""
        return await self._store.count_for(entity_id)

    async def entry_for_event(self, event_id: UUID) -> AuditEntry | None:
        """Audit entry wrapping an event."""
        return await self._store.get_by_event(event_id)

    async def verify_integrity(self, entity_id: UUID | None = None) -> IntegrityReport:
        """Recompute hashes for one entity or the whole log.

        Args:
            entity_id: Entity to verify; None verifies every entry

        Returns:
            IntegrityReport with the fraction of entries that verify and
            the id of every broken entry
        """
        scope = str(entity_id) if entity_id else LOG_SCOPE
        if entity_id is None:
            entries = await self._store.all_entries()
        else:
            entries = await self._store.history_of(entity_id)

        broken: dict[UUID, BrokenEntry] = {}
        for entry in entries:
            if entry_hash(entry) != entry.hash:
                broken[entry.id] = self._broken(entry, "hash_mismatch")

        if self._chain_hashes:
            in_scope = {entry.id for entry in entries}
            for entry in await self._chain_breaks():
                if entry.id in in_scope and entry.id not in broken:
                    broken[entry.id] = self._broken(entry, "chain_broken")

        total = len(entries)
        broken_entries = sorted(broken.values(), key=lambda b: str(b.entry_id))
        score = (total - len(broken_entries)) / total if total else 1.0
        report = IntegrityReport(
            scope=scope,
            valid=not broken_entries,
            score=score,
            total=total,
            broken_entries=broken_entries,
            chained=self._chain_hashes,
        )

        INTEGRITY_SWEEPS.labels(
            scope="log" if entity_id is None else "entity",
            outcome="valid" if report.valid else "broken",
        ).inc()
        if broken_entries:
            BROKEN_AUDIT_ENTRIES.inc(len(broken_entries))
            logger.warning(
                "audit_integrity_violation",
                scope=scope,
                broken=len(broken_entries),
                total=total,
                entry_ids=[str(b.entry_id) for b in broken_entries],
            )
        else:
            logger.info("audit_integrity_verified", scope=scope, total=total)
        return report

    async def _chain_breaks(self) -> list[AuditEntry]:
        """Entries whose prev_hash matches neither form of their predecessor's hash.

        A predecessor edited in place still links to its successor
        through either its stored or its recomputed hash, so the edit is
        reported once, on the edited entry.
        """
        breaks = []
        expected = {GENESIS_HASH}
        for entry in await self._store.all_entries():
            if entry.prev_hash not in expected:
                breaks.append(entry)
            expected = {entry.hash, entry_hash(entry)}
        return breaks

    @staticmethod
    def _broken(entry: AuditEntry, reason: str) -> BrokenEntry:
        return BrokenEntry(
            entry_id=entry.id,
            event_id=entry.event_id,
            entity_id=entry.entity_id,
            reason=reason,
        )
