"""QR registry: issues, revokes and verifies codes bound to entities."""

import hashlib
import secrets
from datetime import UTC, datetime, timedelta
from uuid import UUID

from herbtrace.audit.hashing import entry_hash
from herbtrace.audit.trail import AuditTrail
from herbtrace.config.models.tracking import QRConfig
from herbtrace.entities.enums import EntityKind
from herbtrace.entities.resolve import resolve_entity
from herbtrace.entities.store import EntityStore
from herbtrace.errors import NotFoundError
from herbtrace.events.store import EventStore
from herbtrace.locking import EntityLockManager
from herbtrace.observability.logging import get_logger
from herbtrace.observability.metrics import QR_VERIFICATIONS
from herbtrace.qr.models import (
    INACTIVE_REASON,
    EntitySnapshot,
    HistoryItem,
    QRCode,
    QRStatus,
    VerificationResult,
)
from herbtrace.qr.store import QRCodeStore

logger = get_logger(__name__)


def security_hash(kind: EntityKind, entity_id: UUID, issued_at: datetime) -> str:
    """SHA-256 over the code's target and issue time."""
    data = f"{kind.value}:{entity_id}:{issued_at.isoformat()}"
    return hashlib.sha256(data.encode()).hexdigest()


class QRRegistry:
    """Bind scannable codes to entities and verify them.

    At most one code per entity is active unless ``allow_multiple_active``
    is set: issuing a replacement (damaged or lost tag) revokes the
    previous active code.
    """

    def __init__(
        self,
        store: QRCodeStore,
        entity_store: EntityStore,
        event_store: EventStore,
        audit_trail: AuditTrail,
        locks: EntityLockManager,
        config: QRConfig | None = None,
        history_size: int = 10,
    ) -> None:
        """Initialize the registry.

        Args:
            store: Backing QR code store
            entity_store: Used to check targets exist and build snapshots
            event_store: Used to enrich verification history
            audit_trail: Source of the verification history
            locks: Per-entity write locks shared with the service
            config: Issuance settings
            history_size: Number of history items returned by verify
        """
        self._store = store
        self._entities = entity_store
        self._events = event_store
        self._audit = audit_trail
        self._locks = locks
        self._config = config or QRConfig()
        self._history_size = history_size

    def prepare(self, kind: EntityKind, entity_id: UUID) -> QRCode:
        """Build a new active code for an entity without storing it."""
        issued_at = datetime.now(UTC)
        token = secrets.token_urlsafe(16)
        expires_at = None
        if self._config.ttl_days:
            expires_at = issued_at + timedelta(days=self._config.ttl_days)
        return QRCode(
            entity_kind=kind,
            entity_id=entity_id,
            version=self._config.version,
            verification_token=token,
            verification_url=f"{self._config.base_url.rstrip('/')}/verify/{token}",
            issuer=self._config.issuer,
            issued_at=issued_at,
            expires_at=expires_at,
            security_hash=security_hash(kind, entity_id, issued_at),
        )

    async def register(self, code: QRCode) -> list[QRCode]:
        """Store a prepared code, revoking superseded active codes.

        The caller must hold the entity lock.

        Returns:
            Codes revoked to keep a single active code
        """
        superseded = []
        if not self._config.allow_multiple_active:
            for existing in await self._store.list_for_entity(code.entity_id):
                if existing.status == QRStatus.ACTIVE and existing.id != code.id:
                    superseded.append(await self._mark_revoked(existing))
        await self._store.save(code)
        return superseded

    async def discard(self, code: QRCode) -> None:
        """Drop a registered code whose entity creation was aborted."""
        await self._store.discard(code.id)

    async def issue(self, kind: EntityKind, entity_id: UUID) -> QRCode:
        """Issue a code for an existing entity.

        Raises:
            NotFoundError: If the entity does not exist
        """
        async with self._locks.acquire(entity_id):
            if await resolve_entity(self._entities, kind, entity_id) is None:
                raise NotFoundError(f"{kind.value} {entity_id} not found")
            code = self.prepare(kind, entity_id)
            superseded = await self.register(code)

        logger.info(
            "qr_code_issued",
            qr_id=str(code.id),
            entity_kind=kind.value,
            entity_id=str(entity_id),
            superseded=[str(c.id) for c in superseded],
        )
        return code

    async def revoke(self, qr_id: UUID) -> QRCode:
        """Revoke a code. Revoking an already revoked code is a no-op.

        Raises:
            NotFoundError: If the code is unknown
        """
        code = await self.get(qr_id)
        async with self._locks.acquire(code.entity_id):
            code = await self.get(qr_id)
            if code.status == QRStatus.REVOKED:
                return code
            code = await self._mark_revoked(code)

        logger.info("qr_code_revoked", qr_id=str(qr_id), entity_id=str(code.entity_id))
        return code

    async def get(self, qr_id: UUID) -> QRCode:
        """Get a code by ID.

        Raises:
            NotFoundError: If the code is unknown
        """
        code = await self._store.get(qr_id)
        if code is None:
            raise NotFoundError(f"QR code {qr_id} not found")
        return code

    async def codes_for(self, entity_id: UUID) -> list[QRCode]:
        """Every code issued for an entity, oldest first."""
        return await self._store.list_for_entity(entity_id)

    async def active_code_for(self, entity_id: UUID) -> QRCode | None:
        """The newest usable code of an entity, if any."""
        now = datetime.now(UTC)
        usable = [c for c in await self._store.list_for_entity(entity_id) if c.is_usable(now)]
        return usable[-1] if usable else None

    async def verify(self, qr_id: UUID) -> VerificationResult:
        """Resolve a scanned code to its entity and recent history.

        Raises:
            NotFoundError: If the code, or the entity behind it, is unknown
        """
        code = await self._store.get(qr_id)
        if code is None:
            QR_VERIFICATIONS.labels(outcome="not_found").inc()
            raise NotFoundError(f"QR code {qr_id} not found")

        if not code.is_usable(datetime.now(UTC)):
            QR_VERIFICATIONS.labels(outcome="inactive").inc()
            logger.info("qr_verification_inactive", qr_id=str(qr_id))
            return VerificationResult(qr_id=qr_id, verified=False, reason=INACTIVE_REASON)

        entity = await resolve_entity(self._entities, code.entity_kind, code.entity_id)
        if entity is None:
            QR_VERIFICATIONS.labels(outcome="not_found").inc()
            raise NotFoundError(f"{code.entity_kind.value} {code.entity_id} not found")

        result = VerificationResult(
            qr_id=qr_id,
            verified=True,
            entity=EntitySnapshot.of(entity, code.entity_kind),
            recent_history=await self._recent_history(code.entity_id),
        )
        QR_VERIFICATIONS.labels(outcome="verified").inc()
        logger.info(
            "qr_verified",
            qr_id=str(qr_id),
            entity_id=str(code.entity_id),
            history_items=len(result.recent_history),
        )
        return result

    async def verify_token(self, token: str) -> VerificationResult:
        """Verify a code by the token embedded in its public URL.

        Raises:
            NotFoundError: If no code carries the token
        """
        code = await self._store.get_by_token(token)
        if code is None:
            QR_VERIFICATIONS.labels(outcome="not_found").inc()
            raise NotFoundError("QR code not found")
        return await self.verify(code.id)

    async def _recent_history(self, entity_id: UUID) -> list[HistoryItem]:
        """Last audited events of an entity, oldest first."""
        total = await self._audit.count_for(entity_id)
        offset = max(0, total - self._history_size)
        entries = await self._audit.history_of(entity_id, offset=offset)

        items = []
        for entry in entries:
            event = await self._events.get(entry.event_id)
            items.append(
                HistoryItem(
                    event_id=entry.event_id,
                    event_type=entry.event_type,
                    timestamp=entry.timestamp,
                    operator=entry.operator,
                    location=event.location if event else None,
                    verified=event.verified if event else False,
                    audit_hash=entry.hash,
                    integrity_ok=entry_hash(entry) == entry.hash,
                )
            )
        return items

    async def _mark_revoked(self, code: QRCode) -> QRCode:
        revoked = code.model_copy(
            update={"status": QRStatus.REVOKED, "revoked_at": datetime.now(UTC)}
        )
        await self._store.save(revoked)
        return revoked
