"""QR registry and public verification models."""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from herbtrace.entities.enums import EntityKind, LifecycleStatus, LotType, PlantStage
from herbtrace.entities.models import Lot, Plant
from herbtrace.events.enums import EventType

INACTIVE_REASON = "inactive"


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class QRStatus(str, Enum):
    """Lifecycle of an issued code."""

    ACTIVE = "active"
    REVOKED = "revoked"


class QRCode(BaseModel):
    """A verifiable pointer from a physical tag to an entity."""

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    entity_kind: EntityKind = Field(..., description="Kind of the target entity")
    entity_id: UUID = Field(..., description="Target entity")
    version: str = Field(default="2.0", description="Payload version")
    verification_token: str = Field(..., description="Opaque token in the public URL")
    verification_url: str = Field(..., description="Public verification URL")
    issuer: str = Field(..., description="Issuing authority")
    issued_at: datetime = Field(default_factory=utc_now, description="Issue time")
    expires_at: datetime | None = Field(default=None, description="Expiry, if any")
    security_hash: str = Field(..., description="SHA-256 over kind, id and issue time")
    status: QRStatus = Field(default=QRStatus.ACTIVE, description="active or revoked")
    revoked_at: datetime | None = Field(default=None, description="Revocation time")

    def is_usable(self, now: datetime) -> bool:
        """Active and not expired at ``now``."""
        if self.status != QRStatus.ACTIVE:
            return False
        return self.expires_at is None or now < self.expires_at


class EntitySnapshot(BaseModel):
    """Public view of an entity for verification.

    Decoupled from the internal records so the verification surface
    stays stable when storage schemas change.
    """

    entity_id: UUID
    entity_kind: EntityKind
    reference: str = Field(..., description="Lot number or plant tag")
    species: str
    variety: str | None = None
    lot_type: LotType | None = None
    lifecycle_stage: PlantStage | None = None
    origin_lot_id: UUID | None = Field(default=None, description="Parent or originating lot")
    location: str | None = None
    status: LifecycleStatus
    active: bool
    created_at: datetime

    @classmethod
    def of(cls, entity: Lot | Plant, kind: EntityKind) -> "EntitySnapshot":
        """Build the public view of a stored record."""
        if isinstance(entity, Plant):
            return cls(
                entity_id=entity.id,
                entity_kind=kind,
                reference=entity.plant_tag,
                species=entity.species,
                variety=entity.variety,
                lifecycle_stage=entity.lifecycle_stage,
                origin_lot_id=entity.lot_id,
                location=entity.location.site,
                status=entity.status,
                active=entity.active,
                created_at=entity.created_at,
            )
        return cls(
            entity_id=entity.id,
            entity_kind=kind,
            reference=entity.lot_number,
            species=entity.species,
            variety=entity.variety,
            lot_type=entity.lot_type,
            origin_lot_id=entity.parent_lot_id,
            location=entity.location,
            status=entity.status,
            active=entity.active,
            created_at=entity.created_at,
        )


class HistoryItem(BaseModel):
    """Public view of one audited event."""

    event_id: UUID
    event_type: EventType
    timestamp: datetime
    operator: str
    location: str | None = None
    verified: bool = False
    audit_hash: str
    integrity_ok: bool = Field(..., description="Stored hash matches recomputed hash")


class VerificationResult(BaseModel):
    """Outcome of scanning a QR code.

    Inactive codes carry no entity data and the same reason whether
    they were revoked or expired.
    """

    qr_id: UUID
    verified: bool
    reason: str | None = None
    entity: EntitySnapshot | None = None
    recent_history: list[HistoryItem] = Field(default_factory=list)
    verified_at: datetime = Field(default_factory=utc_now)
