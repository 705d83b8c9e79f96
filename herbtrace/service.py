"""Traceability service: the operation surface of the core.

Coordinates the entity store, event log, audit trail, QR registry and
compliance engine. Every mutation runs under the per-entity lock so the
read, validate, append and project sequence for one entity never
interleaves with another write to it.

Write order for creations and events is entity, event, QR code, then
audit entry. The audit append is the commit point: anything that fails
before it is discarded again, anything after it is history.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any, TypeVar
from uuid import UUID

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from herbtrace.audit.models import AuditEntry, IntegrityReport
from herbtrace.audit.trail import AuditTrail
from herbtrace.compliance.engine import ComplianceEngine
from herbtrace.compliance.models import ComplianceResult
from herbtrace.config.models.tracking import ListingConfig
from herbtrace.entities.enums import EntityKind, PlantStage
from herbtrace.entities.models import (
    GeoPoint,
    Lot,
    LotFilter,
    LotSpec,
    Plant,
    PlantFilter,
    PlantSpec,
    utc_now,
)
from herbtrace.entities.numbering import generate_lot_number, generate_plant_tag
from herbtrace.entities.resolve import kind_of, reference_of, resolve_entity
from herbtrace.entities.store import EntityStore
from herbtrace.errors import (
    InvalidEventError,
    NotFoundError,
    StoreError,
    TraceError,
    ValidationError,
)
from herbtrace.events.enums import SYSTEM_EVENTS, EventType, parse_event_type
from herbtrace.events.models import Event, EventFilter
from herbtrace.events.projector import project
from herbtrace.events.store import EventStore
from herbtrace.locking import EntityLockManager
from herbtrace.observability.logging import get_logger
from herbtrace.observability.metrics import (
    COMPLIANCE_CHECKS,
    COMPLIANCE_SCORE,
    ENTITIES_CREATED,
    EVENTS_RECORDED,
    EVENTS_REJECTED,
)
from herbtrace.pagination import Page, PageRequest
from herbtrace.qr.models import EntitySnapshot, QRCode, VerificationResult
from herbtrace.qr.registry import QRRegistry
from herbtrace.qr.render import render_png
from herbtrace.reports import SupplyChainReport, supply_chain_metrics, timeline_of

logger = get_logger(__name__)

# Fields an administrative correction may change
LOT_PATCHABLE_FIELDS = frozenset({
    "species",
    "variety",
    "parent_lot_id",
    "quantity",
    "unit",
    "location",
    "source_info",
    "quality_data",
    "metadata",
})
PLANT_PATCHABLE_FIELDS = frozenset({
    "species",
    "variety",
    "location",
    "planted_date",
    "mother_plant_id",
    "genetics",
    "quality_data",
    "metadata",
})

COMPLIANCE_OPERATOR = "system:compliance"
IDENTIFIER_ATTEMPTS = 5


class CreatedLot(BaseModel):
    """A new lot and the QR code issued with it."""

    lot: Lot
    qr_code: QRCode


class CreatedPlant(BaseModel):
    """A new plant and the QR code issued with it."""

    plant: Plant
    qr_code: QRCode


def _aware(ts: datetime) -> datetime:
    """Treat naive timestamps as UTC."""
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=UTC)


SpecT = TypeVar("SpecT", LotSpec, PlantSpec)


def _validated(model: type[SpecT], data: SpecT | dict[str, Any]) -> SpecT:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(str(exc), cause=exc) from exc


def _coerce_kind(value: EntityKind | str) -> EntityKind:
    try:
        return EntityKind(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown entity kind: {value}", cause=exc) from exc


class TraceabilityService:
    """Seed-to-sale traceability operations."""

    def __init__(
        self,
        entity_store: EntityStore,
        event_store: EventStore,
        audit_trail: AuditTrail,
        qr_registry: QRRegistry,
        compliance_engine: ComplianceEngine,
        locks: EntityLockManager,
        listing: ListingConfig | None = None,
        default_rule_sets: Sequence[str] = ("GACP", "WHO", "FDA"),
    ) -> None:
        """Initialize the service.

        Args:
            entity_store: Lot and plant records
            event_store: Append-only event log
            audit_trail: Tamper-evidence layer
            qr_registry: QR issuance and verification
            compliance_engine: Rule set scoring
            locks: Per-entity write locks, shared with the registry
            listing: Page size defaults
            default_rule_sets: Rule sets used when a check names none
        """
        self._entities = entity_store
        self._events = event_store
        self._audit = audit_trail
        self._qr = qr_registry
        self._compliance = compliance_engine
        self._locks = locks
        self._listing = listing or ListingConfig()
        self._default_rule_sets = list(default_rule_sets)

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------

    async def create_lot(self, spec: LotSpec | dict[str, Any]) -> CreatedLot:
        """Create a lot, its LOT_CREATED event, audit entry and QR code.

        Raises:
            NotFoundError: If the parent lot does not exist
            ValidationError: If the payload is malformed or the lot type
                ranks below the parent's
        """
        spec = _validated(LotSpec, spec)
        if spec.parent_lot_id is not None:
            parent = await self.get_lot(spec.parent_lot_id)
            if spec.lot_type.rank < parent.lot_type.rank:
                raise ValidationError(
                    f"A {spec.lot_type.value} cannot derive from a {parent.lot_type.value}"
                )

        now = utc_now()
        lot = Lot(
            lot_number=await self._unique_lot_number(spec, now),
            created_at=now,
            updated_at=now,
            **spec.model_dump(),
        )
        event = Event(
            entity_id=lot.id,
            entity_kind=EntityKind.LOT,
            event_type=EventType.LOT_CREATED,
            timestamp=now,
            operator=spec.operator,
            location=spec.location,
            payload={
                "lot_number": lot.lot_number,
                "lot_type": lot.lot_type.value,
                "species": lot.species,
                "quantity": lot.quantity,
                "unit": lot.unit,
                "parent_lot_id": str(lot.parent_lot_id) if lot.parent_lot_id else None,
            },
        )

        async with self._locks.acquire(lot.id):
            code = await self._commit_creation(lot, EntityKind.LOT, event)

        ENTITIES_CREATED.labels(entity_kind=EntityKind.LOT.value).inc()
        logger.info(
            "lot_created",
            lot_id=str(lot.id),
            lot_number=lot.lot_number,
            lot_type=lot.lot_type.value,
            operator=lot.operator,
        )
        return CreatedLot(lot=lot, qr_code=code)

    async def create_plant(self, spec: PlantSpec | dict[str, Any]) -> CreatedPlant:
        """Tag a plant under an existing lot.

        Raises:
            NotFoundError: If the lot or the mother plant does not exist
            ValidationError: If the payload is malformed
        """
        spec = _validated(PlantSpec, spec)
        await self.get_lot(spec.lot_id)
        if spec.mother_plant_id is not None:
            await self.get_plant(spec.mother_plant_id)

        now = utc_now()
        plant = Plant(
            plant_tag=await self._unique_plant_tag(now),
            planted_date=_aware(spec.planted_date) if spec.planted_date else now,
            created_at=now,
            updated_at=now,
            **spec.model_dump(exclude={"planted_date", "location"}),
            location=spec.location,
        )
        event = Event(
            entity_id=plant.id,
            entity_kind=EntityKind.PLANT,
            event_type=EventType.PLANT_TAGGED,
            timestamp=now,
            operator=spec.operator,
            location=spec.location.site,
            coordinates=spec.location.coordinates,
            payload={
                "plant_tag": plant.plant_tag,
                "lot_id": str(plant.lot_id),
                "species": plant.species,
                "stage": PlantStage.SEEDLING.value,
            },
        )

        async with self._locks.acquire(plant.id):
            code = await self._commit_creation(plant, EntityKind.PLANT, event)

        ENTITIES_CREATED.labels(entity_kind=EntityKind.PLANT.value).inc()
        logger.info(
            "plant_created",
            plant_id=str(plant.id),
            plant_tag=plant.plant_tag,
            lot_id=str(plant.lot_id),
            operator=plant.operator,
        )
        return CreatedPlant(plant=plant, qr_code=code)

    async def get_lot(self, lot_id: UUID) -> Lot:
        """Get a lot.

        Raises:
            NotFoundError: If the lot does not exist
        """
        lot = await self._entities.get_lot(lot_id)
        if lot is None:
            raise NotFoundError(f"Lot {lot_id} not found")
        return lot

    async def get_plant(self, plant_id: UUID) -> Plant:
        """Get a plant.

        Raises:
            NotFoundError: If the plant does not exist
        """
        plant = await self._entities.get_plant(plant_id)
        if plant is None:
            raise NotFoundError(f"Plant {plant_id} not found")
        return plant

    async def list_lots(
        self,
        lot_filter: LotFilter | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> Page[Lot]:
        """List lots in creation order, one page at a time."""
        request = self._page_request(page, limit)
        items = await self._entities.list_lots(
            lot_filter, offset=request.offset, limit=request.limit
        )
        total = await self._entities.count_lots(lot_filter)
        return Page[Lot](items=items, total=total, page=request.page, limit=request.limit)

    async def list_plants(
        self,
        plant_filter: PlantFilter | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> Page[Plant]:
        """List plants in creation order, one page at a time."""
        request = self._page_request(page, limit)
        items = await self._entities.list_plants(
            plant_filter, offset=request.offset, limit=request.limit
        )
        total = await self._entities.count_plants(plant_filter)
        return Page[Plant](items=items, total=total, page=request.page, limit=request.limit)

    async def update_lot_fields(
        self,
        lot_id: UUID,
        patch: dict[str, Any],
        operator: str,
        reason: str = "",
    ) -> Lot:
        """Apply an administrative correction to a lot.

        The correction is recorded as a LOT_UPDATED event carrying the
        before and after values.

        Raises:
            NotFoundError: If the lot or a new parent does not exist
            ValidationError: On a forbidden field, an invalid value or a
                parent change that would create a cycle
        """
        self._check_patch(patch, LOT_PATCHABLE_FIELDS)
        async with self._locks.acquire(lot_id):
            lot = await self.get_lot(lot_id)
            updated = self._patched(lot, patch)
            if "parent_lot_id" in patch and updated.parent_lot_id is not None:
                await self._check_new_parent(lot, updated.parent_lot_id)

            event = self._correction_event(
                lot, updated, EntityKind.LOT, EventType.LOT_UPDATED, operator, reason
            )
            await self._entities.save_lot(updated)
            try:
                await self._append(event)
            except BaseException:
                await self._entities.save_lot(lot)
                raise

        logger.info(
            "lot_fields_updated",
            lot_id=str(lot_id),
            fields=sorted(patch),
            operator=operator,
        )
        return updated

    async def update_plant_fields(
        self,
        plant_id: UUID,
        patch: dict[str, Any],
        operator: str,
        reason: str = "",
    ) -> Plant:
        """Apply an administrative correction to a plant.

        Raises:
            NotFoundError: If the plant or a new mother plant does not exist
            ValidationError: On a forbidden field, an invalid value or a
                mother-plant change that would create a cycle
        """
        self._check_patch(patch, PLANT_PATCHABLE_FIELDS)
        async with self._locks.acquire(plant_id):
            plant = await self.get_plant(plant_id)
            updated = self._patched(plant, patch)
            if "mother_plant_id" in patch and updated.mother_plant_id is not None:
                await self._check_new_mother(plant, updated.mother_plant_id)

            event = self._correction_event(
                plant, updated, EntityKind.PLANT, EventType.PLANT_UPDATED, operator, reason
            )
            await self._entities.save_plant(updated)
            try:
                await self._append(event)
            except BaseException:
                await self._entities.save_plant(plant)
                raise

        logger.info(
            "plant_fields_updated",
            plant_id=str(plant_id),
            fields=sorted(patch),
            operator=operator,
        )
        return updated

    async def children_of(self, lot_id: UUID) -> list[Lot]:
        """Lots derived directly from a lot, in creation order.

        Raises:
            NotFoundError: If the lot does not exist
        """
        await self.get_lot(lot_id)
        return await self._entities.list_lots(LotFilter(parent_lot_id=lot_id))

    async def plants_of(self, lot_id: UUID) -> list[Plant]:
        """Plants tagged under a lot, in creation order.

        Raises:
            NotFoundError: If the lot does not exist
        """
        await self.get_lot(lot_id)
        return await self._entities.list_plants(PlantFilter(lot_id=lot_id))

    async def lineage_of(self, lot_id: UUID) -> list[Lot]:
        """A lot and its ancestors, root first.

        Raises:
            NotFoundError: If the lot does not exist
        """
        chain = [await self.get_lot(lot_id)]
        seen = {lot_id}
        while chain[0].parent_lot_id is not None and chain[0].parent_lot_id not in seen:
            parent = await self._entities.get_lot(chain[0].parent_lot_id)
            if parent is None:
                break
            seen.add(parent.id)
            chain.insert(0, parent)
        return chain

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def record_event(
        self,
        entity_kind: EntityKind | str,
        entity_id: UUID,
        event_type: EventType | str,
        operator: str,
        location: str | None = None,
        payload: dict[str, Any] | None = None,
        notes: str = "",
        *,
        timestamp: datetime | None = None,
        attachments: Sequence[str] = (),
        coordinates: GeoPoint | None = None,
        verified: bool = False,
    ) -> Event:
        """Record a supply-chain event and re-derive the entity's status.

        Once the audit entry is written the event is committed; a
        failure while projecting status afterwards is logged and can be
        repaired with ``refresh_status``.

        Raises:
            NotFoundError: If the entity does not exist
            InvalidEventError: If the event type is not valid for the kind
            ValidationError: If the event fields are malformed
        """
        try:
            kind = EntityKind(entity_kind)
        except ValueError as exc:
            raise InvalidEventError(f"Unknown entity kind: {entity_kind}", cause=exc) from exc

        async with self._locks.acquire(entity_id):
            entity = await resolve_entity(self._entities, kind, entity_id)
            if entity is None:
                EVENTS_REJECTED.labels(entity_kind=kind.value, reason="not_found").inc()
                raise NotFoundError(f"{kind.value} {entity_id} not found")

            parsed = parse_event_type(kind, event_type)
            if parsed is None or parsed in SYSTEM_EVENTS:
                EVENTS_REJECTED.labels(entity_kind=kind.value, reason="invalid_event").inc()
                raise InvalidEventError(
                    f"Event type {event_type!s} is not valid for a {kind.value}"
                )

            try:
                event = Event(
                    entity_id=entity_id,
                    entity_kind=kind,
                    event_type=parsed,
                    timestamp=_aware(timestamp) if timestamp else utc_now(),
                    operator=operator,
                    location=location,
                    coordinates=coordinates,
                    payload=payload or {},
                    notes=notes,
                    attachments=tuple(attachments),
                    verified=verified,
                )
            except PydanticValidationError as exc:
                raise ValidationError(str(exc), cause=exc) from exc

            await self._append(event)
            EVENTS_RECORDED.labels(entity_kind=kind.value, event_type=parsed.value).inc()

            try:
                await self._project(entity)
            except Exception:
                logger.exception(
                    "status_projection_failed",
                    entity_id=str(entity_id),
                    event_id=str(event.id),
                )

        logger.info(
            "event_recorded",
            event_id=str(event.id),
            entity_id=str(entity_id),
            entity_kind=kind.value,
            event_type=parsed.value,
            operator=operator,
        )
        return event

    async def get_event(self, event_id: UUID) -> Event:
        """Get an event.

        Raises:
            NotFoundError: If the event does not exist
        """
        event = await self._events.get(event_id)
        if event is None:
            raise NotFoundError(f"Event {event_id} not found")
        return event

    async def list_events(
        self,
        event_filter: EventFilter | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> Page[Event]:
        """List events in history order, one page at a time."""
        request = self._page_request(page, limit)
        items = await self._events.list_events(
            event_filter, offset=request.offset, limit=request.limit
        )
        total = await self._events.count_events(event_filter)
        return Page[Event](items=items, total=total, page=request.page, limit=request.limit)

    async def events_of(self, entity_id: UUID) -> list[Event]:
        """Full event history of an entity, oldest first.

        Raises:
            NotFoundError: If no lot or plant has this id
        """
        await self._find(entity_id)
        return await self._events.history_of(entity_id)

    async def refresh_status(self, entity_kind: EntityKind | str, entity_id: UUID) -> Lot | Plant:
        """Re-derive and persist an entity's status from its history.

        Raises:
            NotFoundError: If the entity does not exist
        """
        kind = _coerce_kind(entity_kind)
        async with self._locks.acquire(entity_id):
            entity = await resolve_entity(self._entities, kind, entity_id)
            if entity is None:
                raise NotFoundError(f"{kind.value} {entity_id} not found")
            return await self._project(entity)

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    async def history_of(
        self,
        entity_id: UUID,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[AuditEntry]:
        """Audit entries of an entity, oldest event first.

        Raises:
            NotFoundError: If no lot or plant has this id
        """
        await self._find(entity_id)
        return await self._audit.history_of(entity_id, offset=offset, limit=limit)

    async def verify_integrity(self, entity_id: UUID | None = None) -> IntegrityReport:
        """Run an integrity sweep over one entity or the whole log."""
        return await self._audit.verify_integrity(entity_id)

    # ------------------------------------------------------------------
    # QR codes
    # ------------------------------------------------------------------

    async def issue_qr(self, entity_kind: EntityKind | str, entity_id: UUID) -> QRCode:
        """Issue a replacement code, revoking the current one."""
        return await self._qr.issue(_coerce_kind(entity_kind), entity_id)

    async def revoke_qr(self, qr_id: UUID) -> QRCode:
        """Revoke a code."""
        return await self._qr.revoke(qr_id)

    async def verify_qr(self, qr_id: UUID) -> VerificationResult:
        """Verify a scanned code."""
        return await self._qr.verify(qr_id)

    async def verify_qr_token(self, token: str) -> VerificationResult:
        """Verify a code by its public URL token."""
        return await self._qr.verify_token(token)

    async def qr_codes_for(self, entity_kind: EntityKind | str, entity_id: UUID) -> list[QRCode]:
        """Every code ever issued for an entity, oldest first.

        Raises:
            NotFoundError: If the entity does not exist
        """
        kind = _coerce_kind(entity_kind)
        if await resolve_entity(self._entities, kind, entity_id) is None:
            raise NotFoundError(f"{kind.value} {entity_id} not found")
        return await self._qr.codes_for(entity_id)

    async def qr_image(self, qr_id: UUID) -> bytes:
        """Render a code as a PNG image."""
        code = await self._qr.get(qr_id)
        entity = await resolve_entity(self._entities, code.entity_kind, code.entity_id)
        if entity is None:
            raise NotFoundError(f"{code.entity_kind.value} {code.entity_id} not found")
        return render_png(code, reference_of(entity))

    # ------------------------------------------------------------------
    # Compliance
    # ------------------------------------------------------------------

    async def check(
        self,
        entity_id: UUID,
        entity_kind: EntityKind | str,
        rule_sets: Sequence[str] | str | None = None,
        operator: str = COMPLIANCE_OPERATOR,
    ) -> ComplianceResult:
        """Score an entity against rule sets and record the result.

        The result is appended as a COMPLIANCE_CHECK event, so compliance
        history is itself audited.

        Raises:
            NotFoundError: If the entity does not exist
        """
        kind = _coerce_kind(entity_kind)
        if isinstance(rule_sets, str):
            names = [rule_sets]
        else:
            names = list(rule_sets) if rule_sets is not None else list(self._default_rule_sets)

        async with self._locks.acquire(entity_id):
            entity = await resolve_entity(self._entities, kind, entity_id)
            if entity is None:
                raise NotFoundError(f"{kind.value} {entity_id} not found")

            history = await self._events.history_of(entity_id)
            result = self._compliance.evaluate(entity, kind, history, names)
            await self._append(
                Event(
                    entity_id=entity_id,
                    entity_kind=kind,
                    event_type=EventType.COMPLIANCE_CHECK,
                    timestamp=result.checked_at,
                    operator=operator,
                    payload=result.model_dump(mode="json"),
                )
            )

        COMPLIANCE_CHECKS.labels(
            entity_kind=kind.value, compliant=str(result.compliant).lower()
        ).inc()
        COMPLIANCE_SCORE.observe(result.score)
        logger.info(
            "compliance_checked",
            entity_id=str(entity_id),
            entity_kind=kind.value,
            rule_sets=names,
            score=result.score,
            compliant=result.compliant,
            issues=len(result.issues),
        )
        return result

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def supply_chain_report(
        self, entity_kind: EntityKind | str, entity_id: UUID
    ) -> SupplyChainReport:
        """Provenance report: lineage, journey metrics, integrity and codes.

        Raises:
            NotFoundError: If the entity does not exist
        """
        kind = _coerce_kind(entity_kind)
        entity = await resolve_entity(self._entities, kind, entity_id)
        if entity is None:
            raise NotFoundError(f"{kind.value} {entity_id} not found")

        if isinstance(entity, Plant):
            ancestors = await self.lineage_of(entity.lot_id)
        else:
            ancestors = (await self.lineage_of(entity.id))[:-1]

        events = await self._events.history_of(entity_id)
        return SupplyChainReport(
            entity=EntitySnapshot.of(entity, kind),
            lineage=[EntitySnapshot.of(lot, EntityKind.LOT) for lot in ancestors],
            metrics=supply_chain_metrics(events),
            timeline=timeline_of(events),
            integrity=await self._audit.verify_integrity(entity_id),
            qr_codes=await self._qr.codes_for(entity_id),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _commit_creation(
        self, entity: Lot | Plant, kind: EntityKind, event: Event
    ) -> QRCode:
        """Write a new entity with its creation event, QR code and audit entry.

        Anything written before a failure or a cancellation is discarded
        again; the cancellation itself propagates unchanged.
        """
        saved = appended = False
        code: QRCode | None = None
        try:
            if isinstance(entity, Plant):
                await self._entities.save_plant(entity)
            else:
                await self._entities.save_lot(entity)
            saved = True
            await self._events.append(event)
            appended = True
            code = self._qr.prepare(kind, entity.id)
            await self._qr.register(code)
            await self._audit.append(event)
        except BaseException as exc:
            logger.error(
                "entity_creation_rolled_back",
                entity_id=str(entity.id),
                entity_kind=kind.value,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            if code is not None:
                await self._qr.discard(code)
            if appended:
                await self._events.discard(event.id)
            if saved:
                if isinstance(entity, Plant):
                    await self._entities.discard_plant(entity.id)
                else:
                    await self._entities.discard_lot(entity.id)
            if isinstance(exc, TraceError) or not isinstance(exc, Exception):
                raise
            raise StoreError(f"Could not create {kind.value}", cause=exc) from exc
        return code

    async def _append(self, event: Event) -> AuditEntry:
        """Append an event and its audit entry as one unit."""
        await self._events.append(event)
        try:
            return await self._audit.append(event)
        except BaseException as exc:
            await self._events.discard(event.id)
            if isinstance(exc, TraceError) or not isinstance(exc, Exception):
                raise
            raise StoreError(f"Could not audit event {event.id}", cause=exc) from exc

    async def _project(self, entity: Lot | Plant) -> Lot | Plant:
        """Recompute and persist derived state from the event history."""
        history = await self._events.history_of(entity.id)
        projection = project(kind_of(entity), history)

        update: dict[str, Any] = {
            "status": projection.status,
            "active": projection.active,
            "updated_at": utc_now(),
        }
        if isinstance(entity, Plant):
            update["lifecycle_stage"] = projection.lifecycle_stage
            refreshed = entity.model_copy(update=update)
            await self._entities.save_plant(refreshed)
        else:
            refreshed = entity.model_copy(update=update)
            await self._entities.save_lot(refreshed)

        if projection.anomalies:
            logger.warning(
                "lifecycle_sequence_anomaly",
                entity_id=str(entity.id),
                anomalies=[a.event_type.value for a in projection.anomalies],
            )
        return refreshed

    async def _find(self, entity_id: UUID) -> Lot | Plant:
        entity = await self._entities.get_lot(entity_id)
        if entity is None:
            entity = await self._entities.get_plant(entity_id)
        if entity is None:
            raise NotFoundError(f"Entity {entity_id} not found")
        return entity

    def _page_request(self, page: int, limit: int | None) -> PageRequest:
        size = limit if limit is not None else self._listing.default_page_size
        try:
            return PageRequest(page=page, limit=min(size, self._listing.max_page_size))
        except PydanticValidationError as exc:
            raise ValidationError(str(exc), cause=exc) from exc

    async def _unique_lot_number(self, spec: LotSpec, now: datetime) -> str:
        for _ in range(IDENTIFIER_ATTEMPTS):
            number = generate_lot_number(spec.lot_type, now)
            if not await self._entities.lot_number_exists(number):
                return number
        raise StoreError("Could not allocate a unique lot number")

    async def _unique_plant_tag(self, now: datetime) -> str:
        for _ in range(IDENTIFIER_ATTEMPTS):
            tag = generate_plant_tag(now)
            if not await self._entities.plant_tag_exists(tag):
                return tag
        raise StoreError("Could not allocate a unique plant tag")

    @staticmethod
    def _check_patch(patch: dict[str, Any], allowed: frozenset[str]) -> None:
        if not patch:
            raise ValidationError("Patch is empty")
        forbidden = sorted(set(patch) - allowed)
        if forbidden:
            raise ValidationError(f"Fields cannot be corrected: {', '.join(forbidden)}")

    @staticmethod
    def _patched(entity: Lot | Plant, patch: dict[str, Any]) -> Lot | Plant:
        data = {**entity.model_dump(), **patch, "updated_at": utc_now()}
        try:
            return type(entity).model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationError(str(exc), cause=exc) from exc

    @staticmethod
    def _correction_event(
        before: Lot | Plant,
        after: Lot | Plant,
        kind: EntityKind,
        event_type: EventType,
        operator: str,
        reason: str,
    ) -> Event:
        old = before.model_dump(mode="json")
        new = after.model_dump(mode="json")
        changes = {
            field: {"from": old[field], "to": new[field]}
            for field in sorted(old)
            if field != "updated_at" and old[field] != new[field]
        }
        try:
            return Event(
                entity_id=before.id,
                entity_kind=kind,
                event_type=event_type,
                operator=operator,
                payload={"changes": changes, "reason": reason},
            )
        except PydanticValidationError as exc:
            raise ValidationError(str(exc), cause=exc) from exc

    async def _check_new_parent(self, lot: Lot, parent_id: UUID) -> None:
        """A new parent must exist, rank at or below the lot, and not descend from it."""
        parent = await self.get_lot(parent_id)
        if lot.lot_type.rank < parent.lot_type.rank:
            raise ValidationError(
                f"A {lot.lot_type.value} cannot derive from a {parent.lot_type.value}"
            )
        for ancestor in await self.lineage_of(parent_id):
            if ancestor.id == lot.id:
                raise ValidationError(f"Lot {parent_id} descends from lot {lot.id}")

    async def _check_new_mother(self, plant: Plant, mother_id: UUID) -> None:
        """A new mother plant must exist and not descend from the plant."""
        current: Plant | None = await self.get_plant(mother_id)
        seen: set[UUID] = set()
        while current is not None and current.id not in seen:
            if current.id == plant.id:
                raise ValidationError(f"Plant {mother_id} descends from plant {plant.id}")
            seen.add(current.id)
            if current.mother_plant_id is None:
                break
            current = await self._entities.get_plant(current.mother_plant_id)
