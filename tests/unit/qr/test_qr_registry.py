"""Tests for QR issuance, revocation and verification."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from herbtrace.config.models.tracking import QRConfig
from herbtrace.entities.enums import EntityKind, LifecycleStatus, LotType
from herbtrace.errors import NotFoundError
from herbtrace.events.enums import EventType
from herbtrace.qr.models import INACTIVE_REASON, QRStatus
from herbtrace.qr.render import qr_payload, render_png


class TestIssue:
    """Tests for issuing codes."""

    @pytest.mark.asyncio
    async def test_creation_issues_active_code(self, parts, seed_lot_spec) -> None:
        """A new lot comes with exactly one active code."""
        created = await parts.service.create_lot(seed_lot_spec)

        codes = await parts.registry.codes_for(created.lot.id)
        assert [c.id for c in codes] == [created.qr_code.id]
        assert created.qr_code.status == QRStatus.ACTIVE
        assert created.qr_code.issuer == "GACP Thailand"
        assert created.qr_code.verification_url.endswith(
            f"/verify/{created.qr_code.verification_token}"
        )

    @pytest.mark.asyncio
    async def test_issue_for_missing_entity(self, parts) -> None:
        """Issuing for an unknown entity fails with NotFound."""
        with pytest.raises(NotFoundError):
            await parts.registry.issue(EntityKind.LOT, uuid4())

    @pytest.mark.asyncio
    async def test_issue_product_requires_product_lot(self, parts, seed_lot_spec) -> None:
        """A seed lot cannot be addressed as a product."""
        created = await parts.service.create_lot(seed_lot_spec)
        with pytest.raises(NotFoundError):
            await parts.registry.issue(EntityKind.PRODUCT, created.lot.id)

    @pytest.mark.asyncio
    async def test_reissue_revokes_previous(self, parts, seed_lot_spec) -> None:
        """Only one code per entity stays active."""
        created = await parts.service.create_lot(seed_lot_spec)
        replacement = await parts.service.issue_qr(EntityKind.LOT, created.lot.id)

        old = await parts.registry.get(created.qr_code.id)
        assert old.status == QRStatus.REVOKED
        assert old.revoked_at is not None
        assert (await parts.registry.active_code_for(created.lot.id)).id == replacement.id

    @pytest.mark.asyncio
    async def test_multiple_active_when_configured(self, make_parts, seed_lot_spec) -> None:
        """allow_multiple_active keeps earlier codes usable."""
        parts = make_parts(qr_config=QRConfig(allow_multiple_active=True))
        created = await parts.service.create_lot(seed_lot_spec)
        await parts.service.issue_qr(EntityKind.LOT, created.lot.id)

        codes = await parts.registry.codes_for(created.lot.id)
        assert [c.status for c in codes] == [QRStatus.ACTIVE, QRStatus.ACTIVE]


class TestVerify:
    """Tests for verification."""

    @pytest.mark.asyncio
    async def test_fresh_code_resolves_to_entity(self, parts, seed_lot_spec) -> None:
        """A freshly issued code verifies to exactly its entity."""
        created = await parts.service.create_lot(seed_lot_spec)
        result = await parts.service.verify_qr(created.qr_code.id)

        assert result.verified
        assert result.reason is None
        assert result.entity.entity_id == created.lot.id
        assert result.entity.reference == created.lot.lot_number
        assert result.entity.status == LifecycleStatus.ACTIVE
        assert [h.event_type for h in result.recent_history] == [EventType.LOT_CREATED]
        assert result.recent_history[0].integrity_ok

    @pytest.mark.asyncio
    async def test_plant_code_resolves(self, parts, seed_lot_spec, plant_spec_for) -> None:
        """Plant codes verify to the plant snapshot."""
        lot = (await parts.service.create_lot(seed_lot_spec)).lot
        created = await parts.service.create_plant(plant_spec_for(lot.id))

        result = await parts.service.verify_qr(created.qr_code.id)
        assert result.verified
        assert result.entity.entity_kind == EntityKind.PLANT
        assert result.entity.origin_lot_id == lot.id
        assert result.entity.reference == created.plant.plant_tag

    @pytest.mark.asyncio
    async def test_unknown_code(self, parts) -> None:
        """Unknown ids fail with NotFound, not an inactive result."""
        with pytest.raises(NotFoundError):
            await parts.service.verify_qr(uuid4())

    @pytest.mark.asyncio
    async def test_revoked_code_inactive_history_intact(self, parts, seed_lot_spec) -> None:
        """Revocation hides entity data but leaves history untouched."""
        created = await parts.service.create_lot(seed_lot_spec)
        lot_id = created.lot.id
        await parts.service.record_event(EntityKind.LOT, lot_id, EventType.PLANTED, "farmer-01")
        history_before = await parts.service.history_of(lot_id)

        await parts.service.revoke_qr(created.qr_code.id)
        result = await parts.service.verify_qr(created.qr_code.id)

        assert not result.verified
        assert result.reason == INACTIVE_REASON
        assert result.entity is None
        assert result.recent_history == []
        assert await parts.service.history_of(lot_id) == history_before

    @pytest.mark.asyncio
    async def test_revoke_is_idempotent(self, parts, seed_lot_spec) -> None:
        """Revoking twice keeps the first revocation time."""
        created = await parts.service.create_lot(seed_lot_spec)
        first = await parts.service.revoke_qr(created.qr_code.id)
        second = await parts.service.revoke_qr(created.qr_code.id)
        assert first.revoked_at == second.revoked_at

    @pytest.mark.asyncio
    async def test_revoke_unknown(self, parts) -> None:
        """Revoking an unknown code fails with NotFound."""
        with pytest.raises(NotFoundError):
            await parts.service.revoke_qr(uuid4())

    @pytest.mark.asyncio
    async def test_expired_code_same_response_as_revoked(self, make_parts, seed_lot_spec) -> None:
        """Expiry and revocation are indistinguishable to scanners."""
        parts = make_parts(qr_config=QRConfig(allow_multiple_active=True))
        created = await parts.service.create_lot(seed_lot_spec)
        code = await parts.registry.get(created.qr_code.id)
        await parts.qr_store.save(
            code.model_copy(update={"expires_at": datetime.now(UTC) - timedelta(days=1)})
        )
        replacement = await parts.service.issue_qr(EntityKind.LOT, created.lot.id)
        await parts.service.revoke_qr(replacement.id)

        expired = await parts.service.verify_qr(code.id)
        revoked = await parts.service.verify_qr(replacement.id)
        assert (expired.verified, expired.reason, expired.entity) == (
            revoked.verified,
            revoked.reason,
            revoked.entity,
        )

    @pytest.mark.asyncio
    async def test_verify_by_token(self, parts, seed_lot_spec) -> None:
        """The token in the public URL resolves like the id."""
        created = await parts.service.create_lot(seed_lot_spec)
        result = await parts.service.verify_qr_token(created.qr_code.verification_token)
        assert result.qr_id == created.qr_code.id
        assert result.verified

    @pytest.mark.asyncio
    async def test_history_limited_to_recent(self, make_parts, seed_lot_spec) -> None:
        """Verification returns only the newest history items."""
        parts = make_parts()
        parts.registry._history_size = 3
        created = await parts.service.create_lot(seed_lot_spec)
        types = (
            EventType.SEED_RECEIVED,
            EventType.SEED_TESTED,
            EventType.SEED_APPROVED,
            EventType.PLANTED,
        )
        for minutes, event_type in enumerate(types, start=1):
            await parts.service.record_event(
                EntityKind.LOT,
                created.lot.id,
                event_type,
                "farmer-01",
                timestamp=created.lot.created_at + timedelta(minutes=minutes),
            )

        result = await parts.service.verify_qr(created.qr_code.id)
        assert [h.event_type for h in result.recent_history] == [
            EventType.SEED_TESTED,
            EventType.SEED_APPROVED,
            EventType.PLANTED,
        ]

    @pytest.mark.asyncio
    async def test_tampered_history_flagged(self, parts, seed_lot_spec) -> None:
        """History items report entries whose hash no longer verifies."""
        created = await parts.service.create_lot(seed_lot_spec)
        entry = (await parts.audit.history_of(created.lot.id))[0]
        parts.audit_store._entries[entry.id] = entry.model_copy(update={"operator": "x"})

        result = await parts.service.verify_qr(created.qr_code.id)
        assert result.verified
        assert result.recent_history[0].integrity_ok is False


class TestRender:
    """Tests for PNG rendering."""

    @pytest.mark.asyncio
    async def test_render_png(self, parts) -> None:
        """Rendering yields a PNG image."""
        created = await parts.service.create_lot(
            {
                "lot_type": LotType.PRODUCT,
                "species": "Andrographis paniculata",
                "quantity": 50,
                "operator": "packer-02",
            }
        )
        png = await parts.service.qr_image(created.qr_code.id)
        assert png.startswith(b"\x89PNG")

        direct = render_png(created.qr_code, created.lot.lot_number)
        assert direct.startswith(b"\x89PNG")

    @pytest.mark.asyncio
    async def test_payload_fields(self, parts, seed_lot_spec) -> None:
        """The embedded payload names the code, URL, kind and number."""
        created = await parts.service.create_lot(seed_lot_spec)
        payload = qr_payload(created.qr_code, created.lot.lot_number)
        assert str(created.qr_code.id) in payload
        assert created.lot.lot_number in payload
        assert '"type": "lot"' in payload
