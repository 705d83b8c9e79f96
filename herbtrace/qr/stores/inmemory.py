"""In-memory implementation of QRCodeStore."""

from uuid import UUID

from herbtrace.qr.models import QRCode
from herbtrace.qr.store import QRCodeStore


class InMemoryQRCodeStore(QRCodeStore):
    """In-memory implementation of QRCodeStore for testing and development."""

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._codes: dict[UUID, QRCode] = {}

    async def get(self, qr_id: UUID) -> QRCode | None:
        """Get a code by ID."""
        code = self._codes.get(qr_id)
        return code.model_copy() if code else None

    async def get_by_token(self, token: str) -> QRCode | None:
        """Get a code by its verification token."""
        for code in self._codes.values():
            if code.verification_token == token:
                return code.model_copy()
        return None

    async def save(self, code: QRCode) -> UUID:
        """Insert or replace a code."""
        self._codes[code.id] = code.model_copy()
        return code.id

    async def list_for_entity(self, entity_id: UUID) -> list[QRCode]:
        """All codes ever issued for an entity, oldest first."""
        codes = [c for c in self._codes.values() if c.entity_id == entity_id]
        codes.sort(key=lambda c: c.issued_at)
        return [c.model_copy() for c in codes]

    async def discard(self, qr_id: UUID) -> None:
        """Remove a code written by an aborted creation."""
        self._codes.pop(qr_id, None)
