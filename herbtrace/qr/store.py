"""QRCodeStore abstract interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from herbtrace.qr.models import QRCode


class QRCodeStore(ABC):
    """Abstract interface for issued QR codes."""

    @abstractmethod
    async def get(self, qr_id: UUID) -> QRCode | None:
        """Get a code by ID."""
        pass

    @abstractmethod
    async def get_by_token(self, token: str) -> QRCode | None:
        """Get a code by its verification token."""
        pass

    @abstractmethod
    async def save(self, code: QRCode) -> UUID:
        """Insert or replace a code."""
        pass

    @abstractmethod
    async def list_for_entity(self, entity_id: UUID) -> list[QRCode]:
        """All codes ever issued for an entity, oldest first."""
        pass

    @abstractmethod
    async def discard(self, qr_id: UUID) -> None:
        """Remove a code written by an aborted creation."""
        pass
