"""EntityStore abstract interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from herbtrace.entities.models import Lot, LotFilter, Plant, PlantFilter


class EntityStore(ABC):
    """Abstract interface for lot and plant storage.

    Listing is always ordered by creation time ascending, then insertion
    order, so paginated audits are reproducible.
    """

    # Lot operations
    @abstractmethod
    async def get_lot(self, lot_id: UUID) -> Lot | None:
        """Get a lot by ID."""
        pass

    @abstractmethod
    async def save_lot(self, lot: Lot) -> UUID:
        """Insert or replace a lot."""
        pass

    @abstractmethod
    async def list_lots(
        self,
        lot_filter: LotFilter | None = None,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Lot]:
        """List lots matching the filter in creation order."""
        pass

    @abstractmethod
    async def count_lots(self, lot_filter: LotFilter | None = None) -> int:
        """Count lots matching the filter."""
        pass

    @abstractmethod
    async def lot_number_exists(self, lot_number: str) -> bool:
        """Check whether a lot number is already taken."""
        pass

    @abstractmethod
    async def discard_lot(self, lot_id: UUID) -> None:
        """Remove a lot written by an aborted creation."""
        pass

    # Plant operations
    @abstractmethod
    async def get_plant(self, plant_id: UUID) -> Plant | None:
        """Get a plant by ID."""
        pass

    @abstractmethod
    async def save_plant(self, plant: Plant) -> UUID:
        """Insert or replace a plant."""
        pass

    @abstractmethod
    async def list_plants(
        self,
        plant_filter: PlantFilter | None = None,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Plant]:
        """List plants matching the filter in creation order."""
        pass

    @abstractmethod
    async def count_plants(self, plant_filter: PlantFilter | None = None) -> int:
        """Count plants matching the filter."""
        pass

    @abstractmethod
    async def plant_tag_exists(self, plant_tag: str) -> bool:
        """Check whether a plant tag is already taken."""
        pass

    @abstractmethod
    async def discard_plant(self, plant_id: UUID) -> None:
        """Remove a plant written by an aborted creation."""
        pass
