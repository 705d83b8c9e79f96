"""In-memory implementation of EntityStore."""

from uuid import UUID

from herbtrace.entities.models import Lot, LotFilter, Plant, PlantFilter
from herbtrace.entities.store import EntityStore


class InMemoryEntityStore(EntityStore):
    """In-memory implementation of EntityStore for testing and development.

    Records are copied on the way in and out so callers can never edit
    stored state without going through the store.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._lots: dict[UUID, Lot] = {}
        self._plants: dict[UUID, Plant] = {}
        # Insertion sequence breaks ties between equal creation times
        self._sequence: dict[UUID, int] = {}

    def _creation_order(self, record: Lot | Plant) -> tuple:
        return (record.created_at, self._sequence.get(record.id, 0))

    def _remember(self, record_id: UUID) -> None:
        self._sequence.setdefault(record_id, len(self._sequence))

    # Lot operations
    async def get_lot(self, lot_id: UUID) -> Lot | None:
        """Get a lot by ID."""
        lot = self._lots.get(lot_id)
        return lot.model_copy(deep=True) if lot else None

    async def save_lot(self, lot: Lot) -> UUID:
        """Insert or replace a lot."""
        self._remember(lot.id)
        self._lots[lot.id] = lot.model_copy(deep=True)
        return lot.id

    async def list_lots(
        self,
        lot_filter: LotFilter | None = None,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Lot]:
        """List lots matching the filter in creation order."""
        lot_filter = lot_filter or LotFilter()
        results = sorted(
            (lot for lot in self._lots.values() if lot_filter.matches(lot)),
            key=self._creation_order,
        )
        end = None if limit is None else offset + limit
        return [lot.model_copy(deep=True) for lot in results[offset:end]]

    async def count_lots(self, lot_filter: LotFilter | None = None) -> int:
        """Count lots matching the filter."""
        lot_filter = lot_filter or LotFilter()
        return sum(1 for lot in self._lots.values() if lot_filter.matches(lot))

    async def lot_number_exists(self, lot_number: str) -> bool:
        """Check whether a lot number is already taken."""
        return any(lot.lot_number == lot_number for lot in self._lots.values())

    async def discard_lot(self, lot_id: UUID) -> None:
        """Remove a lot written by an aborted creation."""
        self._lots.pop(lot_id, None)

    # Plant operations
    async def get_plant(self, plant_id: UUID) -> Plant | None:
        """Get a plant by ID."""
        plant = self._plants.get(plant_id)
        return plant.model_copy(deep=True) if plant else None

    async def save_plant(self, plant: Plant) -> UUID:
        """Insert or replace a plant."""
        self._remember(plant.id)
        self._plants[plant.id] = plant.model_copy(deep=True)
        return plant.id

    async def list_plants(
        self,
        plant_filter: PlantFilter | None = None,
        *,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Plant]:
        """List plants matching the filter in creation order."""
        plant_filter = plant_filter or PlantFilter()
        results = sorted(
            (plant for plant in self._plants.values() if plant_filter.matches(plant)),
            key=self._creation_order,
        )
        end = None if limit is None else offset + limit
        return [plant.model_copy(deep=True) for plant in results[offset:end]]

    async def count_plants(self, plant_filter: PlantFilter | None = None) -> int:
        """Count plants matching the filter."""
        plant_filter = plant_filter or PlantFilter()
        return sum(1 for plant in self._plants.values() if plant_filter.matches(plant))

    async def plant_tag_exists(self, plant_tag: str) -> bool:
        """Check whether a plant tag is already taken."""
        return any(plant.plant_tag == plant_tag for plant in self._plants.values())

    async def discard_plant(self, plant_id: UUID) -> None:
        """Remove a plant written by an aborted creation."""
        self._plants.pop(plant_id, None)
