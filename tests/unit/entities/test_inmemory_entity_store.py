"""Tests for InMemoryEntityStore."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from herbtrace.entities.enums import LifecycleStatus, LotType, PlantStage
from herbtrace.entities.models import Location, Lot, LotFilter, Plant, PlantFilter
from herbtrace.entities.stores import InMemoryEntityStore


@pytest.fixture
def store() -> InMemoryEntityStore:
    """Create a fresh store for each test."""
    return InMemoryEntityStore()


def make_lot(**overrides) -> Lot:
    data = {
        "lot_number": f"GACP-SD-202510-{uuid4().hex[:6].upper()}",
        "lot_type": LotType.SEED,
        "species": "Cannabis sativa",
        "quantity": 100,
        "unit": "seeds",
        "operator": "farmer-01",
    }
    data.update(overrides)
    return Lot(**data)


def make_plant(lot_id, **overrides) -> Plant:
    data = {
        "plant_tag": f"PLANT-2025-{uuid4().hex[:8].upper()}",
        "lot_id": lot_id,
        "species": "Cannabis sativa",
        "location": Location(site="Chiang Mai Farm"),
        "operator": "farmer-01",
    }
    data.update(overrides)
    return Plant(**data)


class TestLotOperations:
    """Tests for lot storage."""

    @pytest.mark.asyncio
    async def test_save_and_get(self, store) -> None:
        """Should save and retrieve a lot."""
        lot = make_lot()
        await store.save_lot(lot)

        retrieved = await store.get_lot(lot.id)
        assert retrieved == lot

    @pytest.mark.asyncio
    async def test_get_nonexistent(self, store) -> None:
        """Should return None for an unknown lot."""
        assert await store.get_lot(uuid4()) is None

    @pytest.mark.asyncio
    async def test_returned_copies_are_detached(self, store) -> None:
        """Editing a returned record does not change stored state."""
        lot = make_lot(quality_data={"origin": "Chiang Mai"})
        await store.save_lot(lot)

        retrieved = await store.get_lot(lot.id)
        retrieved.quality_data["origin"] = "elsewhere"

        assert (await store.get_lot(lot.id)).quality_data["origin"] == "Chiang Mai"

    @pytest.mark.asyncio
    async def test_list_in_creation_order(self, store) -> None:
        """Lots are listed oldest first regardless of insertion order."""
        base = datetime.now(UTC)
        newer = make_lot(created_at=base + timedelta(minutes=5))
        older = make_lot(created_at=base)
        await store.save_lot(newer)
        await store.save_lot(older)

        listed = await store.list_lots()
        assert [lot.id for lot in listed] == [older.id, newer.id]

    @pytest.mark.asyncio
    async def test_equal_creation_times_keep_insertion_order(self, store) -> None:
        """Ties on created_at are broken by insertion order."""
        now = datetime.now(UTC)
        lots = [make_lot(created_at=now) for _ in range(5)]
        for lot in lots:
            await store.save_lot(lot)

        listed = await store.list_lots()
        assert [lot.id for lot in listed] == [lot.id for lot in lots]

    @pytest.mark.asyncio
    async def test_filters_and_window(self, store) -> None:
        """Exact-match filters combine with offset and limit."""
        base = datetime.now(UTC)
        for i in range(4):
            await store.save_lot(make_lot(created_at=base + timedelta(seconds=i)))
        harvest = make_lot(lot_type=LotType.HARVEST, created_at=base + timedelta(seconds=10))
        await store.save_lot(harvest)

        seeds = LotFilter(lot_type=LotType.SEED)
        assert await store.count_lots(seeds) == 4
        assert len(await store.list_lots(seeds, offset=2, limit=10)) == 2
        assert [lot.id for lot in await store.list_lots(LotFilter(lot_type=LotType.HARVEST))] == [
            harvest.id
        ]
        assert await store.count_lots(LotFilter(status=LifecycleStatus.SOLD)) == 0

    @pytest.mark.asyncio
    async def test_creation_window(self, store) -> None:
        """created_from and created_to bound creation time inclusively."""
        base = datetime(2025, 10, 1, tzinfo=UTC)
        lots = [make_lot(created_at=base + timedelta(days=i)) for i in range(4)]
        for lot in lots:
            await store.save_lot(lot)

        window = LotFilter(
            created_from=base + timedelta(days=1),
            created_to=base + timedelta(days=2),
        )
        assert [lot.id for lot in await store.list_lots(window)] == [lots[1].id, lots[2].id]
        assert await store.count_lots(window) == 2

        naive = LotFilter(created_from=datetime(2025, 10, 3))
        assert [lot.id for lot in await store.list_lots(naive)] == [lots[2].id, lots[3].id]

    @pytest.mark.asyncio
    async def test_lot_number_exists(self, store) -> None:
        """Lot number lookups find stored numbers only."""
        lot = make_lot()
        await store.save_lot(lot)

        assert await store.lot_number_exists(lot.lot_number)
        assert not await store.lot_number_exists("GACP-SD-000000-000000")

    @pytest.mark.asyncio
    async def test_discard(self, store) -> None:
        """Discarding removes the lot."""
        lot = make_lot()
        await store.save_lot(lot)
        await store.discard_lot(lot.id)

        assert await store.get_lot(lot.id) is None
        assert await store.count_lots() == 0


class TestPlantOperations:
    """Tests for plant storage."""

    @pytest.mark.asyncio
    async def test_save_get_and_filter(self, store) -> None:
        """Plants are filtered by lot and stage."""
        lot_id = uuid4()
        seedling = make_plant(lot_id)
        flowering = make_plant(lot_id, lifecycle_stage=PlantStage.FLOWERING)
        other = make_plant(uuid4())
        for plant in (seedling, flowering, other):
            await store.save_plant(plant)

        assert await store.get_plant(seedling.id) == seedling
        assert await store.count_plants(PlantFilter(lot_id=lot_id)) == 2
        listed = await store.list_plants(PlantFilter(stage=PlantStage.FLOWERING))
        assert [p.id for p in listed] == [flowering.id]

    @pytest.mark.asyncio
    async def test_plant_tag_exists_and_discard(self, store) -> None:
        """Tags are found until the plant is discarded."""
        plant = make_plant(uuid4())
        await store.save_plant(plant)
        assert await store.plant_tag_exists(plant.plant_tag)

        await store.discard_plant(plant.id)
        assert not await store.plant_tag_exists(plant.plant_tag)
