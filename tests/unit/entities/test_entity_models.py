"""Tests for entity models, enums and identifier generation."""

import re
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from herbtrace.entities.enums import LifecycleStatus, LotType, PlantStage
from herbtrace.entities.models import GeoPoint, LotSpec
from herbtrace.entities.numbering import generate_lot_number, generate_plant_tag


class TestEnums:
    """Tests for ranked enums."""

    def test_lot_type_rank_follows_supply_chain(self) -> None:
        """Seed ranks below plant, harvest and product."""
        ranks = [t.rank for t in (LotType.SEED, LotType.PLANT, LotType.HARVEST, LotType.PRODUCT)]
        assert ranks == sorted(ranks)
        assert len(set(ranks)) == 4

    def test_status_rank_order(self) -> None:
        """Created state ranks lowest and sold highest."""
        assert LifecycleStatus.ACTIVE.rank == 0
        assert LifecycleStatus.HARVESTED.rank < LifecycleStatus.SOLD.rank
        assert max(LifecycleStatus, key=lambda s: s.rank) == LifecycleStatus.SOLD

    def test_plant_stage_rank(self) -> None:
        """Seedling comes before flowering."""
        assert PlantStage.SEEDLING.rank < PlantStage.FLOWERING.rank


class TestSpecValidation:
    """Tests for creation payload validation."""

    def test_negative_quantity_rejected(self) -> None:
        """Quantity must be non-negative."""
        with pytest.raises(ValidationError):
            LotSpec(lot_type=LotType.SEED, species="Cannabis sativa", quantity=-1, operator="x")

    def test_invalid_type_rejected(self) -> None:
        """Unknown lot types are rejected."""
        with pytest.raises(ValidationError):
            LotSpec(lot_type="mystery_lot", species="Cannabis sativa", quantity=1, operator="x")

    def test_coordinates_bounded(self) -> None:
        """Latitude outside -90..90 is rejected."""
        with pytest.raises(ValidationError):
            GeoPoint(latitude=91, longitude=0)


class TestNumbering:
    """Tests for lot numbers and plant tags."""

    def test_lot_number_format(self) -> None:
        """Lot numbers carry the type code and year-month."""
        now = datetime(2025, 10, 19, tzinfo=UTC)
        number = generate_lot_number(LotType.HARVEST, now)
        assert re.fullmatch(r"GACP-HV-202510-[0-9A-F]{6}", number)

    def test_plant_tag_format(self) -> None:
        """Plant tags carry the year."""
        tag = generate_plant_tag(datetime(2025, 1, 2, tzinfo=UTC))
        assert re.fullmatch(r"PLANT-2025-[0-9A-F]{8}", tag)

    def test_numbers_differ(self) -> None:
        """Random suffixes make collisions unlikely."""
        now = datetime.now(UTC)
        numbers = {generate_lot_number(LotType.SEED, now) for _ in range(50)}
        assert len(numbers) == 50
