"""Lot and Plant models for the entity domain."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from herbtrace.entities.enums import LifecycleStatus, LotType, PlantStage


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class GeoPoint(BaseModel):
    """WGS84 coordinate."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in degrees")


class Location(BaseModel):
    """Where a plant grows."""

    site: str = Field(..., min_length=1, description="Farm or facility name")
    section: str | None = Field(default=None, description="Field, greenhouse or bed")
    coordinates: GeoPoint | None = Field(default=None, description="Geocoordinate")


class Lot(BaseModel):
    """A batch of seed, plants, harvested material or packaged product.

    ``status`` and ``active`` are projections of the lot's event history
    and are only written by the status projector.
    """

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    lot_number: str = Field(..., description="Human-readable, type-prefixed number")
    lot_type: LotType = Field(..., description="What the lot holds")
    species: str = Field(..., min_length=1, description="Scientific name")
    variety: str | None = Field(default=None, description="Cultivar or landrace")
    parent_lot_id: UUID | None = Field(default=None, description="Lot this one derives from")
    quantity: float = Field(..., ge=0, description="Amount held")
    unit: str = Field(..., min_length=1, description="Unit of quantity")
    location: str | None = Field(default=None, description="Storage or farm location")
    operator: str = Field(..., min_length=1, description="Responsible operator")
    source_info: dict[str, Any] = Field(default_factory=dict, description="Supplier and origin")
    quality_data: dict[str, Any] = Field(default_factory=dict, description="Quality measurements")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Free-form metadata")
    status: LifecycleStatus = Field(
        default=LifecycleStatus.ACTIVE, description="Derived lifecycle status"
    )
    active: bool = Field(default=True, description="Derived active/inactive flag")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")
    updated_at: datetime = Field(default_factory=utc_now, description="Last projection time")


class Plant(BaseModel):
    """An individually tagged cultivation unit."""

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    plant_tag: str = Field(..., description="Human-readable tag")
    lot_id: UUID = Field(..., description="Originating lot")
    species: str = Field(..., min_length=1, description="Scientific name")
    variety: str | None = Field(default=None, description="Cultivar or landrace")
    lifecycle_stage: PlantStage = Field(
        default=PlantStage.SEEDLING, description="Derived cultivation stage"
    )
    location: Location = Field(..., description="Where the plant grows")
    planted_date: datetime = Field(default_factory=utc_now, description="Planting date")
    operator: str = Field(..., min_length=1, description="Responsible operator")
    mother_plant_id: UUID | None = Field(default=None, description="Clone source")
    genetics: dict[str, Any] = Field(default_factory=dict, description="Strain information")
    quality_data: dict[str, Any] = Field(default_factory=dict, description="Quality measurements")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Free-form metadata")
    status: LifecycleStatus = Field(
        default=LifecycleStatus.ACTIVE, description="Derived lifecycle status"
    )
    active: bool = Field(default=True, description="Derived active/inactive flag")
    created_at: datetime = Field(default_factory=utc_now, description="Creation time")
    updated_at: datetime = Field(default_factory=utc_now, description="Last projection time")


class LotSpec(BaseModel):
    """Payload for creating a lot."""

    lot_type: LotType = Field(..., description="What the lot holds")
    species: str = Field(..., min_length=1, description="Scientific name")
    variety: str | None = None
    parent_lot_id: UUID | None = None
    quantity: float = Field(..., ge=0, description="Amount held")
    unit: str = Field(default="units", min_length=1)
    location: str | None = None
    operator: str = Field(..., min_length=1, description="Responsible operator")
    source_info: dict[str, Any] = Field(default_factory=dict)
    quality_data: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)


class PlantSpec(BaseModel):
    """Payload for tagging a plant."""

    lot_id: UUID = Field(..., description="Originating lot")
    species: str = Field(..., min_length=1, description="Scientific name")
    variety: str | None = None
    location: Location
    planted_date: datetime | None = None
    operator: str = Field(..., min_length=1, description="Responsible operator")
    mother_plant_id: UUID | None = None
    genetics: dict[str, Any] = Field(default_factory=dict)
    quality_data: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)


class LotFilter(BaseModel):
    """Exact-match filters for listing lots, plus an inclusive creation window."""

    lot_type: LotType | None = None
    status: LifecycleStatus | None = None
    species: str | None = None
    parent_lot_id: UUID | None = None
    created_from: datetime | None = Field(default=None, description="Earliest created_at")
    created_to: datetime | None = Field(default=None, description="Latest created_at")

    @field_validator("created_from", "created_to")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def matches(self, lot: Lot) -> bool:
        """Return True when the lot satisfies every set filter."""
        return (
            (self.lot_type is None or lot.lot_type == self.lot_type)
            and (self.status is None or lot.status == self.status)
            and (self.species is None or lot.species == self.species)
            and (self.parent_lot_id is None or lot.parent_lot_id == self.parent_lot_id)
            and (self.created_from is None or lot.created_at >= self.created_from)
            and (self.created_to is None or lot.created_at <= self.created_to)
        )


class PlantFilter(BaseModel):
    """Exact-match filters for listing plants."""

    lot_id: UUID | None = None
    stage: PlantStage | None = None
    status: LifecycleStatus | None = None
    species: str | None = None

    def matches(self, plant: Plant) -> bool:
        """Return True when the plant satisfies every set filter."""
        return (
            (self.lot_id is None or plant.lot_id == self.lot_id)
            and (self.stage is None or plant.lifecycle_stage == self.stage)
            and (self.status is None or plant.status == self.status)
            and (self.species is None or plant.species == self.species)
        )
