"""Enums for the entity domain."""

from enum import Enum


class EntityKind(str, Enum):
    """Kind of entity an event or QR code refers to.

    A product is a lot of type ``product_lot`` addressed as a product.
    """

    LOT = "lot"
    PLANT = "plant"
    PRODUCT = "product"


class LotType(str, Enum):
    """What a lot holds. Declared in supply-chain order."""

    SEED = "seed_lot"
    PLANT = "plant_lot"
    HARVEST = "harvest_lot"
    PRODUCT = "product_lot"

    @property
    def rank(self) -> int:
        """Position along seed → plant → harvest → product."""
        return list(LotType).index(self)

    @property
    def code(self) -> str:
        """Two-letter code used in lot numbers."""
        return _LOT_TYPE_CODES[self]


_LOT_TYPE_CODES = {
    LotType.SEED: "SD",
    LotType.PLANT: "PL",
    LotType.HARVEST: "HV",
    LotType.PRODUCT: "PR",
}


class LifecycleStatus(str, Enum):
    """Derived lifecycle status, declared in forward order.

    ``active`` is the status of a freshly created entity before any
    lifecycle event has been recorded.
    """

    ACTIVE = "active"
    PLANTED = "planted"
    GROWING = "growing"
    HARVESTED = "harvested"
    PROCESSED = "processed"
    PACKAGED = "packaged"
    IN_TRANSIT = "in_transit"
    RECEIVED = "received"
    SOLD = "sold"

    @property
    def rank(self) -> int:
        """Position along the lifecycle; statuses never move to a lower rank."""
        return list(LifecycleStatus).index(self)


class PlantStage(str, Enum):
    """Cultivation stage of an individual plant, in growth order."""

    SEEDLING = "seedling"
    VEGETATIVE = "vegetative"
    FLOWERING = "flowering"
    HARVESTED = "harvested"

    @property
    def rank(self) -> int:
        """Position along the growth cycle."""
        return list(PlantStage).index(self)
