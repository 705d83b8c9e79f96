"""Entity domain: lots and individually tagged plants."""

from herbtrace.entities.enums import EntityKind, LifecycleStatus, LotType, PlantStage
from herbtrace.entities.models import (
    GeoPoint,
    Location,
    Lot,
    LotFilter,
    LotSpec,
    Plant,
    PlantFilter,
    PlantSpec,
)

__all__ = [
    "EntityKind",
    "GeoPoint",
    "LifecycleStatus",
    "Location",
    "Lot",
    "LotFilter",
    "LotSpec",
    "LotType",
    "Plant",
    "PlantFilter",
    "PlantSpec",
    "PlantStage",
]
