"""Resolve an (entity kind, id) pair to its stored record."""

from uuid import UUID

from herbtrace.entities.enums import EntityKind, LotType
from herbtrace.entities.models import Lot, Plant
from herbtrace.entities.store import EntityStore


async def resolve_entity(
    store: EntityStore, kind: EntityKind, entity_id: UUID
) -> Lot | Plant | None:
    """Look up an entity by kind.

    A product resolves only to a lot of type ``product_lot``.
    """
    if kind == EntityKind.PLANT:
        return await store.get_plant(entity_id)
    lot = await store.get_lot(entity_id)
    if lot is not None and kind == EntityKind.PRODUCT and lot.lot_type != LotType.PRODUCT:
        return None
    return lot


def kind_of(entity: Lot | Plant) -> EntityKind:
    """Natural kind of a stored record."""
    return EntityKind.PLANT if isinstance(entity, Plant) else EntityKind.LOT


def reference_of(entity: Lot | Plant) -> str:
    """Human-readable reference: lot number or plant tag."""
    return entity.plant_tag if isinstance(entity, Plant) else entity.lot_number
