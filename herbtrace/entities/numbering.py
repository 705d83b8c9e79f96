"""Human-readable identifiers for lots and plants.

Lot numbers look like ``GACP-SD-202510-7F3A9C``: authority prefix, lot
type code, issue year and month, then a random suffix. Plant tags look
like ``PLANT-2025-04D1E2B7``.
"""

import secrets
from datetime import datetime

from herbtrace.entities.enums import LotType

LOT_NUMBER_PREFIX = "GACP"
PLANT_TAG_PREFIX = "PLANT"


def generate_lot_number(lot_type: LotType, now: datetime) -> str:
    """Build a lot number for a lot created at ``now``."""
    suffix = secrets.token_hex(3).upper()
    return f"{LOT_NUMBER_PREFIX}-{lot_type.code}-{now:%Y%m}-{suffix}"


def generate_plant_tag(now: datetime) -> str:
    """Build a plant tag for a plant tagged at ``now``."""
    suffix = secrets.token_hex(4).upper()
    return f"{PLANT_TAG_PREFIX}-{now:%Y}-{suffix}"
