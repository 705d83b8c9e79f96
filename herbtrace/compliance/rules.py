"""Built-in compliance rule sets."""

from herbtrace.compliance.models import RuleSet
from herbtrace.entities.enums import EntityKind
from herbtrace.events.enums import EventType

# Penalty per lifecycle event recorded out of order
SEQUENCE_ANOMALY_PENALTY = 5

GACP = RuleSet(
    name="GACP",
    version="2.0",
    description="Good Agricultural and Collection Practices (cultivation)",
    required_events={
        EntityKind.LOT: [EventType.LOT_CREATED],
        EntityKind.PLANT: [EventType.PLANT_TAGGED],
        EntityKind.PRODUCT: [EventType.LOT_CREATED],
    },
    required_quality_fields={
        EntityKind.LOT: ["origin", "moisture_content", "pesticide_residue"],
        EntityKind.PLANT: ["soil_test", "water_source", "fertilizer_log"],
        EntityKind.PRODUCT: ["moisture_content", "heavy_metals", "microbial_count"],
    },
    event_penalty=10,
    field_penalty=10,
)

WHO = RuleSet(
    name="WHO",
    version="1.0",
    description="WHO guidelines on herbal medicine documentation",
    require_quality_data=True,
    quality_data_penalty=15,
)

FDA = RuleSet(
    name="FDA",
    version="1.0",
    description="Product safety testing and packaging",
    required_events={
        EntityKind.LOT: [EventType.QUALITY_TESTED],
        EntityKind.PRODUCT: [EventType.QUALITY_TESTED, EventType.PACKAGED],
    },
    event_penalty=10,
)

BUILTIN_RULE_SETS: dict[str, RuleSet] = {rs.name: rs for rs in (GACP, WHO, FDA)}
