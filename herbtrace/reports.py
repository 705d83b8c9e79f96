"""Supply-chain reports built from an entity's recorded history."""

import math
from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel, Field

from herbtrace.audit.models import IntegrityReport
from herbtrace.entities.models import GeoPoint, utc_now
from herbtrace.events.models import Event
from herbtrace.qr.models import EntitySnapshot, QRCode

EARTH_RADIUS_KM = 6371.0


class SupplyChainMetrics(BaseModel):
    """Timing and distance figures over an event history."""

    total_time_hours: float = 0.0
    average_stay_hours: float = 0.0
    total_stages: int = 0
    start: datetime | None = None
    end: datetime | None = None
    total_distance_km: float = 0.0


class TimelineItem(BaseModel):
    """One step of an entity's journey."""

    event_id: str
    event_type: str
    timestamp: datetime
    operator: str
    location: str | None = None
    coordinates: GeoPoint | None = None


class SupplyChainReport(BaseModel):
    """Provenance report for one entity."""

    entity: EntitySnapshot
    lineage: list[EntitySnapshot] = Field(
        default_factory=list, description="Ancestor lots, root first"
    )
    metrics: SupplyChainMetrics
    timeline: list[TimelineItem] = Field(default_factory=list)
    integrity: IntegrityReport
    qr_codes: list[QRCode] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=utc_now)


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in kilometres."""
    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)
    h = (
        math.sin((lat2 - lat1) / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


def supply_chain_metrics(events: Sequence[Event]) -> SupplyChainMetrics:
    """Compute journey metrics.

    Histories with fewer than two events have no measurable journey and
    yield zeroed metrics. Distance sums the legs between consecutive
    events that carry coordinates.
    """
    if len(events) < 2:
        return SupplyChainMetrics()

    ordered = sorted(events, key=lambda e: e.sort_key)
    first, last = ordered[0], ordered[-1]
    total_hours = (last.timestamp - first.timestamp).total_seconds() / 3600

    distance = 0.0
    points = [e.coordinates for e in ordered if e.coordinates is not None]
    for a, b in zip(points, points[1:]):
        distance += haversine_km(a, b)

    return SupplyChainMetrics(
        total_time_hours=round(total_hours, 2),
        average_stay_hours=round(total_hours / len(ordered), 2),
        total_stages=len(ordered),
        start=first.timestamp,
        end=last.timestamp,
        total_distance_km=round(distance, 2),
    )


def timeline_of(events: Sequence[Event]) -> list[TimelineItem]:
    """Public timeline of an event history, oldest first."""
    return [
        TimelineItem(
            event_id=str(e.id),
            event_type=e.event_type.value,
            timestamp=e.timestamp,
            operator=e.operator,
            location=e.location,
            coordinates=e.coordinates,
        )
        for e in sorted(events, key=lambda e: e.sort_key)
    ]
