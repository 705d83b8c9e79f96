"""Compliance rule set and result models."""

from datetime import UTC, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from herbtrace.entities.enums import EntityKind
from herbtrace.events.enums import EventType

# Minimum score (0-100) for an entity to be compliant
COMPLIANCE_THRESHOLD = 80

STARTING_SCORE = 100


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class RuleSet(BaseModel):
    """A named, versioned compliance standard.

    Each missing marker subtracts a fixed penalty from the starting
    score. Markers are either recorded event types or non-empty
    quality-data fields, declared per entity kind.
    """

    name: str = Field(..., min_length=1, description="Rule set name, e.g. GACP")
    version: str = Field(default="1.0", description="Rule set version")
    description: str = Field(default="", description="What the standard covers")
    required_events: dict[EntityKind, list[EventType]] = Field(
        default_factory=dict, description="Event types that must be present"
    )
    required_quality_fields: dict[EntityKind, list[str]] = Field(
        default_factory=dict, description="Quality fields that must be non-empty"
    )
    require_quality_data: bool = Field(
        default=False, description="Any quality documentation at all must exist"
    )
    event_penalty: int = Field(default=10, ge=0, description="Per missing event")
    field_penalty: int = Field(default=10, ge=0, description="Per missing quality field")
    quality_data_penalty: int = Field(default=15, ge=0, description="No quality data at all")


class ComplianceIssue(BaseModel):
    """A single finding from a compliance check."""

    rule_set: str | None = Field(default=None, description="Rule set that raised it")
    code: str = Field(..., description="Machine-readable issue code")
    message: str = Field(..., description="Human-readable description")
    penalty: int = Field(default=0, ge=0, description="Points subtracted")


class ComplianceResult(BaseModel):
    """Outcome of checking one entity against one or more rule sets."""

    entity_id: UUID
    entity_kind: EntityKind
    rule_sets: list[str] = Field(default_factory=list, description="Rule sets requested")
    score: int = Field(..., ge=0, le=100)
    compliant: bool
    threshold: int
    issues: list[ComplianceIssue] = Field(default_factory=list)
    checked_at: datetime = Field(default_factory=utc_now)
