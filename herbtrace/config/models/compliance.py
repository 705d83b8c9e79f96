"""Compliance engine configuration."""

from pydantic import BaseModel, Field

from herbtrace.compliance.models import COMPLIANCE_THRESHOLD, RuleSet


class ComplianceConfig(BaseModel):
    """Compliance scoring configuration.

    Rule sets declared here are added to the built-in ones, replacing a
    built-in rule set of the same name.
    """

    threshold: int = Field(
        default=COMPLIANCE_THRESHOLD,
        ge=0,
        le=100,
        description="Minimum score for an entity to be compliant",
    )
    default_rule_sets: list[str] = Field(
        default_factory=lambda: ["GACP", "WHO", "FDA"],
        description="Rule sets applied when a check names none",
    )
    rule_sets: dict[str, RuleSet] = Field(
        default_factory=dict,
        description="Additional or overriding rule set definitions",
    )
