"""Compliance domain: rule sets and deterministic scoring."""

from herbtrace.compliance.models import (
    COMPLIANCE_THRESHOLD,
    ComplianceIssue,
    ComplianceResult,
    RuleSet,
)

__all__ = [
    "COMPLIANCE_THRESHOLD",
    "ComplianceIssue",
    "ComplianceResult",
    "RuleSet",
]
