"""Audit domain: tamper-evident entries wrapping every recorded event."""

from herbtrace.audit.models import AuditEntry, BrokenEntry, IntegrityReport
from herbtrace.audit.trail import AuditTrail

__all__ = [
    "AuditEntry",
    "AuditTrail",
    "BrokenEntry",
    "IntegrityReport",
]
