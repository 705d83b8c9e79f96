"""Configuration model exports.

    from herbtrace.config.models import AuditConfig, QRConfig
"""

from herbtrace.config.models.compliance import ComplianceConfig
from herbtrace.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from herbtrace.config.models.tracking import (
    AuditConfig,
    ListingConfig,
    LockingConfig,
    QRConfig,
)

__all__ = [
    "AuditConfig",
    "ComplianceConfig",
    "ListingConfig",
    "LockingConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "QRConfig",
]
