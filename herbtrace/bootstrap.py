"""Wire a traceability service from settings.

Builds explicit store instances (no module-level singletons) so several
isolated services can live in one process, e.g. one per test.
"""

from herbtrace.audit.stores import InMemoryAuditStore
from herbtrace.audit.trail import AuditTrail
from herbtrace.compliance.engine import ComplianceEngine
from herbtrace.config import get_settings
from herbtrace.config.settings import Settings
from herbtrace.entities.stores import InMemoryEntityStore
from herbtrace.events.stores import InMemoryEventStore
from herbtrace.locking import EntityLockManager
from herbtrace.observability.logging import get_logger, setup_logging
from herbtrace.observability.metrics import serve_metrics
from herbtrace.qr.registry import QRRegistry
from herbtrace.qr.stores import InMemoryQRCodeStore
from herbtrace.service import TraceabilityService

logger = get_logger(__name__)


def bootstrap(
    settings: Settings | None = None,
    expose_metrics: bool = False,
) -> TraceabilityService:
    """Build a service backed by in-memory stores.

    Args:
        settings: Configuration; loaded with get_settings() when omitted
        expose_metrics: Start the Prometheus HTTP server when metrics are enabled

    Returns:
        A ready TraceabilityService
    """
    settings = settings or get_settings()
    log_config = settings.observability.logging
    setup_logging(
        level=log_config.level,
        format=log_config.format,
        redact_pii=log_config.redact_pii,
    )

    locks = EntityLockManager(timeout=settings.locking.timeout_seconds)
    entity_store = InMemoryEntityStore()
    event_store = InMemoryEventStore()
    audit_trail = AuditTrail(InMemoryAuditStore(), chain_hashes=settings.audit.chain_hashes)
    registry = QRRegistry(
        store=InMemoryQRCodeStore(),
        entity_store=entity_store,
        event_store=event_store,
        audit_trail=audit_trail,
        locks=locks,
        config=settings.qr,
        history_size=settings.audit.verification_history_size,
    )
    engine = ComplianceEngine(
        threshold=settings.compliance.threshold,
        rule_sets=settings.compliance.rule_sets,
    )

    if expose_metrics and settings.observability.metrics.enabled:
        serve_metrics(settings.observability.metrics.port)

    logger.info(
        "traceability_service_ready",
        app_name=settings.app_name,
        chain_hashes=settings.audit.chain_hashes,
        lock_timeout=settings.locking.timeout_seconds,
        rule_sets=engine.rule_set_names(),
    )
    return TraceabilityService(
        entity_store=entity_store,
        event_store=event_store,
        audit_trail=audit_trail,
        qr_registry=registry,
        compliance_engine=engine,
        locks=locks,
        listing=settings.listing,
        default_rule_sets=settings.compliance.default_rule_sets,
    )
