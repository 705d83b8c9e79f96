"""Prometheus metrics for herbtrace.

Counters and histograms covering entity creation, event recording,
audit integrity sweeps, QR verification and compliance scoring.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
    start_http_server,
)

ENTITIES_CREATED = Counter(
    "herbtrace_entities_created_total",
    "Total number of lots and plants created",
    labelnames=["entity_kind"],
)

EVENTS_RECORDED = Counter(
    "herbtrace_events_recorded_total",
    "Total number of supply-chain events appended",
    labelnames=["entity_kind", "event_type"],
)

EVENTS_REJECTED = Counter(
    "herbtrace_events_rejected_total",
    "Events refused before being appended",
    labelnames=["entity_kind", "reason"],
)

INTEGRITY_SWEEPS = Counter(
    "herbtrace_integrity_sweeps_total",
    "Audit integrity verifications run",
    labelnames=["scope", "outcome"],
)

BROKEN_AUDIT_ENTRIES = Counter(
    "herbtrace_broken_audit_entries_total",
    "Audit entries whose stored hash did not verify",
)

QR_VERIFICATIONS = Counter(
    "herbtrace_qr_verifications_total",
    "QR verification requests",
    labelnames=["outcome"],
)

COMPLIANCE_CHECKS = Counter(
    "herbtrace_compliance_checks_total",
    "Compliance checks performed",
    labelnames=["entity_kind", "compliant"],
)

COMPLIANCE_SCORE = Histogram(
    "herbtrace_compliance_score",
    "Distribution of compliance scores",
    buckets=(0, 20, 40, 60, 70, 80, 90, 100),
)

LOCK_WAIT = Histogram(
    "herbtrace_entity_lock_wait_seconds",
    "Time spent waiting for a per-entity lock",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
)

LOCK_TIMEOUTS = Counter(
    "herbtrace_entity_lock_timeouts_total",
    "Lock acquisitions that timed out with BusyError",
)


def metrics_payload() -> tuple[bytes, str]:
    """Current metrics in the Prometheus text format, with its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST


def serve_metrics(port: int) -> None:
    """Expose metrics on a background HTTP server."""
    start_http_server(port)
