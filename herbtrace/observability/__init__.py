"""Observability: structured logging and metrics.

Logging uses structlog; metrics use prometheus_client.
"""
