"""QR domain: issuing, revoking and publicly verifying entity tags."""

from herbtrace.qr.models import (
    EntitySnapshot,
    HistoryItem,
    QRCode,
    QRStatus,
    VerificationResult,
)
from herbtrace.qr.registry import QRRegistry
from herbtrace.qr.render import render_png

__all__ = [
    "EntitySnapshot",
    "HistoryItem",
    "QRCode",
    "QRRegistry",
    "QRStatus",
    "VerificationResult",
    "render_png",
]
