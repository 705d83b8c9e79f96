"""QR code store implementations."""

from herbtrace.qr.store import QRCodeStore
from herbtrace.qr.stores.inmemory import InMemoryQRCodeStore

__all__ = [
    "InMemoryQRCodeStore",
    "QRCodeStore",
]
