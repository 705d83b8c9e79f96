"""herbtrace: seed-to-sale traceability for herbal products.

Tracks propagation lots, individually tagged plants and the chain of
custody events between them, with a tamper-evident audit trail,
QR-verifiable provenance and compliance scoring.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
