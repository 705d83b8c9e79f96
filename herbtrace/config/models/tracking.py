"""Configuration models for the traceability core."""

from pydantic import BaseModel, Field


class LockingConfig(BaseModel):
    """Per-entity write lock configuration."""

    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Maximum wait for an entity lock before raising BusyError",
    )


class AuditConfig(BaseModel):
    """Audit trail configuration."""

    chain_hashes: bool = Field(
        default=False,
        description="Chain each entry's hash over the previous entry's hash",
    )
    verification_history_size: int = Field(
        default=10,
        gt=0,
        description="Number of recent history items returned by QR verification",
    )


class QRConfig(BaseModel):
    """QR code issuance configuration."""

    base_url: str = Field(
        default="https://track.gacp.go.th",
        description="Public host used to build verification URLs",
    )
    issuer: str = Field(default="GACP Thailand", description="Issuing authority")
    version: str = Field(default="2.0", description="QR payload version")
    allow_multiple_active: bool = Field(
        default=False,
        description="Keep older codes active when a new code is issued",
    )
    ttl_days: int | None = Field(
        default=None,
        gt=0,
        description="Days until an issued code expires (None: never)",
    )


class ListingConfig(BaseModel):
    """Pagination defaults for list operations."""

    default_page_size: int = Field(default=20, gt=0, description="Default page size")
    max_page_size: int = Field(default=200, gt=0, description="Largest allowed page")
