"""Error hierarchy for the traceability core.

All stores and services raise these errors so callers can handle
failures uniformly. Integrity problems found in the audit trail are
reported as data (see ``herbtrace.audit.models.IntegrityReport``) and
never raised.
"""


class TraceError(Exception):
    """Base exception for all traceability errors.

    Subclasses set ``retryable`` when the caller may safely retry the
    operation with backoff.
    """

    retryable: bool = False

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class NotFoundError(TraceError):
    """Raised when an entity, event or QR code does not exist."""

    pass


class InvalidEventError(TraceError):
    """Raised when an event type is not valid for the entity kind."""

    pass


class ValidationError(TraceError):
    """Raised on a malformed payload.

    Examples:
        - Negative quantity
        - Required field missing
        - Cyclic lot or mother-plant lineage
        - Lot type moving backward along the parent chain
    """

    pass


class BusyError(TraceError):
    """Raised when the per-entity lock could not be acquired in time.

    Safe to retry with backoff.
    """

    retryable = True

    def __init__(
        self,
        message: str,
        entity_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause)
        self.entity_id = entity_id


class StoreError(TraceError):
    """Raised when a storage backend fails.

    Backend-specific errors are wrapped so the service layer only
    deals with this hierarchy.
    """

    pass
