"""
Error taxonomy for listing writes and reads.

Every error carries a machine-readable ``code`` and a human ``message``;
``details`` holds raw store text and is only rendered in debug mode.
"""

from typing import Any, Dict, Optional


class ListingServiceError(Exception):
    code = "listing_error"
    status_code = 500

    def __init__(
        self,
        message: str,
        details: Optional[Any] = None,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code

    def to_dict(self, include_details: bool = False) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if include_details and self.details is not None:
            error["details"] = self.details
        return {"success": False, "error": error}


class ValidationFailed(ListingServiceError):
    """Caller-correctable input problem; ``field_errors`` maps field to message."""

    code = "validation_failed"
    status_code = 400

    def __init__(self, field_errors: Dict[str, str], message: str = "Validation failed"):
        super().__init__(message, details=field_errors)
        self.field_errors = field_errors

    def to_dict(self, include_details: bool = False) -> Dict[str, Any]:
        # Field errors are caller-facing, so they are always included.
        return super().to_dict(include_details=True)


class GeocodingFailed(ListingServiceError):
    code = "geocoding_failed"
    status_code = 502


class InvalidAddress(GeocodingFailed):
    code = "invalid_address"
    status_code = 400


class SyncFailed(ListingServiceError):
    """A table write failed; the whole sync transaction was rolled back."""

    code = "sync_failed"
    status_code = 500

    def __init__(self, table: str, underlying: BaseException, listing_id: Optional[int] = None):
        super().__init__(
            f"Failed to sync listing to {table} table",
            details=str(underlying),
        )
        self.table = table
        self.underlying = underlying
        self.listing_id = listing_id


class ArchiveFailed(ListingServiceError):
    """Archival rolled back; the listing remains in the active tables."""

    code = "archive_failed"
    status_code = 500

    def __init__(self, table: str, underlying: BaseException, listing_id: Optional[int] = None):
        super().__init__(
            f"Failed to archive listing from {table} table",
            details=str(underlying),
        )
        self.table = table
        self.underlying = underlying
        self.listing_id = listing_id


class NotFound(ListingServiceError):
    code = "not_found"
    status_code = 404


class AllocationFailed(ListingServiceError):
    code = "allocation_failed"
    status_code = 500
