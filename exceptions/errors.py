"""
Custom exception classes for the application.

Every error renders to the same response shape:
{"error": {"code", "message", "details", "timestamp"}}
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PQ_RECORD_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper().replace(' ', '_')}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# PQ RECORD ERRORS
# ===================

class PQRecordNotFoundError(NotFoundError):
    """PQ record not found."""

    def __init__(self, record_id: str):
        super().__init__(
            resource="PQ record",
            identifier=record_id,
            code="PQ_RECORD_NOT_FOUND"
        )


class InvoiceNumberExistsError(DuplicateError):
    """Another PQ record already uses this invoice number."""

    def __init__(self, invoice_number: str):
        super().__init__(
            resource="PQ record",
            field="invoice_number",
            value=invoice_number
        )


# ===================
# INVOICE UPLOAD ERRORS
# ===================

class InvoiceParseError(ValidationError):
    """Invoice spreadsheet could not be read."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="INVOICE_PARSE_ERROR",
            message=message,
            details=details
        )


class UnsupportedFileTypeError(ValidationError):
    """Uploaded file is not a supported spreadsheet."""

    def __init__(self, filename: Optional[str], allowed: list[str]):
        super().__init__(
            code="UNSUPPORTED_FILE_TYPE",
            message=f"Only {', '.join(allowed)} files can be processed",
            details={"filename": filename, "allowed": allowed}
        )


class UploadTooLargeError(ValidationError):
    """Uploaded file exceeds the configured limit."""

    def __init__(self, size_bytes: int, max_bytes: int):
        super().__init__(
            code="UPLOAD_TOO_LARGE",
            message="Uploaded file is too large",
            details={"size_bytes": size_bytes, "max_bytes": max_bytes}
        )


class NoInvoiceDataFoundError(ValidationError):
    """Invoice was read but no recognizable field was found."""

    def __init__(self, filename: Optional[str], log: Optional[list[str]] = None):
        super().__init__(
            code="NO_INVOICE_DATA_FOUND",
            message=(
                "Unable to extract data from this Excel file. Please ensure it "
                "contains invoice information with proper formatting."
            ),
            details={"filename": filename, "log": log or []}
        )
