"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    DatabaseError,

    # PQ records
    PQRecordNotFoundError,
    InvoiceNumberExistsError,

    # Invoice upload
    InvoiceParseError,
    UnsupportedFileTypeError,
    UploadTooLargeError,
    NoInvoiceDataFoundError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "DatabaseError",

    # PQ records
    "PQRecordNotFoundError",
    "InvoiceNumberExistsError",

    # Invoice upload
    "InvoiceParseError",
    "UnsupportedFileTypeError",
    "UploadTooLargeError",
    "NoInvoiceDataFoundError",
]
