"""
Spreadsheet parsers module.
"""

from parsers.invoice_parser import (
    parse_invoice_excel,
    extract_invoice_number,
    normalize_destination,
    is_supported_file,
    InvoiceExtractionResult,
    CellGrid,
    SUPPORTED_EXTENSIONS,
)

__all__ = [
    "parse_invoice_excel",
    "extract_invoice_number",
    "normalize_destination",
    "is_supported_file",
    "InvoiceExtractionResult",
    "CellGrid",
    "SUPPORTED_EXTENSIONS",
]
