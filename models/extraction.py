"""
Invoice extraction response schemas.
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema
from models.pq_record import PQRecordDraft


class ExtractionStrategy(str, Enum):
    """How a value was located in the sheet."""
    LABEL = "label"                     # Next to or below a label cell
    RANGE_FALLBACK = "range_fallback"   # Fixed cell range scan
    KEYWORD = "keyword"                 # Known keyword anywhere in the sheet


class ExtractedField(BaseSchema):
    """One field found in the invoice."""

    field: str = Field(..., description="PQ record field name")
    value: str = Field(..., description="Extracted value")
    cell: str = Field(..., description="A1 address the value came from")
    strategy: ExtractionStrategy
    source_cell: Optional[str] = Field(None, description="Label cell that led to the value")
    raw_value: Optional[str] = Field(None, description="Cell text before cleaning")


class ExtractionResponse(BaseSchema):
    """Result of uploading an invoice for auto-fill."""

    filename: Optional[str] = None
    sheet_name: str
    cell_count: int = Field(..., ge=0, description="Non-empty cells scanned")
    extracted: dict[str, str] = Field(default_factory=dict)
    details: list[ExtractedField] = Field(default_factory=list)
    missing_fields: list[str] = Field(default_factory=list)
    log: list[str] = Field(default_factory=list)
    prefill: PQRecordDraft
