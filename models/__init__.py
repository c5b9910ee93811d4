"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    TimestampMixin,
    PaginationParams,
    total_pages,
)
from models.pq_record import (
    PQStatus,
    HardcopyStatus,
    PermitCopyStatus,
    PQRecordCreate,
    PQRecordUpdate,
    PQRecordDraft,
    PQRecordResponse,
    PQRecordListResponse,
    is_complete,
    is_hardcopy_missing,
)
from models.filters import (
    RecordSection,
    SortField,
    SortOrder,
    RecordFilter,
)
from models.dashboard import (
    DashboardStats,
    SectionCounts,
)
from models.extraction import (
    ExtractionStrategy,
    ExtractedField,
    ExtractionResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",
    "PaginationParams",
    "total_pages",

    # PQ records
    "PQStatus",
    "HardcopyStatus",
    "PermitCopyStatus",
    "PQRecordCreate",
    "PQRecordUpdate",
    "PQRecordDraft",
    "PQRecordResponse",
    "PQRecordListResponse",
    "is_complete",
    "is_hardcopy_missing",

    # Filters
    "RecordSection",
    "SortField",
    "SortOrder",
    "RecordFilter",

    # Dashboard
    "DashboardStats",
    "SectionCounts",

    # Extraction
    "ExtractionStrategy",
    "ExtractedField",
    "ExtractionResponse",
]
