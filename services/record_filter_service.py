"""
Record filtering, searching and sorting.

Pure functions over PQRecordResponse lists. Used by the record list, the
exports (which always export the filtered view) and the dashboard counts.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Optional
import structlog

from models.filters import RecordFilter, RecordSection, SortField, SortOrder
from models.pq_record import (
    PQRecordResponse,
    is_complete as _is_complete,
    is_hardcopy_missing as _is_hardcopy_missing,
)

logger = structlog.get_logger(__name__)


# Text fields covered by free-text search
SEARCHABLE_FIELDS = (
    "id",
    "shipper_name",
    "buyer",
    "invoice_number",
    "commodity",
    "destination_port",
    "remarks",
    "pq_status",
    "pq_hardcopy",
    "permit_copy_status",
)

# Matched against their ISO text, e.g. "2025-07-01T09:30:00+00:00"
SEARCHABLE_TIMESTAMPS = ("created_at", "updated_at")


# ===================
# PREDICATES
# ===================

def is_complete(record: PQRecordResponse) -> bool:
    """Shipping bill in, PQ received, permit received or not required."""
    return _is_complete(
        record.shipping_bill_received,
        record.pq_status,
        record.permit_copy_status,
    )


def is_hardcopy_missing(record: PQRecordResponse) -> bool:
    return _is_hardcopy_missing(record.pq_hardcopy)


def _text(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def matches_search(record: PQRecordResponse, search: Optional[str]) -> bool:
    """
    Case-insensitive substring match over every text field.

    The shipment date is searchable in YYYY-MM-DD form and the record
    timestamps in ISO form.
    """
    if not search or not search.strip():
        return True

    term = search.strip().lower()

    for name in SEARCHABLE_FIELDS:
        value = _text(getattr(record, name))
        if isinstance(value, str) and term in value.lower():
            return True

    if record.date is not None and term in record.date.isoformat():
        return True

    for name in SEARCHABLE_TIMESTAMPS:
        value = getattr(record, name)
        if value is not None and term in value.isoformat().lower():
            return True

    return False


def matches_filters(record: PQRecordResponse, exact: dict) -> bool:
    """Every provided filter must equal the record's value."""
    for name, expected in exact.items():
        actual = getattr(record, name)
        if _text(actual) != expected:
            return False
    return True


def matches_date_range(
    record: PQRecordResponse,
    date_from: Optional[date],
    date_to: Optional[date],
) -> bool:
    """Inclusive range on the shipment date. Undated records fail any bound."""
    if date_from is None and date_to is None:
        return True
    if record.date is None:
        return False
    if date_from is not None and record.date < date_from:
        return False
    if date_to is not None and record.date > date_to:
        return False
    return True


def matches_section(record: PQRecordResponse, section: RecordSection) -> bool:
    if section == RecordSection.PENDING:
        return not is_complete(record)
    if section == RecordSection.RECEIVED:
        return is_complete(record)
    if section == RecordSection.HARDCOPY_MISSING:
        return is_hardcopy_missing(record)
    return True


# ===================
# SORTING
# ===================

def _sort_value(record: PQRecordResponse, field: SortField) -> Any:
    value = getattr(record, field.value)
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value
    return str(_text(value)).lower()


def sort_records(
    records: Iterable[PQRecordResponse],
    sort_by: SortField = SortField.CREATED_AT,
    sort_order: SortOrder = SortOrder.DESC,
) -> list[PQRecordResponse]:
    """
    Sort by one column.

    Strings compare case-insensitively. Records without a value for the
    column always go last.
    """
    records = list(records)
    present = [r for r in records if _sort_value(r, sort_by) is not None]
    absent = [r for r in records if _sort_value(r, sort_by) is None]

    present.sort(
        key=lambda r: _sort_value(r, sort_by),
        reverse=sort_order == SortOrder.DESC,
    )
    return present + absent


# ===================
# COMPOSITION
# ===================

def apply_filters(
    records: Iterable[PQRecordResponse],
    filters: RecordFilter,
) -> list[PQRecordResponse]:
    """Search, exact filters, date range and section, then sort."""
    exact = filters.exact_filters()

    matched = [
        record for record in records
        if matches_search(record, filters.search)
        and matches_filters(record, exact)
        and matches_date_range(record, filters.date_from, filters.date_to)
        and matches_section(record, filters.section)
    ]

    logger.debug(
        "records_filtered",
        matched=len(matched),
        section=filters.section.value,
        filters=list(exact.keys()),
    )

    return sort_records(matched, filters.sort_by, filters.sort_order)
