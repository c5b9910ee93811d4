"""
Record list filter, section and sort options.
"""

from pydantic import Field
from typing import Optional
from enum import Enum
import datetime as dt

from models.base import BaseSchema
from models.pq_record import PQStatus, HardcopyStatus, PermitCopyStatus


class RecordSection(str, Enum):
    """Preset views over the record list."""
    ALL = "all"
    PENDING = "pending"                     # Incomplete paperwork
    RECEIVED = "received"                   # Complete paperwork
    HARDCOPY_MISSING = "hardcopy_missing"


class SortField(str, Enum):
    """Columns the record list can be sorted by."""
    CREATED_AT = "created_at"
    DATE = "date"
    SHIPPER_NAME = "shipper_name"
    BUYER = "buyer"
    DESTINATION_PORT = "destination_port"
    PQ_STATUS = "pq_status"
    INVOICE_NUMBER = "invoice_number"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class RecordFilter(BaseSchema):
    """
    Everything that narrows or orders the record list.

    Exact-match fields are ignored when None. Search is a case-insensitive
    substring match over every text field.
    """

    search: Optional[str] = Field(None, description="Free-text search")
    section: RecordSection = Field(RecordSection.ALL, description="Preset view")
    date_from: Optional[dt.date] = Field(None, description="Shipment date lower bound (inclusive)")
    date_to: Optional[dt.date] = Field(None, description="Shipment date upper bound (inclusive)")

    pq_status: Optional[PQStatus] = None
    pq_hardcopy: Optional[HardcopyStatus] = None
    permit_copy_status: Optional[PermitCopyStatus] = None
    shipping_bill_received: Optional[bool] = None
    shipper_name: Optional[str] = None
    buyer: Optional[str] = None
    invoice_number: Optional[str] = None
    destination_port: Optional[str] = None

    sort_by: SortField = Field(SortField.CREATED_AT, description="Sort column")
    sort_order: SortOrder = Field(SortOrder.DESC, description="Newest first by default")

    def exact_filters(self) -> dict:
        """Exact-match filters that were provided."""
        fields = (
            "pq_status",
            "pq_hardcopy",
            "permit_copy_status",
            "shipping_bill_received",
            "shipper_name",
            "buyer",
            "invoice_number",
            "destination_port",
        )
        result = {}
        for name in fields:
            value = getattr(self, name)
            # Empty strings come from cleared dropdowns
            if value is None or value == "":
                continue
            result[name] = value.value if isinstance(value, Enum) else value
        return result
