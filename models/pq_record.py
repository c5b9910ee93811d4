"""
PQ record schemas for validation and serialization.

A PQ record tracks the phytosanitary certificate paperwork for one
export shipment (one invoice).
"""

from pydantic import Field, field_validator, computed_field
from typing import Any, Optional
from enum import Enum
import datetime as dt

from models.base import BaseSchema, TimestampMixin


class PQStatus(str, Enum):
    """Phytosanitary certificate status."""
    PENDING = "Pending"
    RECEIVED = "Received"


class HardcopyStatus(str, Enum):
    """Whether the paper certificate has arrived."""
    RECEIVED = "Received"
    NOT_RECEIVED = "Not Received"


class PermitCopyStatus(str, Enum):
    """Import permit copy status."""
    RECEIVED = "Received"
    NOT_RECEIVED = "Not Received"
    NOT_REQUIRED = "Not Required"


# Fields that may be cleared to null on update
NULLABLE_FIELDS = ("date", "remarks")


def is_complete(
    shipping_bill_received: Optional[bool],
    pq_status: Optional[str],
    permit_copy_status: Optional[str],
) -> bool:
    """
    Check if a record has all of its paperwork.

    Complete means:
    - Shipping bill received
    - PQ certificate received
    - Permit copy received, or not required
    """
    return (
        shipping_bill_received is True
        and _value(pq_status) == PQStatus.RECEIVED.value
        and _value(permit_copy_status) in (
            PermitCopyStatus.RECEIVED.value,
            PermitCopyStatus.NOT_REQUIRED.value,
        )
    )


def is_hardcopy_missing(pq_hardcopy: Optional[str]) -> bool:
    """Missing hardcopy; an unset value counts as not received."""
    return (_value(pq_hardcopy) or HardcopyStatus.NOT_RECEIVED.value) == HardcopyStatus.NOT_RECEIVED.value


def _value(status: Any) -> Optional[str]:
    if isinstance(status, Enum):
        return status.value
    return status


def _coerce_hardcopy(v: Any) -> Any:
    # Older rows stored the hardcopy flag as a boolean
    if v is None or v is False:
        return HardcopyStatus.NOT_RECEIVED
    if v is True:
        return HardcopyStatus.RECEIVED
    return v


# ===================
# PQ RECORD SCHEMAS
# ===================

class PQRecordCreate(BaseSchema):
    """
    Create a new PQ record.

    Shipper, buyer, invoice number, commodity and destination are required.
    Status fields default to the state of a freshly booked shipment.
    """

    date: Optional[dt.date] = Field(
        default_factory=dt.date.today,
        description="Shipment date (defaults to today)"
    )
    shipper_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Exporter / shipper company"
    )
    buyer: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Consignee / buyer"
    )
    invoice_number: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Commercial invoice number (e.g., ABC/123/2024-25)"
    )
    commodity: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Goods shipped (e.g., Dry Red Chillies)"
    )
    shipping_bill_received: bool = Field(
        default=False,
        description="Whether the shipping bill has been received"
    )
    pq_status: PQStatus = Field(
        default=PQStatus.PENDING,
        description="PQ certificate status"
    )
    pq_hardcopy: HardcopyStatus = Field(
        default=HardcopyStatus.NOT_RECEIVED,
        description="PQ hardcopy status"
    )
    permit_copy_status: PermitCopyStatus = Field(
        default=PermitCopyStatus.NOT_REQUIRED,
        description="Import permit copy status"
    )
    destination_port: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Destination country"
    )
    remarks: Optional[str] = Field(
        "",
        max_length=2000,
        description="Free-form remarks"
    )
    files: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Attached file metadata"
    )

    @field_validator("pq_hardcopy", mode="before")
    @classmethod
    def coerce_hardcopy(cls, v: Any) -> Any:
        return _coerce_hardcopy(v)


class PQRecordUpdate(BaseSchema):
    """
    Update a PQ record.

    All fields optional - only provided fields are updated.
    Required text fields cannot be blanked.
    """

    date: Optional[dt.date] = Field(None, description="Shipment date")
    shipper_name: Optional[str] = Field(None, min_length=1, max_length=255, description="Shipper")
    buyer: Optional[str] = Field(None, min_length=1, max_length=255, description="Buyer")
    invoice_number: Optional[str] = Field(None, min_length=1, max_length=100, description="Invoice number")
    commodity: Optional[str] = Field(None, min_length=1, max_length=255, description="Commodity")
    shipping_bill_received: Optional[bool] = Field(None, description="Shipping bill received")
    pq_status: Optional[PQStatus] = Field(None, description="PQ certificate status")
    pq_hardcopy: Optional[HardcopyStatus] = Field(None, description="PQ hardcopy status")
    permit_copy_status: Optional[PermitCopyStatus] = Field(None, description="Permit copy status")
    destination_port: Optional[str] = Field(None, min_length=1, max_length=100, description="Destination country")
    remarks: Optional[str] = Field(None, max_length=2000, description="Remarks")
    files: Optional[list[dict[str, Any]]] = Field(None, description="Attached file metadata")


class PQRecordDraft(BaseSchema):
    """
    Form values before a record is saved.

    Starts from the blank-form defaults; invoice extraction fills in
    whatever it finds.
    """

    date: Optional[dt.date] = Field(default_factory=dt.date.today)
    shipper_name: str = ""
    buyer: str = ""
    invoice_number: str = ""
    commodity: str = ""
    shipping_bill_received: bool = False
    pq_status: PQStatus = PQStatus.PENDING
    pq_hardcopy: HardcopyStatus = HardcopyStatus.NOT_RECEIVED
    permit_copy_status: PermitCopyStatus = PermitCopyStatus.NOT_REQUIRED
    destination_port: str = ""
    remarks: str = ""
    files: list[dict[str, Any]] = Field(default_factory=list)


class PQRecordResponse(BaseSchema, TimestampMixin):
    """
    PQ record response with all fields.

    Used for GET responses.
    """

    id: str = Field(..., description="Record UUID")
    date: Optional[dt.date] = Field(None, description="Shipment date")
    shipper_name: str = Field(..., description="Shipper")
    buyer: str = Field(..., description="Buyer")
    invoice_number: str = Field(..., description="Invoice number")
    commodity: str = Field(..., description="Commodity")
    shipping_bill_received: bool = Field(default=False, description="Shipping bill received")
    pq_status: PQStatus = Field(default=PQStatus.PENDING, description="PQ certificate status")
    pq_hardcopy: HardcopyStatus = Field(default=HardcopyStatus.NOT_RECEIVED, description="PQ hardcopy status")
    permit_copy_status: PermitCopyStatus = Field(
        default=PermitCopyStatus.NOT_REQUIRED,
        description="Permit copy status"
    )
    destination_port: str = Field(..., description="Destination country")
    remarks: Optional[str] = Field(None, description="Remarks")
    files: list[dict[str, Any]] = Field(default_factory=list, description="Attached file metadata")

    @field_validator("invoice_number", mode="before")
    @classmethod
    def invoice_as_text(cls, v: Any) -> Any:
        """Older rows stored invoice numbers as integers."""
        if isinstance(v, int):
            return str(v)
        return v

    @field_validator("shipping_bill_received", mode="before")
    @classmethod
    def null_bill_is_false(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("pq_status", mode="before")
    @classmethod
    def null_status_is_pending(cls, v: Any) -> Any:
        return PQStatus.PENDING if v is None else v

    @field_validator("permit_copy_status", mode="before")
    @classmethod
    def null_permit_is_not_required(cls, v: Any) -> Any:
        return PermitCopyStatus.NOT_REQUIRED if v is None else v

    @field_validator("pq_hardcopy", mode="before")
    @classmethod
    def coerce_hardcopy(cls, v: Any) -> Any:
        return _coerce_hardcopy(v)

    @field_validator("destination_port", mode="before")
    @classmethod
    def null_destination_is_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("files", mode="before")
    @classmethod
    def null_files_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @computed_field
    @property
    def is_complete(self) -> bool:
        """All paperwork in hand."""
        return is_complete(
            self.shipping_bill_received,
            self.pq_status,
            self.permit_copy_status,
        )


class PQRecordListResponse(BaseSchema):
    """List of PQ records with pagination."""

    data: list[PQRecordResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
