"""
PQ record API routes.

CRUD, invoice auto-fill and exports for phytosanitary certification records.
Static paths are declared before /{record_id} so they are matched first.
"""

from fastapi import APIRouter, Depends, Query, UploadFile, File
from fastapi.responses import JSONResponse, StreamingResponse
from typing import Optional
from datetime import date
from io import BytesIO
import structlog

from config import settings
from models.base import PaginationParams, total_pages
from models.extraction import ExtractedField, ExtractionResponse
from models.filters import RecordFilter, RecordSection, SortField, SortOrder
from models.pq_record import (
    PQRecordCreate,
    PQRecordUpdate,
    PQRecordDraft,
    PQRecordResponse,
    PQRecordListResponse,
    PQStatus,
    HardcopyStatus,
    PermitCopyStatus,
)
from parsers.invoice_parser import (
    parse_invoice_excel,
    is_supported_file,
    SUPPORTED_EXTENSIONS,
)
from services.pq_record_service import get_pq_record_service
from services.export_service import (
    get_export_service,
    export_filename,
    EXCEL_MEDIA_TYPE,
    PDF_MEDIA_TYPE,
)
from exceptions import (
    AppError,
    PQRecordNotFoundError,
    UnsupportedFileTypeError,
    UploadTooLargeError,
    NoInvoiceDataFoundError,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/pq-records", tags=["PQ Records"])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# QUERY PARAMETERS
# ===================

def record_filter_params(
    search: Optional[str] = Query(None, description="Search every text field"),
    section: RecordSection = Query(RecordSection.ALL, description="Preset view"),
    date_from: Optional[date] = Query(None, description="Shipment date from (inclusive)"),
    date_to: Optional[date] = Query(None, description="Shipment date to (inclusive)"),
    pq_status: Optional[PQStatus] = Query(None),
    pq_hardcopy: Optional[HardcopyStatus] = Query(None),
    permit_copy_status: Optional[PermitCopyStatus] = Query(None),
    shipping_bill_received: Optional[bool] = Query(None),
    shipper_name: Optional[str] = Query(None),
    buyer: Optional[str] = Query(None),
    invoice_number: Optional[str] = Query(None),
    destination_port: Optional[str] = Query(None),
    sort_by: SortField = Query(SortField.CREATED_AT),
    sort_order: SortOrder = Query(SortOrder.DESC),
) -> RecordFilter:
    return RecordFilter(
        search=search,
        section=section,
        date_from=date_from,
        date_to=date_to,
        pq_status=pq_status,
        pq_hardcopy=pq_hardcopy,
        permit_copy_status=permit_copy_status,
        shipping_bill_received=shipping_bill_received,
        shipper_name=shipper_name,
        buyer=buyer,
        invoice_number=invoice_number,
        destination_port=destination_port,
        sort_by=sort_by,
        sort_order=sort_order,
    )


# ===================
# LIST ROUTES
# ===================

@router.get("", response_model=PQRecordListResponse)
async def list_pq_records(
    filters: RecordFilter = Depends(record_filter_params),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=500, description="Items per page"),
):
    """
    List PQ records.

    Filters by section, search text, date range and exact field values,
    then sorts. Newest first by default.
    """
    try:
        service = get_pq_record_service()
        records, total = service.list_records(
            filters=filters,
            pagination=PaginationParams(page=page, page_size=page_size),
        )

        return PQRecordListResponse(
            data=records,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages(total, page_size)
        )

    except Exception as e:
        return handle_error(e)


@router.get("/shippers", response_model=list[str])
async def list_shipper_names():
    """Distinct shipper names, sorted, for the filter dropdown."""
    try:
        service = get_pq_record_service()
        return service.get_shipper_names()

    except Exception as e:
        return handle_error(e)


@router.get("/defaults", response_model=PQRecordDraft)
async def get_form_defaults():
    """Blank form values for a new record (date is today)."""
    return PQRecordDraft()


# ===================
# INVOICE AUTO-FILL
# ===================

@router.post("/extract", response_model=ExtractionResponse)
async def extract_from_invoice(file: UploadFile = File(...)):
    """
    Auto-fill record fields from an invoice spreadsheet.

    Scans the first sheet for exporter, consignee, invoice number,
    commodity and destination. Nothing is saved.

    Raises:
        422: Unsupported file, unreadable workbook or nothing found
    """
    logger.info(
        "invoice_extract_started",
        filename=file.filename,
        content_type=file.content_type
    )

    try:
        if not is_supported_file(file.filename):
            raise UnsupportedFileTypeError(file.filename, list(SUPPORTED_EXTENSIONS))

        content = await file.read()
        if len(content) > settings.max_upload_size_bytes:
            raise UploadTooLargeError(len(content), settings.max_upload_size_bytes)

        result = parse_invoice_excel(BytesIO(content), filename=file.filename)

        if not result.success:
            logger.warning("invoice_extract_empty", filename=file.filename)
            raise NoInvoiceDataFoundError(file.filename, result.log)

        prefill = PQRecordDraft(**result.extracted)

        logger.info(
            "invoice_extract_complete",
            filename=file.filename,
            extracted=list(result.extracted.keys()),
            missing=result.missing_fields
        )

        return ExtractionResponse(
            filename=file.filename,
            sheet_name=result.sheet_name,
            cell_count=result.cell_count,
            extracted=result.extracted,
            details=[
                ExtractedField(**result.matches[name].to_dict())
                for name in result.extracted
            ],
            missing_fields=result.missing_fields,
            log=result.log,
            prefill=prefill,
        )

    except Exception as e:
        return handle_error(e)


# ===================
# EXPORT ROUTES
# ===================

@router.get("/export/excel")
async def export_pq_records_excel(
    filters: RecordFilter = Depends(record_filter_params),
):
    """Download the filtered record list as an Excel file."""
    try:
        records, _ = get_pq_record_service().list_records(filters=filters)
        output = get_export_service().generate_records_excel(records)
        filename = export_filename("xlsx")

        logger.info("pq_records_exported", format="xlsx", count=len(records))

        return StreamingResponse(
            output,
            media_type=EXCEL_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    except Exception as e:
        return handle_error(e)


@router.get("/export/pdf")
async def export_pq_records_pdf(
    filters: RecordFilter = Depends(record_filter_params),
):
    """Download the filtered record list as a PDF report."""
    try:
        records, _ = get_pq_record_service().list_records(filters=filters)
        output = get_export_service().generate_records_pdf(records)
        filename = export_filename("pdf")

        logger.info("pq_records_exported", format="pdf", count=len(records))

        return StreamingResponse(
            output,
            media_type=PDF_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    except Exception as e:
        return handle_error(e)


# ===================
# INVOICE NUMBER ROUTES
# ===================

@router.get("/invoice/{invoice_number:path}", response_model=PQRecordResponse)
async def get_pq_record_by_invoice(invoice_number: str):
    """
    Get a record by invoice number.

    Invoice numbers contain slashes (ABC/123/2024-25), so the whole
    remaining path is taken.

    Raises:
        404: No record with this invoice number
    """
    try:
        service = get_pq_record_service()
        record = service.get_by_invoice_number(invoice_number)
        if record is None:
            raise PQRecordNotFoundError(invoice_number)
        return record

    except Exception as e:
        return handle_error(e)


@router.delete("/invoice/{invoice_number:path}", status_code=204)
async def delete_pq_record_by_invoice(invoice_number: str):
    """
    Delete the record with this invoice number.

    Raises:
        404: No record with this invoice number
    """
    try:
        service = get_pq_record_service()
        service.delete_by_invoice_number(invoice_number)
        return None  # 204 No Content

    except Exception as e:
        return handle_error(e)


# ===================
# SINGLE RECORD ROUTES
# ===================

@router.get("/{record_id}", response_model=PQRecordResponse)
async def get_pq_record(record_id: str):
    """
    Get a single record by ID.

    Raises:
        404: Record not found
    """
    try:
        service = get_pq_record_service()
        return service.get_by_id(record_id)

    except Exception as e:
        return handle_error(e)


@router.post("", response_model=PQRecordResponse, status_code=201)
async def create_pq_record(data: PQRecordCreate):
    """
    Create a new PQ record.

    Raises:
        409: Invoice number already recorded
        422: Required field missing or blank
    """
    try:
        service = get_pq_record_service()
        return service.create(data)

    except Exception as e:
        return handle_error(e)


@router.patch("/{record_id}", response_model=PQRecordResponse)
async def update_pq_record(record_id: str, data: PQRecordUpdate):
    """
    Update a record. Only provided fields are changed.

    Raises:
        404: Record not found
        409: New invoice number belongs to another record
    """
    try:
        service = get_pq_record_service()
        return service.update(record_id, data)

    except Exception as e:
        return handle_error(e)


@router.delete("/{record_id}", status_code=204)
async def delete_pq_record(record_id: str):
    """
    Delete a record permanently.

    Raises:
        404: Record not found
    """
    try:
        service = get_pq_record_service()
        service.delete(record_id)
        return None  # 204 No Content

    except Exception as e:
        return handle_error(e)


@router.post("/{record_id}/complete", response_model=PQRecordResponse)
async def complete_pq_record(record_id: str):
    """
    Mark shipping bill and PQ certificate as received.

    Raises:
        404: Record not found
    """
    try:
        service = get_pq_record_service()
        return service.mark_completed(record_id)

    except Exception as e:
        return handle_error(e)
