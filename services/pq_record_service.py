"""
PQ record service for business logic operations.

Thin client over the Supabase pq_records table. Filtering, searching and
sorting happen in memory (see record_filter_service) because the record
list is small and search spans every text column.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.base import PaginationParams
from models.filters import RecordFilter
from models.pq_record import (
    PQRecordCreate,
    PQRecordUpdate,
    PQRecordResponse,
    PQStatus,
    NULLABLE_FIELDS,
)
from exceptions import (
    PQRecordNotFoundError,
    InvoiceNumberExistsError,
    DatabaseError
)
from services.record_filter_service import apply_filters
from utils.text_utils import unique_sorted

logger = structlog.get_logger(__name__)

# Postgres error code for malformed input such as a bad UUID
INVALID_TEXT_REPRESENTATION = "22P02"


class PQRecordService:
    """
    PQ record business logic.

    Handles CRUD operations for PQ records.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = settings.pq_records_table

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(self) -> list[PQRecordResponse]:
        """
        Get every PQ record, newest first.

        Returns:
            List of PQRecordResponse
        """
        logger.info("getting_pq_records")

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("created_at", desc=True)
                .execute()
            )

            records = [PQRecordResponse(**row) for row in result.data]

            logger.info("pq_records_retrieved", count=len(records))

            return records

        except Exception as e:
            logger.error("get_pq_records_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def list_records(
        self,
        filters: Optional[RecordFilter] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> tuple[list[PQRecordResponse], int]:
        """
        Get filtered, sorted records.

        Args:
            filters: Search, section, date range, exact filters and sort
            pagination: Page window; all matching records when None

        Returns:
            Tuple of (records for the page, total matching count)
        """
        filters = filters or RecordFilter()
        records = apply_filters(self.get_all(), filters)
        total = len(records)

        if pagination is not None:
            records = records[pagination.offset:pagination.offset + pagination.limit]

        logger.info(
            "pq_records_filtered",
            section=filters.section.value,
            search=filters.search,
            total=total,
            returned=len(records)
        )

        return records, total

    def get_by_id(self, record_id: str) -> PQRecordResponse:
        """
        Get a single record by ID.

        Raises:
            PQRecordNotFoundError: If record doesn't exist
        """
        logger.debug("getting_pq_record", record_id=record_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", record_id)
                .single()
                .execute()
            )

            if not result.data:
                raise PQRecordNotFoundError(record_id)

            return PQRecordResponse(**result.data)

        except PQRecordNotFoundError:
            raise
        except Exception as e:
            logger.error(
                "get_pq_record_failed",
                record_id=record_id,
                error=str(e)
            )
            # "not found" from Supabase, or an id that is not a valid UUID
            if (
                "0 rows" in str(e)
                or "no rows" in str(e).lower()
                or INVALID_TEXT_REPRESENTATION in str(e)
            ):
                raise PQRecordNotFoundError(record_id)
            raise DatabaseError("select", str(e))

    def get_by_invoice_number(self, invoice_number: str) -> Optional[PQRecordResponse]:
        """
        Get a record by invoice number.

        Returns:
            PQRecordResponse or None if not found
        """
        logger.debug("getting_pq_record_by_invoice", invoice_number=invoice_number)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("invoice_number", invoice_number.strip())
                .execute()
            )

            if not result.data:
                return None

            return PQRecordResponse(**result.data[0])

        except Exception as e:
            logger.error(
                "get_pq_record_by_invoice_failed",
                invoice_number=invoice_number,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    def get_shipper_names(self) -> list[str]:
        """Distinct shipper names for the filter dropdown."""
        records = self.get_all()
        return unique_sorted(r.shipper_name for r in records)

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: PQRecordCreate) -> PQRecordResponse:
        """
        Create a new PQ record.

        Raises:
            InvoiceNumberExistsError: If another record has this invoice number
        """
        logger.info("creating_pq_record", invoice_number=data.invoice_number)

        existing = self.get_by_invoice_number(data.invoice_number)
        if existing:
            raise InvoiceNumberExistsError(data.invoice_number)

        try:
            insert_data = data.model_dump(mode="json")

            result = (
                self.db.table(self.table)
                .insert(insert_data)
                .execute()
            )

            record = PQRecordResponse(**result.data[0])

            logger.info(
                "pq_record_created",
                record_id=record.id,
                invoice_number=record.invoice_number
            )

            return record

        except Exception as e:
            logger.error(
                "create_pq_record_failed",
                invoice_number=data.invoice_number,
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

    def update(self, record_id: str, data: PQRecordUpdate) -> PQRecordResponse:
        """
        Update an existing record.

        Only provided fields are written.

        Raises:
            PQRecordNotFoundError: If record doesn't exist
            InvoiceNumberExistsError: If the new invoice number is taken
        """
        logger.info("updating_pq_record", record_id=record_id)

        existing = self.get_by_id(record_id)

        if data.invoice_number and data.invoice_number != existing.invoice_number:
            other = self.get_by_invoice_number(data.invoice_number)
            if other and other.id != record_id:
                raise InvoiceNumberExistsError(data.invoice_number)

        update_data = {
            key: value
            for key, value in data.model_dump(exclude_unset=True, mode="json").items()
            if value is not None or key in NULLABLE_FIELDS
        }

        if not update_data:
            # Nothing to update, return existing
            return existing

        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

        return self._write_update(record_id, update_data)

    def mark_completed(self, record_id: str) -> PQRecordResponse:
        """
        Mark a record's PQ as done.

        Sets the shipping bill to received and the PQ status to Received.
        Permit copy status is left as it is.
        """
        logger.info("marking_pq_record_completed", record_id=record_id)

        self.get_by_id(record_id)

        return self._write_update(record_id, {
            "shipping_bill_received": True,
            "pq_status": PQStatus.RECEIVED.value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        })

    def delete(self, record_id: str) -> bool:
        """
        Delete a record.

        Raises:
            PQRecordNotFoundError: If record doesn't exist
        """
        logger.info("deleting_pq_record", record_id=record_id)

        self.get_by_id(record_id)

        try:
            self.db.table(self.table).delete().eq("id", record_id).execute()

            logger.info("pq_record_deleted", record_id=record_id)

            return True

        except Exception as e:
            logger.error(
                "delete_pq_record_failed",
                record_id=record_id,
                error=str(e)
            )
            raise DatabaseError("delete", str(e))

    def delete_by_invoice_number(self, invoice_number: str) -> bool:
        """
        Delete the record with this invoice number.

        Raises:
            PQRecordNotFoundError: If no record has this invoice number
        """
        record = self.get_by_invoice_number(invoice_number)
        if record is None:
            raise PQRecordNotFoundError(invoice_number)
        return self.delete(record.id)

    def _write_update(self, record_id: str, update_data: dict) -> PQRecordResponse:
        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", record_id)
                .execute()
            )

            record = PQRecordResponse(**result.data[0])

            logger.info(
                "pq_record_updated",
                record_id=record_id,
                fields=[k for k in update_data.keys() if k != "updated_at"]
            )

            return record

        except Exception as e:
            logger.error(
                "update_pq_record_failed",
                record_id=record_id,
                error=str(e)
            )
            raise DatabaseError("update", str(e))


# Singleton instance for convenience
_pq_record_service: Optional[PQRecordService] = None


def get_pq_record_service() -> PQRecordService:
    """Get or create PQRecordService instance."""
    global _pq_record_service
    if _pq_record_service is None:
        _pq_record_service = PQRecordService()
    return _pq_record_service
