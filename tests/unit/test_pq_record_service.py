"""
Unit tests for PQRecordService.

Runs against the in-memory mock Supabase client from conftest.
"""

import pytest
from unittest.mock import MagicMock, patch

from models.base import PaginationParams
from models.filters import RecordFilter, RecordSection
from models.pq_record import PQRecordCreate, PQRecordUpdate, PQStatus
from services.pq_record_service import PQRecordService
from exceptions import (
    PQRecordNotFoundError,
    InvoiceNumberExistsError,
    DatabaseError,
)
from tests.factories import PQRecordFactory


TABLE = "pq_records"


@pytest.fixture
def service(mock_db):
    """PQRecordService wired to the mock client."""
    return PQRecordService()


def make_create(**overrides) -> PQRecordCreate:
    values = {
        "shipper_name": "Sri Balaji Exports",
        "buyer": "Ceylon Traders (Pvt) Ltd",
        "invoice_number": "SBE/200/2025-26",
        "commodity": "Dry Red Chillies",
        "destination_port": "SRI LANKA",
    }
    values.update(overrides)
    return PQRecordCreate(**values)


# ===================
# READ OPERATIONS
# ===================

class TestGetAll:
    """Tests for fetching every record."""

    def test_newest_first(self, service, mock_supabase):
        mock_supabase.set_table_data(TABLE, [
            PQRecordFactory.create(id="old", created_at="2025-07-01T08:00:00+00:00"),
            PQRecordFactory.create(id="new", created_at="2025-07-05T08:00:00+00:00"),
        ])

        records = service.get_all()

        assert [r.id for r in records] == ["new", "old"]

    def test_empty_table(self, service, mock_supabase):
        assert service.get_all() == []

    def test_legacy_rows_are_normalized(self, service, mock_supabase):
        """Integer invoice numbers and boolean hardcopy flags still load."""
        row = PQRecordFactory.create(id="legacy")
        row.update({
            "invoice_number": 5521,
            "pq_hardcopy": True,
            "pq_status": None,
            "shipping_bill_received": None,
            "files": None,
            "destination_port": None,
        })
        mock_supabase.set_table_data(TABLE, [row])

        record = service.get_all()[0]

        assert record.invoice_number == "5521"
        assert record.pq_hardcopy.value == "Received"
        assert record.pq_status == PQStatus.PENDING
        assert record.shipping_bill_received is False
        assert record.files == []
        assert record.destination_port == ""


class TestGetById:
    """Tests for single record lookup."""

    def test_found(self, service, mock_supabase, sample_pq_record_data):
        mock_supabase.set_table_data(TABLE, [sample_pq_record_data])

        record = service.get_by_id("test-uuid-123")

        assert record.invoice_number == "SBE/101/2025-26"
        assert record.is_complete is False

    def test_not_found(self, service, mock_supabase):
        with pytest.raises(PQRecordNotFoundError) as exc_info:
            service.get_by_id("missing")

        assert exc_info.value.status_code == 404

    def test_malformed_uuid_is_not_found(self, service):
        service.db = MagicMock()
        query = service.db.table.return_value.select.return_value.eq.return_value.single.return_value
        query.execute.side_effect = Exception(
            "{'code': '22P02', 'message': 'invalid input syntax for type uuid: \"not-a-uuid\"'}"
        )

        with pytest.raises(PQRecordNotFoundError):
            service.get_by_id("not-a-uuid")

    def test_other_select_errors_are_database_errors(self, service):
        service.db = MagicMock()
        service.db.table.side_effect = Exception("timeout")

        with pytest.raises(DatabaseError):
            service.get_by_id("uuid-1")


class TestGetByInvoiceNumber:

    def test_found(self, service, mock_supabase, sample_pq_record_data):
        mock_supabase.set_table_data(TABLE, [sample_pq_record_data])

        record = service.get_by_invoice_number("SBE/101/2025-26")

        assert record is not None
        assert record.id == "test-uuid-123"

    def test_surrounding_whitespace_ignored(self, service, mock_supabase, sample_pq_record_data):
        mock_supabase.set_table_data(TABLE, [sample_pq_record_data])

        assert service.get_by_invoice_number("  SBE/101/2025-26 ") is not None

    def test_not_found_returns_none(self, service, mock_supabase):
        assert service.get_by_invoice_number("NOPE/1/2025-26") is None


class TestListRecords:
    """Tests for filtered, paginated listing."""

    def test_filters_by_section(self, service, mock_supabase, sample_pq_records_list):
        mock_supabase.set_table_data(TABLE, sample_pq_records_list)

        records, total = service.list_records(RecordFilter(section=RecordSection.RECEIVED))

        assert total == 1
        assert records[0].id == "uuid-2"

    def test_paginates_after_filtering(self, service, mock_supabase):
        mock_supabase.set_table_data(TABLE, [
            PQRecordFactory.create(created_at=f"2025-07-0{day}T08:00:00+00:00")
            for day in range(1, 6)
        ])

        records, total = service.list_records(
            RecordFilter(),
            PaginationParams(page=2, page_size=2),
        )

        assert total == 5
        assert len(records) == 2
        assert records[0].created_at.day == 3

    def test_defaults_to_everything(self, service, mock_supabase, sample_pq_records_list):
        mock_supabase.set_table_data(TABLE, sample_pq_records_list)

        records, total = service.list_records()

        assert total == 3
        assert len(records) == 3


class TestGetShipperNames:

    def test_unique_and_sorted(self, service, mock_supabase):
        mock_supabase.set_table_data(TABLE, [
            PQRecordFactory.create(shipper_name="Zeta Exports"),
            PQRecordFactory.create(shipper_name="alpha agro"),
            PQRecordFactory.create(shipper_name="Zeta Exports"),
        ])

        assert service.get_shipper_names() == ["alpha agro", "Zeta Exports"]


# ===================
# WRITE OPERATIONS
# ===================

class TestCreate:
    """Tests for record creation."""

    def test_creates_record(self, service, mock_supabase):
        record = service.create(make_create())

        assert record.id
        assert record.invoice_number == "SBE/200/2025-26"
        assert record.pq_status == PQStatus.PENDING
        assert record.pq_hardcopy.value == "Not Received"
        assert record.permit_copy_status.value == "Not Required"
        assert len(mock_supabase.rows(TABLE)) == 1

    def test_stores_date_as_iso_text(self, service, mock_supabase):
        service.create(make_create(date="2025-07-06"))

        assert mock_supabase.rows(TABLE)[0]["date"] == "2025-07-06"

    def test_duplicate_invoice_rejected(self, service, mock_supabase):
        mock_supabase.set_table_data(TABLE, [
            PQRecordFactory.create(invoice_number="SBE/200/2025-26")
        ])

        with pytest.raises(InvoiceNumberExistsError) as exc_info:
            service.create(make_create())

        assert exc_info.value.status_code == 409
        assert exc_info.value.code == "PQ_RECORD_INVOICE_NUMBER_EXISTS"
        assert len(mock_supabase.rows(TABLE)) == 1


class TestUpdate:
    """Tests for partial updates."""

    def test_only_provided_fields_change(self, service, mock_supabase, sample_pq_record_data):
        mock_supabase.set_table_data(TABLE, [sample_pq_record_data])

        record = service.update("test-uuid-123", PQRecordUpdate(pq_status="Received"))

        assert record.pq_status == PQStatus.RECEIVED
        assert record.buyer == "Ceylon Traders (Pvt) Ltd"

    def test_refreshes_updated_at(self, service, mock_supabase, sample_pq_record_data):
        mock_supabase.set_table_data(TABLE, [sample_pq_record_data])

        service.update("test-uuid-123", PQRecordUpdate(remarks="Awaiting permit"))

        row = mock_supabase.rows(TABLE)[0]
        assert row["remarks"] == "Awaiting permit"
        assert row["updated_at"] != sample_pq_record_data["updated_at"]

    def test_remarks_can_be_cleared(self, service, mock_supabase, sample_pq_record_data):
        sample_pq_record_data["remarks"] = "old note"
        mock_supabase.set_table_data(TABLE, [sample_pq_record_data])

        service.update("test-uuid-123", PQRecordUpdate(remarks=None))

        assert mock_supabase.rows(TABLE)[0]["remarks"] is None

    def test_empty_update_returns_existing(self, service, mock_supabase, sample_pq_record_data):
        mock_supabase.set_table_data(TABLE, [sample_pq_record_data])

        record = service.update("test-uuid-123", PQRecordUpdate())

        assert record.id == "test-uuid-123"
        assert mock_supabase.rows(TABLE)[0]["updated_at"] == sample_pq_record_data["updated_at"]

    def test_invoice_change_to_taken_number(self, service, mock_supabase):
        mock_supabase.set_table_data(TABLE, [
            PQRecordFactory.create(id="a", invoice_number="AAA/1/2025-26"),
            PQRecordFactory.create(id="b", invoice_number="BBB/2/2025-26"),
        ])

        with pytest.raises(InvoiceNumberExistsError):
            service.update("a", PQRecordUpdate(invoice_number="BBB/2/2025-26"))

    def test_invoice_unchanged_is_not_a_duplicate(self, service, mock_supabase):
        mock_supabase.set_table_data(TABLE, [
            PQRecordFactory.create(id="a", invoice_number="AAA/1/2025-26"),
        ])

        record = service.update(
            "a", PQRecordUpdate(invoice_number="AAA/1/2025-26", buyer="New Buyer")
        )

        assert record.buyer == "New Buyer"

    def test_missing_record(self, service, mock_supabase):
        with pytest.raises(PQRecordNotFoundError):
            service.update("missing", PQRecordUpdate(buyer="X Traders"))


class TestMarkCompleted:

    def test_sets_bill_and_status(self, service, mock_supabase, sample_pq_record_data):
        sample_pq_record_data["permit_copy_status"] = "Not Received"
        mock_supabase.set_table_data(TABLE, [sample_pq_record_data])

        record = service.mark_completed("test-uuid-123")

        assert record.shipping_bill_received is True
        assert record.pq_status == PQStatus.RECEIVED
        # Permit copy is left alone, so the record is still incomplete
        assert record.permit_copy_status.value == "Not Received"
        assert record.is_complete is False

    def test_complete_when_permit_not_required(self, service, mock_supabase, sample_pq_record_data):
        mock_supabase.set_table_data(TABLE, [sample_pq_record_data])

        assert service.mark_completed("test-uuid-123").is_complete is True


class TestDelete:
    """Tests for hard deletes."""

    def test_deletes_row(self, service, mock_supabase, sample_pq_records_list):
        mock_supabase.set_table_data(TABLE, sample_pq_records_list)

        assert service.delete("uuid-2") is True
        assert [r["id"] for r in mock_supabase.rows(TABLE)] == ["uuid-1", "uuid-3"]

    def test_missing_record(self, service, mock_supabase):
        with pytest.raises(PQRecordNotFoundError):
            service.delete("missing")

    def test_delete_by_invoice_number(self, service, mock_supabase, sample_pq_records_list):
        mock_supabase.set_table_data(TABLE, sample_pq_records_list)

        service.delete_by_invoice_number("GST/55/2025-26")

        assert service.get_by_invoice_number("GST/55/2025-26") is None
        assert len(mock_supabase.rows(TABLE)) == 2

    def test_delete_by_unknown_invoice_number(self, service, mock_supabase):
        with pytest.raises(PQRecordNotFoundError):
            service.delete_by_invoice_number("NOPE/1/2025-26")


# ===================
# DATABASE FAILURES
# ===================

class TestDatabaseErrors:
    """Client failures surface as DatabaseError."""

    @pytest.fixture
    def failing_service(self, failing_supabase):
        with patch(
            "services.pq_record_service.get_supabase_client",
            return_value=failing_supabase,
        ):
            yield PQRecordService()

    def test_get_all(self, failing_service):
        with pytest.raises(DatabaseError) as exc_info:
            failing_service.get_all()

        assert exc_info.value.status_code == 500
        assert exc_info.value.details["operation"] == "select"

    def test_get_by_id(self, failing_service):
        with pytest.raises(DatabaseError):
            failing_service.get_by_id("any")

    def test_get_shipper_names(self, failing_service):
        with pytest.raises(DatabaseError):
            failing_service.get_shipper_names()
