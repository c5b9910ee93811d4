"""
Unit tests for dashboard counts.
"""

from datetime import datetime, timezone
from unittest.mock import patch
import pytest

from models.pq_record import PQRecordResponse
from services.dashboard_service import (
    calculate_stats,
    calculate_section_counts,
    DashboardService,
)
from tests.factories import PQRecordFactory


NOW = datetime(2025, 7, 10, 12, 0, tzinfo=timezone.utc)


def make_records(*rows) -> list[PQRecordResponse]:
    return [PQRecordResponse(**row) for row in rows]


class TestCalculateStats:
    """Tests for headline counts."""

    def test_empty(self):
        stats = calculate_stats([], now=NOW)

        assert stats.total_containers == 0
        assert stats.pending_pq == 0
        assert stats.certificates_received == 0
        assert stats.pq_hardcopy_missing == 0
        assert stats.delays_over_48_hours == 0

    def test_counts(self):
        records = make_records(
            PQRecordFactory.create_complete(created_at=NOW.isoformat()),
            PQRecordFactory.create_complete(pq_hardcopy="Not Received", created_at=NOW.isoformat()),
            PQRecordFactory.create(created_at=NOW.isoformat()),
        )

        stats = calculate_stats(records, now=NOW)

        assert stats.total_containers == 3
        assert stats.certificates_received == 2
        assert stats.pending_pq == 1
        assert stats.pq_hardcopy_missing == 2

    def test_pending_plus_received_is_total(self, sample_pq_records_list):
        stats = calculate_stats(make_records(*sample_pq_records_list), now=NOW)

        assert stats.pending_pq + stats.certificates_received == stats.total_containers

    def test_delays_count_partial_hours(self):
        """48h is not late, 48h30m is."""
        records = make_records(
            PQRecordFactory.create_pending_since(48, now=NOW),
            PQRecordFactory.create_pending_since(48.5, now=NOW),
            PQRecordFactory.create_pending_since(200, now=NOW),
        )

        stats = calculate_stats(records, now=NOW)

        assert stats.delays_over_48_hours == 2

    def test_received_pq_never_delayed(self):
        created = NOW.replace(day=1).isoformat()
        records = make_records(PQRecordFactory.create(pq_status="Received", created_at=created))

        stats = calculate_stats(records, now=NOW)

        assert stats.delays_over_48_hours == 0

    def test_custom_threshold(self):
        records = make_records(PQRecordFactory.create_pending_since(30, now=NOW))

        assert calculate_stats(records, now=NOW, delay_threshold_hours=24).delays_over_48_hours == 1
        assert calculate_stats(records, now=NOW, delay_threshold_hours=48).delays_over_48_hours == 0


class TestCalculateSectionCounts:

    def test_counts(self, sample_pq_records_list):
        counts = calculate_section_counts(make_records(*sample_pq_records_list))

        assert counts.all == 3
        assert counts.pending == 2
        assert counts.received == 1
        assert counts.hardcopy_missing == 2


class TestDashboardService:
    """Service reads every record from the record service."""

    @pytest.fixture
    def service(self, mock_db, mock_supabase, sample_pq_records_list):
        mock_supabase.set_table_data("pq_records", sample_pq_records_list)
        return DashboardService()

    def test_get_stats(self, service):
        stats = service.get_stats(now=NOW)

        assert stats.total_containers == 3
        assert stats.certificates_received == 1
        # All three are over a week old; only uuid-1 is still Pending
        assert stats.delays_over_48_hours == 1

    def test_get_stats_uses_configured_threshold(self, service):
        with patch("services.dashboard_service.settings") as mock_settings:
            mock_settings.delay_threshold_hours = 24 * 30

            stats = service.get_stats(now=NOW)

        assert stats.delays_over_48_hours == 0

    def test_get_section_counts(self, service):
        counts = service.get_section_counts()

        assert counts.model_dump() == {
            "all": 3,
            "pending": 2,
            "received": 1,
            "hardcopy_missing": 2,
        }
