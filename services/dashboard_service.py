"""
Dashboard service.

Computes the headline PQ counts from the full record list.
"""

from datetime import datetime
from typing import Iterable, Optional
import structlog

from config import settings
from models.dashboard import DashboardStats, SectionCounts
from models.filters import RecordSection
from models.pq_record import PQRecordResponse
from services.pq_record_service import get_pq_record_service
from services.record_filter_service import (
    is_complete,
    is_hardcopy_missing,
    matches_section,
)
from utils.date_utils import is_delayed, utc_now

logger = structlog.get_logger(__name__)


def calculate_stats(
    records: Iterable[PQRecordResponse],
    now: Optional[datetime] = None,
    delay_threshold_hours: int = 48,
) -> DashboardStats:
    """
    Count records by paperwork state.

    Args:
        records: All PQ records
        now: Reference time for delay checks (defaults to current UTC time)
        delay_threshold_hours: Hours a Pending PQ may wait before it is late

    Returns:
        DashboardStats
    """
    records = list(records)
    now = now or utc_now()

    complete = sum(1 for r in records if is_complete(r))

    return DashboardStats(
        total_containers=len(records),
        pending_pq=len(records) - complete,
        certificates_received=complete,
        pq_hardcopy_missing=sum(1 for r in records if is_hardcopy_missing(r)),
        delays_over_48_hours=sum(
            1 for r in records
            if is_delayed(r.created_at, r.pq_status, delay_threshold_hours, now)
        ),
    )


def calculate_section_counts(records: Iterable[PQRecordResponse]) -> SectionCounts:
    """Number of records in each list section."""
    records = list(records)
    return SectionCounts(
        all=len(records),
        pending=sum(1 for r in records if matches_section(r, RecordSection.PENDING)),
        received=sum(1 for r in records if matches_section(r, RecordSection.RECEIVED)),
        hardcopy_missing=sum(
            1 for r in records if matches_section(r, RecordSection.HARDCOPY_MISSING)
        ),
    )


class DashboardService:
    """Dashboard business logic."""

    def __init__(self):
        self.records = get_pq_record_service()

    def get_stats(self, now: Optional[datetime] = None) -> DashboardStats:
        stats = calculate_stats(
            self.records.get_all(),
            now=now,
            delay_threshold_hours=settings.delay_threshold_hours,
        )

        logger.info(
            "dashboard_stats_calculated",
            total=stats.total_containers,
            pending=stats.pending_pq,
            received=stats.certificates_received,
            hardcopy_missing=stats.pq_hardcopy_missing,
            delayed=stats.delays_over_48_hours,
        )

        return stats

    def get_section_counts(self) -> SectionCounts:
        return calculate_section_counts(self.records.get_all())


# Singleton instance
_dashboard_service: Optional[DashboardService] = None


def get_dashboard_service() -> DashboardService:
    """Get or create DashboardService instance."""
    global _dashboard_service
    if _dashboard_service is None:
        _dashboard_service = DashboardService()
    return _dashboard_service
