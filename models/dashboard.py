"""
Dashboard schemas.
"""

from pydantic import Field

from models.base import BaseSchema


class DashboardStats(BaseSchema):
    """Headline counts for the dashboard cards."""

    total_containers: int = Field(..., ge=0, description="All records (one per container shipment)")
    pending_pq: int = Field(..., ge=0, description="Records with incomplete paperwork")
    certificates_received: int = Field(..., ge=0, description="Records with complete paperwork")
    pq_hardcopy_missing: int = Field(..., ge=0, description="Records still waiting on the paper certificate")
    delays_over_48_hours: int = Field(..., ge=0, description="Pending PQs older than the delay threshold")


class SectionCounts(BaseSchema):
    """Record count per list section."""

    all: int = Field(..., ge=0)
    pending: int = Field(..., ge=0)
    received: int = Field(..., ge=0)
    hardcopy_missing: int = Field(..., ge=0)
