"""
Dashboard API routes.

Headline PQ counts for the stat cards and section tabs.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from models.dashboard import DashboardStats, SectionCounts
from services.dashboard_service import get_dashboard_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


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
# STATS ROUTES
# ===================

@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats():
    """
    Get dashboard counts.

    Returns:
    - total_containers: every record
    - pending_pq: paperwork incomplete
    - certificates_received: paperwork complete
    - pq_hardcopy_missing: hardcopy not yet received
    - delays_over_48_hours: PQ still Pending past the delay threshold
    """
    try:
        service = get_dashboard_service()
        return service.get_stats()

    except Exception as e:
        return handle_error(e)


@router.get("/sections", response_model=SectionCounts)
async def get_section_counts():
    """Number of records in each list section."""
    try:
        service = get_dashboard_service()
        return service.get_section_counts()

    except Exception as e:
        return handle_error(e)
