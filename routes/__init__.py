"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.pq_records import router as pq_records_router
from routes.dashboard import router as dashboard_router

__all__ = [
    "pq_records_router",
    "dashboard_router",
]
