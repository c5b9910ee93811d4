"""
Business logic services.

Each service handles one domain area.
"""

from services.pq_record_service import PQRecordService, get_pq_record_service
from services.dashboard_service import DashboardService, get_dashboard_service
from services.export_service import ExportService, get_export_service

__all__ = [
    "PQRecordService",
    "get_pq_record_service",
    "DashboardService",
    "get_dashboard_service",
    "ExportService",
    "get_export_service",
]
