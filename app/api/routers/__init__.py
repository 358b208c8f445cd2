"""
app/api/routers package marker.
"""

from app.api.routers.dashboard import router as dashboard_router
from app.api.routers.ingestion import router as ingestion_router
from app.api.routers.reports import router as reports_router

__all__ = [
    "dashboard_router",
    "ingestion_router",
    "reports_router",
]
