"""
app/api/routers package marker.
"""

from app.api.routers.csv_import import router as csv_import_router
from app.api.routers.feedback_router import router as feedback_router
from app.api.routers.stats_router import router as stats_router

__all__ = [
    "csv_import_router",
    "feedback_router",
    "stats_router",
]
