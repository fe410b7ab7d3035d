"""
app/services package marker.
"""

from app.services.cache_service import TTLCache
from app.services.csv_import_service import (
    CSVImportService,
    build_csv_import_service,
    generate_report,
)
from app.services.stats_service import FeedbackStatsService, get_stats_service

__all__ = [
    "CSVImportService",
    "FeedbackStatsService",
    "TTLCache",
    "build_csv_import_service",
    "generate_report",
    "get_stats_service",
]
