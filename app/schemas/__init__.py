"""
app/schemas package marker.
"""

from app.schemas.csv_import import CSVImportResponse, ImportProgressResponse
from app.schemas.stats import (
    DashboardStatsResponse,
    ProcessingTimeResponse,
    StatusDistributionResponse,
)

__all__ = [
    "CSVImportResponse",
    "DashboardStatsResponse",
    "ImportProgressResponse",
    "ProcessingTimeResponse",
    "StatusDistributionResponse",
]
