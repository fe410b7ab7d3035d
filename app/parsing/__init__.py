"""
app/parsing package marker.
"""

from app.parsing.tracker_csv import (
    CSVImportStructureError,
    HeaderNotFoundError,
    MalformedInputError,
    SentinelHeaderStrategy,
    SplicedHeaderStrategy,
    TrackerCSVParser,
    get_header_strategy,
    parse_csv_line,
)

__all__ = [
    "CSVImportStructureError",
    "HeaderNotFoundError",
    "MalformedInputError",
    "SentinelHeaderStrategy",
    "SplicedHeaderStrategy",
    "TrackerCSVParser",
    "get_header_strategy",
    "parse_csv_line",
]
