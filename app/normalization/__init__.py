"""
app/normalization package marker.
"""

from app.normalization.field_normalizers import (
    DEFAULT_PROGRAM,
    DateNormalizer,
    classify_application_type,
    extract_comment,
    is_step_completed,
    map_program,
    parse_date,
)

__all__ = [
    "DEFAULT_PROGRAM",
    "DateNormalizer",
    "classify_application_type",
    "extract_comment",
    "is_step_completed",
    "map_program",
    "parse_date",
]
