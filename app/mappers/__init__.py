"""
app/mappers package marker.
"""

from app.mappers.feedback_mapper import (
    PRIMARY_STEP_COLUMNS,
    STANDALONE_STEP_COLUMNS,
    FeedbackRowTransformer,
    StepColumn,
    get_step_columns,
)

__all__ = [
    "FeedbackRowTransformer",
    "PRIMARY_STEP_COLUMNS",
    "STANDALONE_STEP_COLUMNS",
    "StepColumn",
    "get_step_columns",
]
