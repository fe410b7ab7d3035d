"""
app/domain package marker.
"""

from app.domain.feedback import (
    COMPLETION_STEP_TYPES,
    STEP_NAMES,
    FeedbackSnapshot,
    ImportedRecord,
    ImportProgress,
    ImportResult,
    RawRow,
    StepRecord,
    StepType,
)

__all__ = [
    "COMPLETION_STEP_TYPES",
    "FeedbackSnapshot",
    "ImportedRecord",
    "ImportProgress",
    "ImportResult",
    "RawRow",
    "STEP_NAMES",
    "StepRecord",
    "StepType",
]
