"""
app/repositories package marker.
"""

from app.repositories.feedback_repository import FeedbackRepository, PersistenceError, RecordStore

__all__ = [
    "FeedbackRepository",
    "PersistenceError",
    "RecordStore",
]
