"""
app/services/feedback_service.py

Create, read, update and soft-delete feedback entries.

Every successful write drops the cached chart aggregates so the dashboard
never shows numbers older than the last edit.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from app.domain.feedback import FeedbackEntry, FeedbackPage, ImportedRecord
from app.repositories.feedback_repository import DEFAULT_PAGE_SIZE, FeedbackRepository
from app.services.stats_service import FeedbackStatsService

logger = logging.getLogger(__name__)


class FeedbackService:
    def __init__(
        self,
        *,
        repository: FeedbackRepository,
        stats_service: FeedbackStatsService,
    ) -> None:
        self._repository = repository
        self._stats_service = stats_service

    def create_feedback(self, record: ImportedRecord) -> FeedbackEntry:
        feedback_id = self._repository.create_record(record)
        self._stats_service.invalidate_chart_caches()
        logger.info("Feedback created id=%s user_id=%r", feedback_id, record.owner_ref)

        entry = self._repository.get_feedback(uuid.UUID(feedback_id))
        if entry is None:
            raise LookupError(f"Feedback {feedback_id} vanished after create.")
        return entry

    def list_feedbacks(
        self,
        *,
        program: str | None = None,
        country: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> FeedbackPage:
        return self._repository.list_feedbacks(
            program=program,
            country=country,
            limit=limit,
            offset=offset,
        )

    def get_feedback(self, feedback_id: uuid.UUID) -> FeedbackEntry | None:
        return self._repository.get_feedback(feedback_id)

    def update_feedback(
        self,
        feedback_id: uuid.UUID,
        changes: Mapping[str, Any],
    ) -> FeedbackEntry | None:
        entry = self._repository.update_feedback(feedback_id, changes)
        if entry is not None:
            self._stats_service.invalidate_chart_caches()
            logger.info("Feedback updated id=%s fields=%s", feedback_id, sorted(changes))
        return entry

    def delete_feedback(self, feedback_id: uuid.UUID) -> bool:
        """
        Soft delete. Returns False when the id is unknown.
        """

        deleted = self._repository.soft_delete_feedback(feedback_id)
        if deleted:
            self._stats_service.invalidate_chart_caches()
            logger.info("Feedback deactivated id=%s", feedback_id)
        return deleted

    def get_user_active_feedback(self, user_id: str) -> FeedbackEntry | None:
        return self._repository.get_user_active_feedback(user_id)
