"""
app/repositories/feedback_repository.py

Record store for imported and user-submitted feedback entries.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.feedback import (
    FeedbackEntry,
    FeedbackPage,
    FeedbackSnapshot,
    ImportedRecord,
    StepRecord,
    StepType,
)
from db.models.feedback import Feedback

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
UPDATABLE_FIELDS = frozenset(
    {"title", "program", "application_type", "country", "steps", "is_active"}
)


class PersistenceError(RuntimeError):
    """
    Raised when the backing store fails a read or rejects a write.
    """


class RecordStore(ABC):
    """
    Write interface the importer depends on.
    """

    @abstractmethod
    def create_record(self, record: ImportedRecord) -> str:
        """
        Persist one record and return its id.

        Raises PersistenceError on any backend failure.
        """


def serialize_step(step: StepRecord) -> dict[str, Any]:
    return {
        "stepType": step.step_type.value,
        "stepName": step.step_name,
        "completedAt": step.completed_at.isoformat() if step.completed_at else None,
        "comment": step.comment,
    }


def deserialize_step(payload: Any) -> StepRecord | None:
    if not isinstance(payload, dict):
        return None
    try:
        step_type = StepType(payload.get("stepType"))
    except ValueError:
        return None

    return StepRecord(
        step_type=step_type,
        step_name=payload.get("stepName") or step_type.value,
        completed_at=parse_completed_at(payload.get("completedAt")),
        comment=payload.get("comment"),
    )


def parse_completed_at(raw: Any) -> date | None:
    """
    Read a stored completion date; anything unreadable counts as absent.
    """

    if not raw:
        return None
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError:
        logger.warning("Ignoring unreadable step completedAt=%r", raw)
        return None


def load_steps(payloads: list[Any] | None) -> tuple[StepRecord, ...]:
    return tuple(
        step for step in (deserialize_step(payload) for payload in payloads or []) if step is not None
    )


def to_entry(model: Feedback) -> FeedbackEntry:
    return FeedbackEntry(
        id=model.id,
        title=model.title,
        program=model.program,
        application_type=model.application_type,
        country=model.country,
        user_id=model.user_id,
        steps=load_steps(model.steps),
        is_active=model.is_active,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


class FeedbackRepository(RecordStore):
    """
    SQLAlchemy-backed record store. Every write commits on its own, so
    earlier writes survive later failures.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def create_record(self, record: ImportedRecord) -> str:
        model = Feedback(
            id=uuid.uuid4(),
            title=record.title,
            program=record.program,
            application_type=record.application_type,
            country=record.country,
            user_id=record.owner_ref,
            steps=[serialize_step(step) for step in record.steps],
            is_active=record.is_active,
        )
        try:
            self._session.add(model)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error("Feedback insert failed title=%r: %s", record.title, exc)
            raise PersistenceError("Failed to create feedback.") from exc
        return str(model.id)

    def list_active(self) -> list[Feedback]:
        stmt = (
            select(Feedback)
            .where(Feedback.is_active.is_(True))
            .order_by(Feedback.created_at.desc())
        )
        return list(self._session.execute(stmt).scalars().all())

    def list_active_snapshots(self) -> list[FeedbackSnapshot]:
        """
        Return active entries as read-side snapshots for stats computation.
        """

        snapshots: list[FeedbackSnapshot] = []
        for model in self.list_active():
            snapshots.append(
                FeedbackSnapshot(
                    program=model.program,
                    steps=load_steps(model.steps),
                    created_at=model.created_at,
                )
            )
        return snapshots

    def list_feedbacks(
        self,
        *,
        program: str | None = None,
        country: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> FeedbackPage:
        """
        Active entries, newest first, optionally filtered by exact program
        and country.

        One extra row is fetched to tell whether another page exists.
        """

        stmt = select(Feedback).where(Feedback.is_active.is_(True))
        if program:
            stmt = stmt.where(Feedback.program == program)
        if country:
            stmt = stmt.where(Feedback.country == country)
        stmt = (
            stmt.order_by(Feedback.created_at.desc(), Feedback.id)
            .offset(offset)
            .limit(limit + 1)
        )

        try:
            models = list(self._session.execute(stmt).scalars().all())
        except SQLAlchemyError as exc:
            logger.error("Feedback list failed program=%r country=%r: %s", program, country, exc)
            raise PersistenceError("Failed to fetch feedbacks.") from exc

        return FeedbackPage(
            items=[to_entry(model) for model in models[:limit]],
            has_more=len(models) > limit,
            limit=limit,
            offset=offset,
        )

    def get_feedback(self, feedback_id: uuid.UUID) -> FeedbackEntry | None:
        """
        Fetch one entry by id, including soft-deleted ones.
        """

        try:
            model = self._session.get(Feedback, feedback_id)
        except SQLAlchemyError as exc:
            logger.error("Feedback fetch failed id=%s: %s", feedback_id, exc)
            raise PersistenceError("Failed to fetch feedback.") from exc
        return to_entry(model) if model is not None else None

    def update_feedback(
        self,
        feedback_id: uuid.UUID,
        changes: Mapping[str, Any],
    ) -> FeedbackEntry | None:
        """
        Apply a partial update and refresh updated_at.

        ``changes`` keys are limited to UPDATABLE_FIELDS; a ``steps`` value
        is a sequence of StepRecord. Returns None when the id is unknown.
        """

        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        model = self._load_for_write(feedback_id, "update")
        if model is None:
            return None

        for name, value in changes.items():
            if name == "steps":
                value = [serialize_step(step) for step in value]
            setattr(model, name, value)
        model.touch()
        self._commit(model, "update")
        return to_entry(model)

    def soft_delete_feedback(self, feedback_id: uuid.UUID) -> bool:
        """
        Mark an entry inactive. Returns False when the id is unknown.
        """

        model = self._load_for_write(feedback_id, "delete")
        if model is None:
            return False

        model.is_active = False
        model.touch()
        self._commit(model, "delete")
        return True

    def get_user_active_feedback(self, user_id: str) -> FeedbackEntry | None:
        """
        The user's most recent active entry, if any.
        """

        stmt = (
            select(Feedback)
            .where(Feedback.user_id == user_id, Feedback.is_active.is_(True))
            .order_by(Feedback.created_at.desc())
            .limit(1)
        )
        try:
            model = self._session.execute(stmt).scalars().first()
        except SQLAlchemyError as exc:
            logger.error("User feedback fetch failed user_id=%r: %s", user_id, exc)
            raise PersistenceError("Failed to fetch user feedback.") from exc
        return to_entry(model) if model is not None else None

    def _load_for_write(self, feedback_id: uuid.UUID, action: str) -> Feedback | None:
        try:
            return self._session.get(Feedback, feedback_id)
        except SQLAlchemyError as exc:
            logger.error("Feedback %s lookup failed id=%s: %s", action, feedback_id, exc)
            raise PersistenceError(f"Failed to {action} feedback.") from exc

    def _commit(self, model: Feedback, action: str) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error("Feedback %s failed id=%s: %s", action, model.id, exc)
            raise PersistenceError(f"Failed to {action} feedback.") from exc
