"""
app/api/routers/feedback_router.py

Feedback entry endpoints: paged listing, lookup, create, partial update
and soft delete.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.api.dependencies import get_feedback_service
from app.domain.feedback import ImportedRecord
from app.repositories.feedback_repository import DEFAULT_PAGE_SIZE, PersistenceError
from app.schemas.feedback import (
    FeedbackCreateRequest,
    FeedbackListResponse,
    FeedbackResponse,
    FeedbackUpdateRequest,
)
from app.services.feedback_service import FeedbackService

MAX_PAGE_SIZE = 100

router = APIRouter(prefix="/feedbacks", tags=["feedbacks"])


def _not_found(feedback_id: uuid.UUID) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Feedback {feedback_id} not found.",
    )


def _unavailable(exc: PersistenceError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.get("", response_model=FeedbackListResponse)
def list_feedbacks(
    program: str | None = Query(default=None, max_length=120),
    country: str | None = Query(default=None, max_length=120),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackListResponse:
    """
    Active entries, newest first. ``has_more`` is true when another page
    follows.
    """

    try:
        page = service.list_feedbacks(program=program, country=country, limit=limit, offset=offset)
    except PersistenceError as exc:
        raise _unavailable(exc) from exc
    return FeedbackListResponse.model_validate(page)


@router.get("/by-user/{user_id}", response_model=FeedbackResponse)
def get_user_active_feedback(
    user_id: str,
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackResponse:
    try:
        entry = service.get_user_active_feedback(user_id)
    except PersistenceError as exc:
        raise _unavailable(exc) from exc
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No active feedback for user {user_id!r}.",
        )
    return FeedbackResponse.model_validate(entry)


@router.get("/{feedback_id}", response_model=FeedbackResponse)
def get_feedback(
    feedback_id: uuid.UUID,
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackResponse:
    try:
        entry = service.get_feedback(feedback_id)
    except PersistenceError as exc:
        raise _unavailable(exc) from exc
    if entry is None:
        raise _not_found(feedback_id)
    return FeedbackResponse.model_validate(entry)


@router.post("", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
def create_feedback(
    body: FeedbackCreateRequest,
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackResponse:
    record = ImportedRecord(
        title=body.title,
        program=body.program,
        application_type=body.application_type,
        country=body.country,
        owner_ref=body.user_id,
        steps=tuple(step.to_record() for step in body.steps),
    )
    try:
        entry = service.create_feedback(record)
    except PersistenceError as exc:
        raise _unavailable(exc) from exc
    return FeedbackResponse.model_validate(entry)


@router.patch("/{feedback_id}", response_model=FeedbackResponse)
def update_feedback(
    feedback_id: uuid.UUID,
    body: FeedbackUpdateRequest,
    service: FeedbackService = Depends(get_feedback_service),
) -> FeedbackResponse:
    """
    Update only the fields present in the body; updated_at always moves.
    """

    try:
        entry = service.update_feedback(feedback_id, body.to_changes())
    except PersistenceError as exc:
        raise _unavailable(exc) from exc
    if entry is None:
        raise _not_found(feedback_id)
    return FeedbackResponse.model_validate(entry)


@router.delete("/{feedback_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_feedback(
    feedback_id: uuid.UUID,
    service: FeedbackService = Depends(get_feedback_service),
) -> Response:
    """
    Soft delete: the entry stays readable by id but leaves listings and stats.
    """

    try:
        deleted = service.delete_feedback(feedback_id)
    except PersistenceError as exc:
        raise _unavailable(exc) from exc
    if not deleted:
        raise _not_found(feedback_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
