"""
app/schemas/feedback.py

Request and response schemas for the feedback CRUD endpoints.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from app.domain.feedback import STEP_NAMES, StepRecord, StepType

ApplicationType = Literal["inland", "outland"]

# Columns that cannot be cleared by an explicit null in a PATCH body.
NON_NULLABLE_UPDATE_FIELDS = ("title", "program", "application_type", "steps", "is_active")


class StepPayload(BaseModel):
    step_type: StepType
    step_name: str | None = Field(default=None, max_length=120)
    completed_at: date | None = None
    comment: str | None = Field(default=None, max_length=1000)

    def to_record(self) -> StepRecord:
        return StepRecord(
            step_type=self.step_type,
            step_name=self.step_name or STEP_NAMES[self.step_type],
            completed_at=self.completed_at,
            comment=self.comment,
        )


class FeedbackCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    program: str = Field(..., min_length=1, max_length=120)
    application_type: ApplicationType = "inland"
    country: str | None = Field(default=None, max_length=120)
    user_id: str = Field(..., min_length=1, max_length=128)
    steps: list[StepPayload] = Field(default_factory=list)


class FeedbackUpdateRequest(BaseModel):
    """
    Partial update; only fields present in the body are written.
    """

    title: str | None = Field(default=None, min_length=1, max_length=255)
    program: str | None = Field(default=None, min_length=1, max_length=120)
    application_type: ApplicationType | None = None
    country: str | None = Field(default=None, max_length=120)
    steps: list[StepPayload] | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def _reject_null_for_required_columns(self) -> FeedbackUpdateRequest:
        cleared = [
            name
            for name in NON_NULLABLE_UPDATE_FIELDS
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")
        return self

    def to_changes(self) -> dict[str, object]:
        changes: dict[str, object] = {}
        for name in self.model_fields_set:
            if name == "steps":
                changes[name] = [step.to_record() for step in self.steps or []]
            else:
                changes[name] = getattr(self, name)
        return changes


class StepResponse(BaseModel):
    step_type: StepType
    step_name: str
    completed_at: date | None
    comment: str | None

    model_config = {"from_attributes": True}


class FeedbackResponse(BaseModel):
    id: uuid.UUID
    title: str
    program: str
    application_type: str
    country: str | None
    user_id: str
    steps: list[StepResponse]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class FeedbackListResponse(BaseModel):
    items: list[FeedbackResponse]
    has_more: bool
    limit: int = Field(..., ge=1)
    offset: int = Field(..., ge=0)

    model_config = {"from_attributes": True}
