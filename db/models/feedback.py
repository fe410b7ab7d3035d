"""
db/models/feedback.py

One applicant's PR tracker entry with its ordered application steps.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Boolean, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class Feedback(Base, TimestampMixin):
    __tablename__ = "feedbacks"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display title; the tracker username for imported rows",
    )
    program: Mapped[str] = mapped_column(String(120), nullable=False)
    application_type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="inland",
        comment="inland, outland",
    )
    country: Mapped[str | None] = mapped_column(String(120), nullable=True)
    user_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        comment="Owner reference; a fixed system id for imported rows",
    )
    steps: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        comment="Ordered [{stepType, stepName, completedAt, comment}]",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("ix_feedbacks_program", "program"),
        Index("ix_feedbacks_country", "country"),
        Index("ix_feedbacks_user_id", "user_id"),
        Index("ix_feedbacks_is_active", "is_active"),
        Index("ix_feedbacks_active_created_at", "is_active", "created_at"),
    )
