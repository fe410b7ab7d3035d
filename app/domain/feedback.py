"""
app/domain/feedback.py

Domain models for the PR tracker import flow and stored feedback entries.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

RawRow = dict[str, str]


class StepType(str, Enum):
    """
    Closed set of application steps tracked per feedback entry.
    """

    ITA = "ITA"
    AOR = "AOR"
    BIL = "BIL"
    BIOMETRICS_PASSED = "BIOMETRICS_PASSED"
    MEDICAL_PASSED = "MEDICAL_PASSED"
    BACKGROUND_CHECK = "BACKGROUND_CHECK"
    PPR = "PPR"
    COPR = "COPR"
    ECOPR = "ECOPR"
    LANDING = "LANDING"


STEP_NAMES: dict[StepType, str] = {
    StepType.ITA: "Invitation to Apply",
    StepType.AOR: "Acknowledgment of Receipt",
    StepType.BIL: "Biometric Instruction Letter",
    StepType.BIOMETRICS_PASSED: "Biometrics Completed",
    StepType.MEDICAL_PASSED: "Medical Examination",
    StepType.BACKGROUND_CHECK: "Background Check",
    StepType.PPR: "Passport Request",
    StepType.COPR: "Confirmation of Permanent Residence",
    StepType.ECOPR: "Electronic COPR",
    StepType.LANDING: "Landing/eCOPR",
}

COMPLETION_STEP_TYPES: frozenset[StepType] = frozenset(
    {StepType.COPR, StepType.ECOPR, StepType.LANDING}
)


@dataclass(frozen=True)
class StepRecord:
    """
    One reached step of an application.

    ``completed_at`` may be None when the source only said the step passed.
    """

    step_type: StepType
    step_name: str
    completed_at: date | None = None
    comment: str | None = None

    @classmethod
    def for_type(
        cls,
        step_type: StepType,
        *,
        completed_at: date | None = None,
        comment: str | None = None,
    ) -> StepRecord:
        return cls(
            step_type=step_type,
            step_name=STEP_NAMES[step_type],
            completed_at=completed_at,
            comment=comment,
        )


@dataclass(frozen=True)
class ImportedRecord:
    """
    Feedback entry prepared for persistence by the importer.
    """

    title: str
    program: str
    application_type: str
    country: str
    owner_ref: str
    steps: tuple[StepRecord, ...] = ()
    is_active: bool = True


@dataclass
class ImportProgress:
    """
    Mutable per-run accumulator. Never shared across runs.
    """

    total: int = 0
    processed: int = 0
    successful: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return self.processed - self.successful - self.failed


@dataclass(frozen=True)
class ImportResult:
    """
    End-of-run import outcome.
    """

    success: bool
    progress: ImportProgress
    imported_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FeedbackSnapshot:
    """
    Read-side view of a stored feedback entry used for dashboard stats.
    """

    program: str
    steps: tuple[StepRecord, ...]
    created_at: datetime


@dataclass(frozen=True)
class FeedbackEntry:
    """
    Stored feedback entry as returned by the CRUD endpoints.
    """

    id: uuid.UUID
    title: str
    program: str
    application_type: str
    country: str | None
    user_id: str
    steps: tuple[StepRecord, ...]
    is_active: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class FeedbackPage:
    items: list[FeedbackEntry]
    has_more: bool
    limit: int
    offset: int
