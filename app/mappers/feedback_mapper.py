"""
app/mappers/feedback_mapper.py

Maps one parsed tracker row into an ImportedRecord.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.domain.feedback import ImportedRecord, RawRow, StepRecord, StepType
from app.normalization.field_normalizers import (
    DateNormalizer,
    classify_application_type,
    extract_comment,
    is_step_completed,
    map_program,
)
from app.parsing.tracker_csv import (
    COMPLEXITY_COLUMN,
    COUNTRY_COLUMN,
    IDENTITY_COLUMN,
    PROGRAM_COLUMN,
)

DEFAULT_COUNTRY = "Canada"
DEFAULT_OWNER_REF = "csv-import-system-user"


@dataclass(frozen=True)
class StepColumn:
    """
    One tracker column holding the date (or status) of a step.
    """

    column: str
    step_type: StepType


# Column order is the order steps appear in the imported record.
PRIMARY_STEP_COLUMNS: tuple[StepColumn, ...] = (
    StepColumn("ITA", StepType.ITA),
    StepColumn("AOR", StepType.AOR),
    StepColumn("Bio Req", StepType.BIL),
    StepColumn("Medical", StepType.MEDICAL_PASSED),
    StepColumn("Eligibility Check", StepType.BACKGROUND_CHECK),
    StepColumn("BG Check", StepType.BACKGROUND_CHECK),
    StepColumn("Final Decision", StepType.PPR),
    StepColumn("P1", StepType.COPR),
    StepColumn("P2", StepType.ECOPR),
    StepColumn("eCOPR", StepType.LANDING),
)

STANDALONE_STEP_COLUMNS: tuple[StepColumn, ...] = (
    StepColumn("ITA", StepType.ITA),
    StepColumn("AOR", StepType.AOR),
    StepColumn("Bio Req", StepType.BIOMETRICS_PASSED),
    StepColumn("Medical", StepType.MEDICAL_PASSED),
    StepColumn("Eligibility Check", StepType.BIL),
    StepColumn("BG Check", StepType.BACKGROUND_CHECK),
    StepColumn("Final Decision", StepType.PPR),
    StepColumn("P1", StepType.COPR),
    StepColumn("P2", StepType.ECOPR),
    StepColumn("eCOPR", StepType.LANDING),
)

STEP_COLUMN_TABLES: dict[str, tuple[StepColumn, ...]] = {
    "primary": PRIMARY_STEP_COLUMNS,
    "standalone": STANDALONE_STEP_COLUMNS,
}


def get_step_columns(name: str) -> tuple[StepColumn, ...]:
    """
    Resolve a step column table from its configured name.
    """

    key = name.strip().lower()
    if key not in STEP_COLUMN_TABLES:
        raise ValueError(
            f"Unknown step mapping {name!r}. Allowed values: {sorted(STEP_COLUMN_TABLES)}."
        )
    return STEP_COLUMN_TABLES[key]


class FeedbackRowTransformer:
    """
    Builds ImportedRecord objects from RawRow mappings.

    Pure: absent columns simply contribute no step, and unparseable values
    fall back to defaults instead of raising.
    """

    def __init__(
        self,
        *,
        owner_ref: str = DEFAULT_OWNER_REF,
        default_country: str = DEFAULT_COUNTRY,
        step_columns: tuple[StepColumn, ...] = PRIMARY_STEP_COLUMNS,
        date_normalizer: DateNormalizer | None = None,
    ) -> None:
        self._owner_ref = owner_ref
        self._default_country = default_country
        self._step_columns = step_columns
        self._date_normalizer = date_normalizer or DateNormalizer()

    def transform(self, row: RawRow) -> ImportedRecord:
        country = (row.get(COUNTRY_COLUMN) or "").strip()
        return ImportedRecord(
            title=(row.get(IDENTITY_COLUMN) or "").strip(),
            program=map_program(row.get(PROGRAM_COLUMN)),
            application_type=classify_application_type(row.get(COMPLEXITY_COLUMN)),
            country=country or self._default_country,
            owner_ref=self._owner_ref,
            steps=self.extract_steps(row),
            is_active=True,
        )

    def extract_steps(self, row: RawRow) -> tuple[StepRecord, ...]:
        steps: list[StepRecord] = []
        for step_column in self._step_columns:
            value = row.get(step_column.column)
            if not value:
                continue

            completed_at = self._date_normalizer.parse(value)
            if completed_at is None and not is_step_completed(value):
                continue

            steps.append(
                StepRecord.for_type(
                    step_column.step_type,
                    completed_at=completed_at,
                    comment=extract_comment(value),
                )
            )
        return tuple(steps)
