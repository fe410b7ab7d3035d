"""
app/normalization/field_normalizers.py

Cell-level normalizers for PR tracker spreadsheet values.

Every function here is pure and fails soft: bad input yields None or a
default, never an exception.
"""

from __future__ import annotations

import re
from datetime import date, datetime

DEFAULT_STATUS_TOKENS: tuple[str, ...] = (
    "Passed",
    "Completed",
    "In Process",
    "Not Started",
    "upfront",
)

COMPLETION_MARKERS: tuple[str, ...] = ("passed", "completed", "upfront")

FALLBACK_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%Y.%m.%d",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%d %b %Y",
    "%d %B %Y",
)

DEFAULT_MIN_YEAR = 2020
DEFAULT_MAX_YEAR = 2030

DEFAULT_PROGRAM = "Express Entry - General"

PROGRAM_BY_STREAM: dict[str, str] = {
    "CEC": "Express Entry - CEC (Canadian Experience Class)",
    "CEC Edu": "Express Entry - CEC (Canadian Experience Class)",
    "Healthcare": DEFAULT_PROGRAM,
    "Education": DEFAULT_PROGRAM,
    "French": DEFAULT_PROGRAM,
    "EE-PNP": "Express Entry - PNP (Provincial Nominee Program)",
}

INLAND = "inland"
OUTLAND = "outland"

_YMD_PATTERN = re.compile(r"(\d{4})/(\d{1,2})/(\d{1,2})")
_PARENTHETICAL_PATTERN = re.compile(r"\(([^)]+)\)")


class DateNormalizer:
    """
    Recovers calendar dates from free-text tracker cells.

    Cells look like ``2024/03/15``, ``2024/3/5 (estimated)``,
    ``2024/03/15\\nwaiting``, ``Passed`` or spreadsheet junk such as
    ``-45123``. Only the first line before any parenthetical is considered.
    """

    def __init__(
        self,
        *,
        status_tokens: tuple[str, ...] = DEFAULT_STATUS_TOKENS,
        min_year: int | None = DEFAULT_MIN_YEAR,
        max_year: int | None = DEFAULT_MAX_YEAR,
    ) -> None:
        self._status_tokens = frozenset(status_tokens)
        self._min_year = min_year
        self._max_year = max_year

    def parse(self, raw: str | None) -> date | None:
        if raw is None or not raw.strip():
            return None
        if raw.startswith("-"):
            return None

        cleaned = raw.strip().split("\n")[0].split("(")[0].strip()
        if not cleaned or cleaned in self._status_tokens:
            return None

        match = _YMD_PATTERN.search(cleaned)
        if match:
            year, month, day = (int(part) for part in match.groups())
            try:
                parsed = date(year, month, day)
            except ValueError:
                return None
        else:
            parsed = self._parse_fallback(cleaned)

        if parsed is None or not self._within_bounds(parsed):
            return None
        return parsed

    def _within_bounds(self, value: date) -> bool:
        if self._min_year is not None and value.year < self._min_year:
            return False
        if self._max_year is not None and value.year > self._max_year:
            return False
        return True

    @staticmethod
    def _parse_fallback(text: str) -> date | None:
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass

        for fmt in FALLBACK_DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        return None


_default_date_normalizer = DateNormalizer()


def parse_date(raw: str | None) -> date | None:
    """
    Parse a tracker cell with the default status tokens and year bounds.
    """

    return _default_date_normalizer.parse(raw)


def is_step_completed(raw: str | None) -> bool:
    """
    True when the cell marks the step as done without necessarily giving a date.
    """

    if not raw:
        return False
    lowered = raw.lower()
    return any(marker in lowered for marker in COMPLETION_MARKERS)


def extract_comment(raw: str | None) -> str | None:
    """
    Pull a free-text note out of a cell.

    Text after the first line wins; otherwise the first parenthetical.
    """

    if not raw:
        return None

    segments = raw.split("\n")
    if len(segments) > 1:
        comment = " ".join(segments[1:]).strip()
        return comment or None

    match = _PARENTHETICAL_PATTERN.search(raw)
    if match:
        return match.group(1)
    return None


def map_program(stream: str | None) -> str:
    return PROGRAM_BY_STREAM.get((stream or "").strip(), DEFAULT_PROGRAM)


def classify_application_type(complexity: str | None) -> str:
    if complexity and OUTLAND in complexity.lower():
        return OUTLAND
    return INLAND
