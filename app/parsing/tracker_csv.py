"""
app/parsing/tracker_csv.py

Tokenizer and header location for PR tracker spreadsheet exports.

The exports start with a few preamble lines (sheet title, notes) before the
real header row, and one header cell ("ADR Received") carries an embedded
newline. Two header strategies exist because the known exports disagree on
how that header is laid out; pick one through configuration.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from app.domain.feedback import RawRow

IDENTITY_COLUMN = "Username"
PROGRAM_COLUMN = "STREAM"
COMPLEXITY_COLUMN = "Complexity"
COUNTRY_COLUMN = "Country"

DEFAULT_SENTINEL = f"{IDENTITY_COLUMN},{PROGRAM_COLUMN}"
MIN_PHYSICAL_LINES = 4
# Longest quoted multi-line cell accepted, counted in physical lines.
MAX_RECORD_LINES = 3


class CSVImportStructureError(ValueError):
    """
    Raised when the file cannot be turned into rows at all.
    """


class MalformedInputError(CSVImportStructureError):
    """
    Raised when the content is too short to hold a header.
    """


class HeaderNotFoundError(CSVImportStructureError):
    """
    Raised when no header row can be located.
    """


def parse_csv_line(line: str) -> list[str]:
    """
    Split one logical line on commas outside double quotes.

    Quote characters toggle the quoted state and are dropped. Fields are
    stripped. Doubled quotes are not treated as escapes.
    """

    fields: list[str] = []
    current: list[str] = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    fields.append("".join(current).strip())
    return fields


@dataclass(frozen=True)
class LogicalRecord:
    """
    One logical record and the 0-based index of its first physical line.

    ``unbalanced`` marks a line whose opening quote never closed within
    ``max_record_lines``; it is kept on its own so later rows survive.
    """

    text: str
    first_line: int
    unbalanced: bool = False


_QUOTES_CLOSED = "closed"
_QUOTES_OPEN_CELL = "open_cell"
_QUOTES_STRAY = "stray"


def _quote_state(text: str) -> str:
    """
    Classify where a quote scan over ``text`` ends.

    Only a quote at the start of a field opens a cell that may continue onto
    the next line; a quote left open mid-field is stray.
    """

    in_quotes = False
    opened_at_field_start = False
    field_blank = True

    for char in text:
        if char == '"':
            if not in_quotes:
                opened_at_field_start = field_blank
            in_quotes = not in_quotes
            field_blank = False
        elif char == "," and not in_quotes:
            field_blank = True
        elif not char.isspace():
            field_blank = False

    if not in_quotes:
        return _QUOTES_CLOSED
    return _QUOTES_OPEN_CELL if opened_at_field_start else _QUOTES_STRAY


def iter_logical_records(
    lines: Sequence[str],
    *,
    max_record_lines: int = MAX_RECORD_LINES,
) -> Iterator[LogicalRecord]:
    """
    Join physical lines into logical records.

    A record continues onto the next physical line while a quoted cell is
    open (a newline inside the cell), for at most ``max_record_lines``
    lines. A quote that never closes is stray: its line is emitted alone,
    flagged ``unbalanced``, and scanning resumes on the following line.
    """

    limit = max(1, max_record_lines)
    index = 0
    while index < len(lines):
        end = index
        state = _quote_state(lines[index])
        while state == _QUOTES_OPEN_CELL and end + 1 < len(lines) and end - index + 1 < limit:
            end += 1
            state = _quote_state("\n".join(lines[index : end + 1]))

        if state != _QUOTES_CLOSED:
            yield LogicalRecord(text=lines[index], first_line=index, unbalanced=True)
            index += 1
            continue

        yield LogicalRecord(text="\n".join(lines[index : end + 1]), first_line=index)
        index = end + 1


def group_logical_records(
    lines: Sequence[str],
    *,
    max_record_lines: int = MAX_RECORD_LINES,
) -> list[str]:
    return [
        record.text
        for record in iter_logical_records(lines, max_record_lines=max_record_lines)
    ]


class HeaderStrategy(Protocol):
    def locate(self, lines: Sequence[str]) -> tuple[list[str], list[str]]:
        """
        Return (header fields, physical data lines following the header).
        """


class SentinelHeaderStrategy:
    """
    Header is the first line starting with the sentinel prefix.

    A quoted header cell continuing onto the next physical line is kept as
    one cell with the newline inside.
    """

    def __init__(self, *, sentinel: str = DEFAULT_SENTINEL) -> None:
        self._sentinel = sentinel

    def locate(self, lines: Sequence[str]) -> tuple[list[str], list[str]]:
        header_index = next(
            (index for index, line in enumerate(lines) if line.startswith(self._sentinel)),
            None,
        )
        if header_index is None:
            raise HeaderNotFoundError("Could not find valid CSV headers.")

        header_record = group_logical_records(lines[header_index:])[0]
        consumed = header_record.count("\n") + 1
        headers = parse_csv_line(header_record)
        return headers, list(lines[header_index + consumed :])


class SplicedHeaderStrategy:
    """
    Header spans two fixed physical lines that are spliced with a space.

    ``Username,...,AOR,"ADR`` + ``Received",AOR to BIL,...`` yields a
    single ``ADR Received`` column. Data starts right after the second line.
    """

    def __init__(
        self,
        *,
        header_line_index: int = 3,
        sentinel: str | None = DEFAULT_SENTINEL,
    ) -> None:
        self._header_line_index = max(0, header_line_index)
        self._sentinel = sentinel

    def locate(self, lines: Sequence[str]) -> tuple[list[str], list[str]]:
        first_index = self._header_line_index
        if len(lines) < first_index + 2:
            raise MalformedInputError(
                f"Expected a two-line header at line {first_index + 1}; file has {len(lines)} lines."
            )

        first_line = lines[first_index]
        if self._sentinel and not first_line.startswith(self._sentinel):
            raise HeaderNotFoundError(
                f"Line {first_index + 1} does not start with {self._sentinel!r}."
            )

        combined = f"{first_line.rstrip()} {lines[first_index + 1].lstrip()}"
        return parse_csv_line(combined), list(lines[first_index + 2 :])


HEADER_STRATEGIES: dict[str, Callable[[], HeaderStrategy]] = {
    "sentinel": SentinelHeaderStrategy,
    "spliced": SplicedHeaderStrategy,
}


def get_header_strategy(name: str) -> HeaderStrategy:
    """
    Build a header strategy from its configured name.
    """

    key = name.strip().lower()
    if key not in HEADER_STRATEGIES:
        raise ValueError(
            f"Unknown header strategy {name!r}. Allowed values: {sorted(HEADER_STRATEGIES)}."
        )
    return HEADER_STRATEGIES[key]()


@dataclass(frozen=True)
class ParsedTable:
    rows: list[RawRow]
    warnings: list[str] = field(default_factory=list)


class TrackerCSVParser:
    """
    Turns raw export text into materialized RawRow mappings.
    """

    def __init__(
        self,
        *,
        header_strategy: HeaderStrategy | None = None,
        identity_column: str = IDENTITY_COLUMN,
        skip_blank_identity: bool = True,
        max_record_lines: int = MAX_RECORD_LINES,
    ) -> None:
        self._header_strategy = header_strategy or SentinelHeaderStrategy()
        self._identity_column = identity_column
        self._skip_blank_identity = skip_blank_identity
        self._max_record_lines = max_record_lines

    def parse(self, content: str) -> list[RawRow]:
        return self.parse_table(content).rows

    def parse_table(self, content: str) -> ParsedTable:
        """
        Parse rows and collect warnings about lines that were read in a
        degraded way (a stray quote that never closed).
        """

        lines = [line.rstrip("\r") for line in content.strip().split("\n")]
        if len(lines) < MIN_PHYSICAL_LINES:
            raise MalformedInputError("CSV file appears to be empty or malformed.")

        headers, data_lines = self._header_strategy.locate(lines)
        # Data lines are always the tail of the file.
        line_offset = len(lines) - len(data_lines)

        rows: list[RawRow] = []
        warnings: list[str] = []
        for record in iter_logical_records(data_lines, max_record_lines=self._max_record_lines):
            text = record.text.strip()
            if not text:
                continue

            values = parse_csv_line(text)
            row: RawRow = {
                header: values[index] if index < len(values) else ""
                for index, header in enumerate(headers)
            }
            if self._skip_blank_identity and not row.get(self._identity_column, "").strip():
                continue

            if record.unbalanced:
                identity = row.get(self._identity_column, "").strip() or "?"
                warnings.append(
                    f"Line {line_offset + record.first_line + 1} ({identity}): "
                    "Unbalanced quote; read as a single line"
                )
            rows.append(row)

        return ParsedTable(rows=rows, warnings=warnings)
