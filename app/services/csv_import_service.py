"""
app/services/csv_import_service.py

Batch import of PR tracker spreadsheet exports.

Rows are parsed, transformed and written one at a time through a
RecordStore. Only structural problems with the file abort a run; a row with
missing fields is skipped with a warning, and a row the store rejects is
counted as failed while the run carries on. Writes are not rolled back, so
a partially failed import leaves its successful rows in place. Running the
same file twice creates every record twice.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from app.config import CSVImportSettings, get_csv_import_settings
from app.domain.feedback import ImportProgress, ImportResult, RawRow
from app.mappers.feedback_mapper import FeedbackRowTransformer, get_step_columns
from app.normalization.field_normalizers import DateNormalizer
from app.parsing.tracker_csv import (
    IDENTITY_COLUMN,
    PROGRAM_COLUMN,
    TrackerCSVParser,
    get_header_strategy,
)
from app.repositories.feedback_repository import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_DELAY_SECONDS = 0.1


class CSVImportService:
    """
    Coordinates parsing, row transformation and per-row persistence.
    """

    def __init__(
        self,
        *,
        store: RecordStore,
        parser: TrackerCSVParser | None = None,
        transformer: FeedbackRowTransformer | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS,
        log_row_results: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._store = store
        self._parser = parser or TrackerCSVParser()
        self._transformer = transformer or FeedbackRowTransformer()
        self._batch_size = max(1, batch_size)
        self._batch_delay_seconds = max(0.0, batch_delay_seconds)
        self._log_row_results = log_row_results
        self._sleep = sleep

    def import_data(self, content: str) -> ImportResult:
        """
        Import every row of one export file.

        Always returns a complete ImportResult. Anything raised while parsing
        (structural errors, a failing header strategy) becomes a single
        ``Import failed`` entry in ``progress.errors`` with ``success=False``.
        """

        progress = ImportProgress()
        imported_ids: list[str] = []

        try:
            table = self._parser.parse_table(content)
        except Exception as exc:  # noqa: BLE001
            message = f"Import failed: {exc}"
            progress.errors.append(message)
            logger.error("CSV import aborted: %s", exc)
            return ImportResult(success=False, progress=progress, imported_ids=imported_ids)

        rows = table.rows
        progress.total = len(rows)
        for warning in table.warnings:
            progress.warnings.append(warning)
            logger.warning("CSV import degraded parse: %s", warning)
        logger.info("CSV import started total=%s batch_size=%s", progress.total, self._batch_size)

        for start in range(0, len(rows), self._batch_size):
            if start > 0 and self._batch_delay_seconds > 0:
                self._sleep(self._batch_delay_seconds)

            for row in rows[start : start + self._batch_size]:
                self._import_row(row=row, progress=progress, imported_ids=imported_ids)

        logger.info(
            "CSV import finished total=%s processed=%s successful=%s failed=%s skipped=%s",
            progress.total,
            progress.processed,
            progress.successful,
            progress.failed,
            progress.skipped,
        )
        return ImportResult(
            success=progress.failed == 0,
            progress=progress,
            imported_ids=imported_ids,
        )

    def generate_report(self, result: ImportResult) -> str:
        return generate_report(result)

    def _import_row(
        self,
        *,
        row: RawRow,
        progress: ImportProgress,
        imported_ids: list[str],
    ) -> None:
        progress.processed += 1
        row_number = progress.processed
        username = (row.get(IDENTITY_COLUMN) or "").strip()

        if not username or not (row.get(PROGRAM_COLUMN) or "").strip():
            warning = f"Row {row_number}: Missing required fields ({IDENTITY_COLUMN} or {PROGRAM_COLUMN})"
            progress.warnings.append(warning)
            logger.warning("CSV import skipped row=%s reason=missing_required_fields", row_number)
            return

        try:
            record = self._transformer.transform(row)
            record_id = self._store.create_record(record)
        except Exception as exc:  # noqa: BLE001
            progress.failed += 1
            error = f"Row {row_number} ({username}): {exc}"
            progress.errors.append(error)
            logger.error("CSV import row failed row=%s username=%r: %s", row_number, username, exc)
            return

        progress.successful += 1
        imported_ids.append(record_id)
        if self._log_row_results:
            logger.info("CSV import row imported row=%s username=%r id=%s", row_number, username, record_id)


def generate_report(result: ImportResult) -> str:
    """
    Render an ImportResult as the plain-text import report.
    """

    progress = result.progress
    success_rate = (progress.successful / progress.total * 100) if progress.total else 0.0

    lines = [
        "",
        "=== CSV Import Report ===",
        f"Total records: {progress.total}",
        f"Processed: {progress.processed}",
        f"Successful: {progress.successful}",
        f"Failed: {progress.failed}",
        f"Success rate: {success_rate:.1f}%",
    ]

    if progress.warnings:
        lines.append("")
        lines.append(f"Warnings ({len(progress.warnings)}):")
        lines.extend(f"- {warning}" for warning in progress.warnings)

    if progress.errors:
        lines.append("")
        lines.append(f"Errors ({len(progress.errors)}):")
        lines.extend(f"- {error}" for error in progress.errors)

    lines.append("")
    lines.append("Imported feedback IDs:")
    lines.extend(f"- {record_id}" for record_id in result.imported_ids)

    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_csv_import_service(
    *,
    store: RecordStore,
    settings: CSVImportSettings | None = None,
    header_strategy: str | None = None,
    step_mapping: str | None = None,
) -> CSVImportService:
    """
    Build an import service wired from env-driven settings.

    ``header_strategy`` and ``step_mapping`` override the configured names.
    """

    settings = settings or get_csv_import_settings()
    parser = TrackerCSVParser(
        header_strategy=get_header_strategy(header_strategy or settings.header_strategy),
    )
    transformer = FeedbackRowTransformer(
        owner_ref=settings.owner_ref,
        default_country=settings.default_country,
        step_columns=get_step_columns(step_mapping or settings.step_mapping),
        date_normalizer=DateNormalizer(
            min_year=settings.min_year,
            max_year=settings.max_year,
        ),
    )
    return CSVImportService(
        store=store,
        parser=parser,
        transformer=transformer,
        batch_size=settings.batch_size,
        batch_delay_seconds=settings.batch_delay_seconds,
        log_row_results=settings.log_row_results,
    )
