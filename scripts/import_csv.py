"""
Import a PR tracker CSV export from the command line.

With --dry-run the file is parsed and transformed only, and a summary of the
program and step distribution is printed instead of writing records.
"""

from __future__ import annotations

import argparse
import json
import logging
from collections import Counter
from pathlib import Path

from app.config import get_csv_import_settings
from app.mappers.feedback_mapper import FeedbackRowTransformer, get_step_columns
from app.normalization.field_normalizers import DateNormalizer
from app.parsing.tracker_csv import CSVImportStructureError, TrackerCSVParser, get_header_strategy

SAMPLE_SIZE = 5


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import a PR tracker CSV export.")
    parser.add_argument("path", type=Path, help="Path to the exported CSV file.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and transform only; print a distribution summary.",
    )
    parser.add_argument(
        "--header-strategy",
        choices=("sentinel", "spliced"),
        default=None,
        help="Override CSV_IMPORT_HEADER_STRATEGY.",
    )
    parser.add_argument(
        "--step-mapping",
        choices=("primary", "standalone"),
        default=None,
        help="Override CSV_IMPORT_STEP_MAPPING.",
    )
    return parser


def read_export(path: Path) -> str:
    """
    Read an export as UTF-8 text, optionally with a byte order mark.

    Raises ValueError with a one-line message when the file is unusable.
    """

    try:
        return path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as exc:
        raise ValueError(f"File not found: {path}") from exc
    except UnicodeDecodeError as exc:
        raise ValueError(f"{path} is not UTF-8 encoded.") from exc
    except OSError as exc:
        raise ValueError(f"Could not read {path}: {exc.strerror or exc}") from exc


def analyze(content: str, *, header_strategy: str, step_mapping: str) -> dict[str, object]:
    """
    Summarize what an import would create without touching the database.
    """

    settings = get_csv_import_settings()
    table = TrackerCSVParser(header_strategy=get_header_strategy(header_strategy)).parse_table(content)
    rows = table.rows
    transformer = FeedbackRowTransformer(
        owner_ref=settings.owner_ref,
        default_country=settings.default_country,
        step_columns=get_step_columns(step_mapping),
        date_normalizer=DateNormalizer(min_year=settings.min_year, max_year=settings.max_year),
    )
    records = [transformer.transform(row) for row in rows]

    programs = Counter(record.program for record in records)
    steps = Counter(step.step_type.value for record in records for step in record.steps)
    return {
        "records": len(records),
        "columns": list(rows[0].keys()) if rows else [],
        "programs": dict(programs.most_common()),
        "steps": dict(steps.most_common()),
        "warnings": list(table.warnings),
        "sample": [
            {
                "title": record.title,
                "program": record.program,
                "application_type": record.application_type,
                "steps": [
                    {
                        "step_type": step.step_type.value,
                        "completed_at": step.completed_at.isoformat() if step.completed_at else None,
                    }
                    for step in record.steps
                ],
            }
            for record in records[:SAMPLE_SIZE]
        ],
    }


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    settings = get_csv_import_settings()
    header_strategy = args.header_strategy or settings.header_strategy
    step_mapping = args.step_mapping or settings.step_mapping
    try:
        content = read_export(args.path)
    except ValueError as exc:
        print(f"Import failed: {exc}")
        return 1

    if args.dry_run:
        try:
            summary = analyze(content, header_strategy=header_strategy, step_mapping=step_mapping)
        except CSVImportStructureError as exc:
            print(f"Import failed: {exc}")
            return 1
        print(json.dumps(summary, indent=2))
        return 0

    from app.repositories.feedback_repository import FeedbackRepository
    from app.services.csv_import_service import build_csv_import_service
    from db.session import session_scope

    with session_scope() as db:
        service = build_csv_import_service(
            store=FeedbackRepository(db),
            settings=settings,
            header_strategy=header_strategy,
            step_mapping=step_mapping,
        )
        result = service.import_data(content)

    print(service.generate_report(result))
    return 0 if result.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
