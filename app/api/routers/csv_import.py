"""
app/api/routers/csv_import.py

CSV import HTTP endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status

from app.api.dependencies import get_csv_import_service, get_csv_upload
from app.schemas.csv_import import CSVImportResponse, ImportProgressResponse
from app.services.csv_import_service import CSVImportService
from app.services.stats_service import FeedbackStatsService, get_stats_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["import"])


@router.post("/import-csv", response_model=CSVImportResponse)
def import_csv(
    file: UploadFile = Depends(get_csv_upload),
    import_service: CSVImportService = Depends(get_csv_import_service),
    stats_service: FeedbackStatsService = Depends(get_stats_service),
) -> CSVImportResponse:
    """
    Import one PR tracker export into feedback entries.

    Row-level problems and unreadable layouts are reported in the body
    with ``success=false``; only an unusable upload is rejected.
    """

    try:
        content = file.file.read().decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV must be UTF-8 encoded.",
        ) from exc
    finally:
        file.file.close()

    result = import_service.import_data(content)
    if result.imported_ids:
        stats_service.invalidate_chart_caches()

    report = import_service.generate_report(result)
    logger.info("CSV upload imported filename=%r success=%s", file.filename, result.success)

    progress = result.progress
    return CSVImportResponse(
        success=result.success,
        progress=ImportProgressResponse(
            total=progress.total,
            processed=progress.processed,
            successful=progress.successful,
            failed=progress.failed,
            errors=list(progress.errors),
            warnings=list(progress.warnings),
        ),
        imported_ids=list(result.imported_ids),
        report=report,
    )
