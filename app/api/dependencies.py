"""
app/api/dependencies.py

Shared FastAPI dependencies for uploads, the record store and services.
"""

from __future__ import annotations

from fastapi import Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.repositories.feedback_repository import FeedbackRepository
from app.services.csv_import_service import CSVImportService, build_csv_import_service
from app.services.feedback_service import FeedbackService
from app.services.stats_service import FeedbackStatsService, get_stats_service
from db.session import get_db

CSV_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
}


def get_csv_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    is_csv_filename = filename.endswith(".csv")
    is_csv_content_type = content_type in CSV_CONTENT_TYPES

    if not is_csv_filename and not is_csv_content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File must be a CSV.",
        )

    return file


def get_feedback_repository(db: Session = Depends(get_db)) -> FeedbackRepository:
    return FeedbackRepository(db)


def get_csv_import_service(
    repository: FeedbackRepository = Depends(get_feedback_repository),
) -> CSVImportService:
    """
    Build a per-request import service bound to the request's session.
    """

    return build_csv_import_service(store=repository)


def get_feedback_service(
    repository: FeedbackRepository = Depends(get_feedback_repository),
    stats_service: FeedbackStatsService = Depends(get_stats_service),
) -> FeedbackService:
    return FeedbackService(repository=repository, stats_service=stats_service)
