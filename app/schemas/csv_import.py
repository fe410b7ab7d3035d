"""
app/schemas/csv_import.py

Response schemas for CSV import endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ImportProgressResponse(BaseModel):
    """
    API response model for the counters of one import run.
    """

    total: int = Field(..., ge=0)
    processed: int = Field(..., ge=0)
    successful: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class CSVImportResponse(BaseModel):
    """
    API response model for a completed CSV import.
    """

    success: bool
    progress: ImportProgressResponse
    imported_ids: list[str] = Field(default_factory=list)
    report: str
