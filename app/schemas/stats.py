"""
app/schemas/stats.py

Response schemas for dashboard stats endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class DashboardStatsResponse(BaseModel):
    total_feedbacks: int = Field(..., ge=0)
    this_month_feedbacks: int = Field(..., ge=0)
    feedback_growth: float
    average_processing_months: float
    average_processing_days: int
    success_rate: float = Field(..., ge=0, le=100)


class ProcessingTimeResponse(BaseModel):
    program: str
    average_months: float
    count: int = Field(..., ge=1)


class StatusDistributionResponse(BaseModel):
    status: str
    count: int = Field(..., ge=1)
    percentage: int = Field(..., ge=1, le=100)
