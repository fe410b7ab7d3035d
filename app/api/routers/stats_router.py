"""
app/api/routers/stats_router.py

Dashboard statistics endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.dependencies import get_feedback_repository
from app.repositories.feedback_repository import FeedbackRepository
from app.schemas.stats import (
    DashboardStatsResponse,
    ProcessingTimeResponse,
    StatusDistributionResponse,
)
from app.services.stats_service import FeedbackStatsService, get_stats_service

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=DashboardStatsResponse)
def get_dashboard_stats(
    repository: FeedbackRepository = Depends(get_feedback_repository),
    stats_service: FeedbackStatsService = Depends(get_stats_service),
) -> DashboardStatsResponse:
    stats = stats_service.get_stats(repository.list_active_snapshots)
    return DashboardStatsResponse(
        total_feedbacks=stats.total_feedbacks,
        this_month_feedbacks=stats.this_month_feedbacks,
        feedback_growth=stats.feedback_growth,
        average_processing_months=stats.average_processing_months,
        average_processing_days=stats.average_processing_days,
        success_rate=stats.success_rate,
    )


@router.get("/processing-time", response_model=list[ProcessingTimeResponse])
def get_processing_time_by_program(
    repository: FeedbackRepository = Depends(get_feedback_repository),
    stats_service: FeedbackStatsService = Depends(get_stats_service),
) -> list[ProcessingTimeResponse]:
    """
    Average ITA-to-completion time per program, top programs by volume.
    """

    points = stats_service.get_processing_time_by_program(repository.list_active_snapshots)
    return [
        ProcessingTimeResponse(
            program=point.program,
            average_months=point.average_months,
            count=point.count,
        )
        for point in points
    ]


@router.get("/status-distribution", response_model=list[StatusDistributionResponse])
def get_status_distribution(
    repository: FeedbackRepository = Depends(get_feedback_repository),
    stats_service: FeedbackStatsService = Depends(get_stats_service),
) -> list[StatusDistributionResponse]:
    points = stats_service.get_status_distribution(repository.list_active_snapshots)
    return [
        StatusDistributionResponse(
            status=point.status,
            count=point.count,
            percentage=point.percentage,
        )
        for point in points
    ]
