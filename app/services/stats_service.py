"""
app/services/stats_service.py

Dashboard aggregates over stored feedback entries.

Processing time is measured from the dated ITA step to the latest dated
completion step (COPR, eCOPR or landing). Chart aggregates are cached and
must be invalidated whenever new entries are written.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache

from app.config import get_cache_settings
from app.domain.feedback import COMPLETION_STEP_TYPES, FeedbackSnapshot, StepRecord, StepType
from app.services.cache_service import TTLCache

PROCESSING_TIME_CACHE_KEY = "processing-time-by-program"
STATUS_DISTRIBUTION_CACHE_KEY = "status-distribution"

NOT_STARTED = "Not Started"
MAX_CHART_PROGRAMS = 8
MAX_PROGRAM_LABEL_LENGTH = 25
DAYS_PER_MONTH = 30

STATUS_DISPLAY_NAMES: dict[str, str] = {
    StepType.ITA.value: "ITA Received",
    StepType.AOR.value: "AOR Received",
    StepType.MEDICAL_PASSED.value: "Medical Passed",
    StepType.BIL.value: "Biometric Instruction",
    StepType.BIOMETRICS_PASSED.value: "Biometrics Passed",
    StepType.BACKGROUND_CHECK.value: "Background Check",
    StepType.PPR.value: "PPR Received",
    StepType.COPR.value: "COPR Received",
    StepType.ECOPR.value: "eCOPR Received",
    StepType.LANDING.value: "Landed",
    NOT_STARTED: NOT_STARTED,
}


@dataclass(frozen=True)
class DashboardStats:
    total_feedbacks: int
    this_month_feedbacks: int
    feedback_growth: float
    average_processing_months: float
    average_processing_days: int
    success_rate: float


@dataclass(frozen=True)
class ProcessingTimePoint:
    program: str
    average_months: float
    count: int


@dataclass(frozen=True)
class StatusDistributionPoint:
    status: str
    count: int
    percentage: int


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def _month_start(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _previous_month_start(month_start: datetime) -> datetime:
    if month_start.month == 1:
        return month_start.replace(year=month_start.year - 1, month=12)
    return month_start.replace(month=month_start.month - 1)


def _has_completion(steps: Sequence[StepRecord]) -> bool:
    return any(step.step_type in COMPLETION_STEP_TYPES and step.completed_at for step in steps)


def processing_days(steps: Sequence[StepRecord]) -> int | None:
    """
    Days from the dated ITA step to the latest dated completion step.
    """

    ita = next(
        (step for step in steps if step.step_type is StepType.ITA and step.completed_at),
        None,
    )
    if ita is None:
        return None

    completions = [
        step for step in steps if step.step_type in COMPLETION_STEP_TYPES and step.completed_at
    ]
    if not completions:
        return None

    latest = max(completions, key=lambda step: step.completed_at)
    return (latest.completed_at - ita.completed_at).days


def compute_dashboard_stats(
    records: Sequence[FeedbackSnapshot],
    *,
    now: datetime | None = None,
) -> DashboardStats:
    now = now or datetime.now(timezone.utc)
    this_month_start = _month_start(now)
    last_month_start = _previous_month_start(this_month_start)

    total = len(records)
    this_month = sum(1 for record in records if record.created_at >= this_month_start)
    last_month = sum(
        1 for record in records if last_month_start <= record.created_at < this_month_start
    )

    successful = 0
    total_days = 0
    timed = 0
    for record in records:
        if not _has_completion(record.steps):
            continue
        successful += 1
        days = processing_days(record.steps)
        if days is not None:
            total_days += days
            timed += 1

    average_days = total_days / timed if timed else 0.0
    growth = (this_month - last_month) / last_month * 100 if last_month else 0.0
    success_rate = successful / total * 100 if total else 0.0

    return DashboardStats(
        total_feedbacks=total,
        this_month_feedbacks=this_month,
        feedback_growth=_round_half_up(growth, 1),
        average_processing_months=_round_half_up(average_days / DAYS_PER_MONTH, 1),
        average_processing_days=int(_round_half_up(average_days)),
        success_rate=_round_half_up(success_rate, 1),
    )


def compute_processing_time_by_program(
    records: Sequence[FeedbackSnapshot],
) -> list[ProcessingTimePoint]:
    totals: dict[str, list[int]] = {}
    for record in records:
        days = processing_days(record.steps)
        if days is None:
            continue
        bucket = totals.setdefault(record.program, [0, 0])
        bucket[0] += days
        bucket[1] += 1

    points = [
        ProcessingTimePoint(
            program=(
                program[:MAX_PROGRAM_LABEL_LENGTH] + "..."
                if len(program) > MAX_PROGRAM_LABEL_LENGTH
                else program
            ),
            average_months=_round_half_up(total_days / count / DAYS_PER_MONTH, 1),
            count=count,
        )
        for program, (total_days, count) in totals.items()
    ]
    points.sort(key=lambda point: point.count, reverse=True)
    return points[:MAX_CHART_PROGRAMS]


def compute_status_distribution(
    records: Sequence[FeedbackSnapshot],
) -> list[StatusDistributionPoint]:
    if not records:
        return []

    counts: dict[str, int] = {}
    for record in records:
        dated = [step for step in record.steps if step.completed_at]
        if dated:
            status = max(dated, key=lambda step: step.completed_at).step_type.value
        else:
            status = NOT_STARTED
        counts[status] = counts.get(status, 0) + 1

    points: list[StatusDistributionPoint] = []
    for status, count in counts.items():
        percentage = int(_round_half_up(count / len(records) * 100))
        if percentage > 0:
            points.append(
                StatusDistributionPoint(
                    status=STATUS_DISPLAY_NAMES.get(status, status),
                    count=count,
                    percentage=percentage,
                )
            )
    points.sort(key=lambda point: point.count, reverse=True)
    return points


class FeedbackStatsService:
    """
    Computes dashboard stats and caches the chart aggregates.
    """

    def __init__(self, *, cache: TTLCache, chart_ttl_seconds: float) -> None:
        self._cache = cache
        self._chart_ttl_seconds = chart_ttl_seconds

    def get_stats(
        self,
        load_records: Callable[[], Sequence[FeedbackSnapshot]],
        *,
        now: datetime | None = None,
    ) -> DashboardStats:
        return compute_dashboard_stats(load_records(), now=now)

    def get_processing_time_by_program(
        self,
        load_records: Callable[[], Sequence[FeedbackSnapshot]],
    ) -> list[ProcessingTimePoint]:
        return self._cache.cached(
            PROCESSING_TIME_CACHE_KEY,
            lambda: compute_processing_time_by_program(load_records()),
            self._chart_ttl_seconds,
        )

    def get_status_distribution(
        self,
        load_records: Callable[[], Sequence[FeedbackSnapshot]],
    ) -> list[StatusDistributionPoint]:
        return self._cache.cached(
            STATUS_DISTRIBUTION_CACHE_KEY,
            lambda: compute_status_distribution(load_records()),
            self._chart_ttl_seconds,
        )

    def invalidate_chart_caches(self) -> None:
        self._cache.invalidate(PROCESSING_TIME_CACHE_KEY)
        self._cache.invalidate(STATUS_DISTRIBUTION_CACHE_KEY)


@lru_cache(maxsize=1)
def get_stats_service() -> FeedbackStatsService:
    """
    Build and cache the process-wide stats service.
    """

    settings = get_cache_settings()
    return FeedbackStatsService(
        cache=TTLCache(default_ttl_seconds=settings.default_ttl_seconds),
        chart_ttl_seconds=settings.chart_ttl_seconds,
    )
