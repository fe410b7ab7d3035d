"""
tests/test_stats_service.py

Pytest unit tests for dashboard aggregates and chart caching.

All inputs are in-memory snapshots with a fixed NOW, so every result is
deterministic.

Coverage
--------
- Processing days from ITA to the latest completion step
- Totals, month-over-month growth and success rate
- Processing time per program, truncated labels, top programs only
- Status distribution by latest dated step
- Chart results cached until invalidated
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from app.domain.feedback import FeedbackSnapshot, StepRecord, StepType
from app.services.cache_service import TTLCache
from app.services.stats_service import (
    FeedbackStatsService,
    compute_dashboard_stats,
    compute_processing_time_by_program,
    compute_status_distribution,
    processing_days,
)

CEC = "Express Entry - CEC (Canadian Experience Class)"
GENERAL = "Express Entry - General"
NOW = datetime(2024, 7, 15, 12, 0, tzinfo=timezone.utc)


def _step(step_type: StepType, when: date | None) -> StepRecord:
    return StepRecord.for_type(step_type, completed_at=when)


def _snapshot(program: str, created: date, *steps: StepRecord) -> FeedbackSnapshot:
    return FeedbackSnapshot(
        program=program,
        steps=steps,
        created_at=datetime(created.year, created.month, created.day, tzinfo=timezone.utc),
    )


@pytest.fixture()
def snapshots() -> list[FeedbackSnapshot]:
    return [
        _snapshot(
            CEC,
            date(2024, 7, 10),
            _step(StepType.ITA, date(2024, 1, 1)),
            _step(StepType.COPR, date(2024, 7, 1)),
        ),
        _snapshot(
            CEC,
            date(2024, 6, 15),
            _step(StepType.ITA, date(2024, 1, 1)),
            _step(StepType.ECOPR, date(2024, 4, 10)),
        ),
        _snapshot(
            GENERAL,
            date(2024, 7, 2),
            _step(StepType.ITA, date(2024, 3, 1)),
            _step(StepType.AOR, date(2024, 3, 20)),
        ),
        _snapshot(GENERAL, date(2024, 5, 1)),
    ]


def test_processing_days_uses_latest_completion() -> None:
    steps = (
        _step(StepType.ITA, date(2024, 1, 1)),
        _step(StepType.COPR, date(2024, 3, 1)),
        _step(StepType.LANDING, date(2024, 4, 1)),
    )

    assert processing_days(steps) == 91


def test_processing_days_needs_dated_ita_and_completion() -> None:
    assert processing_days((_step(StepType.COPR, date(2024, 3, 1)),)) is None
    assert processing_days((_step(StepType.ITA, None), _step(StepType.COPR, date(2024, 3, 1)))) is None
    assert processing_days((_step(StepType.ITA, date(2024, 1, 1)),)) is None


def test_dashboard_stats(snapshots: list[FeedbackSnapshot]) -> None:
    stats = compute_dashboard_stats(snapshots, now=NOW)

    assert stats.total_feedbacks == 4
    assert stats.this_month_feedbacks == 2
    assert stats.feedback_growth == 100.0
    assert stats.success_rate == 50.0
    assert stats.average_processing_days == 141
    assert stats.average_processing_months == 4.7


def test_dashboard_stats_without_records() -> None:
    stats = compute_dashboard_stats([], now=NOW)

    assert stats.total_feedbacks == 0
    assert stats.feedback_growth == 0.0
    assert stats.success_rate == 0.0
    assert stats.average_processing_days == 0


def test_january_compares_against_december() -> None:
    records = [
        _snapshot(GENERAL, date(2024, 12, 20)),
        _snapshot(GENERAL, date(2025, 1, 3)),
        _snapshot(GENERAL, date(2025, 1, 4)),
        _snapshot(GENERAL, date(2025, 1, 5)),
    ]

    stats = compute_dashboard_stats(records, now=datetime(2025, 1, 10, tzinfo=timezone.utc))

    assert stats.this_month_feedbacks == 3
    assert stats.feedback_growth == 200.0


def test_processing_time_by_program(snapshots: list[FeedbackSnapshot]) -> None:
    points = compute_processing_time_by_program(snapshots)

    assert len(points) == 1
    assert points[0].program == "Express Entry - CEC (Cana..."
    assert points[0].count == 2
    assert points[0].average_months == 4.7


def test_processing_time_keeps_top_programs_by_count() -> None:
    records = []
    for index in range(10):
        for _ in range(index + 1):
            records.append(
                _snapshot(
                    f"P{index}",
                    date(2024, 7, 1),
                    _step(StepType.ITA, date(2024, 1, 1)),
                    _step(StepType.COPR, date(2024, 1, 31)),
                )
            )

    points = compute_processing_time_by_program(records)

    assert [point.program for point in points] == [f"P{index}" for index in range(9, 1, -1)]
    assert all(point.average_months == 1.0 for point in points)


def test_status_distribution(snapshots: list[FeedbackSnapshot]) -> None:
    points = compute_status_distribution(snapshots)

    assert {(point.status, point.count, point.percentage) for point in points} == {
        ("COPR Received", 1, 25),
        ("eCOPR Received", 1, 25),
        ("AOR Received", 1, 25),
        ("Not Started", 1, 25),
    }


def test_status_distribution_sorts_and_drops_tiny_slices() -> None:
    records = [_snapshot(GENERAL, date(2024, 7, 1)) for _ in range(200)]
    records.append(_snapshot(GENERAL, date(2024, 7, 1), _step(StepType.ITA, date(2024, 6, 1))))

    points = compute_status_distribution(records)

    assert [(point.status, point.percentage) for point in points] == [("Not Started", 100)]


def test_status_distribution_empty() -> None:
    assert compute_status_distribution([]) == []


class TestFeedbackStatsService:
    def _service(self) -> FeedbackStatsService:
        return FeedbackStatsService(cache=TTLCache(default_ttl_seconds=300), chart_ttl_seconds=600)

    def test_chart_aggregates_are_cached_until_invalidated(
        self,
        snapshots: list[FeedbackSnapshot],
    ) -> None:
        service = self._service()
        loads: list[int] = []

        def load() -> list[FeedbackSnapshot]:
            loads.append(1)
            return snapshots

        first = service.get_processing_time_by_program(load)
        service.get_processing_time_by_program(load)
        service.get_status_distribution(load)
        service.get_status_distribution(load)
        assert len(loads) == 2

        service.invalidate_chart_caches()
        assert service.get_processing_time_by_program(load) == first
        assert len(loads) == 3

    def test_stats_are_always_fresh(self, snapshots: list[FeedbackSnapshot]) -> None:
        service = self._service()
        loads: list[int] = []

        def load() -> list[FeedbackSnapshot]:
            loads.append(1)
            return snapshots

        service.get_stats(load, now=NOW)
        service.get_stats(load, now=NOW)

        assert len(loads) == 2
