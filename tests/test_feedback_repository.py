"""
tests/test_feedback_repository.py

Pytest unit tests for the SQLAlchemy feedback repository.

The session is a MagicMock; queries are checked by compiling them with the
PostgreSQL dialect.

Coverage
--------
- create_record payload and commit/rollback behaviour
- Step payload serialization, including unreadable stored dates
- Paged active listing with program/country filters and has_more
- Lookup, partial update, soft delete and per-user active entry
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from app.domain.feedback import ImportedRecord, StepRecord, StepType
from app.repositories.feedback_repository import (
    FeedbackRepository,
    PersistenceError,
    deserialize_step,
    parse_completed_at,
    serialize_step,
)
from db.models.feedback import Feedback


def _record() -> ImportedRecord:
    return ImportedRecord(
        title="alice",
        program="Express Entry - CEC (Canadian Experience Class)",
        application_type="inland",
        country="Canada",
        owner_ref="csv-import-system-user",
        steps=(
            StepRecord.for_type(StepType.ITA, completed_at=date(2024, 6, 5)),
            StepRecord.for_type(StepType.MEDICAL_PASSED, comment="re-exam"),
        ),
    )


def test_create_record_adds_and_commits() -> None:
    session = MagicMock()
    repository = FeedbackRepository(session)

    record_id = repository.create_record(_record())

    model = session.add.call_args.args[0]
    assert isinstance(model, Feedback)
    assert str(model.id) == record_id
    uuid.UUID(record_id)
    assert model.user_id == "csv-import-system-user"
    assert model.steps == [
        {
            "stepType": "ITA",
            "stepName": "Invitation to Apply",
            "completedAt": "2024-06-05",
            "comment": None,
        },
        {
            "stepType": "MEDICAL_PASSED",
            "stepName": "Medical Examination",
            "completedAt": None,
            "comment": "re-exam",
        },
    ]
    session.commit.assert_called_once()
    session.rollback.assert_not_called()


def test_commit_failure_rolls_back_and_raises_persistence_error() -> None:
    session = MagicMock()
    session.commit.side_effect = OperationalError("INSERT", {}, Exception("connection lost"))
    repository = FeedbackRepository(session)

    with pytest.raises(PersistenceError, match="Failed to create feedback."):
        repository.create_record(_record())

    session.rollback.assert_called_once()


def test_each_record_gets_a_fresh_id() -> None:
    repository = FeedbackRepository(MagicMock())

    assert repository.create_record(_record()) != repository.create_record(_record())


def test_step_payload_round_trip_keeps_fields() -> None:
    step = StepRecord.for_type(StepType.COPR, completed_at=date(2025, 1, 9), comment="mailed")

    assert deserialize_step(serialize_step(step)) == step


def test_deserialize_tolerates_timestamps_and_unknown_types() -> None:
    step = deserialize_step({"stepType": "AOR", "completedAt": "2024-06-20T00:00:00.000Z"})

    assert step is not None
    assert step.completed_at == date(2024, 6, 20)
    assert step.step_name == "AOR"
    assert deserialize_step({"stepType": "VISA_STAMP"}) is None


def test_list_active_snapshots_deserializes_steps() -> None:
    created_at = datetime(2024, 7, 1, tzinfo=timezone.utc)
    session = MagicMock()
    session.execute.return_value.scalars.return_value.all.return_value = [
        SimpleNamespace(
            program="Express Entry - General",
            created_at=created_at,
            steps=[
                {"stepType": "ITA", "stepName": "Invitation to Apply", "completedAt": "2024-06-05"},
                {"stepType": "VISA_STAMP", "completedAt": "2024-06-06"},
            ],
        ),
        SimpleNamespace(program="Express Entry - General", created_at=created_at, steps=None),
    ]

    snapshots = FeedbackRepository(session).list_active_snapshots()

    assert len(snapshots) == 2
    assert [step.step_type for step in snapshots[0].steps] == [StepType.ITA]
    assert snapshots[0].created_at == created_at
    assert snapshots[1].steps == ()


@pytest.mark.parametrize("raw", ["06/05/2024", "2024-13-01", "soon", 7])
def test_unreadable_completed_at_counts_as_absent(raw) -> None:
    step = deserialize_step({"stepType": "ITA", "stepName": "Invitation to Apply", "completedAt": raw})

    assert step == StepRecord.for_type(StepType.ITA)
    assert parse_completed_at(raw) is None


def test_snapshots_survive_unreadable_stored_dates() -> None:
    created_at = datetime(2024, 7, 1, tzinfo=timezone.utc)
    session = MagicMock()
    session.execute.return_value.scalars.return_value.all.return_value = [
        SimpleNamespace(
            program="Express Entry - General",
            created_at=created_at,
            steps=[
                {"stepType": "ITA", "completedAt": "not a date"},
                {"stepType": "COPR", "completedAt": "2024-12-01"},
                "garbage",
            ],
        ),
    ]

    snapshots = FeedbackRepository(session).list_active_snapshots()

    assert [(step.step_type, step.completed_at) for step in snapshots[0].steps] == [
        (StepType.ITA, None),
        (StepType.COPR, date(2024, 12, 1)),
    ]


CREATED_AT = datetime(2024, 7, 1, tzinfo=timezone.utc)


def _stored(**overrides) -> Feedback:
    values = {
        "id": uuid.UUID(int=1),
        "title": "alice",
        "program": "Express Entry - General",
        "application_type": "inland",
        "country": "Canada",
        "user_id": "user-1",
        "steps": [{"stepType": "ITA", "stepName": "Invitation to Apply", "completedAt": "2024-06-05"}],
        "is_active": True,
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    }
    values.update(overrides)
    return Feedback(**values)


def _sql(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True}))


class TestListFeedbacks:
    def test_filters_orders_and_pages(self) -> None:
        session = MagicMock()
        session.execute.return_value.scalars.return_value.all.return_value = [
            _stored(id=uuid.UUID(int=index)) for index in range(3)
        ]

        page = FeedbackRepository(session).list_feedbacks(
            program="Express Entry - General",
            country="Canada",
            limit=2,
            offset=4,
        )

        sql = _sql(session.execute.call_args.args[0])
        assert "feedbacks.is_active IS true" in sql
        assert "feedbacks.program = 'Express Entry - General'" in sql
        assert "feedbacks.country = 'Canada'" in sql
        assert "ORDER BY feedbacks.created_at DESC" in sql
        assert "LIMIT 3 OFFSET 4" in sql
        assert [entry.id for entry in page.items] == [uuid.UUID(int=0), uuid.UUID(int=1)]
        assert page.has_more is True
        assert (page.limit, page.offset) == (2, 4)

    def test_last_page_has_no_more(self) -> None:
        session = MagicMock()
        session.execute.return_value.scalars.return_value.all.return_value = [_stored(), _stored()]

        page = FeedbackRepository(session).list_feedbacks(limit=2)

        sql = _sql(session.execute.call_args.args[0])
        assert "feedbacks.program =" not in sql
        assert "feedbacks.country =" not in sql
        assert len(page.items) == 2
        assert page.has_more is False

    def test_entries_carry_deserialized_steps(self) -> None:
        session = MagicMock()
        session.execute.return_value.scalars.return_value.all.return_value = [_stored()]

        entry = FeedbackRepository(session).list_feedbacks().items[0]

        assert entry.steps == (StepRecord.for_type(StepType.ITA, completed_at=date(2024, 6, 5)),)
        assert entry.user_id == "user-1"

    def test_read_failure_raises_persistence_error(self) -> None:
        session = MagicMock()
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))

        with pytest.raises(PersistenceError, match="Failed to fetch feedbacks."):
            FeedbackRepository(session).list_feedbacks()


def test_get_feedback_returns_inactive_entries_too() -> None:
    session = MagicMock()
    session.get.return_value = _stored(is_active=False)

    entry = FeedbackRepository(session).get_feedback(uuid.UUID(int=1))

    session.get.assert_called_once_with(Feedback, uuid.UUID(int=1))
    assert entry is not None
    assert entry.is_active is False


def test_get_feedback_unknown_id() -> None:
    session = MagicMock()
    session.get.return_value = None

    assert FeedbackRepository(session).get_feedback(uuid.uuid4()) is None


class TestUpdateFeedback:
    def test_applies_changes_and_moves_updated_at(self) -> None:
        model = _stored()
        session = MagicMock()
        session.get.return_value = model

        entry = FeedbackRepository(session).update_feedback(
            model.id,
            {
                "title": "alice (updated)",
                "steps": [StepRecord.for_type(StepType.AOR, completed_at=date(2024, 6, 20))],
            },
        )

        assert model.title == "alice (updated)"
        assert model.steps == [
            {
                "stepType": "AOR",
                "stepName": "Acknowledgment of Receipt",
                "completedAt": "2024-06-20",
                "comment": None,
            }
        ]
        assert model.updated_at > CREATED_AT
        assert model.created_at == CREATED_AT
        session.commit.assert_called_once()
        assert entry is not None
        assert [step.step_type for step in entry.steps] == [StepType.AOR]

    def test_unknown_field_is_rejected_before_loading(self) -> None:
        session = MagicMock()

        with pytest.raises(ValueError, match="user_id"):
            FeedbackRepository(session).update_feedback(uuid.uuid4(), {"user_id": "someone-else"})

        session.get.assert_not_called()

    def test_unknown_id_returns_none_without_commit(self) -> None:
        session = MagicMock()
        session.get.return_value = None

        assert FeedbackRepository(session).update_feedback(uuid.uuid4(), {"title": "x"}) is None
        session.commit.assert_not_called()

    def test_commit_failure_rolls_back(self) -> None:
        session = MagicMock()
        session.get.return_value = _stored()
        session.commit.side_effect = OperationalError("UPDATE", {}, Exception("connection lost"))

        with pytest.raises(PersistenceError, match="Failed to update feedback."):
            FeedbackRepository(session).update_feedback(uuid.UUID(int=1), {"title": "x"})

        session.rollback.assert_called_once()


def test_soft_delete_deactivates_and_touches() -> None:
    model = _stored()
    session = MagicMock()
    session.get.return_value = model

    assert FeedbackRepository(session).soft_delete_feedback(model.id) is True

    assert model.is_active is False
    assert model.updated_at > CREATED_AT
    session.commit.assert_called_once()
    session.delete.assert_not_called()


def test_soft_delete_unknown_id() -> None:
    session = MagicMock()
    session.get.return_value = None

    assert FeedbackRepository(session).soft_delete_feedback(uuid.uuid4()) is False
    session.commit.assert_not_called()


def test_user_active_feedback_query() -> None:
    session = MagicMock()
    session.execute.return_value.scalars.return_value.first.return_value = _stored()

    entry = FeedbackRepository(session).get_user_active_feedback("user-1")

    sql = _sql(session.execute.call_args.args[0])
    assert "feedbacks.user_id = 'user-1'" in sql
    assert "feedbacks.is_active IS true" in sql
    assert "LIMIT 1" in sql
    assert entry is not None
    assert entry.title == "alice"


def test_user_without_active_feedback() -> None:
    session = MagicMock()
    session.execute.return_value.scalars.return_value.first.return_value = None

    assert FeedbackRepository(session).get_user_active_feedback("nobody") is None
