"""
tests/conftest.py

Shared fixtures for the import pipeline tests.

Everything here is in-memory: no database, no sleeping.
"""

from __future__ import annotations

import pytest

from app.domain.feedback import ImportedRecord
from app.repositories.feedback_repository import PersistenceError, RecordStore

PREAMBLE = (
    "PR Tracker - All\n"
    "June & July ITAs,,,\n"
    "Notes: dates are YYYY/MM/DD,,,\n"
)
HEADER = (
    'Username,STREAM,ITA,Complexity,AOR,"ADR\n'
    'Received",AOR to BIL,Bio Req,Medical,Eligibility Check,BG Check,Final Decision,P1,P2,eCOPR\n'
)


def build_tracker_csv(*data_lines: str) -> str:
    return PREAMBLE + HEADER + "".join(f"{line}\n" for line in data_lines)


class FakeRecordStore(RecordStore):
    """
    Collects records in memory; titles listed in ``fail_titles`` are rejected.
    """

    def __init__(self, fail_titles: set[str] | None = None) -> None:
        self.records: list[ImportedRecord] = []
        self.fail_titles = fail_titles or set()

    def create_record(self, record: ImportedRecord) -> str:
        if record.title in self.fail_titles:
            raise PersistenceError("Failed to create feedback.")
        self.records.append(record)
        return f"fb-{len(self.records)}"


@pytest.fixture()
def tracker_csv() -> str:
    return build_tracker_csv(
        "alice,CEC,2024/06/05,Inland simple,2024/06/20,2024/07/01,11,2024/07/02,Passed,,In Process,,,,",
        "bob,EE-PNP,2024/06/19,Outland,2024/07/02,,,upfront,2024/07/15 (re-exam),,,,,,",
        'carol,CEC Edu,"2024/06/05",Inland,"2024/06/21',
        'waiting on officer",,,,,,,,,,',
        ",CEC,2024/06/05,,,,,,,,,,,,",
    )


@pytest.fixture()
def store() -> FakeRecordStore:
    return FakeRecordStore()
