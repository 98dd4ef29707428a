# tests/conftest.py

import datetime

import pytest

from core.record_buffer import RecordBuffer
from core.schemas import BulkSubmitResponse, RosterResponse, UpdateRecordResponse
from models.context import Context
from models.entity import Entity
from models.record_kind import ASSIGNMENT_GRADING, ATTENDANCE, EXAM_MARKS


class FakeTransport:
    """In-memory `Transport` that records every call and replays canned answers."""

    def __init__(self, roster=None, submit_response=None, submit_error=None):
        self.roster = roster or RosterResponse(students=[])
        self.submit_response = submit_response
        self.submit_error = submit_error
        self.on_submit = None
        self.roster_calls = []
        self.submit_calls = []
        self.update_calls = []

    def fetch_roster(self, kind, context):
        self.roster_calls.append((kind, context))
        return self.roster

    def submit_bulk(self, kind, request):
        self.submit_calls.append((kind, request))

        if self.on_submit is not None:
            self.on_submit()

        if self.submit_error is not None:
            raise self.submit_error

        if self.submit_response is not None:
            return self.submit_response

        return BulkSubmitResponse(accepted_count=len(request.entries))

    def update_record(self, kind, record_id, status, remark=None, value=None):
        self.update_calls.append((kind, record_id, status, remark, value))
        return UpdateRecordResponse(id=record_id, entity_id="s1", status=status.value)


@pytest.fixture
def sample_entities():
    return [
        Entity("s1", "Paul", "Atreides", "01"),
        Entity("s2", "Chani", "Kynes", "02"),
        Entity("s3", "Duncan", "Idaho", "03"),
    ]


@pytest.fixture
def attendance_context():
    return Context("c001", section_id="sec-a", date=datetime.date(2025, 9, 1))


@pytest.fixture
def exam_context():
    return Context(
        "c001", section_id="sec-a", exam_id="e001", subject_id="math", total_marks=50.0
    )


@pytest.fixture
def grading_context():
    return Context("c001", assignment_id="a001", total_marks=20.0)


@pytest.fixture
def attendance_buffer(sample_entities, attendance_context):
    buffer = RecordBuffer(ATTENDANCE)
    buffer.load(sample_entities, {"s1": "PRESENT"}, context=attendance_context)
    return buffer


@pytest.fixture
def exam_buffer(sample_entities, exam_context):
    buffer = RecordBuffer(EXAM_MARKS)
    buffer.load(sample_entities, context=exam_context)
    return buffer


@pytest.fixture
def grading_buffer(sample_entities, grading_context):
    buffer = RecordBuffer(ASSIGNMENT_GRADING)
    buffer.load(sample_entities, context=grading_context)
    return buffer


@pytest.fixture
def sample_roster():
    return RosterResponse.model_validate(
        {
            "students": [
                {
                    "id": "s1",
                    "firstName": "Paul",
                    "lastName": "Atreides",
                    "rollNumber": "01",
                    "defaultStatus": "ABSENT",
                },
                {
                    "id": "s2",
                    "firstName": "Chani",
                    "lastName": "Kynes",
                    "rollNumber": "02",
                },
            ],
            "defaultDate": "2025-09-01",
        }
    )


@pytest.fixture
def fake_transport(sample_roster):
    return FakeTransport(roster=sample_roster)
