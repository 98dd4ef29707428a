# tests/test_transport.py

import datetime

import pytest
import requests

from core.config import EntrySettings
from core.exceptions import (
    OverrideRequiredError,
    ResponseSchemaError,
    TransportError,
    UnsupportedOperationError,
)
from core.schemas import BulkSubmitRequest
from core.transport import HttpTransport
from models.context import Context
from models.record import Record
from models.record_kind import (
    ASSIGNMENT_GRADING,
    ATTENDANCE,
    EXAM_MARKS,
    AttendanceStatus,
)


class StubResponse:

    def __init__(self, status_code=200, body=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._body = body

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class StubSession:

    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response or StubResponse(body={})
        self.error = error
        self.calls = []

    def request(self, method, url, params=None, json=None, timeout=None):
        self.calls.append(
            {"method": method, "url": url, "params": params, "json": json, "timeout": timeout}
        )

        if self.error is not None:
            raise self.error

        return self.response


@pytest.fixture
def settings():
    return EntrySettings(
        api_base_url="https://school.test/api/v1/",
        api_token="tok-123",
        request_timeout=5.0,
    )


def make_transport(settings, **kwargs):
    session = StubSession(**kwargs)
    return HttpTransport(settings, session=session), session


# === roster fetch ===


def test_fetch_attendance_roster(settings):
    transport, session = make_transport(
        settings,
        response=StubResponse(
            body={
                "students": [
                    {
                        "id": "s1",
                        "firstName": "Paul",
                        "lastName": "Atreides",
                        "rollNumber": "01",
                        "defaultStatus": "LATE",
                    }
                ],
                "defaultDate": "2025-09-01",
            }
        ),
    )

    roster = transport.fetch_roster(ATTENDANCE, Context("c001", section_id="sec-a"))

    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://school.test/api/v1/teacher/attendance/students"
    assert call["params"] == {"classId": "c001", "sectionId": "sec-a"}
    assert call["timeout"] == 5.0
    assert session.headers["Authorization"] == "Bearer tok-123"
    assert roster.defaults() == {"s1": "LATE"}
    assert roster.entities()[0].full_name == "Paul Atreides"
    assert roster.default_date == datetime.date(2025, 9, 1)


def test_fetch_grading_roster_formats_path(settings):
    transport, session = make_transport(settings, response=StubResponse(body={"students": []}))

    transport.fetch_roster(ASSIGNMENT_GRADING, Context("c009", assignment_id="a1"))

    assert session.calls[0]["url"].endswith("/teacher/classes/c009/roster")
    assert session.calls[0]["params"] == {}


def test_fetch_roster_schema_mismatch(settings):
    transport, _ = make_transport(settings, response=StubResponse(body={"pupils": []}))

    with pytest.raises(ResponseSchemaError):
        transport.fetch_roster(ATTENDANCE, Context("c001"))


def test_non_object_body_is_rejected(settings):
    transport, _ = make_transport(settings, response=StubResponse(body=[1, 2]))

    with pytest.raises(ResponseSchemaError):
        transport.fetch_roster(ATTENDANCE, Context("c001"))


# === bulk submit ===


def test_submit_attendance_maps_wire_fields(settings):
    transport, session = make_transport(
        settings, response=StubResponse(body={"message": "ok", "markedCount": 1})
    )
    record = Record("s1", ATTENDANCE, "PRESENT")
    record.touch("ABSENT", remark="sick")
    context = Context("c001", "sec-a", datetime.date(2025, 9, 1), allow_override=True)

    response = transport.submit_bulk(ATTENDANCE, BulkSubmitRequest.build(context, [record]))

    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://school.test/api/v1/teacher/attendance"
    assert call["json"] == {
        "classId": "c001",
        "sectionId": "sec-a",
        "attendanceDate": "2025-09-01",
        "allowOverride": True,
        "entries": [{"studentId": "s1", "status": "ABSENT", "remarks": "sick"}],
    }
    assert response.accepted_count == 1
    assert response.message == "ok"
    assert response.outcomes is None


def test_submit_exam_marks_maps_wire_fields(settings):
    transport, session = make_transport(
        settings, response=StubResponse(body={"submittedCount": 1})
    )
    record = Record("s1", EXAM_MARKS, "PENDING")
    record.touch("PASSED", value=42.0)
    context = Context("c001", exam_id="e1", subject_id="math", total_marks=50.0)

    transport.submit_bulk(EXAM_MARKS, BulkSubmitRequest.build(context, [record]))

    call = session.calls[0]
    assert call["url"].endswith("/teacher/exams/e1/subjects/math/marks")
    assert call["json"] == {
        "allowOverride": False,
        "entries": [
            {"studentId": "s1", "status": "PASSED", "totalMarks": 50.0, "obtainedMarks": 42.0}
        ],
    }


def test_submit_parses_outcomes(settings):
    transport, _ = make_transport(
        settings,
        response=StubResponse(
            body={
                "gradedCount": 1,
                "outcomes": [
                    {"studentId": "s1", "accepted": True, "value": 18.0},
                    {"studentId": "s2", "accepted": False, "reason": "No submission"},
                ],
            }
        ),
    )
    record = Record("s1", ASSIGNMENT_GRADING, "GRADED", value=18.0)
    context = Context("c001", assignment_id="a1")

    response = transport.submit_bulk(
        ASSIGNMENT_GRADING, BulkSubmitRequest.build(context, [record])
    )

    assert [o.entity_id for o in response.outcomes] == ["s1", "s2"]
    assert response.outcomes[1].reason == "No submission"


def test_submit_missing_count_field(settings):
    # attendance responses carry markedCount, not gradedCount
    transport, _ = make_transport(settings, response=StubResponse(body={"gradedCount": 1}))
    request = BulkSubmitRequest.build(
        Context("c001"), [Record("s1", ATTENDANCE, AttendanceStatus.PRESENT)]
    )

    with pytest.raises(ResponseSchemaError):
        transport.submit_bulk(ATTENDANCE, request)


def test_conflict_maps_to_override_required(settings):
    transport, _ = make_transport(
        settings,
        response=StubResponse(
            409, {"message": "Attendance already marked for this date"}, "Conflict"
        ),
    )
    request = BulkSubmitRequest.build(Context("c001"), [Record("s1", ATTENDANCE, "PRESENT")])

    with pytest.raises(OverrideRequiredError) as excinfo:
        transport.submit_bulk(ATTENDANCE, request)

    assert excinfo.value.from_server
    assert "already marked" in str(excinfo.value)


def test_override_error_code_maps_to_override_required(settings):
    transport, _ = make_transport(
        settings,
        response=StubResponse(400, {"error": "OVERRIDE_REQUIRED"}, "Bad Request"),
    )
    request = BulkSubmitRequest.build(Context("c001"), [Record("s1", ATTENDANCE, "PRESENT")])

    with pytest.raises(OverrideRequiredError):
        transport.submit_bulk(ATTENDANCE, request)


def test_server_error_maps_to_transport_error(settings):
    transport, _ = make_transport(
        settings, response=StubResponse(500, None, "Internal Server Error")
    )
    request = BulkSubmitRequest.build(Context("c001"), [Record("s1", ATTENDANCE, "PRESENT")])

    with pytest.raises(TransportError) as excinfo:
        transport.submit_bulk(ATTENDANCE, request)

    assert excinfo.value.status_code == 500


def test_timeout_maps_to_transport_error(settings):
    transport, _ = make_transport(settings, error=requests.Timeout("read timed out"))

    with pytest.raises(TransportError):
        transport.fetch_roster(ATTENDANCE, Context("c001"))


def test_connection_error_maps_to_transport_error(settings):
    transport, _ = make_transport(settings, error=requests.ConnectionError("refused"))

    with pytest.raises(TransportError):
        transport.fetch_roster(ATTENDANCE, Context("c001"))


# === single record update ===


def test_update_attendance_record(settings):
    transport, session = make_transport(
        settings,
        response=StubResponse(body={"id": "att-9", "studentId": "s1", "status": "EXCUSED"}),
    )

    updated = transport.update_record(
        ATTENDANCE, "att-9", AttendanceStatus.EXCUSED, remark="doctor's note"
    )

    call = session.calls[0]
    assert call["method"] == "PATCH"
    assert call["url"].endswith("/teacher/attendance/att-9")
    assert call["json"] == {"status": "EXCUSED", "remarks": "doctor's note"}
    assert updated.entity_id == "s1"


def test_update_unsupported_for_exam_marks(settings):
    transport, session = make_transport(settings)

    with pytest.raises(UnsupportedOperationError):
        transport.update_record(EXAM_MARKS, "m1", EXAM_MARKS.neutral_status)

    assert session.calls == []


def test_no_token_means_no_auth_header():
    transport, session = make_transport(EntrySettings(api_token=None))

    assert "Authorization" not in session.headers
    assert transport.settings.api_base_url == "http://localhost:3000/api/v1"
