# models/record_kind.py

"""
Record kinds: the configuration that turns the generic entry engine into an
attendance sheet, an assignment grading sheet, or an exam-marks sheet.

A `RecordKind` bundles:
    - the closed status enumeration for its records
    - the neutral status used when the server supplies no default
    - whether resubmission for an already-recorded context requires override
    - whether records carry a numeric value (marks)
    - the `EndpointShape` describing paths and wire field names

Notes:
    - Status values are matched exactly against the enumeration values; nothing is coerced.
    - The neutral status may never be one of the kind's error-indicating statuses.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from core.exceptions import InvalidStatusError, ValidationError


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    HALF_DAY = "HALF_DAY"
    EXCUSED = "EXCUSED"


class AssignmentStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    GRADED = "GRADED"
    LATE = "LATE"


class ExamStatus(str, Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    ABSENT = "ABSENT"
    PENDING = "PENDING"


@dataclass(frozen=True)
class EndpointShape:
    """
    Paths and wire field names for one record kind.

    Path templates are formatted with the context's fields (e.g. `{class_id}`).
    Field mappings are `(wire_name, context_attribute)` pairs.
    """

    roster_path: str
    submit_path: str
    count_field: str
    roster_params: tuple[tuple[str, str], ...] = ()
    context_fields: tuple[tuple[str, str], ...] = ()
    entry_context_fields: tuple[tuple[str, str], ...] = ()
    override_field: str | None = None
    entity_field: str = "studentId"
    status_field: str = "status"
    value_field: str | None = None
    remark_field: str | None = None
    update_path: str | None = None


class RecordKind:

    def __init__(
        self,
        name: str,
        statuses: type[Enum],
        neutral_status: Enum,
        endpoints: EndpointShape,
        enforces_override: bool = True,
        carries_value: bool = False,
        error_statuses: frozenset = frozenset(),
        required_context: tuple[str, ...] = ("class_id",),
    ):
        if neutral_status not in statuses:
            raise ValueError(f"Neutral status {neutral_status} is not a {statuses.__name__}.")

        if neutral_status in error_statuses:
            raise ValueError(
                f"Neutral status {neutral_status.value} cannot be an error-indicating status."
            )

        self._name = name
        self._statuses = statuses
        self._neutral_status = neutral_status
        self._endpoints = endpoints
        self._enforces_override = enforces_override
        self._carries_value = carries_value
        self._error_statuses = error_statuses
        self._required_context = required_context

    # === properties ===

    @property
    def name(self) -> str:
        return self._name

    @property
    def statuses(self) -> type[Enum]:
        return self._statuses

    @property
    def neutral_status(self) -> Enum:
        return self._neutral_status

    @property
    def endpoints(self) -> EndpointShape:
        return self._endpoints

    @property
    def enforces_override(self) -> bool:
        return self._enforces_override

    @property
    def carries_value(self) -> bool:
        return self._carries_value

    @property
    def error_statuses(self) -> frozenset:
        return self._error_statuses

    @property
    def required_context(self) -> tuple[str, ...]:
        return self._required_context

    def allowed_values(self) -> list[str]:
        return [status.value for status in self._statuses]

    # === data validators ===

    def parse_status(self, status: Any) -> Enum:
        """
        Resolves a status value to a member of this kind's enumeration.

        Accepts either an enum member of this kind or its exact string value.

        Args:
            status (Any): The proposed status.

        Returns:
            The matching enum member.

        Raises:
            InvalidStatusError: If the value is not part of the enumeration, including
                members of another kind's enumeration that share the same text.
        """
        if isinstance(status, self._statuses):
            return status

        if isinstance(status, Enum):
            raise InvalidStatusError(status.value, self._name, self.allowed_values())

        try:
            return self._statuses(status)

        except ValueError:
            raise InvalidStatusError(status, self._name, self.allowed_values()) from None

    def require_context(self, context) -> None:
        """
        Raises:
            ValidationError: If the context lacks a field this kind's endpoints need.
        """
        missing = [
            field for field in self._required_context if getattr(context, field) is None
        ]

        if missing:
            raise ValidationError(
                f"{self._name} context is missing required field(s): {', '.join(missing)}."
            )

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"RecordKind({self._name}, {self._statuses.__name__})"

    def __str__(self) -> str:
        return self._name


# === record kinds ===

ATTENDANCE = RecordKind(
    name="attendance",
    statuses=AttendanceStatus,
    neutral_status=AttendanceStatus.PRESENT,
    error_statuses=frozenset({AttendanceStatus.ABSENT}),
    enforces_override=True,
    carries_value=False,
    required_context=("class_id",),
    endpoints=EndpointShape(
        roster_path="/teacher/attendance/students",
        roster_params=(("classId", "class_id"), ("sectionId", "section_id")),
        submit_path="/teacher/attendance",
        context_fields=(
            ("classId", "class_id"),
            ("sectionId", "section_id"),
            ("attendanceDate", "date"),
        ),
        override_field="allowOverride",
        remark_field="remarks",
        count_field="markedCount",
        update_path="/teacher/attendance/{record_id}",
    ),
)

ASSIGNMENT_GRADING = RecordKind(
    name="assignment grading",
    statuses=AssignmentStatus,
    neutral_status=AssignmentStatus.SUBMITTED,
    enforces_override=False,
    carries_value=True,
    required_context=("class_id", "assignment_id"),
    endpoints=EndpointShape(
        roster_path="/teacher/classes/{class_id}/roster",
        roster_params=(("sectionId", "section_id"),),
        submit_path="/teacher/assignments/{assignment_id}/grade",
        value_field="marksObtained",
        remark_field="feedback",
        count_field="gradedCount",
    ),
)

EXAM_MARKS = RecordKind(
    name="exam marks",
    statuses=ExamStatus,
    neutral_status=ExamStatus.PENDING,
    error_statuses=frozenset({ExamStatus.FAILED, ExamStatus.ABSENT}),
    enforces_override=True,
    carries_value=True,
    required_context=("class_id", "exam_id", "subject_id"),
    endpoints=EndpointShape(
        roster_path="/teacher/exams/students",
        roster_params=(
            ("classId", "class_id"),
            ("subjectId", "subject_id"),
            ("sectionId", "section_id"),
            ("examId", "exam_id"),
        ),
        submit_path="/teacher/exams/{exam_id}/subjects/{subject_id}/marks",
        entry_context_fields=(("totalMarks", "total_marks"),),
        override_field="allowOverride",
        value_field="obtainedMarks",
        count_field="submittedCount",
    ),
)
