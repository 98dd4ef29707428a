# core/schemas.py

"""
Pinned wire contract for roster fetches, bulk submissions, and single-record updates.

Each message has exactly one schema. A body that does not match it raises
`ResponseSchemaError`; alternative locations for the same field are never probed.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import ResponseSchemaError
from models.context import Context
from models.entity import Entity
from models.record import Record


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def parse_body(cls, body: Any):
        """
        Validates a decoded JSON body against this schema.

        Raises:
            ResponseSchemaError: If the body does not match.
        """
        try:
            return cls.model_validate(body)

        except PydanticValidationError as e:
            raise ResponseSchemaError(
                f"Unexpected {cls.__name__} shape from server: {e.error_count()} error(s): {e}"
            ) from e


# === roster fetch ===


class RosterEntry(WireModel):
    id: str
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    roll_number: str | None = Field(None, alias="rollNumber")
    default_status: str | None = Field(None, alias="defaultStatus")
    value: float | None = None
    remark: str | None = None

    def to_entity(self) -> Entity:
        return Entity(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            roll_number=self.roll_number,
        )


class RosterResponse(WireModel):
    students: list[RosterEntry]
    already_recorded: bool = Field(False, alias="alreadyRecorded")
    default_date: datetime.date | None = Field(None, alias="defaultDate")

    def entities(self) -> list[Entity]:
        return [entry.to_entity() for entry in self.students]

    def defaults(self) -> dict[str, str]:
        return {
            entry.id: entry.default_status
            for entry in self.students
            if entry.default_status is not None
        }

    def values(self) -> dict[str, float]:
        return {entry.id: entry.value for entry in self.students if entry.value is not None}

    def remarks(self) -> dict[str, str]:
        return {
            entry.id: entry.remark for entry in self.students if entry.remark is not None
        }


# === bulk submit ===


class EntryPayload(BaseModel):
    entity_id: str
    status: str
    value: float | None = None
    remark: str | None = None

    @classmethod
    def from_record(cls, record: Record) -> EntryPayload:
        return cls(
            entity_id=record.entity_id,
            status=record.status.value,
            value=record.value,
            remark=record.remark,
        )


class BulkSubmitRequest(BaseModel):
    class_id: str
    section_id: str | None = None
    date: datetime.date | None = None
    exam_id: str | None = None
    subject_id: str | None = None
    assignment_id: str | None = None
    total_marks: float | None = None
    allow_override: bool = False
    entries: list[EntryPayload]

    @classmethod
    def build(cls, context: Context, records: Iterable[Record]) -> BulkSubmitRequest:
        return cls(
            class_id=context.class_id,
            section_id=context.section_id,
            date=context.date,
            exam_id=context.exam_id,
            subject_id=context.subject_id,
            assignment_id=context.assignment_id,
            total_marks=context.total_marks,
            allow_override=context.allow_override,
            entries=[EntryPayload.from_record(record) for record in records],
        )

    def entity_ids(self) -> list[str]:
        return [entry.entity_id for entry in self.entries]


class EntryOutcome(WireModel):
    entity_id: str = Field(alias="studentId")
    accepted: bool
    reason: str | None = None
    status: str | None = None
    value: float | None = None


class BulkSubmitResponse(WireModel):
    message: str | None = None
    accepted_count: int = Field(ge=0)
    outcomes: list[EntryOutcome] | None = None

    @classmethod
    def from_wire(cls, body: dict, count_field: str) -> BulkSubmitResponse:
        """
        Builds the response from a kind-specific body (e.g. `markedCount` for attendance).

        Raises:
            ResponseSchemaError: If `count_field` is missing or any field fails validation.
        """
        if count_field not in body:
            raise ResponseSchemaError(
                f"Bulk submit response is missing required field '{count_field}'."
            )

        return cls.parse_body(
            {
                "message": body.get("message"),
                "accepted_count": body[count_field],
                "outcomes": body.get("outcomes"),
            }
        )


# === single record update ===


class UpdateRecordResponse(WireModel):
    id: str
    entity_id: str = Field(alias="studentId")
    status: str
