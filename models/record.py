# models/record.py

"""
Represents one entity's editable state for the active context.

Each `Record` holds the entity's current status, an optional numeric value (marks
obtained), an optional remark, and the last values the server confirmed. A record is
`dirty` once the user touches it and stays dirty until the server confirms it.

Includes functionality for:
- Touching a record with a new status, value, or remark
- Confirming or rejecting a record after a bulk submission
- Reverting to the last confirmed values
- Taking snapshots so in-flight edits can be told apart from submitted ones

Notes:
- The status is validated against the record kind on construction and on every touch.
- `pending` marks a record whose values are in a submission awaiting a reply.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from models.record_kind import RecordKind


class RecordState(str, Enum):
    CLEAN = "CLEAN"
    DIRTY = "DIRTY"
    PENDING = "PENDING"


class RecordSnapshot(NamedTuple):
    status: Enum
    value: float | None
    remark: str | None
    edit_count: int


class Record:

    def __init__(
        self,
        entity_id: str,
        kind: RecordKind,
        status: Enum | str,
        value: float | None = None,
        remark: str | None = None,
    ):
        self._entity_id: str = entity_id
        self._kind: RecordKind = kind
        self._status: Enum = kind.parse_status(status)
        self._value: float | None = value
        self._remark: str | None = remark
        self._dirty: bool = False
        self._pending: bool = False
        self._rejection_reason: str | None = None
        self._edit_count: int = 0
        self._confirmed: tuple[Enum, float | None, str | None] = (
            self._status,
            value,
            remark,
        )

    # === properties ===

    @property
    def entity_id(self) -> str:
        return self._entity_id

    @property
    def kind(self) -> RecordKind:
        return self._kind

    @property
    def status(self) -> Enum:
        return self._status

    @property
    def value(self) -> float | None:
        return self._value

    @property
    def remark(self) -> str | None:
        return self._remark

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def rejection_reason(self) -> str | None:
        return self._rejection_reason

    @property
    def confirmed_status(self) -> Enum:
        return self._confirmed[0]

    @property
    def confirmed_value(self) -> float | None:
        return self._confirmed[1]

    @property
    def state(self) -> RecordState:
        if self._pending:
            return RecordState.PENDING

        return RecordState.DIRTY if self._dirty else RecordState.CLEAN

    def snapshot(self) -> RecordSnapshot:
        return RecordSnapshot(self._status, self._value, self._remark, self._edit_count)

    # === data manipulators ===

    def touch(
        self,
        status: Enum | str,
        value: float | None = None,
        remark: str | None = None,
    ) -> None:
        """
        Applies a user edit and marks the record dirty.

        A `None` value or remark keeps the current one; an edit cannot clear a value or
        remark back to None. Touching with the same status still marks the record dirty.

        Raises:
            InvalidStatusError: If `status` is outside the kind's enumeration. The record
                is left unchanged.
        """
        self._status = self._kind.parse_status(status)

        if value is not None:
            self._value = value

        if remark is not None:
            self._remark = remark

        self._dirty = True
        self._rejection_reason = None
        self._edit_count += 1

    def mark_pending(self) -> None:
        self._pending = True

    def clear_pending(self) -> None:
        self._pending = False

    def confirm(
        self,
        sent: RecordSnapshot | None = None,
        status: Enum | str | None = None,
        value: float | None = None,
    ) -> None:
        """
        Records a server confirmation.

        Args:
            sent (RecordSnapshot | None): The values that were submitted. Defaults to the current values.
            status (Enum | str | None): A server-corrected status, if the server returned one.
            value (float | None): A server-corrected value, if the server returned one.

        Notes:
            - If the record was edited after `sent` was taken, the confirmed baseline is
              updated but the record stays dirty and keeps the newer edit.
        """
        sent = sent or self.snapshot()
        confirmed_status = (
            self._kind.parse_status(status) if status is not None else sent.status
        )
        confirmed_value = value if value is not None else sent.value

        self._confirmed = (confirmed_status, confirmed_value, sent.remark)
        self._pending = False
        self._rejection_reason = None

        if self._edit_count == sent.edit_count:
            self._status = confirmed_status
            self._value = confirmed_value
            self._dirty = False

    def reject(self, reason: str | None) -> None:
        self._pending = False
        self._dirty = True
        self._rejection_reason = reason or "Rejected by server."

    def revert(self) -> None:
        self._status, self._value, self._remark = self._confirmed
        self._dirty = False
        self._pending = False
        self._rejection_reason = None

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            "entity_id": self._entity_id,
            "status": self._status.value,
            "value": self._value,
            "remark": self._remark,
            "dirty": self._dirty,
            "state": self.state.value,
            "rejection_reason": self._rejection_reason,
        }

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"Record({self._entity_id}, {self._status.value}, {self._value}, {self._remark}, {self._dirty})"

    def __str__(self) -> str:
        return f"RECORD: entity id: {self._entity_id}, status: {self._status.value}, state: {self.state.value}"
