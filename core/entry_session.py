# core/entry_session.py

"""
UI-facing entry session: one screen's fetch roster -> edit -> bulk submit -> reconcile loop.

`EntrySession` wires a `RecordBuffer`, a `SubmissionCoordinator`, and a `Transport`
together for one `RecordKind`, and returns structured `Response` objects instead of
raising, so screens can branch on `success` and `error`. The attendance, grading, and
exam-marks screens are thin instantiations built by the factory functions at the end of
this module.

Session-scoped state includes the active `Context` and whether a submission is in flight.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from core.config import EntrySettings
from core.default_resolver import DefaultResolver
from core.exceptions import EntryError, SubmissionInProgressError, ValidationError
from core.reconciliation import ReconciliationPolicy
from core.record_buffer import RecordBuffer
from core.response import ErrorCode, Response
from core.submission import SubmissionCoordinator
from core.transport import HttpTransport, Transport
from models.context import Context
from models.record_kind import ASSIGNMENT_GRADING, ATTENDANCE, EXAM_MARKS, RecordKind

logger = logging.getLogger(__name__)


class EntrySession:

    def __init__(
        self,
        kind: RecordKind,
        transport: Transport,
        resolver: DefaultResolver | None = None,
        policy: ReconciliationPolicy | None = None,
    ):
        self._kind = kind
        self._transport = transport
        self._buffer = RecordBuffer(kind, resolver=resolver)
        self._coordinator = SubmissionCoordinator(self._buffer, transport, policy)
        self._context: Context | None = None
        self._submitting: bool = False

    # === properties ===

    @property
    def kind(self) -> RecordKind:
        return self._kind

    @property
    def buffer(self) -> RecordBuffer:
        return self._buffer

    @property
    def context(self) -> Context | None:
        return self._context

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def has_unsaved_changes(self) -> bool:
        return self._buffer.has_unsaved_changes

    # === roster loading ===

    def load_roster(self, context: Context) -> Response:
        """
        Fetches the roster for `context` and replaces the buffer with clean records.

        Args:
            context (Context): The newly selected scope.

        Returns:
            Response: A structured response with the following contract:
                - success (bool):
                    - True if the roster was fetched and loaded.
                    - False if the context is incomplete, the roster is malformed, or the fetch failed.
                - detail (str | None):
                    - On failure, a human-readable description of the error.
                    - On success, a summary of the loaded roster.
                - error (ErrorCode | str | None):
                    - `ErrorCode.INVALID_INPUT` for an incomplete context or duplicate entities.
                    - `ErrorCode.INVALID_STATUS` if a server default is outside the enumeration.
                    - `ErrorCode.TRANSPORT_ERROR` or `ErrorCode.RESPONSE_SCHEMA_MISMATCH` for fetch failures.
                    - `ErrorCode.INTERNAL_ERROR` for unexpected errors.
                - status_code (int | None):
                    - 200 on success
                    - the error's status code on failure
                - data (dict | None): Payload with the following keys:
                    - On success:
                        - "records" (list[Record]): The loaded records, in roster order.
                        - "default_date" (datetime.date | None): The server's suggested date, if any.
                    - On failure:
                        - None

        Notes:
            - Loading is permitted while a submission is outstanding; that submission's
              response will be discarded when it arrives.
            - On failure the previous roster stays loaded.
        """
        try:
            self._kind.require_context(context)
            roster = self._transport.fetch_roster(self._kind, context)
            self._buffer.load(
                roster.entities(),
                defaults=roster.defaults(),
                values=roster.values(),
                remarks=roster.remarks(),
                context=context,
                prior_submission_exists=roster.already_recorded,
            )

        except EntryError as e:
            return self._fail(e)

        except Exception as e:
            return self._unexpected(e)

        else:
            self._context = context

            return Response.succeed(
                detail=f"Loaded {len(self._buffer)} {self._kind} record(s).",
                data={
                    "records": self._buffer.records(),
                    "default_date": roster.default_date,
                },
            )

    # === record editing ===

    def set_status(
        self,
        entity_id: str,
        status: Enum | str,
        remark: str | None = None,
        value: Any = None,
    ) -> Response:
        """
        Edits one entity's record and marks it dirty.

        Returns:
            Response: success with "record" in data; on failure `ErrorCode.NOT_FOUND`,
            `ErrorCode.INVALID_STATUS`, or `ErrorCode.INVALID_FIELD_VALUE`, with the buffer unchanged.
        """
        try:
            self._buffer.set_status(entity_id, status, remark=remark, value=value)

        except EntryError as e:
            return self._fail(e)

        else:
            return Response.succeed(data={"record": self._buffer.get(entity_id)})

    def set_value(self, entity_id: str, value: Any) -> Response:
        try:
            self._buffer.set_value(entity_id, value)

        except EntryError as e:
            return self._fail(e)

        else:
            return Response.succeed(data={"record": self._buffer.get(entity_id)})

    def mark_all(self, status: Enum | str) -> Response:
        try:
            count = self._buffer.apply_to_all(status)

        except EntryError as e:
            return self._fail(e)

        else:
            return Response.succeed(
                detail=f"Marked all {count} record(s) as {self._kind.parse_status(status).value}.",
                data={"count": count},
            )

    def discard_changes(self) -> Response:
        count = self._buffer.discard_changes()

        return Response.succeed(
            detail=f"Discarded unsaved changes to {count} record(s).",
            data={"count": count},
        )

    # === submission ===

    def submit(self, allow_override: bool = False) -> Response:
        """
        Submits every dirty record of the active context as one bulk request.

        Args:
            allow_override (bool): Replace records already recorded for the context.

        Returns:
            Response: A structured response with the following contract:
                - success (bool):
                    - True if the server confirmed every submitted record.
                    - False otherwise.
                - detail (str | None): A human-readable summary.
                - error (ErrorCode | str | None):
                    - `ErrorCode.EMPTY_SUBMISSION` if there is nothing to submit.
                    - `ErrorCode.SUBMISSION_IN_PROGRESS` if a submission is already outstanding.
                    - `ErrorCode.OVERRIDE_REQUIRED` if the context already has records and
                      override was not granted; retry with `allow_override=True`.
                    - `ErrorCode.PARTIAL_SUCCESS` if the server rejected some records.
                      `needs_override` is then True when the retry must pass
                      `allow_override=True` because some records were already saved.
                    - `ErrorCode.STALE_CONTEXT` if the roster changed before the reply, success or
                      failure, arrived.
                    - `ErrorCode.TRANSPORT_ERROR` or `ErrorCode.RESPONSE_SCHEMA_MISMATCH` on failure.
                    - `ErrorCode.INTERNAL_ERROR` for unexpected errors.
                - status_code (int | None):
                    - 200 on success
                    - the error's status code on failure
                - data (dict | None): Payload with the following keys:
                    - "result" (SubmissionResult): Present whenever a response was received.
                    - "override_required" (bool): On `PARTIAL_SUCCESS` only.

        Notes:
            - Dirty flags are cleared only for records the server confirmed.
            - On any failure every unconfirmed record stays dirty, so the caller can retry.
        """
        try:
            if self._submitting:
                raise SubmissionInProgressError(
                    "A submission for this session is still outstanding."
                )

            if self._context is None:
                raise ValidationError("No roster is loaded; load a context before submitting.")

            context = self._context.with_override(allow_override)
            dirty = self._buffer.dirty_entries()

            self._submitting = True

            try:
                result = self._coordinator.submit(context, dirty)

            finally:
                self._submitting = False

        except EntryError as e:
            return self._fail(e)

        except Exception as e:
            return self._unexpected(e)

        if result.discarded:
            return Response.fail(
                detail="The roster changed before the server replied; the response was discarded.",
                error=ErrorCode.STALE_CONTEXT,
                status_code=409,
                data={"result": result},
            )

        if result.rejected:
            return Response.fail(
                detail=f"{len(result.accepted)} record(s) saved, {len(result.rejected)} need attention.",
                error=ErrorCode.PARTIAL_SUCCESS,
                status_code=207,
                data={
                    "result": result,
                    "override_required": not self._coordinator.policy.may_resubmit(
                        self._context, self._buffer.prior_submission_exists
                    ),
                },
            )

        return Response.succeed(
            detail=result.message or f"{len(result.accepted)} record(s) saved.",
            data={"result": result},
        )

    def update_single(
        self,
        record_id: str,
        status: Enum | str,
        remark: str | None = None,
        value: Any = None,
    ) -> Response:
        """
        Corrects one already-recorded record by its own id, outside the bulk flow.

        No override flag is involved, and the edit buffer is not touched.

        Returns:
            Response: success with "record" (UpdateRecordResponse) in data; on failure
            `ErrorCode.INVALID_INPUT`, `ErrorCode.INVALID_STATUS`, `ErrorCode.INVALID_FIELD_VALUE`,
            `ErrorCode.UNSUPPORTED_OPERATION`, or a transport error code.
        """
        try:
            if not record_id:
                raise ValidationError("A record id is required.")

            status = self._kind.parse_status(status)

            if value is not None:
                value = self._buffer.validate_value(value)

            updated = self._transport.update_record(
                self._kind, record_id, status, remark=remark, value=value
            )

        except EntryError as e:
            return self._fail(e)

        except Exception as e:
            return self._unexpected(e)

        else:
            return Response.succeed(
                detail=f"Record {record_id} updated.",
                data={"record": updated},
            )

    def close(self) -> None:
        """Tears the session down; a submission still in flight will not be applied."""
        self._buffer.close()
        self._context = None

    # === helper methods ===

    def _fail(self, error: EntryError) -> Response:
        logger.debug("%s operation failed: %s", self._kind, error)

        return Response.from_error(error)

    def _unexpected(self, error: Exception) -> Response:
        logger.exception("Unexpected error in %s session", self._kind)

        return Response.from_exception(error)


# === record kind instantiations ===


def attendance_session(
    transport: Transport | None = None, settings: EntrySettings | None = None
) -> EntrySession:
    return EntrySession(ATTENDANCE, transport or HttpTransport(settings))


def grading_session(
    transport: Transport | None = None, settings: EntrySettings | None = None
) -> EntrySession:
    return EntrySession(ASSIGNMENT_GRADING, transport or HttpTransport(settings))


def exam_marks_session(
    transport: Transport | None = None, settings: EntrySettings | None = None
) -> EntrySession:
    return EntrySession(EXAM_MARKS, transport or HttpTransport(settings))
