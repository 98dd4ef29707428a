# core/response.py

"""
Structured results for the UI-facing `EntrySession` operations.

The engine components (`RecordBuffer`, `SubmissionCoordinator`, ...) raise typed
exceptions from `core.exceptions`; `EntrySession` catches them and hands the UI a
`Response` instead, so screens can branch on `success` and `error` without
importing the exception taxonomy.
"""

from __future__ import annotations

import traceback
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from core.exceptions import EntryError


class ErrorCode(Enum):
    # === Not Found ===
    NOT_FOUND = "NOT_FOUND"

    # === Validation Failures ===
    # roster is malformed, carries duplicate entities, or the context is incomplete
    INVALID_INPUT = "INVALID_INPUT"

    # marks are not a number, negative, or above the context's total
    INVALID_FIELD_VALUE = "INVALID_FIELD_VALUE"

    # status is outside the record kind's enumeration
    INVALID_STATUS = "INVALID_STATUS"

    # === Submission Protocol ===
    EMPTY_SUBMISSION = "EMPTY_SUBMISSION"
    OVERRIDE_REQUIRED = "OVERRIDE_REQUIRED"
    SUBMISSION_IN_PROGRESS = "SUBMISSION_IN_PROGRESS"

    # server accepted only a subset of the submitted records
    PARTIAL_SUCCESS = "PARTIAL_SUCCESS"

    # response arrived for a context that is no longer active
    STALE_CONTEXT = "STALE_CONTEXT"

    # === Remote Service ===
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    RESPONSE_SCHEMA_MISMATCH = "RESPONSE_SCHEMA_MISMATCH"
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"

    # === Internal Faults ===
    INTERNAL_ERROR = "INTERNAL_ERROR"


RETRYABLE_ERRORS = frozenset(
    {
        ErrorCode.OVERRIDE_REQUIRED,
        ErrorCode.TRANSPORT_ERROR,
        ErrorCode.PARTIAL_SUCCESS,
    }
)


class Response:
    """
    Outcome of one `EntrySession` operation.

    Attributes:
        success (bool): True if the operation completed in full.
        detail (str | None): Message suitable for a toast or status line.
        error (ErrorCode | str | None): Machine-readable failure reason; None on success.
        status_code (int | None): HTTP-style status, e.g. 207 for a partial bulk save.
        data (dict): Operation payload such as "records", "result", or "count".
        trace (str | None): Formatted traceback, only for unexpected errors.
    """

    def __init__(
        self,
        success: bool,
        detail: str | None = None,
        error: ErrorCode | str | None = None,
        status_code: int | None = None,
        data: dict | None = None,
        trace: str | None = None,
    ):
        self._success = success
        self._detail = detail
        self._error = error
        self._status_code = status_code
        self._data = data or {}
        self._trace = trace

    # === properties ===

    @property
    def success(self) -> bool:
        return self._success

    @property
    def detail(self) -> str | None:
        return self._detail

    @property
    def error(self) -> ErrorCode | str | None:
        return self._error

    @property
    def error_name(self) -> str | None:
        return self._error.value if isinstance(self._error, Enum) else self._error

    @property
    def status_code(self) -> int | None:
        return self._status_code

    @property
    def data(self) -> dict:
        return self._data

    @property
    def trace(self) -> str | None:
        return self._trace

    @property
    def result(self) -> Any:
        """The `SubmissionResult` of a submit call, if a server reply was received."""
        return self._data.get("result")

    @property
    def is_retryable(self) -> bool:
        return self._error in RETRYABLE_ERRORS

    @property
    def needs_override(self) -> bool:
        """
        True if the next submit must pass `allow_override=True`.

        Set for `OVERRIDE_REQUIRED`, and for a `PARTIAL_SUCCESS` whose accepted records
        already count as a prior submission for the context.
        """
        return self._error is ErrorCode.OVERRIDE_REQUIRED or bool(
            self._data.get("override_required")
        )

    # === constructors ===

    @classmethod
    def succeed(
        cls,
        detail: str | None = None,
        status_code: int | None = 200,
        data: dict | None = None,
    ) -> Response:
        return cls(True, detail=detail, status_code=status_code, data=data)

    @classmethod
    def fail(
        cls,
        detail: str | None = None,
        error: ErrorCode | str | None = None,
        status_code: int | None = 400,
        data: dict | None = None,
        trace: str | None = None,
    ) -> Response:
        return cls(
            False,
            detail=detail,
            error=error,
            status_code=status_code,
            data=data,
            trace=trace,
        )

    @classmethod
    def from_error(cls, error: EntryError, data: dict | None = None) -> Response:
        """Maps an engine exception onto its error code and status code."""
        return cls.fail(
            detail=str(error),
            error=error.error_code,
            status_code=error.status_code,
            data=data,
        )

    @classmethod
    def from_exception(cls, error: Exception) -> Response:
        """
        Wraps an exception the engine does not know about.

        Must be called from inside the `except` block so the traceback is captured.
        """
        return cls.fail(
            detail=f"Unexpected error: {error}",
            error=ErrorCode.INTERNAL_ERROR,
            status_code=500,
            trace=traceback.format_exc(),
        )

    # === persistence ===

    def to_dict(self) -> dict:
        return {
            "success": self._success,
            "error": self.error_name,
            "detail": self._detail,
            "data": self._data,
            "status_code": self._status_code,
            "trace": self._trace,
        }

    # === dunder methods ===

    def __bool__(self) -> bool:
        return self._success

    def __str__(self) -> str:
        label = "OK" if self._success else self.error_name or "FAILED"
        return f"[{label}] {self._detail or ''}".rstrip()
