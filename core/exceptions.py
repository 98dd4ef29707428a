# core/exceptions.py

"""
Error taxonomy for record entry and bulk submission.

Buffer-local errors (`NotFoundError`, `InvalidStatusError`, `ValidationError`) signal
programming mistakes in the calling screen and leave the buffer untouched.
`OverrideRequiredError` and `TransportError` are user-facing: the caller keeps every
dirty record and offers a retry.
"""

from core.response import ErrorCode


class EntryError(Exception):
    """Base class for every error raised by the record entry engine."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 400


# === buffer-local errors ===


class ValidationError(EntryError, ValueError):
    """Malformed roster, duplicate entity, or an incomplete context."""

    error_code = ErrorCode.INVALID_INPUT


class FieldValueError(ValidationError):
    """A record value (marks) is not a finite, non-negative number within the total."""

    error_code = ErrorCode.INVALID_FIELD_VALUE


class NotFoundError(EntryError, LookupError):
    """Operation referenced an entity id that is not in the roster."""

    error_code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, entity_id: str):
        super().__init__(f"No record for entity '{entity_id}' in the active roster.")
        self.entity_id = entity_id


class InvalidStatusError(EntryError, ValueError):
    """Status value is outside the closed enumeration of the record kind."""

    error_code = ErrorCode.INVALID_STATUS

    def __init__(self, status: object, kind_name: str, allowed: list[str]):
        super().__init__(
            f"Invalid {kind_name} status '{status}'. Expected one of: {', '.join(allowed)}."
        )
        self.status = status
        self.allowed = allowed


# === submission protocol errors ===


class EmptySubmissionError(EntryError):
    """Submit was called with no dirty records."""

    error_code = ErrorCode.EMPTY_SUBMISSION


class OverrideRequiredError(EntryError):
    """
    The context already has a recorded submission and override was not granted.

    Raised either by the client-side policy pre-check (`from_server` is False) or when
    the remote service rejects the bulk request for the same reason.
    """

    error_code = ErrorCode.OVERRIDE_REQUIRED
    status_code = 409

    def __init__(self, message: str | None = None, from_server: bool = False):
        super().__init__(
            message
            or "Records already exist for this context. Resubmit with override to replace them."
        )
        self.from_server = from_server


class SubmissionInProgressError(EntryError):
    """A bulk submission for this session is still outstanding."""

    error_code = ErrorCode.SUBMISSION_IN_PROGRESS
    status_code = 429


# === remote service errors ===


class TransportError(EntryError):
    """Network or server failure unrelated to override conflicts; retryable."""

    error_code = ErrorCode.TRANSPORT_ERROR
    status_code = 502

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class ResponseSchemaError(EntryError):
    """The remote service answered with a body that does not match the pinned contract."""

    error_code = ErrorCode.RESPONSE_SCHEMA_MISMATCH
    status_code = 502


class UnsupportedOperationError(EntryError):
    """The record kind has no endpoint for the requested operation."""

    error_code = ErrorCode.UNSUPPORTED_OPERATION
    status_code = 405
