# core/submission.py

"""
The bulk submit protocol: serialize the dirty records of a buffer into one request,
send it, and reconcile the server's answer back into the buffer.

Guarantees:
    - An empty dirty set fails with `EmptySubmissionError` before any network call.
    - A refused override pre-check fails with `OverrideRequiredError` before any network call.
    - Exactly one request is sent per submission, never one per entity.
    - Transport failures and server-side override rejections leave every dirty flag set.
    - A response or failure that arrives after the buffer was reloaded or closed is discarded.

The coordinator does not serialize concurrent calls; callers keep at most one
submission in flight per buffer.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from core.exceptions import (
    EmptySubmissionError,
    EntryError,
    InvalidStatusError,
    ResponseSchemaError,
    ValidationError,
)
from core.reconciliation import ReconciliationPolicy
from core.record_buffer import RecordBuffer
from core.schemas import BulkSubmitRequest, BulkSubmitResponse, EntryOutcome
from core.transport import Transport
from models.context import Context
from models.record import Record

logger = logging.getLogger(__name__)


class SubmissionResult:
    """
    What one bulk submission achieved.

    Attributes:
        accepted (list[str]): Entity ids the server confirmed.
        rejected (dict[str, str | None]): Entity ids the server refused, with reasons.
        accepted_count (int): The count reported by the server.
        message (str | None): The server's message, if any.
        discarded (bool): True if the response was dropped because the buffer moved on.
    """

    def __init__(
        self,
        accepted: list[str] | None = None,
        rejected: dict[str, str | None] | None = None,
        accepted_count: int = 0,
        message: str | None = None,
        discarded: bool = False,
    ):
        self._accepted = accepted or []
        self._rejected = rejected or {}
        self._accepted_count = accepted_count
        self._message = message
        self._discarded = discarded

    # === properties ===

    @property
    def accepted(self) -> list[str]:
        return self._accepted

    @property
    def rejected(self) -> dict[str, str | None]:
        return self._rejected

    @property
    def accepted_count(self) -> int:
        return self._accepted_count

    @property
    def message(self) -> str | None:
        return self._message

    @property
    def discarded(self) -> bool:
        return self._discarded

    @property
    def all_accepted(self) -> bool:
        return not self._discarded and not self._rejected

    # === public classmethods ===

    @classmethod
    def stale(cls, response: BulkSubmitResponse | None = None) -> SubmissionResult:
        """A discarded result; `response` is None when the late reply was an error."""
        if response is None:
            return cls(discarded=True)

        return cls(
            accepted_count=response.accepted_count,
            message=response.message,
            discarded=True,
        )

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            "accepted": list(self._accepted),
            "rejected": dict(self._rejected),
            "accepted_count": self._accepted_count,
            "message": self._message,
            "discarded": self._discarded,
        }

    # === dunder methods ===

    def __repr__(self) -> str:
        return f"SubmissionResult({len(self._accepted)} accepted, {len(self._rejected)} rejected, {self._discarded})"


class SubmissionCoordinator:

    def __init__(
        self,
        buffer: RecordBuffer,
        transport: Transport,
        policy: ReconciliationPolicy | None = None,
    ):
        self._buffer = buffer
        self._transport = transport
        self._policy = policy or ReconciliationPolicy.for_kind(buffer.kind)

    @property
    def policy(self) -> ReconciliationPolicy:
        return self._policy

    def submit(self, context: Context, dirty_records: Sequence[Record]) -> SubmissionResult:
        """
        Sends the dirty records for `context` as one bulk request and reconciles the answer.

        Args:
            context (Context): The submission scope, carrying the override flag.
            dirty_records (Sequence[Record]): The records to submit, usually `buffer.dirty_entries()`.

        Returns:
            SubmissionResult: Accepted and rejected entity ids, or a discarded result if the
            buffer was reloaded or closed while the request was outstanding.

        Raises:
            EmptySubmissionError: If `dirty_records` is empty. Nothing is sent.
            ValidationError: If `context` is not the scope the buffer was loaded for.
            OverrideRequiredError: If the policy pre-check or the server refuses the
                resubmission. Dirty flags are untouched.
            TransportError: On network or server failure. Dirty flags are untouched.
            ResponseSchemaError: If the response breaks the pinned contract. Dirty flags are untouched.
        """
        if not dirty_records:
            raise EmptySubmissionError("There are no unsaved records to submit.")

        loaded_context = self._buffer.context

        if loaded_context is not None and not context.same_scope(loaded_context):
            raise ValidationError(
                "Submission context does not match the roster loaded in the buffer."
            )

        self._buffer.kind.require_context(context)
        self._policy.require_resubmit(context, self._buffer.prior_submission_exists)

        request = BulkSubmitRequest.build(context, dirty_records)
        sent = {record.entity_id: record.snapshot() for record in dirty_records}
        version = self._buffer.version

        self._buffer.mark_pending(sent)

        logger.info(
            "Submitting %d %s record(s) for %s (override=%s)",
            len(sent),
            self._buffer.kind,
            context,
            context.allow_override,
        )

        try:
            response = self._transport.submit_bulk(self._buffer.kind, request)

            if self._is_stale(version):
                logger.warning(
                    "Discarding %s submission response: the active roster changed",
                    self._buffer.kind,
                )
                return SubmissionResult.stale(response)

            outcomes = self._normalize(response, request)

        except EntryError as e:
            if self._is_stale(version):
                logger.warning(
                    "Discarding %s submission failure: the active roster changed (%s)",
                    self._buffer.kind,
                    e,
                )
                return SubmissionResult.stale()

            raise

        finally:
            if not self._is_stale(version):
                self._buffer.clear_pending(sent)

        applied = set(self._buffer.reconcile(outcomes, sent=sent))
        accepted = [o.entity_id for o in outcomes if o.accepted and o.entity_id in applied]
        rejected = {
            o.entity_id: o.reason
            for o in outcomes
            if not o.accepted and o.entity_id in applied
        }

        if accepted:
            self._buffer.mark_submitted()

        if rejected:
            logger.warning(
                "%d of %d %s record(s) rejected by the server",
                len(rejected),
                len(sent),
                self._buffer.kind,
            )

        return SubmissionResult(
            accepted=accepted,
            rejected=rejected,
            accepted_count=response.accepted_count,
            message=response.message,
        )

    # === helper methods ===

    def _is_stale(self, version: tuple) -> bool:
        return self._buffer.is_closed or self._buffer.version != version

    def _normalize(
        self, response: BulkSubmitResponse, request: BulkSubmitRequest
    ) -> list[EntryOutcome]:
        """
        Turns a bulk response into one outcome per submitted entity.

        Without per-entity detail, every submitted entity counts as accepted, provided the
        server's count agrees with the number sent. With detail, outcomes for entities that
        were not sent are dropped and sent entities without an outcome count as rejected.

        Raises:
            ResponseSchemaError: If the count disagrees without detail, a record has more
                than one outcome, or a corrected status is outside the kind's enumeration.
        """
        sent_ids = request.entity_ids()

        if response.outcomes is None:
            if response.accepted_count != len(sent_ids):
                raise ResponseSchemaError(
                    f"Server accepted {response.accepted_count} of {len(sent_ids)} records "
                    "without per-record outcomes."
                )

            return [EntryOutcome(entity_id=entity_id, accepted=True) for entity_id in sent_ids]

        # outcomes for entities outside this request must not confirm unsent edits
        outcomes = [o for o in response.outcomes if o.entity_id in sent_ids]

        reported = {o.entity_id for o in outcomes}

        if len(reported) != len(outcomes):
            raise ResponseSchemaError(
                "Server reported more than one outcome for the same record."
            )

        for outcome in outcomes:
            if outcome.status is not None:
                try:
                    self._buffer.kind.parse_status(outcome.status)

                except InvalidStatusError as e:
                    raise ResponseSchemaError(
                        f"Server returned an invalid status for {outcome.entity_id}: {e}"
                    ) from e

        outcomes.extend(
            EntryOutcome(
                entity_id=entity_id,
                accepted=False,
                reason="No outcome reported by the server.",
            )
            for entity_id in sent_ids
            if entity_id not in reported
        )

        return outcomes
