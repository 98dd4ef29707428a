# core/record_buffer.py

"""
In-memory edit buffer holding one `Record` per roster entity for the active context.

`RecordBuffer` is seeded from a roster snapshot and its server defaults, mutated by
user edits and bulk actions, and reconciled against the outcome of a bulk submission.
It never persists anything; the remote service is the system of record.

This enables workflows such as:
    - Rendering a complete, editable grid on first load, even when defaults are missing
    - Editing several records locally and submitting only the touched ones in one request
    - Warning before data loss while unsaved edits exist
    - Discarding local edits and returning to the last confirmed values

The buffer supports:
    - Loading a roster (fully replacing any previous context, never merging)
    - Per-entity status, value, and remark edits with dirty tracking
    - Bulk "mark all" edits through `BulkActionApplier`
    - Per-record reconciliation of accepted and rejected submission outcomes
    - A load version so late submission responses can be detected as stale
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from core.bulk_actions import BulkActionApplier
from core.default_resolver import DefaultResolver
from core.exceptions import FieldValueError, NotFoundError, ValidationError
from models.context import Context
from models.entity import Entity
from models.record import Record, RecordSnapshot
from models.record_kind import RecordKind

logger = logging.getLogger(__name__)


class RecordBuffer:
    """
    Keyed collection of editable records for one record kind.

    Notes:
        - Records are kept in roster order; `dirty_entries()` preserves that order.
        - Every failed mutating call leaves the buffer unchanged.
    """

    def __init__(
        self,
        kind: RecordKind,
        resolver: DefaultResolver | None = None,
        applier: BulkActionApplier | None = None,
    ):
        self._kind: RecordKind = kind
        self._resolver: DefaultResolver = resolver or DefaultResolver()
        self._applier: BulkActionApplier = applier or BulkActionApplier()
        self._entities: dict[str, Entity] = {}
        self._records: dict[str, Record] = {}
        self._context: Context | None = None
        self._prior_submission_exists: bool = False
        self._load_count: int = 0
        self._closed: bool = False

    # === properties ===

    @property
    def kind(self) -> RecordKind:
        return self._kind

    @property
    def context(self) -> Context | None:
        return self._context

    @property
    def prior_submission_exists(self) -> bool:
        return self._prior_submission_exists

    @property
    def version(self) -> tuple[str | None, int]:
        """Identifies the currently loaded roster; changes on every `load()` and on `close()`."""
        token = self._context.token if self._context else None
        return (token, self._load_count)

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def has_unsaved_changes(self) -> bool:
        return any(record.dirty for record in self._records.values())

    # === loading ===

    def load(
        self,
        entities: Iterable[Entity],
        defaults: Mapping[str, Enum | str] | None = None,
        values: Mapping[str, float] | None = None,
        remarks: Mapping[str, str] | None = None,
        context: Context | None = None,
        prior_submission_exists: bool = False,
    ) -> None:
        """
        Replaces every record with a fresh, clean record per entity.

        Args:
            entities (Iterable[Entity]): The roster, in display order.
            defaults (Mapping[str, Enum | str] | None): Server-provided status per entity id.
            values (Mapping[str, float] | None): Already-recorded values (marks) per entity id.
            remarks (Mapping[str, str] | None): Already-recorded remarks per entity id.
            context (Context | None): The scope the roster belongs to.
            prior_submission_exists (bool): Whether the scope already has recorded submissions.

        Raises:
            ValidationError: If the roster contains duplicate or empty identifiers.
            InvalidStatusError: If a default names a status outside the kind's enumeration.

        Notes:
            - Entities without a default use `DefaultResolver`.
            - Defaults for ids not in the roster are ignored.
            - The new state is built aside and swapped in, so a failed load keeps the old buffer.
        """
        defaults = defaults or {}
        values = values or {}
        remarks = remarks or {}

        entities_by_id: dict[str, Entity] = {}
        records: dict[str, Record] = {}

        for entity in entities:
            if not entity.id:
                raise ValidationError("Roster contains an entity without an identifier.")

            if entity.id in entities_by_id:
                raise ValidationError(
                    f"Roster contains duplicate entity identifier '{entity.id}'."
                )

            status = defaults.get(entity.id)

            if status is None:
                status = self._resolver.resolve(entity, self._kind)

            entities_by_id[entity.id] = entity
            records[entity.id] = Record(
                entity_id=entity.id,
                kind=self._kind,
                status=status,
                value=values.get(entity.id),
                remark=remarks.get(entity.id),
            )

        unknown = set(defaults) - set(entities_by_id)

        if unknown:
            logger.debug("Ignoring defaults for %d unknown entity id(s)", len(unknown))

        self._entities = entities_by_id
        self._records = records
        self._context = context
        self._prior_submission_exists = prior_submission_exists
        self._load_count += 1
        self._closed = False

        logger.info(
            "Loaded %d %s record(s) for %s", len(records), self._kind, context or "[NO CONTEXT]"
        )

    def close(self) -> None:
        """Tears the buffer down; any outstanding submission response will be discarded."""
        self._entities = {}
        self._records = {}
        self._closed = True
        self._load_count += 1

    def mark_submitted(self) -> None:
        """Notes that the active context now has a recorded submission."""
        self._prior_submission_exists = True

    # === data accessors ===

    def get(self, entity_id: str) -> Record:
        return self._require(entity_id)

    def entity(self, entity_id: str) -> Entity:
        self._require(entity_id)
        return self._entities[entity_id]

    def entity_ids(self) -> list[str]:
        return list(self._records)

    def entities(self) -> list[Entity]:
        return list(self._entities.values())

    def records(self) -> list[Record]:
        return list(self._records.values())

    def dirty_entries(self) -> list[Record]:
        """
        Returns the dirty records in roster order.

        An empty list is valid and means there is nothing to submit.
        """
        return [record for record in self._records.values() if record.dirty]

    def counts_by_status(self) -> dict[str, int]:
        """Tallies current statuses for on-screen counters; every status appears, zero or not."""
        counts = Counter(record.status.value for record in self._records.values())
        return {status: counts.get(status, 0) for status in self._kind.allowed_values()}

    def filter_entities(self, query: str) -> list[Entity]:
        return [entity for entity in self._entities.values() if entity.matches(query)]

    # === data manipulators ===

    def set_status(
        self,
        entity_id: str,
        status: Enum | str,
        remark: str | None = None,
        value: Any = None,
    ) -> None:
        """
        Sets an entity's status, plus optional remark and value, and marks it dirty.

        Omitted (None) remark and value keep the record's current ones; clearing them
        is not supported.

        Raises:
            NotFoundError: If `entity_id` is not in the roster.
            InvalidStatusError: If `status` is outside the kind's enumeration.
            ValidationError: If `value` is invalid, or given for a kind without values.
        """
        record = self._require(entity_id)
        status = self._kind.parse_status(status)

        if value is not None:
            value = self.validate_value(value)

        record.touch(status, value=value, remark=remark)

    def set_value(self, entity_id: str, value: Any) -> None:
        """
        Sets an entity's value (marks) and marks it dirty, keeping its status.

        Raises:
            NotFoundError: If `entity_id` is not in the roster.
            ValidationError: If `value` is invalid, or the kind carries no values.
        """
        record = self._require(entity_id)
        value = self.validate_value(value)
        record.touch(record.status, value=value)

    def set_remark(self, entity_id: str, remark: str) -> None:
        record = self._require(entity_id)
        record.touch(record.status, remark=remark)

    def apply_to_all(self, status: Enum | str) -> int:
        return self._applier.apply(self, status)

    def revert(self, entity_id: str) -> None:
        self._require(entity_id).revert()

    def discard_changes(self) -> int:
        """Reverts every dirty record to its last confirmed values; returns how many were reverted."""
        dirty = self.dirty_entries()

        for record in dirty:
            record.revert()

        return len(dirty)

    def mark_pending(self, entity_ids: Iterable[str]) -> None:
        for entity_id in entity_ids:
            if entity_id in self._records:
                self._records[entity_id].mark_pending()

    def clear_pending(self, entity_ids: Iterable[str]) -> None:
        for entity_id in entity_ids:
            if entity_id in self._records:
                self._records[entity_id].clear_pending()

    def reconcile(
        self,
        outcomes: Iterable,
        sent: Mapping[str, RecordSnapshot] | None = None,
    ) -> list[str]:
        """
        Merges per-entity submission outcomes back into the buffer.

        Args:
            outcomes (Iterable): Objects with `entity_id`, `accepted`, `reason`, and
                optional server-corrected `status` and `value` attributes.
            sent (Mapping[str, RecordSnapshot] | None): The submitted values per entity id.
                Without it, each record's current values are taken as the submitted ones.

        Returns:
            list[str]: The entity ids that were reconciled.

        Notes:
            - Accepted: dirty is cleared and server corrections are adopted, unless the
              record was edited again after it was sent.
            - Rejected: the record stays dirty and carries the rejection reason.
            - Outcomes for unknown entity ids are ignored.
        """
        sent = sent or {}
        applied = []

        for outcome in outcomes:
            record = self._records.get(outcome.entity_id)

            if record is None:
                logger.debug("Ignoring outcome for unknown entity %s", outcome.entity_id)
                continue

            if outcome.accepted:
                record.confirm(
                    sent.get(outcome.entity_id),
                    status=getattr(outcome, "status", None),
                    value=getattr(outcome, "value", None),
                )

            else:
                record.reject(outcome.reason)

            applied.append(outcome.entity_id)

        return applied

    # === data validators ===

    def validate_value(self, value: Any) -> float:
        """
        Validates and normalizes a record value (marks obtained).

        Accepts any input, and then:
            - Casts to float.
            - Ensures the number is finite.
            - Ensures it is non-negative.
            - Ensures it does not exceed the context's total marks, when known.

        Raises:
            ValidationError: If the kind carries no values.
            FieldValueError: If the input fails a check.
        """
        if not self._kind.carries_value:
            raise ValidationError(f"{self._kind} records do not carry a value.")

        try:
            value = float(value)

        except (TypeError, ValueError):
            raise FieldValueError("Invalid input. Value must be a number.") from None

        if not math.isfinite(value):
            raise FieldValueError("Invalid input. Value must be a finite number.")

        if value < 0:
            raise FieldValueError("Invalid input. Value cannot be less than zero.")

        total = self._context.total_marks if self._context else None

        if total is not None and value > total:
            raise FieldValueError(f"Invalid input. Value cannot exceed {total}.")

        return value

    # === helper methods ===

    def _require(self, entity_id: str) -> Record:
        try:
            return self._records[entity_id]

        except KeyError:
            raise NotFoundError(entity_id) from None

    # === dunder methods ===

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._records

    def __iter__(self):
        return iter(self._records.values())
