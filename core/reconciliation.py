# core/reconciliation.py

"""
The override rule for resubmitting records to a context that already has a recorded
submission, as a pure decision independent of transport.

The remote service stays the authority: a passing pre-check does not guarantee the
server will accept, and `SubmissionCoordinator` still handles a server-side rejection.
"""

from __future__ import annotations

from core.exceptions import OverrideRequiredError
from models.context import Context
from models.record_kind import RecordKind


class ReconciliationPolicy:

    def __init__(self, enforce_override: bool = True):
        self._enforce_override = enforce_override

    @classmethod
    def for_kind(cls, kind: RecordKind) -> ReconciliationPolicy:
        return cls(enforce_override=kind.enforces_override)

    @property
    def enforce_override(self) -> bool:
        return self._enforce_override

    def may_resubmit(self, context: Context, prior_submission_exists: bool) -> bool:
        """
        Decides whether a submission for `context` may be sent.

        Args:
            context (Context): The submission scope, carrying the `allow_override` flag.
            prior_submission_exists (bool): Whether records are already recorded for the scope.

        Returns:
            True if override is not enforced for this kind, if `context.allow_override`
            is set, or if nothing was recorded for the scope yet. False otherwise.
        """
        if not self._enforce_override:
            return True

        return context.allow_override or not prior_submission_exists

    def require_resubmit(self, context: Context, prior_submission_exists: bool) -> None:
        """
        Raises:
            OverrideRequiredError: If `may_resubmit()` refuses the submission.
        """
        if not self.may_resubmit(context, prior_submission_exists):
            raise OverrideRequiredError(from_server=False)
