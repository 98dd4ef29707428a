# models/context.py

"""
Represents the scope a bulk submission targets: a class, an optional section, and a
date, exam/subject, or assignment.

Each `Context` is issued a unique token when it is constructed. The token identifies
the scope for the lifetime of an editing session: `with_override()` produces a copy
that keeps the token, while selecting a different class/section/date means building a
new `Context` with a new token.
"""

from __future__ import annotations

import copy
import datetime

from core.utils import generate_uuid


class Context:

    def __init__(
        self,
        class_id: str,
        section_id: str | None = None,
        date: datetime.date | None = None,
        exam_id: str | None = None,
        subject_id: str | None = None,
        assignment_id: str | None = None,
        total_marks: float | None = None,
        allow_override: bool = False,
    ):
        self._class_id: str = class_id
        self._section_id: str | None = section_id
        self._date: datetime.date | None = date
        self._exam_id: str | None = exam_id
        self._subject_id: str | None = subject_id
        self._assignment_id: str | None = assignment_id
        self._total_marks: float | None = total_marks
        self._allow_override: bool = allow_override
        self._token: str = generate_uuid()

    # === properties ===

    @property
    def class_id(self) -> str:
        return self._class_id

    @property
    def section_id(self) -> str | None:
        return self._section_id

    @property
    def date(self) -> datetime.date | None:
        return self._date

    @property
    def exam_id(self) -> str | None:
        return self._exam_id

    @property
    def subject_id(self) -> str | None:
        return self._subject_id

    @property
    def assignment_id(self) -> str | None:
        return self._assignment_id

    @property
    def total_marks(self) -> float | None:
        return self._total_marks

    @property
    def allow_override(self) -> bool:
        return self._allow_override

    @property
    def token(self) -> str:
        return self._token

    def with_override(self, allow_override: bool = True) -> Context:
        """Returns a copy of this context, with the same token, and the given override flag."""
        context = copy.copy(self)
        context._allow_override = allow_override
        return context

    def same_scope(self, other: Context | None) -> bool:
        return other is not None and other.token == self._token

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            "class_id": self._class_id,
            "section_id": self._section_id,
            "date": self._date.isoformat() if self._date else None,
            "exam_id": self._exam_id,
            "subject_id": self._subject_id,
            "assignment_id": self._assignment_id,
            "total_marks": self._total_marks,
            "allow_override": self._allow_override,
        }

    # === dunder methods ===

    def __repr__(self) -> str:
        return (
            f"Context({self._class_id}, {self._section_id}, {self._date}, {self._exam_id}, "
            f"{self._subject_id}, {self._assignment_id}, {self._allow_override})"
        )

    def __str__(self) -> str:
        scope = self._date or self._exam_id or self._assignment_id or "[NO PERIOD]"
        return f"CONTEXT: class: {self._class_id}, section: {self._section_id or '[ALL]'}, period: {scope}"
