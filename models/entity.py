# models/entity.py

"""
Represents a roster member (a student) that records are entered against.

Entities are supplied once when a roster loads and are immutable for the editing
session; only their `Record` changes. Display fields exist so screens can render
and search the grid.
"""

from __future__ import annotations


class Entity:

    def __init__(
        self,
        id: str,
        first_name: str = "",
        last_name: str = "",
        roll_number: str | None = None,
    ):
        self._id: str = id
        self._first_name: str = first_name
        self._last_name: str = last_name
        self._roll_number: str | None = roll_number

    # === properties ===

    @property
    def id(self) -> str:
        return self._id

    @property
    def first_name(self) -> str:
        return self._first_name

    @property
    def last_name(self) -> str:
        return self._last_name

    @property
    def full_name(self) -> str:
        return f"{self._first_name} {self._last_name}".strip()

    @property
    def roll_number(self) -> str | None:
        return self._roll_number

    def matches(self, query: str) -> bool:
        """Case-insensitive match on full name, or substring match on roll number."""
        query = query.strip().lower()

        if not query:
            return True

        return query in self.full_name.lower() or query in (self._roll_number or "").lower()

    # === persistence and import ===

    def to_dict(self) -> dict:
        return {
            "id": self._id,
            "first_name": self._first_name,
            "last_name": self._last_name,
            "roll_number": self._roll_number,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Entity:
        return cls(
            id=data["id"],
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            roll_number=data.get("roll_number"),
        )

    # === dunder methods ===

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Entity) and other.id == self._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return f"Entity({self._id}, {self._first_name}, {self._last_name}, {self._roll_number})"

    def __str__(self) -> str:
        return f"ENTITY: name: {self.full_name}, roll number: {self._roll_number}, id: {self._id}"
