# core/default_resolver.py

"""
Supplies an initial status for entities the server sent no default for, so the grid
renders complete and editable on first load.
"""

from enum import Enum

from models.entity import Entity
from models.record_kind import RecordKind


class DefaultResolver:
    """
    Resolves an entity's fallback status from its record kind.

    Subclasses may vary the fallback per entity, but must never return one of the
    kind's error-indicating statuses.
    """

    def resolve(self, entity: Entity, kind: RecordKind) -> Enum:
        return kind.neutral_status
