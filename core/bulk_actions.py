# core/bulk_actions.py

"""
Applies one status to every record in a buffer, for "mark all present" style actions.

The status is validated once before iterating, so an invalid value touches nothing.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.record_buffer import RecordBuffer

logger = logging.getLogger(__name__)


class BulkActionApplier:

    def apply(self, buffer: RecordBuffer, status: Enum | str) -> int:
        """
        Sets `status` on every record in `buffer` and marks each one dirty.

        Args:
            buffer (RecordBuffer): The buffer holding the active roster.
            status (Enum | str): The status to apply.

        Returns:
            int: The number of records affected.

        Raises:
            InvalidStatusError: If `status` is outside the buffer kind's enumeration. No
                record is touched in that case.
        """
        status = buffer.kind.parse_status(status)

        count = 0

        for entity_id in buffer.entity_ids():
            buffer.set_status(entity_id, status)
            count += 1

        logger.debug("Applied %s to %d %s record(s)", status.value, count, buffer.kind)

        return count
