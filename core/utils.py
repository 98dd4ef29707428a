# core/utils.py

"""
Repository for program-wide utilities.
"""

import datetime
import uuid
from enum import Enum
from typing import Any


def generate_uuid() -> str:
    return str(uuid.uuid4())


def wire_value(value: Any) -> Any:
    """Converts dates and enum members to their JSON-compatible form; other values pass through."""
    if isinstance(value, Enum):
        return value.value

    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()

    return value
