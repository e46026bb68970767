"""Shared model helpers.

Rows from the backing store carry ISO-8601 strings for timestamps, and
older rows use ``""`` where a timestamp was never set.  :data:`Timestamp`
normalises both into timezone-aware UTC datetimes or ``None``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BeforeValidator


def parse_timestamp(value: Any) -> datetime | None:
    """Convert an ISO-8601 string or datetime to an aware UTC datetime.

    Returns ``None`` for missing, empty or unparseable values.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


Timestamp = Annotated[datetime | None, BeforeValidator(parse_timestamp)]
"""Annotated type that coerces ISO strings to UTC datetimes, blanks to ``None``."""
