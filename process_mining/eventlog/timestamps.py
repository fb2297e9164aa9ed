"""
Timestamp parsing and formatting.

Events store timezone-aware UTC datetimes. Inputs may be ISO-8601 strings
with a ``Z`` or ``+HH:MM`` suffix, epoch milliseconds, or datetime objects;
naive datetimes and offset-less strings are taken to be UTC.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from ..errors import InvalidInputError

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_MS = timedelta(milliseconds=1)

# SAP extracts often carry plain dates or the compact YYYYMMDD form
_FALLBACK_FORMATS = [
    "%Y-%m-%d",
    "%Y%m%d",
    "%Y-%m-%d %H:%M:%S",
]


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a timestamp into an aware UTC datetime.

    Args:
        value: ISO string, epoch milliseconds (int/float), or datetime

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        InvalidInputError: If the value is missing or cannot be parsed
    """
    if value is None:
        raise InvalidInputError("Timestamp is required")

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid timestamp: {value!r}")

    if isinstance(value, (int, float)):
        try:
            return EPOCH + timedelta(milliseconds=value)
        except (OverflowError, ValueError) as e:
            raise InvalidInputError(f"Invalid timestamp: {value!r}") from e

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidInputError("Timestamp is required")
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            parsed = None
            for fmt in _FALLBACK_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            raise InvalidInputError(f"Invalid timestamp: {value!r}")
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    raise InvalidInputError(f"Invalid timestamp type: {type(value).__name__}")


def try_parse_timestamp(value: Any) -> Optional[datetime]:
    """Like parse_timestamp, but returns None instead of raising."""
    try:
        return parse_timestamp(value)
    except InvalidInputError:
        return None


def to_epoch_ms(dt: datetime) -> int:
    """Integer milliseconds since the Unix epoch."""
    return (dt - EPOCH) // ONE_MS


def format_iso(dt: datetime) -> str:
    """ISO-8601 with millisecond precision and a trailing ``Z``."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def format_xes(dt: datetime) -> str:
    """XES date value: like format_iso, but with an explicit +00:00 offset."""
    return format_iso(dt)[:-1] + "+00:00"
