"""Shared Iterable helpers: date normalization and commerce item shaping.

Iterable stores custom fields typed by their first value, so every date we
forward is sent as integer epoch seconds. All helpers return new objects and
leave their input untouched.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional

from .errors import PayloadValidationError

# "2024-05-01", "2024-05-01T10:20:30", "2024-05-01 10:20:30.123Z",
# "2024-05-01T10:20:30+02:00". Bare numbers and free text are not dates.
_ISO_DATE_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}"
    r"(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)?$"
)


def _parse_iso(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 date/datetime string, or return None."""
    if not _ISO_DATE_RE.match(value):
        return None
    text = value.replace(" ", "T", 1)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat wants "+HH:MM"
    if re.search(r"[+-]\d{4}$", text):
        text = text[:-2] + ":" + text[-2:]
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        # e.g. "2024-13-45" matches the shape but is not a real date
        return None


def _epoch_seconds(dt: datetime | date) -> int:
    if not isinstance(dt, datetime):
        dt = datetime(dt.year, dt.month, dt.day)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return math.floor(dt.timestamp())


def _as_date(value: Any) -> Optional[datetime | date]:
    if isinstance(value, (datetime, date)):
        return value
    if isinstance(value, str):
        return _parse_iso(value)
    return None


def convert_dates_in_object(obj: Any) -> Any:
    """Return a copy of `obj` with every date value replaced by epoch seconds.

    Walks dicts, lists and tuples at any depth. Strings that are not ISO-8601
    dates, numbers, booleans and None come back unchanged.
    """
    if isinstance(obj, Mapping):
        return {key: convert_dates_in_object(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        converted = [convert_dates_in_object(value) for value in obj]
        return tuple(converted) if isinstance(obj, tuple) else converted
    parsed = _as_date(obj)
    if parsed is not None:
        return _epoch_seconds(parsed)
    return obj


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_unix_seconds(value: Any, now: Optional[Callable[[], datetime]] = None) -> int:
    """Convert a `createdAt` value to epoch seconds.

    Numbers are epoch milliseconds, the unit platform timestamps use.
    A missing value means "now"; pass `now` to pin the clock.
    """
    if value is None:
        return _epoch_seconds((now or _utc_now)())
    if isinstance(value, bool):
        raise PayloadValidationError(f"Invalid date value: {value!r}")
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise PayloadValidationError(f"Invalid date value: {value!r}")
        return math.floor(value / 1000)
    parsed = _as_date(value)
    if parsed is None:
        raise PayloadValidationError(f"Invalid date value: {value!r}")
    return _epoch_seconds(parsed)


def transform_items(items: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Shape commerce line items the way Iterable expects them.

    - unset (None) fields are dropped
    - a single `categories` string becomes a one-element list
    - dates inside `dataFields` are converted like event data fields
    """
    result = []
    for item in items:
        shaped = {key: value for key, value in item.items() if value is not None}
        if isinstance(shaped.get("categories"), str):
            shaped["categories"] = [shaped["categories"]]
        if "dataFields" in shaped:
            shaped["dataFields"] = convert_dates_in_object(shaped["dataFields"])
        result.append(shaped)
    return result
