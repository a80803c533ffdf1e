"""Typed accessors over loosely-typed attribute bags.

Every accessor takes an ordered alias tuple (see ``aliases``) and returns the
first present, non-empty value coerced to the requested type. A value that
cannot be coerced is skipped, so a later alias may still answer. ``None`` means
"absent" and is never conflated with zero.
"""

import json
import math
from typing import Any, Mapping, Sequence

from ..logging_config import get_logger

logger = get_logger(__name__)

Number = int | float

_SECONDS_CEILING = 1e11
_MILLIS_CEILING = 1e14
_MICROS_CEILING = 1e17

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


def parse_attrs_json(raw: Any) -> dict[str, Any]:
    """Decode an attrs column. Malformed or non-object JSON yields an empty bag."""
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str) or raw.strip() == "":
        return {}
    try:
        value = json.loads(raw)
    except ValueError:
        logger.debug("Malformed attrs JSON, using empty bag: %.80s", raw)
        return {}
    if not isinstance(value, dict):
        return {}
    return value


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def first_present(bag: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """Return the first non-empty raw value among keys, or None."""
    for key in keys:
        value = bag.get(key)
        if not _is_empty(value):
            return value
    return None


def _as_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True)
    return str(value).strip()


def _as_number(value: Any) -> Number | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            parsed = float(text)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def _as_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return None


def first_string(bag: Mapping[str, Any], keys: Sequence[str]) -> str | None:
    """First present value among keys, as a trimmed string."""
    value = first_present(bag, keys)
    if value is None:
        return None
    return _as_string(value)


def first_number(bag: Mapping[str, Any], keys: Sequence[str]) -> Number | None:
    """First value among keys that coerces to a finite number."""
    for key in keys:
        value = bag.get(key)
        if _is_empty(value):
            continue
        number = _as_number(value)
        if number is not None:
            return number
    return None


def first_int(bag: Mapping[str, Any], keys: Sequence[str]) -> int | None:
    """Like first_number, truncated to an int."""
    number = first_number(bag, keys)
    return None if number is None else int(number)


def first_bool(bag: Mapping[str, Any], keys: Sequence[str]) -> bool | None:
    """First value among keys that reads as a boolean."""
    for key in keys:
        value = bag.get(key)
        if _is_empty(value):
            continue
        flag = _as_bool(value)
        if flag is not None:
            return flag
    return None


def normalize_timestamp_ns(value: Number) -> Number:
    """Scale a timestamp of unknown unit to nanoseconds by magnitude.

    Below 1e11 is seconds, below 1e14 milliseconds, below 1e17 microseconds,
    anything larger is already nanoseconds. Non-positive or non-finite values
    are returned unchanged.
    """
    if isinstance(value, float) and not math.isfinite(value):
        return value
    if value <= 0:
        return value
    if value < _SECONDS_CEILING:
        return _scale(value, 1_000_000_000)
    if value < _MILLIS_CEILING:
        return _scale(value, 1_000_000)
    if value < _MICROS_CEILING:
        return _scale(value, 1_000)
    return value


def _scale(value: Number, factor: int) -> Number:
    if isinstance(value, int):
        return value * factor
    return int(round(value * factor))


def first_timestamp_ns(bag: Mapping[str, Any], keys: Sequence[str]) -> int | None:
    """First positive timestamp among keys, normalized to integer nanoseconds."""
    raw = first_number(bag, keys)
    if raw is None or raw <= 0:
        return None
    return int(normalize_timestamp_ns(raw))


def duration_ns(start_ns: Number | None, end_ns: Number | None) -> int | None:
    """Elapsed time between two normalized timestamps.

    Absent unless both ends are present, finite and ``end >= start``.
    """
    if start_ns is None or end_ns is None:
        return None
    if not (math.isfinite(start_ns) and math.isfinite(end_ns)):
        return None
    if end_ns < start_ns:
        return None
    return int(end_ns - start_ns)


def age_ns(captured_at_ns: Number | None, ts_ns: Number | None) -> int | None:
    """How long before the capture a timestamp was taken, floored at zero."""
    if captured_at_ns is None or ts_ns is None:
        return None
    if not (math.isfinite(captured_at_ns) and math.isfinite(ts_ns)):
        return None
    return int(max(0, captured_at_ns - ts_ns))
