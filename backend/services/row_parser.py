import math
import re
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from backend.schemas.plot import SanitizedRow
from backend.services.trend_analyzer import coerce_numeric

# Epoch values below this are seconds; at or above it, milliseconds (Sept 2001).
EPOCH_MS_THRESHOLD = 10**12

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MIN_EPOCH_MS = (datetime.min.replace(tzinfo=timezone.utc) - _EPOCH) // timedelta(milliseconds=1)
_MAX_EPOCH_MS = (datetime.max.replace(tzinfo=timezone.utc) - _EPOCH) // timedelta(milliseconds=1)
_DIGITS = re.compile(r"^\d+$")


def _epoch_to_ms(value: int | float) -> int | None:
    ms = int(value) if value >= EPOCH_MS_THRESHOLD else value * 1000
    if isinstance(ms, float):
        if not math.isfinite(ms):
            return None
        ms = int(round(ms))
    if not _MIN_EPOCH_MS <= ms <= _MAX_EPOCH_MS:
        return None
    return ms


def parse_timestamp(value: Any) -> int | None:
    """Normalize a row timestamp to epoch milliseconds.

    Accepts epoch seconds or milliseconds (as numbers or digit-only text) and
    ISO-8601 text. Text without an explicit offset is taken as UTC.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return _epoch_to_ms(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if _DIGITS.match(text):
        try:
            return _epoch_to_ms(int(text))
        except ValueError:
            # beyond the interpreter's int-string conversion limit
            return None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (parsed - _EPOCH) // timedelta(milliseconds=1)


def _optional_flag(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def sanitize_row(raw: Any) -> SanitizedRow | None:
    if not isinstance(raw, Mapping):
        return None

    t = parse_timestamp(raw.get("t"))
    if t is None:
        return None
    y = coerce_numeric(raw.get("y"))
    if y is None:
        return None
    parameter_name = raw.get("parameter_name")
    if not isinstance(parameter_name, str) or not parameter_name:
        return None
    unit = raw.get("unit")
    if "unit" in raw and not isinstance(unit, str):
        return None

    fields = {str(key): val for key, val in raw.items()}
    fields.update(
        t=t,
        y=y,
        parameter_name=parameter_name,
        unit=unit,
        reference_lower=coerce_numeric(raw.get("reference_lower")),
        reference_upper=coerce_numeric(raw.get("reference_upper")),
        is_out_of_range=_optional_flag(raw.get("is_out_of_range")),
        is_value_out_of_range=_optional_flag(raw.get("is_value_out_of_range")),
    )
    return SanitizedRow.model_validate(fields)


def sanitize_rows(rows: Iterable[Any]) -> list[SanitizedRow]:
    sanitized = (sanitize_row(raw) for raw in rows)
    return [row for row in sanitized if row is not None]


def sort_by_timestamp(rows: Iterable[SanitizedRow]) -> list[SanitizedRow]:
    return sorted(rows, key=lambda row: row.t)


def preprocess_rows(rows: Iterable[Any] | None) -> list[SanitizedRow]:
    if not isinstance(rows, (list, tuple)):
        return []
    return sort_by_timestamp(sanitize_rows(rows))


def normalize_rows_for_renderer(rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Copy rows with `t` converted to epoch ms for direct numeric plotting."""
    return [{**row, "t": parse_timestamp(row.get("t"))} for row in rows]


def _compute_out_of_range(row: Mapping[str, Any]) -> bool | None:
    lower = coerce_numeric(row.get("reference_lower"))
    upper = coerce_numeric(row.get("reference_upper"))
    y = row.get("y")
    if isinstance(y, bool) or not isinstance(y, (int, float)) or not math.isfinite(y):
        return None
    if lower is None and upper is None:
        return None
    if upper is not None and y > upper:
        return True
    if lower is not None and y < lower:
        return True
    return False


def ensure_out_of_range_fields(rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Populate both out-of-range flag names on every row.

    `is_value_out_of_range` is the legacy name; whichever flag is present is
    mirrored to the other. When neither is present the flag is computed from
    the reference bounds, and rows without bounds are left as they are.
    """
    result = []
    for row in rows:
        current = row.get("is_out_of_range")
        legacy = row.get("is_value_out_of_range")
        if current is not None and legacy is not None:
            result.append(dict(row))
        elif current is not None:
            result.append({**row, "is_value_out_of_range": current})
        elif legacy is not None:
            result.append({**row, "is_out_of_range": legacy})
        else:
            flag = _compute_out_of_range(row)
            if flag is None:
                result.append(dict(row))
            else:
                result.append({**row, "is_out_of_range": flag, "is_value_out_of_range": flag})
    return result
