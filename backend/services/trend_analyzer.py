import math
from typing import Sequence

from backend.schemas.plot import SanitizedRow
from backend.schemas.thumbnail import SPARKLINE_MAX_POINTS, DeltaDirection, TrendSummary

MS_PER_DAY = 1000 * 60 * 60 * 24

# Coarsest unit first; a period is expressed in the first unit it reaches.
_PERIOD_UNITS = ((365, "y"), (30, "m"), (7, "w"))


def coerce_numeric(value) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            float(value)
        except OverflowError:
            return None
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if not isinstance(value, str):
        return None
    cleaned = value.strip().replace(",", ".", 1)
    if not cleaned or "_" in cleaned:
        return None
    try:
        parsed = float(cleaned)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def compute_delta(prev: float | None, curr: float | None) -> float | None:
    if prev is None or curr is None or prev == 0:
        return None
    return ((float(curr) - float(prev)) / abs(float(prev))) * 100.0


def derive_delta_pct(focus_rows: Sequence[SanitizedRow], is_mixed: bool) -> int | None:
    if is_mixed or len(focus_rows) < 2:
        return None
    delta = compute_delta(focus_rows[0].y, focus_rows[-1].y)
    if delta is None or not math.isfinite(delta):
        return None
    return round_half_up(delta)


def derive_delta_direction(delta_pct: int | None) -> DeltaDirection | None:
    if delta_pct is None:
        return None
    if delta_pct > 1:
        return "up"
    if delta_pct < -1:
        return "down"
    return "stable"


def derive_delta_period(focus_rows: Sequence[SanitizedRow], is_mixed: bool) -> str | None:
    if is_mixed or len(focus_rows) < 2:
        return None
    days = (focus_rows[-1].t - focus_rows[0].t) / MS_PER_DAY
    for unit_days, letter in _PERIOD_UNITS:
        if days >= unit_days:
            return f"{round_half_up(days / unit_days)}{letter}"
    return f"{round_half_up(days)}d"


def derive_trend(focus_rows: Sequence[SanitizedRow], is_mixed: bool) -> TrendSummary | None:
    """Trend between the first and last focus point, or None when undefined.

    The three fields share one gate: mixed units, fewer than two points, or a
    zero starting value all leave the trend out entirely.
    """
    delta_pct = derive_delta_pct(focus_rows, is_mixed)
    if delta_pct is None:
        return None
    return TrendSummary(
        delta_pct=delta_pct,
        delta_direction=derive_delta_direction(delta_pct),
        delta_period=derive_delta_period(focus_rows, is_mixed),
    )


def downsample(values: Sequence[float], max_points: int = SPARKLINE_MAX_POINTS) -> list[float]:
    """Bound a series to max_points, always keeping the first and last value."""
    n = len(values)
    if n == 0:
        return [0]
    if n <= max_points:
        return list(values)

    middle_slots = max_points - 2
    middle_values = values[1:-1]
    stride = len(middle_values) / middle_slots
    result = [values[0]]
    result.extend(middle_values[math.floor(i * stride)] for i in range(middle_slots))
    result.append(values[-1])
    return result
