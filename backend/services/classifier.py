from typing import NamedTuple, Sequence

from backend.schemas.plot import SanitizedRow
from backend.schemas.thumbnail import Status


class FocusSeries(NamedTuple):
    name: str | None
    rows: list[SanitizedRow]


class UnitInfo(NamedTuple):
    unit_raw: str | None
    unit_display: str | None
    is_mixed: bool


def series_names(rows: Sequence[SanitizedRow]) -> list[str]:
    return sorted({row.parameter_name for row in rows})


def select_focus_series(rows: Sequence[SanitizedRow], focus_analyte_name: str | None = None) -> FocusSeries:
    """Pick the series to summarize: the hinted name if present, else the first alphabetically."""
    names = series_names(rows)
    if not names:
        return FocusSeries(name=None, rows=[])
    focus_name = focus_analyte_name if focus_analyte_name in names else names[0]
    return FocusSeries(name=focus_name, rows=[row for row in rows if row.parameter_name == focus_name])


def normalize_unit(unit: str | None) -> str:
    if not unit:
        return ""
    return str(unit).strip().lower()


def get_unit_info(focus_rows: Sequence[SanitizedRow]) -> UnitInfo:
    normalized = {normalize_unit(row.unit) for row in focus_rows}
    latest_unit = focus_rows[-1].unit if focus_rows else None
    unit_raw = latest_unit or None
    return UnitInfo(
        unit_raw=unit_raw,
        # Leading space lets the renderer append it straight after the value.
        unit_display=f" {unit_raw}" if unit_raw else None,
        is_mixed=len(normalized) > 1,
    )


def derive_status(
    hint_status: Status,
    latest_value: float | None,
    focus_rows: Sequence[SanitizedRow],
    is_mixed: bool,
) -> Status:
    """Resolve the thumbnail status.

    Priority, first match wins:
    1. mixed units -> "unknown"; the data is not safe to classify
    2. a confident hint (anything but "unknown") is used verbatim
    3. the latest row's reference bounds classify the latest value
    4. otherwise "unknown"
    """
    if is_mixed:
        return "unknown"
    if hint_status != "unknown":
        return hint_status
    if not focus_rows or latest_value is None:
        return "unknown"

    latest = focus_rows[-1]
    if latest.reference_upper is not None and latest_value > latest.reference_upper:
        return "high"
    if latest.reference_lower is not None and latest_value < latest.reference_lower:
        return "low"
    if latest.has_bounds():
        return "normal"
    return "unknown"
