import logging
from collections.abc import Mapping
from typing import Any, Sequence
from uuid import uuid4

from pydantic import ValidationError

from backend.schemas.plot import SanitizedRow
from backend.schemas.thumbnail import Thumbnail, ThumbnailConfig, ThumbnailResult
from backend.services.classifier import derive_status, get_unit_info, select_focus_series, series_names
from backend.services.row_parser import preprocess_rows
from backend.services.trend_analyzer import derive_trend, downsample

logger = logging.getLogger(__name__)


def _format_errors(exc: ValidationError) -> list[str]:
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        errors.append(f"{location}: {error['msg']}" if location else error["msg"])
    return errors


def validate_thumbnail_config(config: Any) -> tuple[ThumbnailConfig | None, list[str]]:
    if isinstance(config, ThumbnailConfig):
        return config, []
    if not isinstance(config, Mapping):
        return None, ["thumbnail config must be an object"]
    try:
        return ThumbnailConfig.model_validate(dict(config)), []
    except ValidationError as exc:
        return None, _format_errors(exc)


def _build_thumbnail(payload: Mapping[str, Any]) -> tuple[Thumbnail | None, list[str]]:
    try:
        return Thumbnail.model_validate(dict(payload)), []
    except ValidationError as exc:
        return None, _format_errors(exc)


def validate_thumbnail_output(payload: Mapping[str, Any]) -> list[str]:
    """Return every contract violation in a derived thumbnail payload."""
    return _build_thumbnail(payload)[1]


def derive_empty_thumbnail(plot_title: str) -> dict[str, Any]:
    return {
        "plot_title": plot_title,
        "focus_analyte_name": None,
        "point_count": 0,
        "series_count": 0,
        "latest_value": None,
        "unit_raw": None,
        "unit_display": None,
        "status": "unknown",
        "trend": None,
        "sparkline": {"series": [0]},
    }


def summarize_rows(plot_title: str, rows: Sequence[SanitizedRow], config: ThumbnailConfig) -> dict[str, Any]:
    """Run focus selection, unit check, status, trend and sparkline over preprocessed rows."""
    focus = select_focus_series(rows, config.focus_analyte_name)
    unit_info = get_unit_info(focus.rows)
    latest_value = focus.rows[-1].y if focus.rows else None

    return {
        "plot_title": plot_title,
        "focus_analyte_name": focus.name,
        "point_count": len(focus.rows),
        "series_count": len(series_names(rows)),
        "latest_value": latest_value,
        "unit_raw": unit_info.unit_raw,
        "unit_display": unit_info.unit_display,
        "status": derive_status(config.status, latest_value, focus.rows, unit_info.is_mixed),
        "trend": derive_trend(focus.rows, unit_info.is_mixed),
        "sparkline": {"series": downsample([row.y for row in focus.rows])},
    }


def derive_fallback_thumbnail(plot_title: str, rows: Any) -> dict[str, Any]:
    """Best-effort summary used when the hint is malformed; neither status nor trend is reported."""
    payload = summarize_rows(plot_title, preprocess_rows(rows), ThumbnailConfig())
    payload["status"] = "unknown"
    payload["trend"] = None
    return payload


def derive_thumbnail(rows: Any, plot_title: str, config: Any = None) -> ThumbnailResult | None:
    """Derive a validated thumbnail from raw plot rows and an advisory hint.

    Returns None when no hint was given, and when the derived thumbnail breaks
    the output contract. Callers treat None as "render nothing".
    """
    if config is None:
        return None

    hint, config_errors = validate_thumbnail_config(config)
    if hint is None:
        payload = derive_fallback_thumbnail(plot_title, rows)
        code_path = "fallback"
    else:
        preprocessed = preprocess_rows(rows)
        if not preprocessed:
            payload = derive_empty_thumbnail(plot_title)
            code_path = "empty"
        else:
            payload = summarize_rows(plot_title, preprocessed, hint)
            code_path = "main"
    logger.debug("Derived thumbnail for %r via %s path (config errors: %s)", plot_title, code_path, config_errors)

    thumbnail, output_errors = _build_thumbnail(payload)
    if thumbnail is None:
        logger.error(
            "Thumbnail output validation failed: plot_title=%r code_path=%s errors=%s",
            plot_title,
            code_path,
            output_errors,
        )
        return None
    return ThumbnailResult(thumbnail=thumbnail, result_id=str(uuid4()))
