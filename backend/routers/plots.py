import logging

from fastapi import APIRouter, HTTPException

from backend.schemas.plot import ShowPlotRequest, ShowPlotResponse
from backend.services.row_parser import ensure_out_of_range_fields, normalize_rows_for_renderer, preprocess_rows
from backend.services.thumbnail import derive_thumbnail, validate_thumbnail_config

router = APIRouter(prefix="/api/plots", tags=["plots"])
logger = logging.getLogger(__name__)


@router.post("/show", response_model=ShowPlotResponse)
def show_plot(payload: ShowPlotRequest):
    plot_title = payload.plot_title
    if not plot_title or not plot_title.strip():
        logger.warning("Missing or invalid plot_title: %r", plot_title)
        raise HTTPException(status_code=400, detail="plot_title is required and must be a non-empty string")

    hint = payload.thumbnail
    if not isinstance(payload.data, list):
        logger.warning("Invalid data type for plot %r: %s", plot_title, type(payload.data).__name__)
        return ShowPlotResponse(
            success=False,
            plot_title=plot_title,
            rows=[],
            replace_previous=True,
            error="Invalid data format - expected array",
            thumbnail=derive_thumbnail([], plot_title, hint),
        )

    preprocessed = preprocess_rows(payload.data)
    rows = ensure_out_of_range_fields(
        normalize_rows_for_renderer(row.model_dump(exclude_none=True) for row in preprocessed)
    )

    result = None
    if hint is not None:
        _, errors = validate_thumbnail_config(hint)
        if errors:
            logger.warning("Invalid thumbnail config for plot %r: %s", plot_title, errors)
        result = derive_thumbnail(payload.data, plot_title, hint)
        if result is not None:
            logger.info("Emitting thumbnail %s for plot %r", result.result_id, plot_title)

    logger.info(
        "show_plot completed: plot_title=%r raw_count=%d preprocessed_count=%d has_thumbnail=%s",
        plot_title,
        len(payload.data),
        len(preprocessed),
        hint is not None,
    )
    return ShowPlotResponse(
        success=True,
        plot_title=plot_title,
        rows=rows,
        replace_previous=payload.replace_previous,
        row_count=len(preprocessed),
        message="Plot displayed successfully" if preprocessed else "Empty result displayed",
        thumbnail=result,
    )
