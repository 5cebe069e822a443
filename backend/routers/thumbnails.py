from fastapi import APIRouter

from backend.schemas.plot import DeriveThumbnailRequest
from backend.schemas.thumbnail import ThumbnailResult
from backend.services.thumbnail import derive_thumbnail

router = APIRouter(prefix="/api/thumbnails", tags=["thumbnails"])


@router.post("/derive", response_model=ThumbnailResult | None)
def derive(payload: DeriveThumbnailRequest):
    return derive_thumbnail(payload.rows, payload.plot_title, payload.thumbnail)
