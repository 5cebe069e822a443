from collections.abc import Mapping
from typing import Annotated, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictStr, computed_field, field_validator, model_validator

Status = Literal["normal", "high", "low", "unknown"]
DeltaDirection = Literal["up", "down", "stable"]

SPARKLINE_MAX_POINTS = 30
TREND_FIELDS: tuple[str, ...] = ("delta_pct", "delta_direction", "delta_period")

FiniteNumber = Annotated[float, Field(strict=True, allow_inf_nan=False)]


class ThumbnailConfig(BaseModel):
    """Advisory hint produced by the upstream reasoning step."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    status: Status = Field(default="unknown", description="Preliminary clinical status")
    focus_analyte_name: StrictStr | None = Field(
        default=None,
        validation_alias=AliasChoices("focus_analyte_name", "focus_series_name"),
        description="Series the thumbnail should summarize",
    )

    @field_validator("focus_analyte_name", mode="before")
    @classmethod
    def _reject_explicit_null(cls, value):
        # A key sent as null is present-but-invalid, not absent.
        if value is None:
            raise ValueError("focus_analyte_name must be a string if provided")
        return value


class TrendSummary(BaseModel):
    """Change between the first and last point of the focus series."""
    model_config = ConfigDict(frozen=True)

    delta_pct: Annotated[int, Field(strict=True)]
    delta_direction: DeltaDirection
    delta_period: Annotated[str, Field(pattern=r"^\d+[ymwd]$")]


class Sparkline(BaseModel):
    model_config = ConfigDict(frozen=True)

    series: list[FiniteNumber] = Field(min_length=1, max_length=SPARKLINE_MAX_POINTS)


class Thumbnail(BaseModel):
    """Compact summary of one analyte series for inline chat display."""
    model_config = ConfigDict(frozen=True)

    plot_title: Annotated[str, Field(strict=True, min_length=1)]
    focus_analyte_name: str | None = None
    point_count: Annotated[int, Field(strict=True, ge=0)]
    series_count: Annotated[int, Field(strict=True, ge=0)]
    latest_value: FiniteNumber | None = None
    unit_raw: str | None = None
    unit_display: str | None = None
    status: Status
    trend: TrendSummary | None = Field(default=None, exclude=True)
    sparkline: Sparkline

    @model_validator(mode="before")
    @classmethod
    def _collect_trend(cls, data):
        # Serialized thumbnails carry the trend as flat delta_* keys.
        if isinstance(data, Mapping) and "trend" not in data:
            flat = {key: data.get(key) for key in TREND_FIELDS}
            if any(value is not None for value in flat.values()):
                data = {**data, "trend": flat}
        return data

    @computed_field
    @property
    def delta_pct(self) -> int | None:
        return self.trend.delta_pct if self.trend else None

    @computed_field
    @property
    def delta_direction(self) -> DeltaDirection | None:
        return self.trend.delta_direction if self.trend else None

    @computed_field
    @property
    def delta_period(self) -> str | None:
        return self.trend.delta_period if self.trend else None


class ThumbnailResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    thumbnail: Thumbnail
    result_id: str

