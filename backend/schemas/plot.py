from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from backend.schemas.thumbnail import ThumbnailResult


class SanitizedRow(BaseModel):
    """One measurement that survived sanitization; extra source fields are kept."""
    model_config = ConfigDict(frozen=True, extra="allow")

    t: int = Field(description="Effective time in epoch milliseconds")
    y: float | int = Field(description="Finite measured value")
    parameter_name: str = Field(min_length=1, description="Analyte / series name")
    unit: str | None = Field(default=None, description="Unit as reported; None when missing")
    reference_lower: float | int | None = None
    reference_upper: float | int | None = None
    is_out_of_range: bool | None = None
    is_value_out_of_range: bool | None = None

    def has_bounds(self) -> bool:
        return self.reference_lower is not None or self.reference_upper is not None


class ShowPlotRequest(BaseModel):
    # data and thumbnail stay loosely typed: malformed payloads degrade instead of 422.
    data: Any = None
    plot_title: str | None = None
    replace_previous: bool = False
    thumbnail: Any = None


class ShowPlotResponse(BaseModel):
    success: bool
    display_type: str = "plot"
    plot_title: str
    rows: list[dict[str, Any]]
    replace_previous: bool = False
    row_count: int = 0
    message: str | None = None
    error: str | None = None
    thumbnail: ThumbnailResult | None = None


class DeriveThumbnailRequest(BaseModel):
    rows: list[Any] = Field(default_factory=list)
    plot_title: str
    thumbnail: Any = None
