"""Request/response models for the conversion API."""

from __future__ import annotations

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from illustration_png.core.errors import FieldIssue, RequestValidationError
from illustration_png.core.types import DEFAULT_QUALITY, MAX_DIMENSION, ConversionRequest


class ConvertRequest(BaseModel):
    """Body of POST /api/png-convert."""

    model_config = ConfigDict(populate_by_name=True)

    svg_path: str = Field(..., alias="svgPath", min_length=1, description="Path or URL of the SVG")
    width: StrictInt = Field(..., ge=1, le=MAX_DIMENSION)
    height: StrictInt = Field(..., ge=1, le=MAX_DIMENSION)
    transparent: StrictBool = True
    quality: StrictInt = Field(default=DEFAULT_QUALITY, ge=0, le=100)

    @field_validator("width", "height")
    @classmethod
    def _within_service_limit(cls, value: int, info: ValidationInfo) -> int:
        # The service may be configured below the hard 2048 ceiling
        limit = (info.context or {}).get("max_dimension", MAX_DIMENSION)
        if value > limit:
            raise ValueError(f"must be at most {limit}")
        return value

    def to_request(self) -> ConversionRequest:
        return ConversionRequest(
            svg_path=self.svg_path,
            width=self.width,
            height=self.height,
            transparent=self.transparent,
            quality=self.quality,
        )


class BatchConvertRequest(BaseModel):
    """Body of POST /api/png-convert/batch."""

    requests: list[Any]


class BatchItem(BaseModel):
    success: bool
    data: str | None = None  # base64-encoded PNG
    etag: str | None = None
    error: str | None = None


class BatchConvertResponse(BaseModel):
    results: list[BatchItem]


class HealthResponse(BaseModel):
    """Health check response."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    timestamp: str
    renderer_initialized: bool = Field(..., alias="rendererInitialized")


def _issues_from(error: ValidationError) -> list[FieldIssue]:
    issues = []
    for err in error.errors():
        field = ".".join(str(part) for part in err["loc"]) or "body"
        issues.append(FieldIssue(field=field, message=err["msg"]))
    return issues


def parse_convert_request(raw: Any, max_dimension: int = MAX_DIMENSION) -> ConversionRequest:
    """Validate a decoded JSON body, reporting every failing field at once."""
    try:
        return ConvertRequest.model_validate(
            raw, context={"max_dimension": max_dimension}
        ).to_request()
    except ValidationError as e:
        raise RequestValidationError(_issues_from(e)) from e
