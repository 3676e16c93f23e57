from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

MIN_COUNT = 1
MAX_COUNT = 8
DEFAULT_COUNT = 4
REFERENCE_ROLES = ("background", "product", "composition")


class _CompatModel(BaseModel):
    """Base model that ignores unknown fields sent by older clients."""

    model_config = ConfigDict(extra="ignore")


def clamp_count(value: int) -> int:
    return max(MIN_COUNT, min(int(value), MAX_COUNT))


class GenerateRequest(_CompatModel):
    """Body of ``POST /api/generate``."""

    image_urls: list[str] = Field(
        ...,
        description="Embedded images in order: background, product, composition.",
    )
    query: str = Field("", description="Free-text instruction for the composition.")
    image_size: str = Field("2k", description="Resolution hint forwarded to the model as-is.")
    count: int = Field(
        DEFAULT_COUNT,
        description="Number of images to generate, clamped to 1-8.",
    )
    mood_intensity: int = Field(7, description="How strongly the background mood is applied (0-10).")
    product_preservation: int = Field(
        8, description="How strictly the product details are preserved (0-10)."
    )
    model: str | None = Field(None, description="Optional model preset name.")
    pipeline: Literal["direct", "advanced"] = Field(
        "direct",
        description="'advanced' cleans the background and outlines the product before composing.",
    )

    @field_validator("image_urls", mode="before")
    @classmethod
    def _require_three_images(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple)) or len(value) != len(REFERENCE_ROLES):
            raise ValueError("exactly 3 images are required (background, product, composition)")
        return list(value)

    @field_validator("query", mode="before")
    @classmethod
    def _default_query(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("image_size", mode="before")
    @classmethod
    def _passthrough_size(cls, value: Any) -> str:
        if value is None:
            return "2k"
        return str(value)

    @field_validator("count", "mood_intensity", "product_preservation", mode="before")
    @classmethod
    def _drop_null_numbers(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("count")
    @classmethod
    def _clamp_count(cls, value: int) -> int:
        return clamp_count(value)

    @field_validator("mood_intensity", "product_preservation")
    @classmethod
    def _clamp_slider(cls, value: int) -> int:
        return max(0, min(value, 10))


class GenerateResponse(_CompatModel):
    success: Literal[True] = True
    images: list[str]
    count: int = Field(..., ge=1)
    model: str
    message: str


class ErrorResponse(_CompatModel):
    success: Literal[False] = False
    error: str
    message: str


class ModelPresetInfo(_CompatModel):
    name: str
    label: str
    model: str


class ModelPresetListing(_CompatModel):
    default: str
    presets: list[ModelPresetInfo]


__all__ = [
    "DEFAULT_COUNT",
    "ErrorResponse",
    "GenerateRequest",
    "GenerateResponse",
    "MAX_COUNT",
    "MIN_COUNT",
    "ModelPresetInfo",
    "ModelPresetListing",
    "REFERENCE_ROLES",
    "clamp_count",
]
