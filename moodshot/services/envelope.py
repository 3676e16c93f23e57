from __future__ import annotations

from typing import Any

from moodshot.schemas import ErrorResponse, GenerateResponse
from moodshot.services.batch import GenerationResult


def success_envelope(result: GenerationResult, model_label: str) -> dict[str, Any]:
    if result.count == result.requested:
        message = f"Generated {result.count} images"
    else:
        message = f"Generated {result.count} of {result.requested} requested images"
    return GenerateResponse(
        images=list(result.urls),
        count=result.count,
        model=model_label,
        message=message,
    ).model_dump()


def error_envelope(code: str, message: str) -> dict[str, Any]:
    return ErrorResponse(error=code, message=message).model_dump()


__all__ = ["error_envelope", "success_envelope"]
