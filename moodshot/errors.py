"""Error taxonomy shared by the services and the HTTP layer."""
from __future__ import annotations


class MoodshotError(Exception):
    """Base error carrying the HTTP status and envelope code it maps to."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(MoodshotError):
    code = "configuration_error"


class InputValidationError(MoodshotError):
    status_code = 400
    code = "invalid_request"


class UploadFailed(MoodshotError):
    code = "upload_failed"

    def __init__(self, role: str, cause: Exception | str) -> None:
        self.role = role
        self.cause = cause
        super().__init__(f"{role} upload failed: {cause}")


class GenerationCallFailed(MoodshotError):
    """Single attempt failure; recorded on the attempt, never raised past the batch."""

    code = "generation_call_failed"


class TotalGenerationFailure(MoodshotError):
    code = "generation_failed"

    def __init__(self, requested: int, attempts: int) -> None:
        self.requested = requested
        self.attempts = attempts
        super().__init__(
            f"Image generation failed: 0 of {requested} images after {attempts} attempts"
        )


__all__ = [
    "ConfigurationError",
    "GenerationCallFailed",
    "InputValidationError",
    "MoodshotError",
    "TotalGenerationFailure",
    "UploadFailed",
]
