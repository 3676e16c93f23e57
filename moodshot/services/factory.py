"""Build the image host and generation client for a request."""
from __future__ import annotations

from moodshot.config import Settings
from moodshot.errors import ConfigurationError, InputValidationError
from moodshot.services.generation import ReplicateGenerator
from moodshot.services.image_host import ImageHost, ImgbbHost, R2Host
from moodshot.services.model_presets import get_preset


def build_image_host(settings: Settings) -> ImageHost:
    if settings.image_host == "r2":
        return R2Host()
    return ImgbbHost(settings.imgbb)


def build_generator(settings: Settings, preset_name: str | None = None) -> ReplicateGenerator:
    if preset_name:
        try:
            preset = get_preset(preset_name)
        except KeyError as exc:
            raise InputValidationError(f"unknown model preset: {preset_name}") from exc
    else:
        try:
            preset = get_preset(settings.replicate.model)
        except KeyError as exc:
            raise ConfigurationError(
                f"MOODSHOT_MODEL names an unknown preset: {settings.replicate.model}"
            ) from exc

    return ReplicateGenerator(
        settings.replicate.api_token,
        preset,
        timeout=settings.replicate.timeout,
    )


__all__ = ["build_generator", "build_image_host"]
