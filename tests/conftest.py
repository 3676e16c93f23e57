from __future__ import annotations

import base64
from io import BytesIO

import pytest
from PIL import Image

from moodshot.config import get_settings


def _encode_png(color: tuple[int, int, int], size: int = 32) -> bytes:
    image = Image.new("RGB", (size, size), color)
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    return _encode_png((255, 0, 0))


@pytest.fixture()
def image_payloads() -> list[str]:
    """Background, product and composition as data URLs."""

    payloads = []
    for color in ((200, 180, 150), (255, 255, 255), (20, 40, 60)):
        encoded = base64.b64encode(_encode_png(color)).decode("ascii")
        payloads.append(f"data:image/png;base64,{encoded}")
    return payloads


@pytest.fixture()
def configured_env(monkeypatch):
    """Credentials for imgbb + Replicate with a fresh settings cache."""

    monkeypatch.setenv("REPLICATE_API_TOKEN", "r8_test")
    monkeypatch.setenv("IMGBB_API_KEY", "imgbb-test")
    monkeypatch.delenv("IMAGE_HOST", raising=False)
    monkeypatch.delenv("MOODSHOT_MODEL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
