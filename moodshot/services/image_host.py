"""Public hosting for the three reference images.

Generation models fetch references by URL, so every request uploads its
background, product and composition images to a public host first. Uploads
are never cached across requests and never retried.
"""
from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Protocol, Sequence

import httpx
from PIL import Image, UnidentifiedImageError

from moodshot.config import ImgbbConfig
from moodshot.errors import InputValidationError, UploadFailed
from moodshot.schemas import REFERENCE_ROLES
from moodshot.services.r2_client import make_key, put_bytes

logger = logging.getLogger(__name__)


class ImageHost(Protocol):
    name: str

    async def upload(self, data: bytes, name: str) -> str:
        ...


@dataclass(frozen=True)
class UploadedReference:
    role: str
    url: str


def decode_image_payload(payload: object, role: str = "image") -> bytes:
    """Decode a ``data:image/...;base64,`` URL or a bare base64 string."""

    if not isinstance(payload, str) or not payload.strip():
        raise InputValidationError(f"{role} image is empty")

    text = payload.strip()
    if text[:5].lower() == "data:":
        header, sep, encoded = text.partition(",")
        if not sep or ";base64" not in header.lower():
            raise InputValidationError(f"{role} image must be a base64-encoded data URL")
    else:
        encoded = text

    try:
        data = base64.b64decode("".join(encoded.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InputValidationError(f"{role} image is not valid base64") from exc
    if not data:
        raise InputValidationError(f"{role} image is empty")
    return data


class ImgbbHost:
    """Uploads to imgbb and returns the hosted image URL."""

    name = "imgbb"

    def __init__(self, config: ImgbbConfig) -> None:
        if not config.api_key:
            raise ValueError("IMGBB_API_KEY is not configured")
        self.api_key = config.api_key
        self.upload_url = config.upload_url
        self.timeout = config.timeout

    async def upload(self, data: bytes, name: str) -> str:
        form = {
            "key": self.api_key,
            "image": base64.b64encode(data).decode("ascii"),
            "name": name,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.upload_url, data=form)
        except httpx.HTTPError as exc:
            raise UploadFailed(name, exc) from exc

        if response.status_code >= 400:
            raise UploadFailed(name, f"imgbb upload failed: HTTP {response.status_code}")
        try:
            body = response.json()
        except ValueError as exc:
            raise UploadFailed(name, "imgbb returned a non-JSON body") from exc

        url = None
        if isinstance(body, dict) and body.get("success"):
            hosted = body.get("data")
            url = hosted.get("url") if isinstance(hosted, dict) else None
        if not isinstance(url, str) or not url:
            raise UploadFailed(name, "imgbb API returned error")

        logger.info("[upload] %s -> %s", name, url[:64])
        return url


def _sniff_image(data: bytes) -> tuple[str, str]:
    try:
        with Image.open(BytesIO(data)) as image:
            fmt = (image.format or "PNG").upper()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError("payload is not a readable image") from exc
    content_type = Image.MIME.get(fmt, "image/png")
    ext = "jpg" if fmt == "JPEG" else fmt.lower()
    return content_type, ext


class R2Host:
    """Stores references in Cloudflare R2 and returns their public URL."""

    name = "r2"
    folder = "references"

    async def upload(self, data: bytes, name: str) -> str:
        try:
            content_type, ext = _sniff_image(data)
            key = make_key(self.folder, f"{name}.{ext}")
            url = await asyncio.to_thread(put_bytes, key, data, content_type=content_type)
        except (ValueError, RuntimeError) as exc:
            raise UploadFailed(name, exc) from exc
        logger.info("[upload] %s -> %s", name, url[:64])
        return url


async def ingest_references(host: ImageHost, payloads: Sequence[object]) -> list[UploadedReference]:
    """Decode and upload background, product and composition concurrently.

    Every payload is decoded before the first upload starts, so malformed input
    never reaches the host. The first rejected upload fails the whole step.
    """

    if len(payloads) != len(REFERENCE_ROLES):
        raise InputValidationError("exactly 3 images are required (background, product, composition)")

    decoded = [
        (role, decode_image_payload(payload, role))
        for role, payload in zip(REFERENCE_ROLES, payloads)
    ]

    async def _upload(role: str, data: bytes) -> UploadedReference:
        try:
            url = await host.upload(data, role)
        except UploadFailed:
            raise
        except Exception as exc:
            raise UploadFailed(role, exc) from exc
        return UploadedReference(role=role, url=url)

    return list(await asyncio.gather(*(_upload(role, data) for role, data in decoded)))


__all__ = [
    "ImageHost",
    "ImgbbHost",
    "R2Host",
    "UploadedReference",
    "decode_image_payload",
    "ingest_references",
]
