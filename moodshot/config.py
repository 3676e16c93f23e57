from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List
from urllib.parse import urlparse

DEFAULT_IMGBB_UPLOAD_URL = "https://api.imgbb.com/1/upload"
DEFAULT_MODEL_PRESET = "flux-dev"


def _env(*names: str) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value is None:
            continue
        text = value.strip()
        if text:
            return text
    return None


def _as_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _parse_allowed_origins(raw: str | None) -> List[str]:
    """Normalise comma-separated origins into values accepted by CORSMiddleware."""

    if not raw:
        return ["*"]

    cleaned: List[str] = []
    for origin in raw.split(","):
        value = origin.strip()
        if not value:
            continue
        if value == "*":
            return ["*"]

        parsed = urlparse(value)
        if parsed.scheme and parsed.netloc:
            normalised = f"{parsed.scheme}://{parsed.netloc}"
        else:
            normalised = value.rstrip("/")

        if normalised not in cleaned:
            cleaned.append(normalised)

    return cleaned or ["*"]


@dataclass
class ReplicateConfig:
    api_token: str | None = None
    model: str = DEFAULT_MODEL_PRESET
    timeout: float = 120.0

    @property
    def is_configured(self) -> bool:
        return bool(self.api_token)

    @classmethod
    def from_env(cls) -> "ReplicateConfig":
        return cls(
            api_token=_env("REPLICATE_API_TOKEN"),
            model=_env("MOODSHOT_MODEL") or DEFAULT_MODEL_PRESET,
            timeout=max(_as_float(_env("GENERATION_TIMEOUT"), 120.0), 1.0),
        )


@dataclass
class ImgbbConfig:
    api_key: str | None = None
    upload_url: str = DEFAULT_IMGBB_UPLOAD_URL
    timeout: float = 30.0

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


@dataclass
class R2Config:
    endpoint: str | None = None
    access_key: str | None = None
    secret_key: str | None = None
    region: str = "auto"
    bucket: str | None = None
    public_base: str | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.access_key and self.secret_key and self.bucket)

    @classmethod
    def from_env(cls) -> "R2Config":
        return cls(
            endpoint=_env("R2_ENDPOINT", "S3_ENDPOINT"),
            access_key=_env("R2_ACCESS_KEY_ID", "S3_ACCESS_KEY"),
            secret_key=_env("R2_SECRET_ACCESS_KEY", "S3_SECRET_KEY"),
            region=_env("R2_REGION", "S3_REGION") or "auto",
            bucket=_env("R2_BUCKET", "S3_BUCKET"),
            public_base=_env("R2_PUBLIC_BASE", "S3_PUBLIC_BASE"),
        )


@dataclass
class Settings:
    environment: str
    allowed_origins: List[str]
    image_host: str
    imgbb: ImgbbConfig
    r2: R2Config
    replicate: ReplicateConfig
    max_body_bytes: int
    cost_per_image: float

    def missing_credentials(self) -> list[str]:
        """Return the names of credentials required by the active providers."""

        missing: list[str] = []
        if not self.replicate.is_configured:
            missing.append("REPLICATE_API_TOKEN")
        if self.image_host == "r2":
            if not self.r2.is_configured:
                missing.append("R2_ENDPOINT/R2_ACCESS_KEY_ID/R2_SECRET_ACCESS_KEY/R2_BUCKET")
        elif not self.imgbb.is_configured:
            missing.append("IMGBB_API_KEY")
        return missing


@lru_cache()
def get_settings() -> Settings:
    image_host = (_env("IMAGE_HOST") or "imgbb").lower()
    if image_host not in {"imgbb", "r2"}:
        image_host = "imgbb"

    imgbb = ImgbbConfig(
        api_key=_env("IMGBB_API_KEY"),
        upload_url=_env("IMGBB_UPLOAD_URL") or DEFAULT_IMGBB_UPLOAD_URL,
        timeout=max(_as_float(_env("UPLOAD_TIMEOUT"), 30.0), 1.0),
    )

    return Settings(
        environment=_env("ENVIRONMENT") or "development",
        allowed_origins=_parse_allowed_origins(_env("ALLOWED_ORIGINS", "CORS_ALLOW_ORIGINS")),
        image_host=image_host,
        imgbb=imgbb,
        r2=R2Config.from_env(),
        replicate=ReplicateConfig.from_env(),
        max_body_bytes=max(_as_int(_env("MAX_BODY_BYTES"), 60_000_000), 0),
        cost_per_image=max(_as_float(_env("COST_PER_IMAGE"), 0.10), 0.0),
    )
