"""Cloudflare R2 helpers used when R2 is the public image host."""
from __future__ import annotations

import datetime as _dt
import logging
import re
import uuid
from functools import lru_cache

import boto3
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from moodshot.config import R2Config, get_settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _session() -> boto3.session.Session:
    return boto3.session.Session()


def _config() -> R2Config:
    return get_settings().r2


@lru_cache(maxsize=1)
def _client() -> BaseClient:
    cfg = _config()
    if not (cfg.endpoint and cfg.access_key and cfg.secret_key):
        raise RuntimeError("R2 storage is not configured")
    return _session().client(
        "s3",
        endpoint_url=cfg.endpoint,
        aws_access_key_id=cfg.access_key,
        aws_secret_access_key=cfg.secret_key,
        region_name=cfg.region,
    )


def make_key(folder: str, filename: str) -> str:
    folder = (folder or "uploads").strip("/ ") or "uploads"
    date_part = _dt.datetime.now(_dt.timezone.utc).strftime("%Y%m%d")
    safe_name = re.sub(r"[^0-9A-Za-z._-]", "_", filename or "asset")
    return f"{folder}/{date_part}/{uuid.uuid4().hex}/{safe_name}"


def public_url_for(key: str) -> str | None:
    base = _config().public_base
    if not base:
        return None
    return f"{base.rstrip('/')}/{key.lstrip('/')}"


def put_bytes(key: str, data: bytes, *, content_type: str = "application/octet-stream") -> str:
    """Upload *data* under *key* and return its public URL."""

    bucket = _config().bucket
    if not bucket:
        raise RuntimeError("R2 storage is not configured")
    try:
        _client().put_object(
            Bucket=bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
    except (ClientError, BotoCoreError) as exc:
        logger.warning("R2 put failed: bucket=%s key=%s err=%s", bucket, key, exc)
        raise RuntimeError(f"R2 put failed for {key}: {exc}") from exc

    url = public_url_for(key)
    if not url:
        raise RuntimeError("R2_PUBLIC_BASE is required to expose uploaded references")
    return url


__all__ = ["make_key", "public_url_for", "put_bytes"]
