"""Single-call wrapper around the hosted generation provider.

Replicate models answer with a bare URL, a list, ``FileOutput`` objects or
nested dictionaries depending on the model. :func:`extract_image_urls`
flattens all of them into candidate URLs and never raises; the generator
turns every provider error into ``None`` so one bad call cannot abort a
batch.
"""
from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Iterable, Mapping
from itertools import islice
from typing import Any

import replicate

from moodshot.services.model_presets import ModelPreset

logger = logging.getLogger(__name__)

MAX_SEED = 2**31 - 1
_URL_KEYS = ("url", "image", "output", "images", "data")
_MAX_DEPTH = 8
_MAX_ITEMS = 64


def random_seed(rng: random.Random | None = None) -> int:
    """Return a fresh 31-bit seed."""

    return (rng or random).randrange(MAX_SEED)


def _collect(value: Any, found: list[str], depth: int) -> None:
    if value is None or depth > _MAX_DEPTH:
        return
    if isinstance(value, str):
        text = value.strip()
        if text:
            found.append(text)
        return
    if isinstance(value, (bytes, bytearray)):
        return
    if isinstance(value, Mapping):
        for key in _URL_KEYS:
            if key in value:
                _collect(value[key], found, depth + 1)
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _collect(item, found, depth + 1)
        return
    try:
        url = getattr(value, "url", None)
        if isinstance(url, str):
            _collect(url, found, depth + 1)
            return
        # Iterator-typed model outputs arrive as generators.
        items = list(islice(value, _MAX_ITEMS)) if isinstance(value, Iterable) else []
    except Exception:  # noqa: BLE001 - exotic objects may raise from properties
        return
    for item in items:
        _collect(item, found, depth + 1)


def extract_image_urls(output: Any) -> list[str]:
    found: list[str] = []
    _collect(output, found, 0)
    return found


def first_image_url(output: Any) -> str | None:
    urls = extract_image_urls(output)
    return urls[0] if urls else None


class ReplicateGenerator:
    """Runs one preset model on Replicate, one image per call."""

    def __init__(
        self,
        api_token: str | None,
        preset: ModelPreset,
        *,
        timeout: float = 120.0,
        client: replicate.Client | None = None,
    ) -> None:
        self.preset = preset
        self._client = client or replicate.Client(api_token=api_token, timeout=timeout)

    @property
    def label(self) -> str:
        return self.preset.label

    async def run_model(self, model: str, payload: dict[str, Any]) -> str | None:
        """Call *model* once and return the first image URL, or ``None`` on any failure."""

        try:
            output = await asyncio.to_thread(self._client.run, model, input=payload)
        except Exception as exc:  # noqa: BLE001 - provider errors must not abort the batch
            logger.warning("[replicate] model=%s seed=%s failed: %s", model, payload.get("seed"), exc)
            return None

        url = first_image_url(output)
        if url is None:
            logger.warning(
                "[replicate] model=%s returned no image url (type=%s)", model, type(output).__name__
            )
        return url

    async def generate(
        self,
        prompt: str,
        negative_prompt: str,
        references: Mapping[str, str],
        seed: int,
        *,
        image_size: str = "2k",
    ) -> str | None:
        payload = self.preset.build_input(prompt, negative_prompt, references, seed, image_size)
        logger.debug(
            "[replicate] model=%s seed=%s params=%s",
            self.preset.model,
            seed,
            {k: v for k, v in payload.items() if k != "prompt"},
        )
        return await self.run_model(self.preset.model, payload)


__all__ = [
    "MAX_SEED",
    "ReplicateGenerator",
    "extract_image_urls",
    "first_image_url",
    "random_seed",
]
