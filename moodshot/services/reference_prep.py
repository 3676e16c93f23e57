"""Optional clean-up of the uploaded references before composing.

Background inpainting strips existing products from the background shot, and
a canny ControlNet pass extracts the product outline. Both are best effort:
a failed step keeps the original reference.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Mapping, Protocol

logger = logging.getLogger(__name__)

INPAINT_MODEL = "stability-ai/stable-diffusion-inpainting"
CANNY_MODEL = "jagilley/controlnet-canny"

INPAINT_PROMPT = (
    "Clean empty background surface with EXACT texture and pattern visible in the image. "
    "Remove all objects, products, and items. Preserve only the pure background surface "
    "texture, pattern, color, and lighting. High quality, photorealistic, 8K detail."
)
INPAINT_NEGATIVE = "objects, products, items, props, decorations, blur, low quality"
CANNY_PROMPT = "product outline, clean edges, transparent background"


class ModelRunner(Protocol):
    def run_model(self, model: str, payload: dict[str, Any]) -> Awaitable[str | None]:
        ...


async def prepare_references(runner: ModelRunner, references: Mapping[str, str]) -> dict[str, str]:
    """Return references with a cleaned background and an added ``product_outline``."""

    cleaned, outline = await asyncio.gather(
        runner.run_model(
            INPAINT_MODEL,
            {
                "image": references["background"],
                "prompt": INPAINT_PROMPT,
                "negative_prompt": INPAINT_NEGATIVE,
                "num_inference_steps": 50,
                "guidance_scale": 9.0,
                "scheduler": "DPMSolverMultistep",
            },
        ),
        runner.run_model(
            CANNY_MODEL,
            {
                "image": references["product"],
                "structure": "canny",
                "prompt": CANNY_PROMPT,
            },
        ),
    )

    prepared = dict(references)
    if cleaned:
        prepared["background"] = cleaned
    else:
        logger.warning("[prep] background inpainting failed; using original background")
    if outline:
        prepared["product_outline"] = outline
    else:
        logger.warning("[prep] product outline extraction failed; skipping outline")
    return prepared


__all__ = ["CANNY_MODEL", "INPAINT_MODEL", "prepare_references"]
