"""Prompt text for the product mood-shot composition.

The slider tiers are part of the observable contract: the tier word ends up
in the prompt text sent to the model, so thresholds must stay ``> 7`` and
``> 4``.
"""
from __future__ import annotations

from typing import NamedTuple

NEGATIVE_PROMPT = (
    "artistic interpretation, stylized, abstract, wrong product shape, "
    "distorted product, different product, duplicated product, floating product, "
    "composite artifacts, mismatched lighting, harsh cutout edges, "
    "decorative props, fantasy elements, low quality, blurry, wrong colors, watermark, text"
)


class PromptPair(NamedTuple):
    prompt: str
    negative_prompt: str


def _tier(level: int, strong: str, weak: str) -> str:
    if level > 7:
        return strong
    if level > 4:
        return "moderately"
    return weak


def mood_tier(level: int) -> str:
    return _tier(level, "strongly", "subtly")


def preservation_tier(level: int) -> str:
    return _tier(level, "strictly", "loosely")


def build_prompt(instruction: str, mood_intensity: int, product_preservation: int) -> PromptPair:
    lines = [
        "Create a professional product mood shot by harmonizing background, "
        "product, and composition reference images.",
    ]

    text = (instruction or "").strip()
    if text:
        lines.extend(["", "INSTRUCTION:", text])

    lines.extend(
        [
            "",
            "REQUIREMENTS:",
            f"- Mood Intensity: {mood_intensity}/10 - Apply background atmosphere and "
            f"lighting {mood_tier(mood_intensity)}",
            f"- Product Preservation: {product_preservation}/10 - Preserve product details "
            f"{preservation_tier(product_preservation)}",
            "- Seamlessly blend the product into the background",
            "- Match lighting, shadows, reflections naturally",
            "- Adjust color temperature to harmonize with the scene",
            "- Remove any existing products from the background",
            "- Follow the composition reference for product placement",
            "- Maintain photorealistic quality with no composite artifacts",
            "",
            "STYLE: Professional studio photography, high detail, natural lighting, "
            "perfect integration",
        ]
    )
    return PromptPair("\n".join(lines), NEGATIVE_PROMPT)


__all__ = ["NEGATIVE_PROMPT", "PromptPair", "build_prompt", "mood_tier", "preservation_tier"]
