"""Upstream model presets.

Each preset knows which Replicate model to call and how to lay out that
model's input from the prompt pair, the uploaded references and the seed.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

InputBuilder = Callable[[str, str, Mapping[str, str], int, str], dict[str, Any]]


@dataclass(frozen=True)
class ModelPreset:
    name: str
    model: str
    label: str
    build_input: InputBuilder


def _with_avoid(prompt: str, negative_prompt: str) -> str:
    # None of these models takes a negative prompt input; fold it into the instruction.
    if not negative_prompt:
        return prompt
    return f"{prompt}\n\nAVOID: {negative_prompt}"


def _flux_dev_input(
    prompt: str, negative_prompt: str, references: Mapping[str, str], seed: int, image_size: str
) -> dict[str, Any]:
    return {
        "prompt": _with_avoid(prompt, negative_prompt),
        "image": references["composition"],
        "prompt_strength": 0.80,
        "num_inference_steps": 28,
        "guidance": 3.5,
        "output_quality": 100,
        "aspect_ratio": "1:1",
        "output_format": "png",
        "seed": seed,
    }


def _flux_kontext_input(
    prompt: str, negative_prompt: str, references: Mapping[str, str], seed: int, image_size: str
) -> dict[str, Any]:
    return {
        "prompt": _with_avoid(prompt, negative_prompt),
        "input_image": references["composition"],
        "aspect_ratio": "match_input_image",
        "output_format": "png",
        "safety_tolerance": 2,
        "seed": seed,
    }


def _nano_banana_input(
    prompt: str, negative_prompt: str, references: Mapping[str, str], seed: int, image_size: str
) -> dict[str, Any]:
    # The model takes no seed; variation comes from sampling.
    images = [
        references[role]
        for role in ("background", "product", "composition", "product_outline")
        if references.get(role)
    ]
    return {
        "prompt": _with_avoid(prompt, negative_prompt),
        "image_input": images,
        "resolution": (image_size or "2k").upper(),
        "aspect_ratio": "match_input_image",
        "output_format": "png",
    }


PRESETS: dict[str, ModelPreset] = {
    preset.name: preset
    for preset in (
        ModelPreset(
            name="flux-dev",
            model="black-forest-labs/flux-dev",
            label="Flux Dev",
            build_input=_flux_dev_input,
        ),
        ModelPreset(
            name="flux-kontext-pro",
            model="black-forest-labs/flux-kontext-pro",
            label="Flux Kontext Pro",
            build_input=_flux_kontext_input,
        ),
        ModelPreset(
            name="nano-banana-pro",
            model="google/nano-banana-pro",
            label="Nano Banana Pro",
            build_input=_nano_banana_input,
        ),
    )
}


def get_preset(name: str) -> ModelPreset:
    """Look up a preset by name; raises ``KeyError`` for unknown names."""

    key = (name or "").strip().lower()
    if key not in PRESETS:
        raise KeyError(name)
    return PRESETS[key]


def list_presets() -> list[ModelPreset]:
    return list(PRESETS.values())


__all__ = ["ModelPreset", "PRESETS", "get_preset", "list_presets"]
