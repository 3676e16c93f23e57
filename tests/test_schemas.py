import pytest
from pydantic import ValidationError

from moodshot.schemas import GenerateRequest

IMAGES = ["a", "b", "c"]


def test_request_defaults() -> None:
    request = GenerateRequest.model_validate({"image_urls": IMAGES})

    assert request.count == 4
    assert request.image_size == "2k"
    assert request.query == ""
    assert request.mood_intensity == 7
    assert request.product_preservation == 8
    assert request.pipeline == "direct"
    assert request.model is None


@pytest.mark.parametrize("raw, expected", [(0, 1), (1, 1), (5, 5), (8, 8), (99, 8), (-4, 1), ("3", 3), (None, 4)])
def test_count_is_clamped(raw, expected) -> None:
    request = GenerateRequest.model_validate({"image_urls": IMAGES, "count": raw})
    assert request.count == expected


def test_non_numeric_count_is_rejected() -> None:
    with pytest.raises(ValidationError):
        GenerateRequest.model_validate({"image_urls": IMAGES, "count": "lots"})


@pytest.mark.parametrize("images", [[], ["a"], ["a", "b"], ["a", "b", "c", "d"], "abc", None])
def test_exactly_three_images_required(images) -> None:
    with pytest.raises(ValidationError):
        GenerateRequest.model_validate({"image_urls": images})


def test_sliders_clamped_and_size_passed_through() -> None:
    request = GenerateRequest.model_validate(
        {
            "image_urls": IMAGES,
            "mood_intensity": 15,
            "product_preservation": -2,
            "image_size": 4,
            "query": None,
            "unknown_field": "ignored",
        }
    )

    assert request.mood_intensity == 10
    assert request.product_preservation == 0
    assert request.image_size == "4"
    assert request.query == ""


def test_pipeline_must_be_known() -> None:
    with pytest.raises(ValidationError):
        GenerateRequest.model_validate({"image_urls": IMAGES, "pipeline": "turbo"})
