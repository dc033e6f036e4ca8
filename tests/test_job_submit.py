"""Tests for prompt building, azimuth assignment and job submission."""

import asyncio

import pytest

from tourgen.errors import MalformedVendorResponse, SubmissionFailed
from tourgen.schemas import (
    Direction,
    GenerationRequest,
    ImageInput,
    ImagePrompt,
    MediaReference,
    ModelTier,
    MultiImagePrompt,
    PanoramaPrompt,
    TextPrompt,
    VideoPrompt,
)
from tourgen.services.job_submit import (
    JobSubmitter,
    assign_azimuths,
    build_payload,
    build_world_prompt,
    even_azimuths,
)


def _images(n, **kwargs):
    return [ImageInput(media=MediaReference(media_id=f"m{i}"), **kwargs) for i in range(n)]


@pytest.mark.parametrize("count", range(1, 9))
def test_even_azimuths_spacing(count):
    angles = even_azimuths(count)
    assert len(angles) == count
    assert angles == [round(i * 360 / count) for i in range(count)]
    assert angles == sorted(set(angles))
    assert all(0 <= a < 360 for a in angles)


def test_four_images_face_the_compass_points():
    assert assign_azimuths(_images(4)) == [0, 90, 180, 270]


def test_directions_override_index_order():
    images = [
        ImageInput(media=MediaReference(media_id="a"), direction=Direction.LEFT),
        ImageInput(media=MediaReference(media_id="b"), direction=Direction.FRONT),
        ImageInput(media=MediaReference(media_id="c"), direction=Direction.BACK),
        ImageInput(media=MediaReference(media_id="d"), direction=Direction.RIGHT),
    ]
    assert assign_azimuths(images) == [270, 0, 180, 90]


def test_unassigned_images_default_to_zero_when_any_direction_given():
    images = _images(3)
    images[1] = ImageInput(media=MediaReference(media_id="x"), direction=Direction.BACK)
    assert assign_azimuths(images) == [0, 180, 0]


def test_explicit_azimuth_is_kept():
    images = [
        ImageInput(media=MediaReference(url="https://example.com/a.jpg"), azimuth=45),
        ImageInput(media=MediaReference(url="https://example.com/b.jpg"), direction=Direction.RIGHT),
    ]
    assert assign_azimuths(images) == [45, 90]


def test_world_prompt_shapes():
    ref = MediaReference(media_id="m1")
    url = MediaReference(url="https://example.com/v.mp4")

    assert build_world_prompt(TextPrompt(text="loft")) == {"text_prompt": "loft"}
    assert build_world_prompt(ImagePrompt(media=ref)) == {"image_prompt": {"media_id": "m1"}}
    assert build_world_prompt(VideoPrompt(media=url)) == {
        "video_prompt": {"url": "https://example.com/v.mp4"}
    }
    assert build_world_prompt(PanoramaPrompt(media=ref)) == {
        "image_prompt": {"media_id": "m1", "is_pano": True}
    }
    multi = build_world_prompt(MultiImagePrompt(images=_images(2)))
    assert multi == {
        "multi_image_prompt": {
            "images": [
                {"media_id": "m0", "azimuth": 0},
                {"media_id": "m1", "azimuth": 180},
            ]
        }
    }


def test_media_reference_is_exclusive():
    with pytest.raises(ValueError):
        MediaReference(url="https://example.com/a.jpg", media_id="m1")
    with pytest.raises(ValueError):
        MediaReference()


def test_payload_uses_tier_model_and_default_names(settings):
    draft = GenerationRequest(prompt=ImagePrompt(media=MediaReference(media_id="m")),
                              model_tier=ModelTier.DRAFT)
    payload = build_payload(draft, settings)
    assert payload["model"] == "Marble 0.1-mini"
    assert payload["display_name"] == "Property Tour"

    text = GenerationRequest(prompt=TextPrompt(text="x" * 80))
    payload = build_payload(text, settings)
    assert payload["model"] == "Marble 0.1-plus"
    assert payload["display_name"] == "x" * 50


def test_submit_returns_handle(vendor, settings):
    vendor.generate = (201, {"operation_id": "op-42"})
    request = GenerationRequest(prompt=TextPrompt(text="attic"), display_name="Attic")

    handle = asyncio.run(JobSubmitter(vendor.client(), settings).submit(request))

    assert handle.operation_id == "op-42"
    body = vendor.generate_bodies[0]
    assert body == {
        "world_prompt": {"text_prompt": "attic"},
        "display_name": "Attic",
        "model": "Marble 0.1-plus",
    }
    assert vendor.requests[0].headers["Authorization"] == "Bearer test-key"


def test_submit_rejected(vendor, settings):
    vendor.generate = (402, {"error": "insufficient credits"})
    request = GenerationRequest(prompt=TextPrompt(text="attic"))

    with pytest.raises(SubmissionFailed) as exc:
        asyncio.run(JobSubmitter(vendor.client(), settings).submit(request))

    assert exc.value.vendor_status == 402
    assert exc.value.vendor_body == {"error": "insufficient credits"}
    assert len(vendor.calls("POST", "/worlds/generate")) == 1


def test_submit_without_operation_id(vendor, settings):
    vendor.generate = (200, {"status": "queued"})
    request = GenerationRequest(prompt=TextPrompt(text="attic"))

    with pytest.raises(MalformedVendorResponse):
        asyncio.run(JobSubmitter(vendor.client(), settings).submit(request))
