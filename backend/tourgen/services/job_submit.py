"""Job submitter: GenerationRequest → vendor payload → JobHandle.

Vendor prompt shapes (v0):
  text        {"text_prompt": "..."}
  image       {"image_prompt": {url | media_id}}
  multi_image {"multi_image_prompt": {"images": [{url | media_id, "azimuth": deg}, ...]}}
  video       {"video_prompt": {url | media_id}}
  panorama    {"image_prompt": {url | media_id, "is_pano": true}}
"""

from __future__ import annotations

import logging
import math
from typing import Any, Sequence

from tourgen.config import Settings
from tourgen.errors import MalformedVendorResponse, SubmissionFailed
from tourgen.schemas.job import GenerationRequest, JobHandle, ModelTier
from tourgen.schemas.prompt import (
    ImageInput,
    ImagePrompt,
    MultiImagePrompt,
    PanoramaPrompt,
    TextPrompt,
    VideoPrompt,
)
from tourgen.services.providers.worldlabs import WorldLabsClient

logger = logging.getLogger(__name__)

OPERATION_ID_FIELDS = ("operation_id",)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def even_azimuths(count: int) -> list[int]:
    """Evenly spaced angles around 360°: round(i * 360 / count)."""
    if count <= 0:
        return []
    return [_round_half_up(i * 360 / count) % 360 for i in range(count)]


def assign_azimuths(images: Sequence[ImageInput]) -> list[int]:
    """Azimuth (degrees) for each image of a multi-image prompt.

    With no direction or azimuth on any image the angles are evenly spaced.
    Otherwise explicit values win and unassigned images get 0.
    """
    explicit = any(img.direction is not None or img.azimuth is not None for img in images)
    if not explicit:
        return even_azimuths(len(images))

    angles = []
    for img in images:
        if img.azimuth is not None:
            angles.append(img.azimuth % 360)
        elif img.direction is not None:
            angles.append(img.direction.degrees)
        else:
            angles.append(0)
    return angles


def build_world_prompt(prompt: Any) -> dict[str, Any]:
    """Map a prompt descriptor onto the vendor's world_prompt object."""
    if isinstance(prompt, TextPrompt):
        return {"text_prompt": prompt.text}
    if isinstance(prompt, ImagePrompt):
        return {"image_prompt": prompt.media.to_vendor()}
    if isinstance(prompt, MultiImagePrompt):
        azimuths = assign_azimuths(prompt.images)
        images = [
            {**img.media.to_vendor(), "azimuth": azimuth}
            for img, azimuth in zip(prompt.images, azimuths)
        ]
        return {"multi_image_prompt": {"images": images}}
    if isinstance(prompt, VideoPrompt):
        return {"video_prompt": prompt.media.to_vendor()}
    if isinstance(prompt, PanoramaPrompt):
        return {"image_prompt": {**prompt.media.to_vendor(), "is_pano": True}}
    raise TypeError(f"Unsupported prompt descriptor: {type(prompt).__name__}")


def model_name(tier: ModelTier, settings: Settings) -> str:
    return settings.model_for_tier(tier.value)


def build_payload(request: GenerationRequest, settings: Settings) -> dict[str, Any]:
    return {
        "world_prompt": build_world_prompt(request.prompt),
        "display_name": request.display_name,
        "model": model_name(request.model_tier, settings),
    }


class JobSubmitter:
    def __init__(self, client: WorldLabsClient, settings: Settings) -> None:
        self.client = client
        self.settings = settings

    async def submit(self, request: GenerationRequest) -> JobHandle:
        """Submit a generation job. Non-2xx responses raise SubmissionFailed, no retry."""
        body = build_payload(request, self.settings)
        logger.info(
            "Submitting %s world '%s' (model=%s)",
            request.prompt.kind, request.display_name, body["model"],
        )

        resp = await self.client.generate_world(body)
        if not resp.ok:
            logger.error("World generation request rejected: %d %s", resp.status, resp.data)
            raise SubmissionFailed(resp.status, resp.data)

        data = resp.json_dict()
        for field in OPERATION_ID_FIELDS:
            if data.get(field):
                handle = JobHandle(operation_id=str(data[field]))
                logger.info("Operation created: %s", handle.operation_id)
                return handle
        raise MalformedVendorResponse("operation id", OPERATION_ID_FIELDS, resp.data)
