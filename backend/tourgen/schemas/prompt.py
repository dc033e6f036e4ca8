"""Pydantic v2 schemas for prompt descriptors and media references."""

from __future__ import annotations

import enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, model_validator


class Direction(str, enum.Enum):
    """Named compass directions for multi-image layout."""

    FRONT = "front"
    RIGHT = "right"
    BACK = "back"
    LEFT = "left"

    @property
    def degrees(self) -> int:
        return DIRECTION_DEGREES[self]


DIRECTION_DEGREES: dict[Direction, int] = {
    Direction.FRONT: 0,
    Direction.RIGHT: 90,
    Direction.BACK: 180,
    Direction.LEFT: 270,
}


class MediaReference(BaseModel):
    """Vendor-usable media: either already hosted (url) or uploaded (media_id)."""

    url: str | None = None
    media_id: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _exactly_one(self) -> "MediaReference":
        if (self.url is None) == (self.media_id is None):
            raise ValueError("MediaReference needs exactly one of url or media_id")
        return self

    def to_vendor(self) -> dict[str, str]:
        if self.url is not None:
            return {"url": self.url}
        return {"media_id": self.media_id}


class MediaSource(BaseModel):
    """Inline content that still has to go through the uploader."""

    filename: str
    content: bytes
    mime_type: str | None = None


class ImageInput(BaseModel):
    """One image of a multi-image prompt."""

    media: MediaReference
    direction: Direction | None = None
    azimuth: int | None = Field(default=None, ge=0)


class TextPrompt(BaseModel):
    kind: Literal["text"] = "text"
    text: str = Field(min_length=1)


class ImagePrompt(BaseModel):
    kind: Literal["image"] = "image"
    media: MediaReference


class MultiImagePrompt(BaseModel):
    kind: Literal["multi_image"] = "multi_image"
    images: list[ImageInput] = Field(min_length=1)


class VideoPrompt(BaseModel):
    kind: Literal["video"] = "video"
    media: MediaReference


class PanoramaPrompt(BaseModel):
    kind: Literal["panorama"] = "panorama"
    media: MediaReference


PromptDescriptor = Annotated[
    Union[TextPrompt, ImagePrompt, MultiImagePrompt, VideoPrompt, PanoramaPrompt],
    Field(discriminator="kind"),
]
