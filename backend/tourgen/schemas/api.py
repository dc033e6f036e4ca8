"""Pydantic v2 schemas for the web API payloads."""

from __future__ import annotations

import enum

from pydantic import BaseModel, Field

from tourgen.schemas.job import DEFAULT_DISPLAY_NAME, ModelTier
from tourgen.schemas.prompt import Direction


class InputType(str, enum.Enum):
    IMAGES = "images"
    VIDEO = "video"
    PANORAMA = "panorama"
    TEXT = "text"


class LayoutMode(str, enum.Enum):
    AUTO = "auto"
    DIRECTION = "direction"


class UploadedFile(BaseModel):
    """A file sent by the browser as a data URL."""

    name: str
    type: str | None = None
    data: str
    direction: Direction | None = None


class GenerateRequest(BaseModel):
    """Body of POST /api/generate."""

    name: str = DEFAULT_DISPLAY_NAME
    mode: ModelTier = ModelTier.STANDARD
    input_type: InputType = Field(default=InputType.IMAGES, alias="inputType")
    layout_mode: LayoutMode = Field(default=LayoutMode.AUTO, alias="layoutMode")
    images: list[UploadedFile] | None = None
    video: UploadedFile | None = None
    panorama: UploadedFile | None = None
    text: str | None = None

    model_config = {"populate_by_name": True}


class GenerateResponse(BaseModel):
    operation_id: str = Field(serialization_alias="operationId")
    message: str = "Generation started"
    poll_interval: float = Field(default=3, serialization_alias="pollInterval")


class ResolveTourRequest(BaseModel):
    """Body of POST /api/tours."""

    operation_id: str = Field(alias="operationId")
    name: str = DEFAULT_DISPLAY_NAME
    mode: ModelTier = ModelTier.STANDARD

    model_config = {"populate_by_name": True}
