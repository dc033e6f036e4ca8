"""Pydantic v2 schemas package."""

from tourgen.schemas.prompt import (
    Direction,
    ImageInput,
    ImagePrompt,
    MediaReference,
    MediaSource,
    MultiImagePrompt,
    PanoramaPrompt,
    PromptDescriptor,
    TextPrompt,
    VideoPrompt,
)
from tourgen.schemas.job import (
    GenerationRequest,
    JobHandle,
    JobStatus,
    ModelTier,
    TourResult,
)
from tourgen.schemas.api import (
    GenerateRequest,
    GenerateResponse,
    InputType,
    LayoutMode,
    ResolveTourRequest,
    UploadedFile,
)

__all__ = [
    "Direction",
    "ImageInput",
    "ImagePrompt",
    "MediaReference",
    "MediaSource",
    "MultiImagePrompt",
    "PanoramaPrompt",
    "PromptDescriptor",
    "TextPrompt",
    "VideoPrompt",
    "GenerationRequest",
    "JobHandle",
    "JobStatus",
    "ModelTier",
    "TourResult",
    "GenerateRequest",
    "GenerateResponse",
    "InputType",
    "LayoutMode",
    "ResolveTourRequest",
    "UploadedFile",
]
