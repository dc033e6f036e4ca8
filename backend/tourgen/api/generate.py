"""Generation API: uploads the browser's media and starts a world generation job."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from tourgen.api.deps import get_worldlabs_client
from tourgen.config import Settings, get_settings
from tourgen.schemas.api import GenerateRequest, GenerateResponse, InputType, LayoutMode, UploadedFile
from tourgen.schemas.prompt import MediaSource
from tourgen.services.media_upload import source_from_data_url
from tourgen.services.providers.worldlabs import WorldLabsClient
from tourgen.services.workflow import PromptInput, PromptKind, TourWorkflow

logger = logging.getLogger(__name__)

router = APIRouter()


def _decode(file: UploadedFile, settings: Settings) -> MediaSource:
    try:
        source = source_from_data_url(file.data, file.name, file.type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Could not decode {file.name}: {e}")
    if not source.content:
        raise HTTPException(status_code=400, detail=f"{file.name} is empty")
    if len(source.content) > settings.MAX_UPLOAD_MB * 1024 * 1024:
        raise HTTPException(
            status_code=413,
            detail=f"{file.name} must be under {settings.MAX_UPLOAD_MB}MB",
        )
    return source


def build_prompt_input(req: GenerateRequest, settings: Settings) -> PromptInput:
    """Validate the browser payload and turn it into workflow input.

    Raises HTTPException(400) for anything the UI should have prevented.
    """
    if req.input_type == InputType.TEXT:
        if not req.text or not req.text.strip():
            raise HTTPException(status_code=400, detail="No text provided")
        return PromptInput(kind=PromptKind.TEXT, text=req.text.strip())

    if req.input_type == InputType.VIDEO:
        if req.video is None:
            raise HTTPException(status_code=400, detail="No video provided")
        return PromptInput(kind=PromptKind.VIDEO, media=[_decode(req.video, settings)])

    if req.input_type == InputType.PANORAMA:
        if req.panorama is None:
            raise HTTPException(status_code=400, detail="No panorama provided")
        return PromptInput(kind=PromptKind.PANORAMA, media=[_decode(req.panorama, settings)])

    images = req.images or []
    if not images:
        raise HTTPException(status_code=400, detail="No images provided")

    if req.layout_mode == LayoutMode.DIRECTION:
        limit = settings.MAX_DIRECTION_IMAGES
        if len(images) > 1 and any(img.direction is None for img in images):
            raise HTTPException(
                status_code=400, detail="Every image needs a direction in direction layout"
            )
    else:
        limit = settings.MAX_AUTO_IMAGES
    if len(images) > limit:
        raise HTTPException(
            status_code=400,
            detail=f"At most {limit} images allowed in {req.layout_mode.value} layout",
        )

    sources = [_decode(img, settings) for img in images]
    if len(sources) == 1:
        return PromptInput(kind=PromptKind.IMAGE, media=sources)

    directions = (
        [img.direction for img in images]
        if req.layout_mode == LayoutMode.DIRECTION
        else []
    )
    return PromptInput(kind=PromptKind.MULTI_IMAGE, media=sources, directions=directions)


@router.post("/generate", response_model=GenerateResponse, response_model_by_alias=True)
async def generate(
    req: GenerateRequest,
    client: WorldLabsClient = Depends(get_worldlabs_client),
    settings: Settings = Depends(get_settings),
):
    """Upload media, submit the generation job, return the operation id for polling."""
    inputs = build_prompt_input(req, settings)
    workflow = TourWorkflow(client, settings)
    handle = await workflow.start(
        inputs, display_name=req.name or "", model_tier=req.mode
    )
    logger.info("Generation started for '%s': %s", req.name, handle.operation_id)
    return GenerateResponse(
        operation_id=handle.operation_id, poll_interval=settings.WEB_POLL_INTERVAL
    )
