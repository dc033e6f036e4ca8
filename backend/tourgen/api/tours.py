"""Tours API: resolve finished operations into the session gallery."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from tourgen.api.deps import get_worldlabs_client
from tourgen.config import Settings, get_settings
from tourgen.errors import MalformedVendorResponse
from tourgen.schemas.api import ResolveTourRequest
from tourgen.services.providers.worldlabs import WorldLabsClient
from tourgen.services.result_resolve import parse_operation
from tourgen.services.tour_store import get_gallery
from tourgen.services.workflow import TourWorkflow

router = APIRouter()


@router.get("")
async def list_tours():
    """Tours finished in this server session, newest first."""
    return {"tours": [t.to_record() for t in get_gallery().list()]}


@router.post("")
async def resolve_tour(
    req: ResolveTourRequest,
    client: WorldLabsClient = Depends(get_worldlabs_client),
    settings: Settings = Depends(get_settings),
):
    """Turn a finished operation into a TourResult and add it to the gallery."""
    gallery = get_gallery()
    existing = gallery.find(req.operation_id)
    if existing is not None:
        return existing.to_record()

    resp = await client.get_operation(req.operation_id)
    if not resp.ok:
        raise HTTPException(status_code=resp.status, detail=resp.data)
    if not isinstance(resp.data, dict):
        raise MalformedVendorResponse("operation status", ("done",), resp.data)

    status = parse_operation(resp.data, req.operation_id)
    if not status.done:
        raise HTTPException(
            status_code=409,
            detail=f"Operation {req.operation_id} still running ({status.progress_pct or 0}%)",
        )

    workflow = TourWorkflow(client, settings)
    result = await workflow.finish(status, display_name=req.name, model_tier=req.mode)
    return gallery.add_if_absent(result).to_record()
