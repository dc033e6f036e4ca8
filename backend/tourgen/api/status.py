"""Status API: proxies vendor operation status and world metadata to the browser."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from tourgen.api.deps import get_worldlabs_client
from tourgen.services.providers.worldlabs import WorldLabsClient

router = APIRouter()


@router.get("/status")
async def get_status(
    operationId: str | None = None,
    client: WorldLabsClient = Depends(get_worldlabs_client),
):
    """Vendor operation status, passed through verbatim."""
    if not operationId:
        raise HTTPException(status_code=400, detail="operationId required")

    resp = await client.get_operation(operationId)
    if isinstance(resp.data, dict):
        return resp.data
    return {"raw": resp.data}


@router.get("/world")
async def get_world(
    worldId: str | None = None,
    client: WorldLabsClient = Depends(get_worldlabs_client),
):
    """Vendor world metadata (including world_marble_url when available)."""
    if not worldId:
        raise HTTPException(status_code=400, detail="worldId required")

    resp = await client.get_world(worldId)
    if not resp.ok:
        raise HTTPException(status_code=resp.status, detail=resp.data)
    if isinstance(resp.data, dict):
        return resp.data
    return {"raw": resp.data}
