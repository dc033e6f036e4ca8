"""Result resolver: terminal operation payload → TourResult.

The vendor has shipped more than one response schema, so every value is read
from an ordered list of accepted field names instead of ad hoc fallbacks.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import httpx

from tourgen.errors import GenerationFailed, MalformedVendorResponse, TourGenError
from tourgen.schemas.job import JobStatus, ModelTier, TourResult
from tourgen.services.providers.worldlabs import WorldLabsClient

logger = logging.getLogger(__name__)

WORLD_ID_FIELDS = ("world_id", "id")
VIEWER_URL_FIELDS = ("world_marble_url", "marble_url")
PROGRESS_FIELDS = ("progress_pct", "progress")


def _first(data: dict[str, Any], fields: tuple[str, ...]) -> Any:
    for field in fields:
        value = data.get(field)
        if value not in (None, ""):
            return value
    return None


def _progress(metadata: Any) -> int | None:
    if not isinstance(metadata, dict):
        return None
    value = _first(metadata, PROGRESS_FIELDS)
    try:
        pct = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(pct):
        return None
    return max(0, min(100, int(round(pct))))


def parse_operation(payload: Any, operation_id: str | None = None) -> JobStatus:
    """Parse a GET /operations/{id} body into a JobStatus."""
    if not isinstance(payload, dict):
        raise MalformedVendorResponse("operation status", ("done",), payload)

    response = payload.get("response")
    return JobStatus(
        operation_id=payload.get("operation_id") or operation_id,
        done=payload.get("done") is True,
        progress_pct=_progress(payload.get("metadata")),
        error=payload.get("error") or None,
        response=response if isinstance(response, dict) else None,
        raw=payload,
    )


def extract_world_id(response: dict[str, Any] | None) -> str:
    world_id = _first(response or {}, WORLD_ID_FIELDS)
    if not world_id:
        raise MalformedVendorResponse("world id", WORLD_ID_FIELDS, response)
    return str(world_id)


def default_view_url(world_id: str, platform_host: str = "platform.worldlabs.ai") -> str:
    return f"https://{platform_host}/worlds/{world_id}"


class ResultResolver:
    def __init__(
        self,
        client: WorldLabsClient | None = None,
        *,
        platform_host: str = "platform.worldlabs.ai",
        enrich: bool = True,
    ) -> None:
        self.client = client
        self.platform_host = platform_host
        self.enrich = enrich and client is not None

    async def fetch_viewer_url(self, world_id: str) -> str | None:
        """Vendor-supplied canonical viewer URL, or None. Never raises for vendor trouble."""
        try:
            resp = await self.client.get_world(world_id)
        except httpx.HTTPError as e:
            logger.warning("World lookup for %s failed: %s", world_id, e)
            return None
        if not resp.ok:
            logger.warning("World lookup for %s returned %d", world_id, resp.status)
            return None
        return _first(resp.json_dict(), VIEWER_URL_FIELDS)

    async def resolve(
        self,
        status: JobStatus,
        *,
        display_name: str,
        model_tier: ModelTier = ModelTier.STANDARD,
    ) -> TourResult:
        if not status.done:
            raise TourGenError(f"Operation {status.operation_id} has not finished")
        if not status.succeeded:
            raise GenerationFailed(status.error, status.operation_id)

        world_id = extract_world_id(status.response)
        view_url = _first(status.response, VIEWER_URL_FIELDS) or default_view_url(
            world_id, self.platform_host
        )
        if self.enrich:
            view_url = await self.fetch_viewer_url(world_id) or view_url

        logger.info("World %s ready: %s", world_id, view_url)
        return TourResult(
            world_id=world_id,
            view_url=view_url,
            display_name=display_name,
            operation_id=status.operation_id,
            model_tier=model_tier,
            response=status.response,
        )
