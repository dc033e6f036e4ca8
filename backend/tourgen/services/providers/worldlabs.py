"""World Labs (Marble) world-generation API client.

Targets API version v0:
  POST /media              multipart upload → {id | media_id}
  POST /worlds/generate    JSON             → {operation_id}
  GET  /operations/{id}                     → {done, metadata.progress_pct, error?, response?}
  GET  /worlds/{id}                         → {world_marble_url?, ...}

The client only moves bytes; interpreting status codes is left to the
uploader / submitter / poller services.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from tourgen.config import Settings, resolve_api_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VendorResponse:
    """Status code plus decoded body (JSON when possible, raw text otherwise)."""

    status: int
    data: Any

    @property
    def ok(self) -> bool:
        return self.status in (200, 201)

    def json_dict(self) -> dict[str, Any]:
        return self.data if isinstance(self.data, dict) else {}


def _decode(resp: httpx.Response) -> VendorResponse:
    try:
        data = resp.json()
    except ValueError:
        data = resp.text
    return VendorResponse(status=resp.status_code, data=data)


class WorldLabsClient:
    """Async client for the World Labs API.

    Constructed once per process and passed into each workflow call.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.worldlabs.ai/v0",
        auth_header: str = "Authorization",
        timeout: float = 30.0,
        upload_timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("World Labs API key is required")
        self.base_url = base_url.rstrip("/")
        self.upload_timeout = upload_timeout
        self._auth_header = auth_header
        self._api_key = api_key
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._own_client = http_client is None

    @classmethod
    def from_settings(
        cls, settings: Settings, http_client: httpx.AsyncClient | None = None
    ) -> "WorldLabsClient":
        return cls(
            api_key=resolve_api_key(settings),
            base_url=settings.WORLDLABS_API_BASE,
            auth_header=settings.WORLDLABS_AUTH_HEADER,
            timeout=settings.HTTP_TIMEOUT,
            upload_timeout=settings.UPLOAD_TIMEOUT,
            http_client=http_client,
        )

    @property
    def headers(self) -> dict[str, str]:
        if self._auth_header.lower() == "authorization":
            return {"Authorization": f"Bearer {self._api_key}"}
        return {self._auth_header: self._api_key}

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()

    async def __aenter__(self) -> "WorldLabsClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def upload_media(
        self, filename: str, content: bytes, mime_type: str
    ) -> VendorResponse:
        files = {"file": (filename, content, mime_type)}
        resp = await self._client.post(
            f"{self.base_url}/media",
            headers=self.headers,
            files=files,
            timeout=self.upload_timeout,
        )
        logger.debug("POST /media %s -> %d", filename, resp.status_code)
        return _decode(resp)

    async def generate_world(self, body: dict[str, Any]) -> VendorResponse:
        resp = await self._client.post(
            f"{self.base_url}/worlds/generate",
            headers={**self.headers, "Content-Type": "application/json"},
            json=body,
        )
        logger.debug("POST /worlds/generate -> %d", resp.status_code)
        return _decode(resp)

    async def get_operation(self, operation_id: str) -> VendorResponse:
        resp = await self._client.get(
            f"{self.base_url}/operations/{operation_id}", headers=self.headers
        )
        return _decode(resp)

    async def get_world(self, world_id: str) -> VendorResponse:
        resp = await self._client.get(
            f"{self.base_url}/worlds/{world_id}", headers=self.headers
        )
        return _decode(resp)
