"""Shared FastAPI dependencies."""

from __future__ import annotations

from typing import AsyncIterator

from fastapi import Depends

from tourgen.config import Settings, get_settings
from tourgen.services.providers.worldlabs import WorldLabsClient


async def get_worldlabs_client(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[WorldLabsClient]:
    """Yield a World Labs client for the request; raises MissingCredentials without a key."""
    client = WorldLabsClient.from_settings(settings)
    try:
        yield client
    finally:
        await client.aclose()
