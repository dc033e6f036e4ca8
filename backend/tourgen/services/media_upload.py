"""Media uploader: local files, in-memory buffers and data URLs → MediaReference."""

from __future__ import annotations

import base64
import binascii
import logging
import os
import re

from tourgen.errors import MalformedVendorResponse, UploadFailed
from tourgen.schemas.prompt import MediaReference, MediaSource
from tourgen.services.providers.worldlabs import WorldLabsClient

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".mkv": "video/x-matroska",
}

# Accepted media id fields on the upload response, in priority order.
MEDIA_ID_FIELDS = ("id", "media_id")

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[^;,]+)?(?:;[^,]*)?,(?P<data>.*)$", re.DOTALL)


def guess_mime_type(filename: str) -> str:
    ext = os.path.splitext(filename)[1].lower()
    return MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)


def is_remote(path_or_url: str) -> bool:
    return path_or_url.startswith("http")


def decode_data_url(data_url: str) -> tuple[bytes, str | None]:
    """Split a ``data:<mime>;base64,<payload>`` string into bytes and MIME type.

    A bare base64 string (no ``data:`` prefix) is accepted too.
    """
    match = _DATA_URL_RE.match(data_url)
    if match:
        payload, mime = match.group("data"), match.group("mime")
    else:
        payload, mime = data_url, None
    try:
        return base64.b64decode(payload, validate=False), mime
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


def source_from_data_url(data_url: str, filename: str, mime_type: str | None = None) -> MediaSource:
    content, embedded_mime = decode_data_url(data_url)
    return MediaSource(filename=filename, content=content, mime_type=mime_type or embedded_mime)


class MediaUploader:
    """Turns payloads into vendor-hosted media references, one upload call each."""

    def __init__(self, client: WorldLabsClient) -> None:
        self.client = client

    async def upload_bytes(
        self, payload: bytes, filename: str, mime_type: str | None = None
    ) -> MediaReference:
        if not payload:
            raise ValueError(f"Cannot upload empty payload: {filename}")

        mime = mime_type or guess_mime_type(filename)
        logger.info("Uploading %s (%d bytes, %s)", filename, len(payload), mime)

        resp = await self.client.upload_media(filename, payload, mime)
        if not resp.ok:
            logger.error("Upload failed for %s: %d %s", filename, resp.status, resp.data)
            raise UploadFailed(filename, resp.status, resp.data)

        data = resp.json_dict()
        for field in MEDIA_ID_FIELDS:
            media_id = data.get(field)
            if media_id:
                return MediaReference(media_id=str(media_id))
        raise MalformedVendorResponse("media id", MEDIA_ID_FIELDS, resp.data)

    async def upload_source(self, source: MediaSource) -> MediaReference:
        return await self.upload_bytes(source.content, source.filename, source.mime_type)

    async def upload_file(self, path: str) -> MediaReference:
        with open(path, "rb") as f:
            payload = f.read()
        return await self.upload_bytes(payload, os.path.basename(path))

    async def upload_data_url(
        self, data_url: str, filename: str, mime_type: str | None = None
    ) -> MediaReference:
        return await self.upload_source(source_from_data_url(data_url, filename, mime_type))

    async def resolve_reference(self, path_or_url: str) -> MediaReference:
        """URLs pass through untouched; local paths are uploaded."""
        if is_remote(path_or_url):
            return MediaReference(url=path_or_url)
        return await self.upload_file(path_or_url)
