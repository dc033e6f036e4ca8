"""Pytest configuration helpers.

Puts ``backend/`` on ``sys.path`` so tests can import the ``tourgen`` package
without installing it, and provides a fake World Labs API built on
``httpx.MockTransport``.
"""
import json
import os
import sys

import httpx
import pytest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "backend"))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from tourgen.config import Settings  # noqa: E402
from tourgen.services.providers.worldlabs import WorldLabsClient  # noqa: E402
from tourgen.services.workflow import WorkflowMetrics  # noqa: E402

API_BASE = "https://api.worldlabs.ai/v0"


class FakeWorldLabs:
    """Scriptable stand-in for the vendor API.

    Responses are ``(status, body)`` tuples; ``operations`` is consumed in
    order and the last entry repeats.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.uploads: list[tuple[int, object]] = []
        self.generate = (200, {"operation_id": "op-1"})
        self.operations: list[tuple[int, object]] = [
            (200, {"done": True, "response": {"world_id": "world-1"}}),
        ]
        self.world: tuple[int, object] | None = (404, {"detail": "not found"})
        self.world_exc: Exception | None = None
        self._upload_count = 0

    # --- helpers for assertions ---

    def calls(self, method: str, prefix: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path.startswith(f"/v0{prefix}")
        ]

    @property
    def generate_bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.calls("POST", "/worlds/generate")]

    # --- transport ---

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path == "/v0/media":
            self._upload_count += 1
            if self.uploads:
                status, body = self.uploads.pop(0)
            else:
                status, body = 200, {"id": f"media-{self._upload_count}"}
            return _response(status, body)

        if request.method == "POST" and path == "/v0/worlds/generate":
            return _response(*self.generate)

        if request.method == "GET" and path.startswith("/v0/operations/"):
            status, body = self.operations[0]
            if len(self.operations) > 1:
                self.operations.pop(0)
            return _response(status, body)

        if request.method == "GET" and path.startswith("/v0/worlds/"):
            if self.world_exc is not None:
                raise self.world_exc
            return _response(*self.world)

        return _response(404, {"detail": f"no route {request.method} {path}"})

    def client(self) -> WorldLabsClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return WorldLabsClient(api_key="test-key", base_url=API_BASE, http_client=http)


def _response(status: int, body: object) -> httpx.Response:
    if isinstance(body, (dict, list)):
        return httpx.Response(status, json=body)
    return httpx.Response(status, text=str(body))


@pytest.fixture
def vendor():
    return FakeWorldLabs()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        WORLDLABS_API_KEY="test-key",
        WORLDLABS_API_BASE=API_BASE,
        POLL_INTERVAL=0.0,
        POLL_TIMEOUT=30.0,
        ENRICH_WORLD_URL=True,
        TOURS_DIR=str(tmp_path / "tours"),
        CREDENTIALS_PATH=str(tmp_path / "missing.json"),
    )


@pytest.fixture
def metrics():
    return WorkflowMetrics()
