"""Web API tests using FastAPI's TestClient and the fake vendor."""

import base64

import pytest
from fastapi.testclient import TestClient

from tourgen.api.deps import get_worldlabs_client
from tourgen.config import get_settings
from tourgen.main import app
from tourgen.schemas import TourResult
from tourgen.services import tour_store, workflow


def _data_url(content=b"jpeg-bytes", mime="image/jpeg"):
    return f"data:{mime};base64,{base64.b64encode(content).decode()}"


@pytest.fixture
def api(vendor, settings, monkeypatch):
    async def _client():
        yield vendor.client()

    monkeypatch.setattr(tour_store, "_gallery", tour_store.TourGallery())
    monkeypatch.setattr(workflow, "_metrics", workflow.WorkflowMetrics())
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_worldlabs_client] = _client
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def test_health(api):
    assert api.get("/health").json()["status"] == "healthy"


def test_generate_multiple_images(api, vendor):
    body = {
        "name": "123 Main St",
        "mode": "draft",
        "inputType": "images",
        "layoutMode": "auto",
        "images": [{"name": f"r{i}.jpg", "type": "image/jpeg", "data": _data_url()} for i in range(4)],
    }
    resp = api.post("/api/generate", json=body)

    assert resp.status_code == 200
    assert resp.json() == {
        "operationId": "op-1",
        "message": "Generation started",
        "pollInterval": 3.0,
    }
    sent = vendor.generate_bodies[0]
    assert sent["display_name"] == "123 Main St"
    assert sent["model"] == "Marble 0.1-mini"
    azimuths = [img["azimuth"] for img in sent["world_prompt"]["multi_image_prompt"]["images"]]
    assert azimuths == [0, 90, 180, 270]


def test_generate_single_image_uses_image_prompt(api, vendor):
    body = {"images": [{"name": "front.jpg", "data": _data_url()}]}
    assert api.post("/api/generate", json=body).status_code == 200
    assert vendor.generate_bodies[0]["world_prompt"] == {"image_prompt": {"media_id": "media-1"}}


def test_generate_direction_layout(api, vendor):
    body = {
        "layoutMode": "direction",
        "images": [
            {"name": "a.jpg", "data": _data_url(), "direction": "right"},
            {"name": "b.jpg", "data": _data_url(), "direction": "front"},
        ],
    }
    assert api.post("/api/generate", json=body).status_code == 200
    images = vendor.generate_bodies[0]["world_prompt"]["multi_image_prompt"]["images"]
    assert [img["azimuth"] for img in images] == [90, 0]


def test_generate_direction_layout_needs_every_direction(api, vendor):
    body = {
        "layoutMode": "direction",
        "images": [
            {"name": "a.jpg", "data": _data_url(), "direction": "right"},
            {"name": "b.jpg", "data": _data_url()},
        ],
    }
    assert api.post("/api/generate", json=body).status_code == 400
    assert vendor.requests == []


def test_generate_too_many_images(api):
    body = {"images": [{"name": f"{i}.jpg", "data": _data_url()} for i in range(9)]}
    assert api.post("/api/generate", json=body).status_code == 400


def test_generate_without_images(api):
    resp = api.post("/api/generate", json={"name": "Empty"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No images provided"


def test_generate_panorama(api, vendor):
    body = {"inputType": "panorama", "panorama": {"name": "pano.jpg", "data": _data_url()}}
    assert api.post("/api/generate", json=body).status_code == 200
    assert vendor.generate_bodies[0]["world_prompt"] == {
        "image_prompt": {"media_id": "media-1", "is_pano": True}
    }


def test_generate_video(api, vendor):
    body = {
        "inputType": "video",
        "video": {"name": "walk.mp4", "data": _data_url(b"mp4", "video/mp4")},
    }
    assert api.post("/api/generate", json=body).status_code == 200
    assert b"Content-Type: video/mp4" in vendor.calls("POST", "/media")[0].content


def test_generate_upload_failure(api, vendor):
    vendor.uploads = [(413, {"error": "too large"})]
    resp = api.post("/api/generate", json={"images": [{"name": "big.jpg", "data": _data_url()}]})

    assert resp.status_code == 502
    payload = resp.json()
    assert payload["error"] == "upload_failed"
    assert payload["details"]["vendor_status"] == 413
    assert vendor.calls("POST", "/worlds/generate") == []


def test_status_proxy(api, vendor):
    vendor.operations = [(200, {"done": False, "metadata": {"progress_pct": 42}})]
    resp = api.get("/api/status", params={"operationId": "op-1"})
    assert resp.json() == {"done": False, "metadata": {"progress_pct": 42}}


def test_status_requires_operation_id(api):
    assert api.get("/api/status").status_code == 400


def test_world_lookup(api, vendor):
    vendor.world = (200, {"world_id": "w1", "world_marble_url": "https://marble.worldlabs.ai/world/w1"})
    resp = api.get("/api/world", params={"worldId": "w1"})
    assert resp.json()["world_marble_url"] == "https://marble.worldlabs.ai/world/w1"


def test_resolve_tour_into_gallery(api, vendor):
    vendor.operations = [(200, {"done": True, "response": {"world_id": "abc123"}})]

    resp = api.post("/api/tours", json={"operationId": "op-1", "name": "Cottage"})
    assert resp.status_code == 200
    record = resp.json()
    assert record["worldId"] == "abc123"
    assert record["viewUrl"] == "https://platform.worldlabs.ai/worlds/abc123"
    assert record["name"] == "Cottage"

    again = api.post("/api/tours", json={"operationId": "op-1", "name": "Cottage"})
    assert again.json() == record

    tours = api.get("/api/tours").json()["tours"]
    assert [t["worldId"] for t in tours] == ["abc123"]


def test_resolve_tour_still_running(api, vendor):
    vendor.operations = [(200, {"done": False, "metadata": {"progress_pct": 12}})]
    assert api.post("/api/tours", json={"operationId": "op-1"}).status_code == 409


def test_resolve_tour_failed_generation(api, vendor):
    vendor.operations = [(200, {"done": True, "error": {"message": "nope"}})]
    resp = api.post("/api/tours", json={"operationId": "op-1"})
    assert resp.status_code == 502
    assert resp.json()["error"] == "generation_failed"
    assert api.get("/api/tours").json()["tours"] == []


def test_workflow_metrics(api):
    data = api.get("/api/metrics/workflow").json()
    assert data["service"] == "tour_workflow"
    assert "gallery_size" in data


def test_metrics_count_web_runs(api, vendor):
    body = {"images": [{"name": "front.jpg", "data": _data_url()}]}
    assert api.post("/api/generate", json=body).status_code == 200
    assert api.post("/api/tours", json={"operationId": "op-1"}).status_code == 200

    data = api.get("/api/metrics/workflow").json()
    assert data["total_runs"] == 1
    assert data["total_resolved"] == 1
    assert data["total_errors"] == 0
    assert data["gallery_size"] == 1


def test_metrics_count_failed_web_runs(api, vendor):
    vendor.operations = [(200, {"done": True, "error": {"message": "nope"}})]
    assert api.post("/api/generate", json={"inputType": "text", "text": "Loft"}).status_code == 200
    assert api.post("/api/tours", json={"operationId": "op-1"}).status_code == 502

    data = api.get("/api/metrics/workflow").json()
    assert data["total_resolved"] == 0
    assert data["errors_by_type"] == {"generation_failed": 1}


def test_gallery_keeps_one_tour_per_operation():
    gallery = tour_store.TourGallery()
    first = TourResult(world_id="w1", view_url="u1", display_name="A", operation_id="op-1")
    second = TourResult(world_id="w1", view_url="u2", display_name="A", operation_id="op-1")

    assert gallery.add_if_absent(first) is first
    assert gallery.add_if_absent(second) is first
    assert len(gallery) == 1


def test_missing_credentials(settings, monkeypatch):
    monkeypatch.setattr(settings, "WORLDLABS_API_KEY", "")
    app.dependency_overrides[get_settings] = lambda: settings
    try:
        with TestClient(app) as client:
            resp = client.get("/api/status", params={"operationId": "op-1"})
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert resp.json()["error"] == "missing_credentials"
    assert "World Labs API key not configured" in resp.json()["message"]
