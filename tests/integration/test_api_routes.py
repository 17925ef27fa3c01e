"""Tests for the FastAPI routes."""

import copy
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from videogen.api import routes_video
from videogen.main import app
from videogen.models.schemas import RenderJob, RenderStatus
from videogen.pipelines.generation_pipeline import create_pipeline
from videogen.services.render_status_tracker import RenderStatusTracker, TrackerState
from videogen.storage.repository import RenderJobRepository

SCRIPT = " ".join(["word"] * 40)


@pytest.fixture
def repository(settings, logger):
    return RenderJobRepository(settings, logger)


@pytest.fixture
def render_client():
    client = MagicMock()
    response = MagicMock()
    response.ok = True
    response.status_code = 202
    response.json.return_value = [{"id": "render_1", "status": "planned"}]
    client.create_render.return_value = response
    return client


@pytest.fixture
def draft_generator(sample_draft):
    generator = MagicMock()
    generator.generate_draft.return_value = copy.deepcopy(sample_draft)
    return generator


@pytest.fixture
def api(settings, logger, repository, render_client, draft_generator):
    """TestClient with the pipeline wired to mocks and temp storage."""
    pipeline = create_pipeline(
        settings,
        logger,
        storage=repository,
        trackers=routes_video.tracker_registry,
        draft_generator=draft_generator,
        client=render_client,
    )
    app.dependency_overrides[routes_video.get_repository] = lambda: repository
    app.dependency_overrides[routes_video.get_pipeline] = lambda: pipeline
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    routes_video.tracker_registry.stop_all()


def generate_payload(sample_clips, **overrides):
    payload = {
        "script": SCRIPT,
        "clips": [clip.model_dump() for clip in sample_clips],
        "plan": "free",
        "caption_config": {"preset_id": "karaoke", "placement": "bottom"},
    }
    payload.update(overrides)
    return payload


def test_health(api):
    """Test health endpoint."""
    response = api.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_root_lists_endpoints(api):
    """Test root endpoint describes the API."""
    body = api.get("/").json()

    assert body["status"] == "running"
    assert body["endpoints"]["generate_video"] == "/videos/generate"


def test_generate_video(api, sample_clips, repository):
    """Test generation returns the queued render."""
    response = api.post("/videos/generate", json=generate_payload(sample_clips))

    assert response.status_code == 200
    body = response.json()
    assert body["render_id"] == "render_1"
    assert body["status"] == "queued"
    assert body["request_id"].startswith("req_")
    assert repository.load_job("render_1").status == RenderStatus.QUEUED


def test_generate_video_validation_failure(api, sample_clips):
    """Test validation failures return 422 with every warning."""
    payload = generate_payload(sample_clips, clips=[{"id": "tiny", "duration_seconds": 2}])

    response = api.post("/videos/generate", json=payload)

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["kind"] == "validation_failure"
    assert detail["retryable"] is False
    assert len(detail["warnings"]) == 2


def test_generate_video_generation_failure(api, sample_clips, draft_generator):
    """Test draft failures return 502 and are retryable."""
    draft_generator.generate_draft.side_effect = RuntimeError("upstream timeout")

    response = api.post("/videos/generate", json=generate_payload(sample_clips))

    assert response.status_code == 502
    assert response.json()["detail"]["kind"] == "generation_failure"
    assert response.json()["detail"]["retryable"] is True


def test_generate_video_submission_failure(api, sample_clips, render_client):
    """Test rejected submissions return 502 and are not retryable."""
    rejected = MagicMock()
    rejected.ok = False
    rejected.status_code = 400
    rejected.json.return_value = {"message": "bad request"}
    render_client.create_render.return_value = rejected

    response = api.post("/videos/generate", json=generate_payload(sample_clips))

    assert response.status_code == 502
    assert response.json()["detail"]["kind"] == "submission_failure"
    assert response.json()["detail"]["retryable"] is False


def test_get_video(api, repository):
    """Test a persisted render job is returned."""
    repository.save_job(RenderJob(id="render_9", status=RenderStatus.RENDERING))

    response = api.get("/videos/render_9")

    assert response.status_code == 200
    assert response.json()["status"] == "rendering"


def test_get_video_not_found(api):
    """Test unknown renders return 404."""
    assert api.get("/videos/missing").status_code == 404


def test_webhook_updates_persisted_job(api, repository):
    """Test pushes without an active tracker reconcile storage."""
    repository.save_job(RenderJob(id="render_5"))

    response = api.post(
        "/webhooks/render",
        json={"id": "render_5", "status": "succeeded", "url": "https://cdn.example.com/out.mp4"},
    )

    assert response.status_code == 200
    assert response.json()["handled_by"] == "storage"
    job = repository.load_job("render_5")
    assert job.status == RenderStatus.DONE
    assert job.render_url == "https://cdn.example.com/out.mp4"


def test_webhook_never_moves_backward(api, repository):
    """Test a late push cannot reopen a finished job."""
    repository.save_job(RenderJob(id="render_6", status=RenderStatus.DONE))

    response = api.post("/webhooks/render", json={"id": "render_6", "status": "rendering"})

    assert response.json()["status"] == "done"
    assert repository.load_job("render_6").status == RenderStatus.DONE


def test_webhook_forwards_to_tracker(api, settings, logger):
    """Test pushes go to the render's active tracker."""
    client = MagicMock()
    client.get_render.return_value = RenderJob(id="render_7", status=RenderStatus.RENDERING)
    tracker = RenderStatusTracker(settings, logger, client, interval_seconds=10, max_attempts=5)
    routes_video.tracker_registry.register("render_7", tracker)
    tracker.start("render_7")

    response = api.post("/webhooks/render", json={"id": "render_7", "status": "done"})

    assert response.json()["handled_by"] == "tracker"
    assert tracker.state == TrackerState.DONE


def test_webhook_unknown_render(api):
    """Test pushes for unknown renders are acknowledged and ignored."""
    response = api.post("/webhooks/render", json={"id": "render_unknown", "status": "done"})

    assert response.status_code == 200
    assert response.json()["handled_by"] == "ignored"


def test_webhook_requires_id(api):
    """Test pushes without an id are rejected."""
    assert api.post("/webhooks/render", json={"status": "done"}).status_code == 400
