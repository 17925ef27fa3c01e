"""Tests for Render Submitter and Render Service Client."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from videogen.core.exceptions import PollingError, SubmissionFailure
from videogen.models.schemas import CompositionDocument, RenderMetadata, RenderStatus
from videogen.services.render_client import RenderServiceClient, map_render_status, render_job_from_payload
from videogen.services.render_submitter import RenderSubmitter


def make_response(status_code=200, json_data=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    if response.ok:
        response.raise_for_status.return_value = None
    else:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    return response


@pytest.fixture
def session():
    """Mock requests session."""
    return MagicMock()


@pytest.fixture
def client(settings, logger, session):
    """Create RenderServiceClient with a mocked session."""
    return RenderServiceClient(settings, logger, session=session)


@pytest.fixture
def submitter(settings, logger, client):
    """Create RenderSubmitter instance for testing."""
    return RenderSubmitter(settings, logger, client)


@pytest.fixture
def document(sample_draft):
    return CompositionDocument.model_validate(sample_draft)


@pytest.fixture
def metadata():
    return RenderMetadata(request_id="req_1", user_id="user_1", script_id="script_1", prompt="x" * 150)


def test_submit_returns_render_id(submitter, session, document, metadata):
    """Test a successful submission returns the first render id."""
    session.post.return_value = make_response(202, [{"id": "render_1", "status": "planned"}])

    assert submitter.submit(document, metadata) == "render_1"
    session.post.assert_called_once()


def test_submit_accepts_object_response(submitter, session, document, metadata):
    """Test a single-object response is accepted."""
    session.post.return_value = make_response(200, {"id": "render_2"})

    assert submitter.submit(document, metadata) == "render_2"


def test_submit_request_body(submitter, session, document, metadata):
    """Test the request body sent to the render service."""
    session.post.return_value = make_response(200, [{"id": "render_1"}])

    submitter.submit(document, metadata)

    kwargs = session.post.call_args.kwargs
    assert session.post.call_args.args[0] == "https://api.creatomate.com/v1/renders"
    assert kwargs["headers"]["Authorization"] == "Bearer test-render-key"
    body = kwargs["json"]
    assert body["template_id"] == "template-123"
    assert body["webhook_url"] == "https://hooks.example.com/webhooks/render"
    assert body["output_format"] == "mp4"
    assert body["frame_rate"] == 30
    assert body["render_scale"] == 1.0
    assert body["modifications"] == document.to_payload()

    meta = json.loads(body["metadata"])
    assert meta["requestId"] == "req_1"
    assert meta["userId"] == "user_1"
    assert meta["scriptId"] == "script_1"
    assert len(meta["prompt"]) == 100


def test_submit_without_webhook(settings, logger, client, session, document, metadata):
    """Test webhook_url is omitted when no public base URL is configured."""
    settings.webhook_base_url = None
    submitter = RenderSubmitter(settings, logger, client)
    session.post.return_value = make_response(200, [{"id": "render_1"}])

    submitter.submit(document, metadata)

    assert "webhook_url" not in session.post.call_args.kwargs["json"]


def test_submit_http_error_is_not_retried(submitter, session, document, metadata):
    """Test a rejected submission raises SubmissionFailure after one call."""
    session.post.return_value = make_response(400, {"message": "Invalid template"})

    with pytest.raises(SubmissionFailure) as exc_info:
        submitter.submit(document, metadata)

    assert exc_info.value.status_code == 400
    assert exc_info.value.retryable is False
    assert session.post.call_count == 1


def test_submit_transport_error(submitter, session, document, metadata):
    """Test network errors raise SubmissionFailure."""
    session.post.side_effect = requests.exceptions.ConnectionError("connection refused")

    with pytest.raises(SubmissionFailure):
        submitter.submit(document, metadata)
    assert session.post.call_count == 1


def test_submit_non_json_response(submitter, session, document, metadata):
    """Test a non-JSON success response raises SubmissionFailure."""
    session.post.return_value = make_response(200, ValueError("no json"), text="<html>")

    with pytest.raises(SubmissionFailure):
        submitter.submit(document, metadata)


@pytest.mark.parametrize("render_data", [[], [{}], {"status": "planned"}, "render_1", None])
def test_submit_missing_id(submitter, session, document, metadata, render_data):
    """Test responses without an id raise SubmissionFailure."""
    session.post.return_value = make_response(200, render_data)

    with pytest.raises(SubmissionFailure, match="no render id"):
        submitter.submit(document, metadata)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("planned", RenderStatus.QUEUED),
        ("waiting", RenderStatus.QUEUED),
        ("queued", RenderStatus.QUEUED),
        ("transcribing", RenderStatus.RENDERING),
        ("rendering", RenderStatus.RENDERING),
        ("succeeded", RenderStatus.DONE),
        ("done", RenderStatus.DONE),
        ("Completed", RenderStatus.DONE),
        ("failed", RenderStatus.ERROR),
        ("error", RenderStatus.ERROR),
        ("mystery", RenderStatus.RENDERING),
        (None, RenderStatus.RENDERING),
        (5, RenderStatus.RENDERING),
    ],
)
def test_map_render_status(raw, expected):
    """Test render service statuses map onto the job lifecycle."""
    assert map_render_status(raw) == expected


def test_render_job_from_payload():
    """Test status payloads become RenderJob observations."""
    job = render_job_from_payload(
        {"id": "render_1", "status": "succeeded", "url": "https://cdn.example.com/out.mp4", "progress": 1}
    )

    assert job.id == "render_1"
    assert job.status == RenderStatus.DONE
    assert job.render_url == "https://cdn.example.com/out.mp4"
    assert job.progress == 1.0


def test_render_job_from_payload_requires_id():
    """Test payloads without an id are rejected."""
    with pytest.raises(ValueError):
        render_job_from_payload({"status": "done"})


def test_get_render(client, session):
    """Test status fetch parses the response."""
    session.get.return_value = make_response(
        200, {"id": "render_1", "status": "failed", "error_message": "Source not reachable"}
    )

    job = client.get_render("render_1")

    assert job.status == RenderStatus.ERROR
    assert job.error_message == "Source not reachable"
    assert session.get.call_args.args[0] == "https://api.creatomate.com/v1/renders/render_1"


def test_get_render_transport_error(client, session):
    """Test transport failures raise PollingError."""
    session.get.side_effect = requests.exceptions.Timeout("read timed out")

    with pytest.raises(PollingError) as exc_info:
        client.get_render("render_1")

    assert exc_info.value.retryable is True


def test_get_render_http_error(client, session):
    """Test HTTP errors raise PollingError."""
    session.get.return_value = make_response(500, {"message": "boom"})

    with pytest.raises(PollingError):
        client.get_render("render_1")


def test_get_render_unexpected_payload(client, session):
    """Test non-object payloads raise PollingError."""
    session.get.return_value = make_response(200, ["render_1"])

    with pytest.raises(PollingError):
        client.get_render("render_1")


def test_get_render_non_string_status_is_rendering(client, session):
    """Test a non-string status is treated as an unknown status."""
    session.get.return_value = make_response(200, {"id": "render_1", "status": 5})

    assert client.get_render("render_1").status == RenderStatus.RENDERING


def test_get_render_malformed_fields(client, session):
    """Test wrongly typed fields raise PollingError."""
    session.get.return_value = make_response(200, {"id": "render_1", "status": "done", "error_message": {"code": 1}})

    with pytest.raises(PollingError):
        client.get_render("render_1")
