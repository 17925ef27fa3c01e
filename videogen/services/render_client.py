"""Render Service Client - thin HTTP wrapper around the external render API."""

from datetime import datetime
from typing import Any, Optional

import requests

from videogen.core.config import Settings
from videogen.core.exceptions import PollingError
from videogen.models.schemas import RenderJob, RenderStatus, utcnow

# Render service status vocabulary -> RenderJob.status
STATUS_MAP = {
    "planned": RenderStatus.QUEUED,
    "waiting": RenderStatus.QUEUED,
    "queued": RenderStatus.QUEUED,
    "transcribing": RenderStatus.RENDERING,
    "rendering": RenderStatus.RENDERING,
    "processing": RenderStatus.RENDERING,
    "succeeded": RenderStatus.DONE,
    "completed": RenderStatus.DONE,
    "done": RenderStatus.DONE,
    "failed": RenderStatus.ERROR,
    "error": RenderStatus.ERROR,
}


def map_render_status(raw_status: Any, logger: Any = None) -> RenderStatus:
    """
    Map a render service status onto the RenderJob lifecycle.

    Unknown values, including non-string ones, are treated as still rendering.
    """
    status = STATUS_MAP.get(raw_status.lower()) if isinstance(raw_status, str) else None
    if status is None:
        if logger is not None:
            logger.warning(f"Unknown render status {raw_status!r}, treating as rendering")
        return RenderStatus.RENDERING
    return status


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
    return utcnow()


def render_job_from_payload(data: dict[str, Any], logger: Any = None, render_id: Optional[str] = None) -> RenderJob:
    """
    Build a RenderJob from a status payload (poll response or webhook push).

    Args:
        data: {id, status, progress?, error_message?, video_url?/url?, updated_at?}
        logger: Optional logger for unknown statuses
        render_id: Id to use when the payload does not carry one

    Returns:
        RenderJob observation
    """
    job_id = data.get("id") or render_id
    if not job_id:
        raise ValueError("Render status payload has no id")

    progress = data.get("progress")
    return RenderJob(
        id=str(job_id),
        status=map_render_status(data.get("status"), logger),
        progress=float(progress) if isinstance(progress, (int, float)) else None,
        render_url=data.get("video_url") or data.get("url"),
        error_message=data.get("error_message"),
        updated_at=_parse_timestamp(data.get("updated_at")),
    )


class RenderServiceClient:
    """HTTP client for render submission and status lookups."""

    def __init__(self, settings: Settings, logger: Any, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            settings: Application settings
            logger: Logger instance
            session: Optional requests session (injected in tests)
        """
        self.settings = settings
        self.logger = logger
        self.api_url = settings.render_api_url.rstrip("/")
        self.timeout = settings.render_request_timeout_seconds
        self.session = session or requests.Session()

        if not settings.render_api_key:
            self.logger.warning("Render API key not configured. Render calls will be rejected.")

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.render_api_key}",
            "Content-Type": "application/json",
        }

    def create_render(self, payload: dict[str, Any]) -> requests.Response:
        """
        Submit a render request.

        Raises:
            requests.RequestException: On transport failure
        """
        self.logger.debug(f"POST {self.api_url}/renders")
        return self.session.post(
            f"{self.api_url}/renders",
            json=payload,
            headers=self.headers,
            timeout=self.timeout,
        )

    def get_render(self, render_id: str) -> RenderJob:
        """
        Fetch the current status of a render.

        Args:
            render_id: Render identifier

        Returns:
            RenderJob observation

        Raises:
            PollingError: On transport failure, HTTP error or malformed response
        """
        try:
            response = self.session.get(
                f"{self.api_url}/renders/{render_id}",
                headers=self.headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise PollingError(f"Network error while fetching render {render_id}: {e}", context={"render_id": render_id}) from e
        except ValueError as e:
            raise PollingError(f"Render status response is not JSON: {e}", context={"render_id": render_id}) from e

        if not isinstance(data, dict):
            raise PollingError(f"Unexpected render status payload: {data!r}", context={"render_id": render_id})

        try:
            return render_job_from_payload(data, self.logger, render_id=render_id)
        except (ValueError, TypeError, AttributeError) as e:
            raise PollingError(f"Malformed render status payload: {e}", context={"render_id": render_id}) from e
