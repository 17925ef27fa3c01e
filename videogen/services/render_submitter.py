"""Render Submitter - sends a composition document to the render service."""

from typing import Any, Optional

import requests

from videogen.core.config import Settings
from videogen.core.exceptions import SubmissionFailure
from videogen.models.schemas import CompositionDocument, RenderMetadata
from videogen.services.render_client import RenderServiceClient


class RenderSubmitter:
    """Issues exactly one render submission per call; never retries."""

    def __init__(self, settings: Settings, logger: Any, client: RenderServiceClient):
        """
        Initialize the submitter.

        Args:
            settings: Application settings
            logger: Logger instance
            client: Render service HTTP client
        """
        self.settings = settings
        self.logger = logger
        self.client = client

    @property
    def webhook_url(self) -> Optional[str]:
        if not self.settings.webhook_base_url:
            return None
        return f"{self.settings.webhook_base_url.rstrip('/')}/{self.settings.webhook_path.lstrip('/')}"

    def build_payload(self, document: CompositionDocument, metadata: RenderMetadata) -> dict[str, Any]:
        """Render service request body for a document."""
        payload: dict[str, Any] = {
            "modifications": document.to_payload(),
            "output_format": "mp4",
            "frame_rate": self.settings.render_frame_rate,
            "render_scale": self.settings.render_scale,
            "metadata": metadata.to_json(),
        }
        if self.settings.render_template_id:
            payload["template_id"] = self.settings.render_template_id
        if self.webhook_url:
            payload["webhook_url"] = self.webhook_url
        return payload

    def submit(self, document: CompositionDocument, metadata: RenderMetadata) -> str:
        """
        Submit a document for rendering.

        Args:
            document: Repaired composition document
            metadata: Correlation data (request id, user id, script id, prompt)

        Returns:
            Render identifier

        Raises:
            SubmissionFailure: On transport error, non-success status or a response without an id
        """
        payload = self.build_payload(document, metadata)
        self.logger.info(f"Submitting render for request {metadata.request_id}")

        try:
            response = self.client.create_render(payload)
        except requests.exceptions.RequestException as e:
            raise SubmissionFailure(
                f"Render submission failed: {e}",
                context={"request_id": metadata.request_id},
            ) from e

        if not response.ok:
            try:
                error_data = response.json()
            except ValueError:
                error_data = response.text
            self.logger.error(f"Render service rejected submission: {response.status_code} {error_data}")
            raise SubmissionFailure(
                f"Render service returned {response.status_code}",
                status_code=response.status_code,
                context={"request_id": metadata.request_id, "error": error_data},
            )

        try:
            render_data = response.json()
        except ValueError as e:
            raise SubmissionFailure(
                "Render service returned a non-JSON response",
                status_code=response.status_code,
                context={"request_id": metadata.request_id},
            ) from e

        render_id = self._extract_render_id(render_data)
        if not render_id:
            raise SubmissionFailure(
                "Render service response has no render id",
                status_code=response.status_code,
                user_message="The video rendering service returned an invalid response.",
                context={"request_id": metadata.request_id, "response": render_data},
            )

        self.logger.info(f"✅ Render started: {render_id}")
        return render_id

    @staticmethod
    def _extract_render_id(render_data: Any) -> Optional[str]:
        if isinstance(render_data, list):
            first = render_data[0] if render_data else None
        else:
            first = render_data
        if isinstance(first, dict) and first.get("id"):
            return str(first["id"])
        return None
