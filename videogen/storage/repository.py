"""Storage repository for render jobs and composition documents."""

import re
import threading
from pathlib import Path
from typing import Any, Optional, Protocol

from videogen.core.config import Settings
from videogen.models.schemas import CompositionDocument, GenerationRequest, RenderJob
from videogen.utils.io_utils import read_json_file, write_json_file

_SAFE_ID = re.compile(r"^[A-Za-z0-9_.-]+$")


class StorageCollaborator(Protocol):
    """Persistence the pipeline writes intermediate state through."""

    def save_request(self, request_id: str, request: GenerationRequest) -> None:
        ...

    def save_document(self, document_ref: str, document: CompositionDocument) -> None:
        ...

    def save_job(self, job: RenderJob) -> None:
        ...

    def load_job(self, render_id: str) -> Optional[RenderJob]:
        ...

    def apply_update(self, update: RenderJob) -> Optional[RenderJob]:
        ...


class RenderJobRepository:
    """JSON file repository for render jobs, documents and requests."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the repository.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.storage_path = Path(settings.storage_path)
        self.jobs_path = self.storage_path / "jobs"
        self.documents_path = self.storage_path / "documents"
        self.requests_path = self.storage_path / "requests"
        for path in (self.jobs_path, self.documents_path, self.requests_path):
            path.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @staticmethod
    def _file_for(directory: Path, identifier: str) -> Path:
        if not identifier or not _SAFE_ID.match(identifier) or identifier in (".", ".."):
            raise ValueError(f"Invalid identifier: {identifier!r}")
        return directory / f"{identifier}.json"

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def save_request(self, request_id: str, request: GenerationRequest) -> None:
        """Persist a validated generation request."""
        file_path = self._file_for(self.requests_path, request_id)
        write_json_file(file_path, request.model_dump(mode="json"))
        self.logger.debug(f"Request saved to: {file_path}")

    def load_request(self, request_id: str) -> Optional[GenerationRequest]:
        file_path = self._file_for(self.requests_path, request_id)
        if not file_path.exists():
            return None
        return GenerationRequest.model_validate(read_json_file(file_path))

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def save_document(self, document_ref: str, document: CompositionDocument) -> None:
        """
        Save a repaired composition document.

        Args:
            document_ref: Reference stored on the RenderJob
            document: Composition document
        """
        file_path = self._file_for(self.documents_path, document_ref)
        write_json_file(file_path, document.to_payload())
        self.logger.info(f"Composition saved to: {file_path}")

    def load_document(self, document_ref: str) -> Optional[CompositionDocument]:
        """
        Load a composition document.

        Returns:
            Composition document if found, None otherwise
        """
        file_path = self._file_for(self.documents_path, document_ref)
        if not file_path.exists():
            self.logger.warning(f"Composition not found: {document_ref}")
            return None
        return CompositionDocument.model_validate(read_json_file(file_path))

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def save_job(self, job: RenderJob) -> None:
        """Save a render job, overwriting any previous record."""
        file_path = self._file_for(self.jobs_path, job.id)
        with self._lock:
            write_json_file(file_path, job.model_dump(mode="json"))
        self.logger.debug(f"Render job {job.id} saved ({job.status.value})")

    def load_job(self, render_id: str) -> Optional[RenderJob]:
        """
        Load a render job.

        Returns:
            Render job if found, None otherwise
        """
        file_path = self._file_for(self.jobs_path, render_id)
        if not file_path.exists():
            return None
        return RenderJob.model_validate(read_json_file(file_path))

    def list_jobs(self) -> list[str]:
        """
        List all render job IDs.

        Returns:
            List of render IDs
        """
        job_ids = sorted(f.stem for f in self.jobs_path.glob("*.json"))
        self.logger.info(f"Found {len(job_ids)} render jobs")
        return job_ids

    def apply_update(self, update: RenderJob) -> Optional[RenderJob]:
        """
        Reconcile an observation into the persisted job.

        Backward transitions and updates to terminal jobs are ignored.

        Args:
            update: Observed job state

        Returns:
            The persisted job after reconciliation, or None if the job is unknown
        """
        file_path = self._file_for(self.jobs_path, update.id)
        with self._lock:
            if not file_path.exists():
                self.logger.warning(f"Update for unknown render job: {update.id}")
                return None

            job = RenderJob.model_validate(read_json_file(file_path))
            if not job.can_transition_to(update.status):
                self.logger.info(
                    f"Ignoring update {job.status.value} -> {update.status.value} for render job {job.id}"
                )
                return job

            job.advance(update)
            write_json_file(file_path, job.model_dump(mode="json"))

        self.logger.info(f"Render job {job.id} updated: {job.status.value}")
        return job
