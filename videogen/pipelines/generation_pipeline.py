"""Generation pipeline - validate -> build -> submit -> track."""

import threading
from typing import Any, Optional

from videogen.core.config import Settings
from videogen.core.exceptions import PipelineCancelled, ValidationFailure, VideoGenerationError
from videogen.core.logging_config import get_logger
from videogen.models.schemas import (
    CompositionDocument,
    GenerationRequest,
    GenerationResult,
    RenderJob,
    RenderMetadata,
    RenderStatus,
)
from videogen.services.caption_presets import CaptionPresetRegistry
from videogen.services.composition_builder import CompositionBuilder
from videogen.services.draft_generator import DraftGenerator, LLMDraftGenerator
from videogen.services.duration_validator import DurationValidator
from videogen.services.render_client import RenderServiceClient
from videogen.services.render_status_tracker import RenderStatusTracker, TrackerRegistry
from videogen.services.render_submitter import RenderSubmitter
from videogen.services.template_repair import TemplateRepairEngine
from videogen.storage.repository import RenderJobRepository, StorageCollaborator
from videogen.utils.io_utils import new_identifier
from videogen.utils.text_utils import truncate_text


class GenerationPipeline:
    """
    Top-level coordinator for one video generation.

    Every step persists its output through the storage collaborator before the
    next one runs. cancel() is cooperative: it is checked between steps and stops
    an active tracker, but an in-flight HTTP call is allowed to finish.
    """

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        validator: DurationValidator,
        builder: CompositionBuilder,
        submitter: RenderSubmitter,
        client: RenderServiceClient,
        storage: StorageCollaborator,
        trackers: Optional[TrackerRegistry] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Application settings
            logger: Logger instance
            validator: Admissibility gate
            builder: Composition builder
            submitter: Render submitter
            client: Render service client used by trackers
            storage: Persistence for requests, documents and jobs
            trackers: Registry shared with webhook handling
        """
        self.settings = settings
        self.logger = logger
        self.validator = validator
        self.builder = builder
        self.submitter = submitter
        self.client = client
        self.storage = storage
        self.trackers = trackers or TrackerRegistry(logger)

        self._cancelled = threading.Event()
        self._tracker: Optional[RenderStatusTracker] = None

    def cancel(self) -> None:
        """Cancel the running generation and stop its tracker."""
        self._cancelled.set()
        tracker = self._tracker
        if tracker is not None:
            tracker.stop()
        self.logger.warning("Generation cancelled")

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _check_cancelled(self, step: str, request_id: str) -> None:
        if self._cancelled.is_set():
            raise PipelineCancelled(f"Generation cancelled before {step}", context={"request_id": request_id})

    def validate(self, request: GenerationRequest, log: Any) -> None:
        result = self.validator.validate(request.script, request.plan, request.clips)
        if not result.is_valid:
            log.warning(f"Request rejected with {len(result.warnings)} warning(s)")
            raise ValidationFailure(result.warnings, context={"request_id": request.request_id})

    def build_document(self, request: GenerationRequest, validated: bool = False) -> CompositionDocument:
        """Build a document without submitting it, validating first unless already done."""
        return self.builder.build(
            request.script,
            request.clips,
            caption_config=request.caption_config,
            editorial_profile=request.editorial_profile,
            plan=request.plan,
            validated=validated,
        )

    def run(self, request: GenerationRequest, wait: bool = True) -> GenerationResult:
        """
        Run the pipeline for one request.

        Args:
            request: Generation request
            wait: Track the render until it settles; otherwise return once queued

        Returns:
            GenerationResult with the render id and last known status

        Raises:
            ValidationFailure: Script/clips not admissible for the plan
            GenerationFailure: Draft generation failed
            SubmissionFailure: Render service rejected the submission
            PollingTimeout: Attempt cap reached without a terminal status
            PollingError: Status fetch failed
            PipelineCancelled: cancel() was called
        """
        self._cancelled.clear()
        request_id = request.request_id or new_identifier("req")
        request = request.model_copy(update={"request_id": request_id})
        log = self.logger.bind(request_id=request_id)

        log.info("=" * 60)
        log.info(f"Generation started (plan={request.plan}, clips={len(request.clips)})")
        log.info(f"Script: {truncate_text(request.script, 80, '...')}")

        # Step 1: Admissibility
        self._check_cancelled("validation", request_id)
        log.info("Step 1: Validating script and clips...")
        self.validate(request, log)
        self.storage.save_request(request_id, request)

        # Step 2: Composition
        self._check_cancelled("composition", request_id)
        log.info("Step 2: Building composition...")
        document = self.build_document(request, validated=True)
        document_ref = f"doc_{request_id}"
        self.storage.save_document(document_ref, document)

        # Step 3: Submission
        self._check_cancelled("submission", request_id)
        log.info("Step 3: Submitting render...")
        metadata = RenderMetadata(
            request_id=request_id,
            user_id=request.user_id,
            script_id=request.script_id,
            prompt=request.prompt,
        )
        render_id = self.submitter.submit(document, metadata)
        job = RenderJob(id=render_id, composition_ref=document_ref)
        self.storage.save_job(job)
        log.info(f"Render {render_id} queued")

        if not wait:
            return GenerationResult(request_id=request_id, render_id=render_id, status=job.status)

        # Step 4: Tracking
        self._check_cancelled("tracking", request_id)
        log.info("Step 4: Tracking render...")
        final_job = self.track(job, log)

        self._check_cancelled("completion", request_id)
        result = GenerationResult(
            request_id=request_id,
            render_id=render_id,
            status=final_job.status,
            render_url=final_job.render_url,
            error_message=final_job.error_message,
        )
        if final_job.status == RenderStatus.DONE:
            log.info(f"✅ Render finished: {final_job.render_url}")
        else:
            log.error(f"Render {render_id} failed: {final_job.error_message}")
        log.info("=" * 60)
        return result

    def track(self, job: RenderJob, log: Any) -> RenderJob:
        """
        Track a submitted render until it settles, persisting every transition.

        Returns:
            The last observed job (terminal unless cancelled)

        Raises:
            PollingTimeout, PollingError: When the tracking session fails; the stored job keeps its last status
            PipelineCancelled: If cancelled while tracking
        """
        failures: list[VideoGenerationError] = []

        def on_status_change(status: RenderStatus, observed: RenderJob) -> None:
            self.storage.apply_update(observed)

        def on_error(error: VideoGenerationError) -> None:
            failures.append(error)

        tracker = RenderStatusTracker(
            self.settings,
            log.bind(render_id=job.id),
            self.client,
            on_status_change=on_status_change,
            on_error=on_error,
        )
        self.trackers.register(job.id, tracker)
        self._tracker = tracker
        try:
            self._check_cancelled("tracking", job.id)
            tracker.start(job.id, job)
            tracker.wait()
        finally:
            self._tracker = None
            self.trackers.remove(job.id)

        if self._cancelled.is_set():
            raise PipelineCancelled(f"Tracking of render {job.id} cancelled", context={"render_id": job.id})

        if failures:
            # Stored job keeps its last status; a later push can still settle it.
            error = failures[0]
            last_seen = tracker.job or job
            log.warning(f"Tracking of render {job.id} ended at '{last_seen.status.value}': {error.message}")
            raise error

        return tracker.job or job


def create_pipeline(
    settings: Settings,
    logger: Optional[Any] = None,
    storage: Optional[StorageCollaborator] = None,
    trackers: Optional[TrackerRegistry] = None,
    draft_generator: Optional[DraftGenerator] = None,
    client: Optional[RenderServiceClient] = None,
) -> GenerationPipeline:
    """
    Wire a GenerationPipeline from settings.

    Args:
        settings: Application settings
        logger: Logger instance (defaults to a module logger)
        storage: Persistence collaborator (defaults to RenderJobRepository)
        trackers: Tracker registry shared with the webhook route
        draft_generator: Draft generator (defaults to LLMDraftGenerator)
        client: Render service client

    Returns:
        Ready-to-run pipeline
    """
    logger = logger or get_logger(__name__)
    validator = DurationValidator(settings, logger)
    repair_engine = TemplateRepairEngine(CaptionPresetRegistry(), logger)
    builder = CompositionBuilder(
        settings,
        logger,
        validator,
        draft_generator or LLMDraftGenerator(settings, logger),
        repair_engine,
    )
    client = client or RenderServiceClient(settings, logger)
    return GenerationPipeline(
        settings,
        logger,
        validator,
        builder,
        RenderSubmitter(settings, logger, client),
        client,
        storage or RenderJobRepository(settings, logger),
        trackers=trackers,
    )
