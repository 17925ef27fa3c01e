"""FastAPI routes for video generation and render webhooks."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from videogen.core.config import settings
from videogen.core.exceptions import (
    GenerationFailure,
    SubmissionFailure,
    ValidationFailure,
    VideoGenerationError,
)
from videogen.core.logging_config import get_logger
from videogen.models.schemas import GenerationRequest, GenerationResult, RenderJob
from videogen.pipelines.generation_pipeline import GenerationPipeline, create_pipeline
from videogen.services.render_client import render_job_from_payload
from videogen.services.render_status_tracker import TrackerRegistry
from videogen.storage.repository import RenderJobRepository

logger = get_logger(__name__)

router = APIRouter(tags=["videos"])

# Shared by every pipeline run and the webhook route
tracker_registry = TrackerRegistry(logger)


def get_repository() -> RenderJobRepository:
    return RenderJobRepository(settings, logger)


def get_pipeline(repository: RenderJobRepository = Depends(get_repository)) -> GenerationPipeline:
    return create_pipeline(settings, logger, storage=repository, trackers=tracker_registry)


def _error_status(error: VideoGenerationError) -> int:
    if isinstance(error, ValidationFailure):
        return 422
    if isinstance(error, (GenerationFailure, SubmissionFailure)):
        return 502
    return 500


@router.post("/videos/generate", response_model=GenerationResult)
def generate_video(
    request: GenerationRequest,
    pipeline: GenerationPipeline = Depends(get_pipeline),
) -> GenerationResult:
    """
    Validate, build and submit a video. Returns once the render is queued.

    Pipeline:
    DurationValidator → CompositionBuilder → RenderSubmitter
    """
    try:
        return pipeline.run(request, wait=False)
    except VideoGenerationError as e:
        logger.error(f"Video generation failed ({e.kind.value}): {e.message}")
        raise HTTPException(status_code=_error_status(e), detail=e.to_dict())


@router.get("/videos/{render_id}", response_model=RenderJob)
def get_video(render_id: str, repository: RenderJobRepository = Depends(get_repository)) -> RenderJob:
    """Get the persisted render job."""
    try:
        job = repository.load_job(render_id)
    except ValueError:
        job = None
    if not job:
        raise HTTPException(status_code=404, detail=f"Render {render_id} not found")
    return job


@router.post(settings.webhook_path)
def render_webhook(
    payload: dict[str, Any] = Body(...),
    repository: RenderJobRepository = Depends(get_repository),
) -> dict[str, Any]:
    """
    Receive a render status push.

    The push goes to the render's active tracker when there is one, otherwise it
    is reconciled into the persisted job.
    """
    try:
        update = render_job_from_payload(payload, logger)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Webhook for render {update.id}: {update.status.value}")

    if tracker_registry.dispatch(update):
        return {"render_id": update.id, "status": update.status.value, "handled_by": "tracker"}

    try:
        job = repository.apply_update(update)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if job is None:
        return {"render_id": update.id, "status": update.status.value, "handled_by": "ignored"}
    return {"render_id": job.id, "status": job.status.value, "handled_by": "storage"}
