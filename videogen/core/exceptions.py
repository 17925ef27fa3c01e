"""Exception taxonomy for the generation pipeline."""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Discriminator carried by every pipeline error."""

    VALIDATION_FAILURE = "validation_failure"
    GENERATION_FAILURE = "generation_failure"
    SUBMISSION_FAILURE = "submission_failure"
    POLLING_TIMEOUT = "polling_timeout"
    POLLING_ERROR = "polling_error"
    CANCELLED = "cancelled"


class VideoGenerationError(Exception):
    """
    Base error for every failure the pipeline reports.

    Attributes:
        kind: Discriminated error kind for programmatic handling
        message: Technical message (logged)
        user_message: Human-readable message safe to show to the user
        retryable: Whether the same inputs may be retried
        context: Extra correlation data (ids, HTTP status, ...)
    """

    kind: ErrorKind = ErrorKind.GENERATION_FAILURE
    default_user_message = "Video generation failed. Please try again."
    default_retryable = True

    def __init__(
        self,
        message: str,
        user_message: Optional[str] = None,
        retryable: Optional[bool] = None,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or self.default_user_message
        self.retryable = self.default_retryable if retryable is None else retryable
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for API responses and persisted job records."""
        return {
            "kind": self.kind.value,
            "message": self.user_message,
            "detail": self.message,
            "retryable": self.retryable,
        }


class ValidationFailure(VideoGenerationError):
    """Admissibility rules violated; carries every collected warning."""

    kind = ErrorKind.VALIDATION_FAILURE
    default_user_message = "The script or clip selection is not valid for your plan."
    default_retryable = False

    def __init__(self, warnings: list[str], context: Optional[dict[str, Any]] = None):
        self.warnings = list(warnings)
        super().__init__("; ".join(self.warnings) or "Validation failed", context=context)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["warnings"] = self.warnings
        return data


class GenerationFailure(VideoGenerationError):
    """The draft generation collaborator failed or returned an unusable document."""

    kind = ErrorKind.GENERATION_FAILURE
    default_user_message = "Failed to generate the video template. Please try again."


class SubmissionFailure(VideoGenerationError):
    """The render service rejected the submission or answered without a render id."""

    kind = ErrorKind.SUBMISSION_FAILURE
    default_user_message = "The video rendering service could not accept this request."
    default_retryable = False

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        user_message: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, user_message=user_message, context=context)
        self.status_code = status_code


class PollingTimeout(VideoGenerationError):
    """The attempt cap was reached without observing a terminal status."""

    kind = ErrorKind.POLLING_TIMEOUT
    default_user_message = "The video is taking longer than expected. Check back later."


class PollingError(VideoGenerationError):
    """A status fetch failed; the polling session is over."""

    kind = ErrorKind.POLLING_ERROR
    default_user_message = "Lost contact with the rendering service while checking progress."


class PipelineCancelled(VideoGenerationError):
    """The caller cancelled the generation."""

    kind = ErrorKind.CANCELLED
    default_user_message = "Video generation was cancelled."
    default_retryable = False
