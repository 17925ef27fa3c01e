"""Error Handler - provides user-friendly error messages for pipeline failures."""

from typing import Optional

from videogen.core.exceptions import ErrorKind, VideoGenerationError


def format_error_message(
    operation: str,
    error: Exception,
    context: Optional[dict] = None,
    suggestion: Optional[str] = None,
) -> str:
    """
    Format a user-friendly error message.

    Args:
        operation: What operation was being performed (e.g., "Submitting render")
        error: The exception that occurred
        context: Additional context (e.g., {"request_id": "req_123", "render_id": "r_456"})
        suggestion: Optional suggestion for how to fix the issue

    Returns:
        Formatted error message
    """
    error_type = type(error).__name__
    error_msg = str(error)

    context_str = ""
    if context:
        context_parts = [f"{k}={v}" for k, v in context.items()]
        context_str = f" ({', '.join(context_parts)})"

    message = f"❌ {operation} failed{context_str}\n"
    message += f"   Error: {error_type}: {error_msg}"

    if isinstance(error, VideoGenerationError):
        message += f"\n   Kind: {error.kind.value} (retryable={error.retryable})"

    if suggestion:
        message += f"\n   💡 Suggestion: {suggestion}"

    return message


def get_fallback_suggestion(kind: ErrorKind, error: Exception) -> Optional[str]:
    """
    Get a suggestion for how to handle a pipeline failure.

    Args:
        kind: Error kind
        error: The exception

    Returns:
        Suggestion string or None
    """
    error_msg = str(error).lower()

    if kind == ErrorKind.VALIDATION_FAILURE:
        return "Shorten the script, pick longer clips, or upgrade the plan, then try again."

    elif kind == ErrorKind.GENERATION_FAILURE:
        if "api key" in error_msg or "not configured" in error_msg:
            return "Check your OPENAI_API_KEY in .env file."
        elif "rate limit" in error_msg or "429" in error_msg:
            return "Rate limit exceeded. Wait a few minutes and retry with the same inputs."
        else:
            return "Template generation failed. Retrying with the same inputs usually works."

    elif kind == ErrorKind.SUBMISSION_FAILURE:
        if "401" in error_msg or "403" in error_msg:
            return "Check RENDER_API_KEY in .env file."
        else:
            return "Do not resubmit blindly: check the render dashboard first to avoid duplicate renders."

    elif kind == ErrorKind.POLLING_TIMEOUT:
        return "The render may still finish. Refresh its status later or wait for the webhook."

    elif kind == ErrorKind.POLLING_ERROR:
        if "network" in error_msg or "timeout" in error_msg or "connection" in error_msg:
            return "Network error. Check your internet connection and refresh the status."
        else:
            return "Status check failed. Refresh the render status manually."

    return None
