"""Structured logging configuration."""

import sys
from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger

from videogen.core.config import settings

# Bound extras shown on every line, in this order
CONTEXT_KEYS = ("request_id", "render_id")

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | "


def format_context(extra: dict[str, Any]) -> str:
    """
    Render the correlation ids bound on a logger.

    Args:
        extra: Record extras (from logger.bind)

    Returns:
        "request_id=... render_id=..." for the ids present, or an empty string
    """
    return " ".join(f"{key}={extra[key]}" for key in CONTEXT_KEYS if extra.get(key) is not None)


def _formatter(prefix: str, colorize: bool):
    def _format(record: dict[str, Any]) -> str:
        record["extra"]["context"] = format_context(record["extra"])
        context = ""
        if record["extra"]["context"]:
            context = "<magenta>[{extra[context]}]</magenta> " if colorize else "[{extra[context]}] "
        message = "<level>{message}</level>" if colorize else "{message}"
        return prefix + context + message + "\n{exception}"

    return _format


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Union[str, Path, None] = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Configure console and optional file logging.

    Lines carry the request and render ids bound with get_logger() or
    logger.bind(), so one generation can be followed across the pipeline,
    the tracker thread and webhook handling.

    Args:
        log_level: Logging level (defaults to settings.log_level)
        log_file: Log file path (defaults to settings.log_file; None disables)
        rotation: Log rotation size
        retention: Log retention period
    """
    log_level = (log_level or settings.log_level).upper()
    log_file = log_file if log_file is not None else settings.log_file

    logger.remove()

    logger.add(
        sys.stderr,
        format=_formatter(_CONSOLE_FORMAT, colorize=True),
        level=log_level,
        colorize=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format=_formatter(_FILE_FORMAT, colorize=False),
            level=log_level,
            rotation=rotation,
            retention=retention,
            compression="zip",
        )


def get_logger(name: str, **context: Any) -> Any:
    """
    Get a logger instance with optional context.

    Args:
        name: Logger name (typically __name__)
        **context: Additional context fields (request_id, render_id, plan, etc.)

    Returns:
        Logger instance with bound context
    """
    if context:
        return logger.bind(name=name, **context)
    return logger.bind(name=name)


setup_logging()
