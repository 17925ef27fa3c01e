"""I/O utility functions for identifiers and JSON files."""

import json
import uuid
from pathlib import Path
from typing import Any


def new_identifier(prefix: str) -> str:
    """
    Create a short random identifier.

    Args:
        prefix: Identifier prefix (e.g., "req", "doc").

    Returns:
        Identifier such as "req_3f2a9c1b7d4e".
    """
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def write_json_file(path: Path, data: Any) -> Path:
    """
    Write data as pretty-printed JSON, creating parent directories.

    Args:
        path: Destination file.
        data: JSON-serializable data.

    Returns:
        The written path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=str)
    return path


def read_json_file(path: Path) -> Any:
    """
    Read a JSON file.

    Args:
        path: File to read.

    Returns:
        Parsed JSON data.
    """
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
