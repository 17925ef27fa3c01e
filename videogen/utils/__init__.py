"""Utility functions for the video generation pipeline."""

from videogen.utils.io_utils import new_identifier, read_json_file, write_json_file
from videogen.utils.text_utils import count_words, truncate_text

__all__ = [
    "new_identifier",
    "read_json_file",
    "write_json_file",
    "count_words",
    "truncate_text",
]
