"""Utility functions package."""

from .image_utils import is_blank_frame, fit_within
from .file_utils import create_temp_file, remove_file_quietly, ensure_dirs

__all__ = [
    "is_blank_frame", "fit_within",
    "create_temp_file", "remove_file_quietly", "ensure_dirs"
]
