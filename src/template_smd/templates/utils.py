"""
Path helpers for locating template files.
"""
import os
import logging
from typing import Any

from ..error.exceptions import ErrorContext, ValidationError

logger = logging.getLogger(__name__)


def resolve_template_path(reference: Any, base_folder: str = "") -> str:
    """
    Resolve a template reference to an absolute path.

    Absolute references are returned unchanged. Relative references are
    joined to *base_folder* (itself made absolute against the current
    working directory) or to the current working directory.

    Args:
        reference: Relative or absolute template path
        base_folder: Folder relative references resolve against

    Returns:
        Absolute path as a string

    Raises:
        ValidationError: If the reference is not a non-empty string
    """
    if not isinstance(reference, str) or not reference.strip():
        raise ValidationError(
            "Template path must be a non-empty string.",
            ErrorContext("utils", "resolve_template_path", reference=repr(reference)),
        )

    trimmed = reference.strip()
    if os.path.isabs(trimmed):
        return trimmed

    if base_folder:
        base_root = base_folder if os.path.isabs(base_folder) else os.path.join(os.getcwd(), base_folder)
        return os.path.join(base_root, trimmed)

    return os.path.join(os.getcwd(), trimmed)
