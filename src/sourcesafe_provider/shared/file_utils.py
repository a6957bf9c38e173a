"""
File utilities for local retrieval targets.

This module validates and prepares the local directories that ss.exe
retrieves files into.
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Characters no local path may contain
INVALID_PATH_CHARS = frozenset('"<>|') | frozenset(chr(i) for i in range(32))


def validate_input_path(path: str) -> None:
    """Validate a local path supplied by the caller.

    Args:
        path: Local file or directory path

    Raises:
        ValueError: If the path is empty or contains invalid characters
    """
    if not path or not path.strip():
        raise ValueError("Path cannot be empty")

    invalid = sorted(set(path) & INVALID_PATH_CHARS)
    if invalid:
        raise ValueError(f"Path contains invalid characters {invalid!r}: {path}")


def prepare_target_directory(target_path: str) -> Path:
    """Validate a retrieval target and create it if needed.

    Args:
        target_path: Local directory to retrieve into

    Returns:
        Path object for the target directory, without a trailing separator

    Raises:
        ValueError: If the path is invalid or exists as a file
    """
    validate_input_path(target_path)
    target_dir = Path(target_path.rstrip(os.sep) or target_path)

    if target_dir.exists() and not target_dir.is_dir():
        raise ValueError(f"Target path is not a directory: {target_dir}")

    if not target_dir.exists():
        target_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created target directory: {target_dir}")

    return target_dir
