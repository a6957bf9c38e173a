"""
Shared utilities.

This module contains logging setup and local file helpers used across the
SourceSafe provider.
"""

from .file_utils import prepare_target_directory, validate_input_path
from .logging import setup_logging

__all__ = [
    "setup_logging",
    "prepare_target_directory",
    "validate_input_path",
]
