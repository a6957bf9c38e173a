"""
Command Line Interface for the SourceSafe provider.

This module contains the Click command group, its validators and the main
entry point.
"""

from .main import cli, main
from .validators import (
    validate_db_file,
    validate_non_empty_string,
    validate_timeout,
)

__all__ = [
    # Validators
    "validate_db_file",
    "validate_timeout",
    "validate_non_empty_string",
    # Main execution
    "cli",
    "main",
]
