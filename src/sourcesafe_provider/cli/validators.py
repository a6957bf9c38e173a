"""
CLI argument validators.

This module contains Click callbacks validating command line arguments.
"""

from pathlib import Path

import click

from ..vcs.config import MINIMUM_TIMEOUT


def validate_db_file(ctx, param, value):
    """Click validator for the SourceSafe database file (srcsafe.ini)."""
    if value is None:
        return value

    db_path = Path(value)
    if not db_path.exists():
        raise click.BadParameter(f"Database file does not exist: {value}")

    if not db_path.is_file():
        raise click.BadParameter(f"Database path is not a file: {value}")

    return value


def validate_timeout(ctx, param, value):
    """Click validator for the forced timeout."""
    if value is None:
        return value

    if value < MINIMUM_TIMEOUT:
        raise click.BadParameter(f"The timeout must be at least {MINIMUM_TIMEOUT} seconds.")

    return value


def validate_non_empty_string(ctx, param, value):
    """Click validator for non-empty string."""
    if value is None:
        return value

    if not value.strip():
        raise click.BadParameter(f"{param.name} cannot be empty")

    return value
