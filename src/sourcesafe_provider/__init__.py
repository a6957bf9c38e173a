"""
SourceSafe Provider

Connects build tooling to Microsoft Visual SourceSafe databases through the
ss.exe command-line client.
"""

__version__ = "1.0.0"

from .shared.logging import setup_logging
from .vcs import (
    DirectoryTree,
    FileEntry,
    SourceSafeConfig,
    SourceSafeConfigManager,
    SourceSafeError,
    SourceSafeProvider,
)

__all__ = [
    "SourceSafeProvider",
    "SourceSafeConfig",
    "SourceSafeConfigManager",
    "SourceSafeError",
    "DirectoryTree",
    "FileEntry",
    "setup_logging",
]
