"""
VCS module for the SourceSafe provider.

This module wraps the SourceSafe command-line client: locating and running
ss.exe, parsing its listings and exposing the provider operations.
"""

from .config import SourceSafeConfig, SourceSafeConfigManager
from .errors import (
    ArgumentError,
    AuthenticationError,
    CommandTimeoutError,
    DatabasePermissionError,
    InvalidPathError,
    NotAvailableError,
    NotFoundError,
    SourceSafeError,
    ToolError,
)
from .provider import SourceSafeProvider
from .runner import Credentials, ExecutionResult, ProcessRunner
from .tree import DirectoryTree, FileEntry, Node, parse_listing

__all__ = [
    "SourceSafeConfig",
    "SourceSafeConfigManager",
    "SourceSafeProvider",
    "ProcessRunner",
    "Credentials",
    "ExecutionResult",
    "DirectoryTree",
    "FileEntry",
    "Node",
    "parse_listing",
    "SourceSafeError",
    "NotAvailableError",
    "ArgumentError",
    "DatabasePermissionError",
    "AuthenticationError",
    "InvalidPathError",
    "ToolError",
    "NotFoundError",
    "CommandTimeoutError",
]
