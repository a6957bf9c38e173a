"""
SourceSafe provider.

This module exposes the operations a build server needs from a SourceSafe
database (listing, single-file retrieval, getting latest or labeled trees and
labeling) by composing ss.exe arguments, the process runner and the listing
parser.
"""

import logging
import re
import tempfile
from pathlib import Path
from typing import Optional

from sourcesafe_provider.shared.file_utils import prepare_target_directory

from . import commands
from .commands import SourceSafeCommands
from .config import SourceSafeConfig
from .errors import ArgumentError, NotFoundError
from .runner import Credentials, ExecutionResult, ProcessRunner
from .tree import SEPARATOR, DirectoryTree, parse_listing

logger = logging.getLogger(__name__)


class SourceSafeProvider:
    """Source control provider backed by the SourceSafe command-line client.

    Each call starts its own ss.exe process and parses its output from scratch,
    so one provider can be shared between threads.
    """

    directory_separator = SEPARATOR

    def __init__(self, config: SourceSafeConfig, runner: Optional[ProcessRunner] = None):
        """Initialize the provider.

        Args:
            config: Provider configuration
            runner: Process runner to use. Defaults to one honouring config.client_exe_path
        """
        self.config = config
        self.runner = runner or ProcessRunner(config.client_exe_path)

    @property
    def credentials(self) -> Credentials:
        return Credentials(username=self.config.username, password=self.config.password)

    def _run(self, command: str, *arguments: str) -> ExecutionResult:
        return self.runner.execute(
            command,
            arguments,
            credentials=self.credentials,
            db_location=self.config.db_file_path,
            timeout_seconds=self.config.timeout,
        )

    def _target_directory(self, target_path: str) -> str:
        try:
            return str(prepare_target_directory(target_path))
        except ValueError as e:
            raise ArgumentError(str(e)) from e

    def is_available(self) -> bool:
        """True if the ss.exe client can be located."""
        return self.runner.find_client_executable() is not None

    def validate_connection(self) -> None:
        """Run a plain Dir so that any configuration problem is raised."""
        self._run(SourceSafeCommands.DIR)

    def get_directory_entry_info(self, source_path: Optional[str]) -> DirectoryTree:
        """List a project recursively.

        With no path, Dir is still run to validate the connection, but the
        fixed root tree is returned since ss.exe shows the same listing for
        no path as for "$".

        Args:
            source_path: Project path such as "$/ProjA"

        Returns:
            DirectoryTree of the project
        """
        result = self._run(SourceSafeCommands.DIR, *commands.dir_arguments(source_path or ""))
        return parse_listing(result.stdout, source_path)

    def get_file_contents(self, file_path: str) -> bytes:
        """Retrieve the latest version of one file.

        Args:
            file_path: Database path of the file

        Returns:
            The file's bytes

        Raises:
            NotFoundError: If ss.exe succeeded but the file was not written locally
        """
        file_name = file_path.rstrip(SEPARATOR).rsplit(SEPARATOR, 1)[-1] if file_path else ""
        if not file_name:
            raise ArgumentError(f"A file path is required, got: {file_path!r}")

        with tempfile.TemporaryDirectory(prefix="sourcesafe-") as target_dir:
            self._run(SourceSafeCommands.GET, *commands.get_file_arguments(file_path, target_dir))

            local_file = Path(target_dir) / file_name
            if not local_file.is_file():
                raise NotFoundError(
                    f"SourceSafe did not retrieve '{file_path}' (expected at '{local_file}')."
                )
            return local_file.read_bytes()

    def get_latest(self, source_path: str, target_path: str) -> None:
        """Retrieve the latest version of a project tree into target_path."""
        target_dir = self._target_directory(target_path)
        logger.info(f"Getting latest of {source_path} into {target_dir}")
        self._run(SourceSafeCommands.GET, *commands.get_latest_arguments(source_path, target_dir))

    def apply_label(self, label: str, source_path: str) -> None:
        """Apply a label to a project or file."""
        if not label:
            raise ArgumentError("A label is required.")
        logger.info(f"Applying label {label!r} to {source_path}")
        self._run(SourceSafeCommands.LABEL, *commands.label_arguments(label, source_path))

    def get_labeled(self, label: str, source_path: str, target_path: str) -> None:
        """Retrieve the version of a project tree carrying label into target_path."""
        if not label:
            raise ArgumentError("A label is required.")
        target_dir = self._target_directory(target_path)
        logger.info(f"Getting {source_path} at label {label!r} into {target_dir}")
        self._run(
            SourceSafeCommands.GET,
            *commands.get_labeled_arguments(label, source_path, target_dir),
        )

    def __str__(self) -> str:
        parts = [part for part in re.split(r"[\\/]+", self.config.db_file_path or "") if part]
        if len(parts) >= 2 and parts[-1].lower() == "srcsafe.ini":
            return f"Visual SourceSafe {parts[-2]} database"
        return "Visual SourceSafe"
