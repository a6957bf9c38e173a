"""
SourceSafe process runner.

This module locates the SourceSafe command-line client (ss.exe), runs one
command against a database and classifies the captured output. ss.exe does
not set its exit code reliably, so success and failure are decided from the
text it writes.
"""

import logging
import os
import shlex
import subprocess
import sys
import threading
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from .errors import (
    ArgumentError,
    AuthenticationError,
    CommandTimeoutError,
    DatabasePermissionError,
    InvalidPathError,
    NotAvailableError,
    ToolError,
)

logger = logging.getLogger(__name__)

# ss.exe finds its database through this variable, not through arguments
DATABASE_DIR_ENV = "SSDIR"

AUTH_PROMPT = "Username:"
INVALID_PATH_MARKER = "is not an existing filename or project"
# ss.exe writes its Y/N prompts to stderr; this one is expected
DEFAULT_FOLDER_PROMPT = "as the default folder for project"

# Relative to %ProgramFiles%
WELL_KNOWN_CLIENT_PATHS = (
    ("Microsoft Visual Studio", "VSS", "win32", "ss.exe"),
    ("Microsoft Visual SourceSafe", "ss.exe"),
)
REGISTRY_KEY = r"SOFTWARE\Microsoft\SourceSafe"
REGISTRY_VALUE = "SCCServerPath"

PASSWORD_MASK = "********"

# Seconds to wait for the readers once the process is gone
READER_JOIN_TIMEOUT = 5


@dataclass(frozen=True)
class Credentials:
    """SourceSafe login passed to ss.exe with -Y."""

    username: Optional[str] = None
    password: Optional[str] = None

    def to_argument(self) -> Optional[str]:
        """Return the -Y argument, or None when no username is set."""
        if not self.username:
            return None
        if self.password:
            return f"-Y{self.username},{self.password}"
        return f"-Y{self.username}"

    def to_masked_argument(self) -> Optional[str]:
        """Return the -Y argument with the password hidden, for logging."""
        if not self.username:
            return None
        if self.password:
            return f"-Y{self.username},{PASSWORD_MASK}"
        return f"-Y{self.username}"


@dataclass(frozen=True)
class ExecutionResult:
    """Output of one ss.exe invocation."""

    stdout: str
    stderr: str
    timed_out: bool = False
    returncode: Optional[int] = None
    command_line: str = ""


def _program_files() -> str:
    return os.environ.get("ProgramFiles", r"C:\Program Files")


def registry_client_path() -> Optional[str]:
    """Look up ss.exe next to the SCC server DLL registered for SourceSafe.

    Returns:
        Candidate path to ss.exe, or None off Windows or when the key is missing
    """
    if sys.platform != "win32":
        return None

    import winreg

    try:
        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, REGISTRY_KEY) as key:
            server_path, _ = winreg.QueryValueEx(key, REGISTRY_VALUE)
    except OSError:
        return None

    if not server_path:
        return None
    return os.path.join(os.path.dirname(str(server_path)), "ss.exe")


def check_database_access(db_location: str) -> None:
    """Confirm the database file can be both read and written.

    Raises:
        DatabasePermissionError: If either access is denied
    """
    if not os.access(db_location, os.R_OK):
        raise DatabasePermissionError(
            f"Read access to the database file '{db_location}' is denied."
        )
    if not os.access(db_location, os.W_OK):
        raise DatabasePermissionError(
            f"Write access to the database file '{db_location}' is denied."
        )


def classify_output(stdout: str, stderr: str, db_location: str) -> None:
    """Raise the error matching what ss.exe wrote, if any.

    Args:
        stdout: Captured standard output
        stderr: Captured standard error
        db_location: Database file the command ran against

    Raises:
        AuthenticationError: If ss.exe stopped at its Username: prompt
        InvalidPathError: If ss.exe reported an unknown file or project
        ToolError: If stderr holds anything but the default-folder prompt
    """
    if stdout[:len(AUTH_PROMPT)].lower() == AUTH_PROMPT.lower():
        raise AuthenticationError(
            f"An invalid username/password was supplied for database '{db_location}'."
        )

    if INVALID_PATH_MARKER in stdout:
        raise InvalidPathError(
            f"The path within the database is invalid. SourceSafe returned: {stdout.strip()}"
        )

    if stderr.strip() and DEFAULT_FOLDER_PROMPT not in stderr:
        raise ToolError(f"SourceSafe returned an error: {stderr.strip()}", stderr=stderr)


class _StreamCollector:
    """Drains one pipe on its own thread into a locked buffer."""

    def __init__(self, stream, name: str):
        self._stream = stream
        self._chunks: List[str] = []
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._drain, name=f"ss-{name}", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def _drain(self) -> None:
        try:
            for line in iter(self._stream.readline, ""):
                with self._lock:
                    self._chunks.append(line)
        finally:
            self._stream.close()

    def join(self, timeout: Optional[float] = None) -> None:
        self._thread.join(timeout)

    def text(self) -> str:
        with self._lock:
            return "".join(self._chunks)


class ProcessRunner:
    """Runs ss.exe commands against a SourceSafe database."""

    def __init__(self, client_exe_path: Optional[str] = None):
        """Initialize the runner.

        Args:
            client_exe_path: Explicit location of ss.exe. When set, no other
                location is searched.
        """
        self.client_exe_path = client_exe_path

    def find_client_executable(self) -> Optional[str]:
        """Resolve the location of ss.exe.

        The explicitly configured path wins (and must exist). Otherwise the two
        default install folders are tried, then the registry.

        Returns:
            Path to ss.exe, or None if it cannot be found
        """
        if self.client_exe_path:
            return self.client_exe_path if os.path.isfile(self.client_exe_path) else None

        for parts in WELL_KNOWN_CLIENT_PATHS:
            candidate = os.path.join(_program_files(), *parts)
            if os.path.isfile(candidate):
                return candidate

        candidate = registry_client_path()
        if candidate and os.path.isfile(candidate):
            return candidate

        return None

    def execute(
        self,
        command: str,
        arguments: Sequence[str] = (),
        credentials: Optional[Credentials] = None,
        db_location: Optional[str] = None,
        timeout_seconds: float = 30,
    ) -> ExecutionResult:
        """Run one ss.exe command and classify its output.

        Args:
            command: ss.exe command name (Dir, Get, Label...)
            arguments: Pre-quoted arguments, joined with single spaces
            credentials: Optional login, appended as -Yuser[,password]
            db_location: Path to the database's srcsafe.ini
            timeout_seconds: Wall-clock limit before the process is killed

        Returns:
            ExecutionResult with the captured output

        Raises:
            ArgumentError: If the command or its arguments are malformed, or the database file doesn't exist
            NotAvailableError: If ss.exe cannot be found or started
            DatabasePermissionError: If the database file cannot be read and written
            AuthenticationError, InvalidPathError, ToolError: From output classification
            CommandTimeoutError: If the process had to be killed
        """
        if not command or not command.strip():
            raise ArgumentError("A SourceSafe command is required.")
        if timeout_seconds <= 0:
            raise ArgumentError(f"Timeout must be positive, got: {timeout_seconds}")

        client_path = self.find_client_executable()
        if not client_path:
            if self.client_exe_path:
                raise NotAvailableError(
                    f"SourceSafe client not found at '{self.client_exe_path}'."
                )
            raise NotAvailableError("SourceSafe client (ss.exe) could not be located.")

        if not db_location or not os.path.isfile(db_location):
            raise ArgumentError(f"The database file at '{db_location}' does not exist.")
        check_database_access(db_location)

        tool_arguments = [command] + list(arguments)
        credentials = credentials or Credentials()
        credential_argument = credentials.to_argument()
        masked = " ".join(tool_arguments)
        if credential_argument:
            masked += " " + credentials.to_masked_argument()

        try:
            popen_args = self._popen_args(client_path, tool_arguments, credential_argument)
        except ValueError as e:
            raise ArgumentError(f"Malformed arguments for SourceSafe command '{masked}': {e}") from e

        env = os.environ.copy()
        env[DATABASE_DIR_ENV] = os.path.dirname(os.path.abspath(db_location))

        logger.info(f"Executing: {client_path} {masked} ({DATABASE_DIR_ENV}={env[DATABASE_DIR_ENV]})")

        try:
            process = subprocess.Popen(
                popen_args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=env,
                text=True,
                errors="replace",
                creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
            )
        except OSError as e:
            raise NotAvailableError(f"Could not start SourceSafe client '{client_path}': {e}") from e

        stdout_reader = _StreamCollector(process.stdout, "stdout")
        stderr_reader = _StreamCollector(process.stderr, "stderr")
        stdout_reader.start()
        stderr_reader.start()

        timed_out = False
        try:
            returncode = process.wait(timeout=timeout_seconds)
        except subprocess.TimeoutExpired:
            timed_out = True
            logger.warning(
                f"The SourceSafe (ss.exe) process was running longer than the specified "
                f"timeout ({timeout_seconds} secs) and therefore the process was forcibly killed."
            )
            process.kill()
            returncode = process.wait()

        stdout_reader.join(READER_JOIN_TIMEOUT)
        stderr_reader.join(READER_JOIN_TIMEOUT)

        result = ExecutionResult(
            stdout=stdout_reader.text(),
            stderr=stderr_reader.text(),
            timed_out=timed_out,
            returncode=returncode,
            command_line=masked,
        )
        logger.debug(f"ss.exe exited with {returncode}; {len(result.stdout)} chars on stdout")

        classify_output(result.stdout, result.stderr, db_location)

        if timed_out:
            raise CommandTimeoutError(
                f"SourceSafe command '{masked}' did not finish within {timeout_seconds} seconds.",
                result=result,
            )

        return result

    @staticmethod
    def _popen_args(
        client_path: str, tool_arguments: List[str], credential_argument: Optional[str]
    ) -> Union[str, List[str]]:
        """Build the Popen argument for the current platform.

        Windows receives the command line as one string so the pre-quoted
        arguments reach ss.exe as written. Elsewhere the quoting is resolved
        with shlex and the credential is passed as a single argument.
        """
        if os.name == "nt":
            line = f'"{client_path}" ' + " ".join(tool_arguments)
            if credential_argument:
                line += " " + credential_argument
            return line

        argv = [client_path] + shlex.split(" ".join(tool_arguments))
        if credential_argument:
            argv.append(credential_argument)
        return argv
