"""
ss.exe command names and argument builders.

Arguments are returned pre-quoted, the way ss.exe expects them on its
command line.
"""

from typing import List

from .errors import ArgumentError


class SourceSafeCommands:
    """Command tokens understood by ss.exe."""

    DIR = "Dir"
    GET = "Get"
    LABEL = "Label"


# Recursive
RECURSIVE = "-R"
# List folders and files
FOLDERS_AND_FILES = "-F"
# Set local file times to the modification time recorded in the database
MODIFICATION_TIME = "-GTM"
# Replace writable local files
REPLACE_WRITABLE = "-GWR"
# Answer No to every prompt
NO_PROMPTS = "-I-N"


def quote(value: str) -> str:
    """Wrap a path or label in double quotes.

    Raises:
        ArgumentError: If the value itself contains a double quote
    """
    if '"' in value:
        raise ArgumentError(f"Double quotes are not allowed in SourceSafe paths or labels: {value}")
    return f'"{value}"'


def dir_arguments(source_path: str) -> List[str]:
    """Arguments for a recursive folder-and-file listing."""
    return [quote(source_path), RECURSIVE, FOLDERS_AND_FILES]


def get_file_arguments(file_path: str, target_dir: str) -> List[str]:
    """Arguments to retrieve a single file into target_dir."""
    return [quote(file_path), MODIFICATION_TIME, f"-GL{quote(target_dir)}", NO_PROMPTS]


def get_latest_arguments(source_path: str, target_dir: str) -> List[str]:
    """Arguments to retrieve the latest version of a project tree."""
    return [
        quote(source_path),
        MODIFICATION_TIME,
        f"-GL{quote(target_dir)}",
        RECURSIVE,
        REPLACE_WRITABLE,
        NO_PROMPTS,
    ]


def label_arguments(label: str, source_path: str) -> List[str]:
    """Arguments to apply a label to a path."""
    return [quote(source_path), f"-L{quote(label)}", NO_PROMPTS]


def get_labeled_arguments(label: str, source_path: str, target_dir: str) -> List[str]:
    """Arguments to retrieve the labeled version of a project tree."""
    return [
        quote(source_path),
        f"-GL{quote(target_dir)}",
        f"-Vl{quote(label)}",
        MODIFICATION_TIME,
        RECURSIVE,
        REPLACE_WRITABLE,
        NO_PROMPTS,
    ]
