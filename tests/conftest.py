"""
Shared fixtures for the SourceSafe provider tests.
"""

import stat
import sys
import textwrap

import pytest

from sourcesafe_provider.vcs.config import SourceSafeConfig


@pytest.fixture
def db_file(tmp_path):
    """An empty srcsafe.ini inside its own database directory."""
    db_dir = tmp_path / "vss"
    db_dir.mkdir()
    path = db_dir / "srcsafe.ini"
    path.write_text("Data_Path = data\n")
    return str(path)


@pytest.fixture
def make_client(tmp_path):
    """Write a fake ss executable running the given Python body.

    The body sees ``os``, ``sys`` and ``time`` already imported.
    """

    def _make(body: str, name: str = "ss") -> str:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        script = bin_dir / name
        script.write_text(
            f"#!{sys.executable}\n"
            "import os, sys, time\n"
            + textwrap.dedent(body)
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(script)

    return _make


@pytest.fixture
def config(db_file):
    return SourceSafeConfig(db_file_path=db_file, username="build", password="secret")
