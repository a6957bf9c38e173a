"""
Tests for the command line interface.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from sourcesafe_provider.cli.main import cli, render_tree
from sourcesafe_provider.vcs.errors import ArgumentError, InvalidPathError
from sourcesafe_provider.vcs.tree import DirectoryTree, FileEntry

SAMPLE_TREE = DirectoryTree(
    path="$/ProjA",
    subdirectories=(
        DirectoryTree(
            path="$/ProjA/Src",
            files=(FileEntry("main.c", "$/ProjA/Src/main.c"),),
        ),
    ),
    files=(FileEntry("readme.txt", "$/ProjA/readme.txt"),),
)


@pytest.fixture(autouse=True)
def no_log_file():
    with patch("sourcesafe_provider.cli.main.setup_logging") as mock_setup:
        yield mock_setup


@pytest.fixture
def env_file(tmp_path, db_file):
    path = tmp_path / "vss.env"
    path.write_text(f"SS_DB_FILE_PATH={db_file}\nSS_USERNAME=build\nSS_PASSWORD=secret\n")
    return str(path)


@pytest.fixture
def mock_provider():
    with patch("sourcesafe_provider.cli.main.SourceSafeProvider") as provider_class:
        provider = MagicMock()

        def build_provider(config):
            provider.config = config
            return provider

        provider_class.side_effect = build_provider
        yield provider


class TestRenderTree:
    """Test tree rendering."""

    def test_render_tree_with_files(self):
        """Test directories are indented by depth with their files beneath."""
        assert list(render_tree(SAMPLE_TREE)) == [
            "ProjA/  ($/ProjA)",
            "  readme.txt",
            "  Src/  ($/ProjA/Src)",
            "    main.c",
        ]

    def test_render_tree_without_files(self):
        """Test files can be left out."""
        assert list(render_tree(SAMPLE_TREE, show_files=False)) == [
            "ProjA/  ($/ProjA)",
            "  Src/  ($/ProjA/Src)",
        ]

    def test_render_root_tree(self):
        """Test the empty root path is labeled."""
        lines = list(render_tree(DirectoryTree(path="", subdirectories=(DirectoryTree(path="$"),))))

        assert lines == ["$/  (<root>)", "  $/  ($)"]


class TestCli:
    """Test CLI commands."""

    def test_dir(self, env_file, mock_provider):
        """Test listing a project."""
        mock_provider.get_directory_entry_info.return_value = SAMPLE_TREE

        result = CliRunner().invoke(cli, ["--env-file", env_file, "dir", "$/ProjA"])

        assert result.exit_code == 0
        assert "  Src/  ($/ProjA/Src)" in result.output
        assert "    main.c" in result.output
        mock_provider.get_directory_entry_info.assert_called_once_with("$/ProjA")

    def test_dir_uses_root_path(self, tmp_path, db_file, mock_provider):
        """Test the configured root path is listed when no path is given."""
        env_file = tmp_path / "vss.env"
        env_file.write_text(f"SS_DB_FILE_PATH={db_file}\nSS_ROOT_PATH=$/ProjB\n")
        mock_provider.get_directory_entry_info.return_value = DirectoryTree(path="$/ProjB")

        result = CliRunner().invoke(cli, ["--env-file", str(env_file), "dir"])

        assert result.exit_code == 0
        mock_provider.get_directory_entry_info.assert_called_once_with("$/ProjB")

    def test_provider_receives_loaded_config(self, env_file, db_file, mock_provider):
        """Test the provider is built from the configuration the command loaded."""
        mock_provider.get_directory_entry_info.return_value = SAMPLE_TREE

        result = CliRunner().invoke(cli, ["--env-file", env_file, "dir", "$/ProjA"])

        assert result.exit_code == 0
        assert mock_provider.config.db_file_path == db_file
        assert mock_provider.config.username == "build"
        assert mock_provider.config.root_path is None

    def test_quoted_label_is_reported(self, env_file, mock_provider):
        """Test a rejected label is reported without a traceback."""
        mock_provider.apply_label.side_effect = ArgumentError(
            'Double quotes are not allowed in SourceSafe paths or labels: a"b'
        )

        result = CliRunner().invoke(cli, ["--env-file", env_file, "label", 'a"b', "$/ProjA"])

        assert result.exit_code == 1
        assert "❌ Double quotes are not allowed" in result.output
        assert isinstance(result.exception, SystemExit)

    def test_provider_error_exits_with_failure(self, env_file, mock_provider):
        """Test SourceSafe errors are reported with exit code 1."""
        mock_provider.get_directory_entry_info.side_effect = InvalidPathError(
            "The path within the database is invalid. SourceSafe returned: $/Nope"
        )

        result = CliRunner().invoke(cli, ["--env-file", env_file, "dir", "$/Nope"])

        assert result.exit_code == 1
        assert "❌ The path within the database is invalid" in result.output

    def test_invalid_configuration(self, tmp_path, db_file, mock_provider):
        """Test a timeout below the minimum is rejected before running anything."""
        env_file = tmp_path / "vss.env"
        env_file.write_text(f"SS_DB_FILE_PATH={db_file}\nSS_TIMEOUT=5\n")

        result = CliRunner().invoke(cli, ["--env-file", str(env_file), "validate"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        mock_provider.validate_connection.assert_not_called()

    def test_validate(self, env_file, mock_provider):
        """Test validating the connection."""
        mock_provider.__str__.return_value = "Visual SourceSafe vss database"

        result = CliRunner().invoke(cli, ["--env-file", env_file, "validate"])

        assert result.exit_code == 0
        assert "✅ Connected to Visual SourceSafe vss database" in result.output
        mock_provider.validate_connection.assert_called_once()

    def test_cat_to_file(self, env_file, mock_provider, tmp_path):
        """Test writing a retrieved file to disk."""
        mock_provider.get_file_contents.return_value = b"hello\n"
        output = tmp_path / "readme.txt"

        result = CliRunner().invoke(
            cli, ["--env-file", env_file, "cat", "$/ProjA/readme.txt", "--output", str(output)]
        )

        assert result.exit_code == 0
        assert output.read_bytes() == b"hello\n"
        assert "Wrote 6 bytes" in result.output

    def test_label(self, env_file, mock_provider):
        """Test applying a label."""
        result = CliRunner().invoke(cli, ["--env-file", env_file, "label", "Release-1.0", "$/ProjA"])

        assert result.exit_code == 0
        mock_provider.apply_label.assert_called_once_with("Release-1.0", "$/ProjA")

    def test_get_labeled(self, env_file, mock_provider, tmp_path):
        """Test retrieving a labeled version."""
        result = CliRunner().invoke(
            cli, ["--env-file", env_file, "get-labeled", "Release-1.0", "$/ProjA", str(tmp_path)]
        )

        assert result.exit_code == 0
        mock_provider.get_labeled.assert_called_once_with("Release-1.0", "$/ProjA", str(tmp_path))

    def test_get_latest(self, env_file, mock_provider, tmp_path):
        """Test retrieving the latest version."""
        result = CliRunner().invoke(cli, ["--env-file", env_file, "get-latest", "$/ProjA", str(tmp_path)])

        assert result.exit_code == 0
        mock_provider.get_latest.assert_called_once_with("$/ProjA", str(tmp_path))

    def test_available_not_found(self, env_file):
        """Test the client lookup failing."""
        with patch("sourcesafe_provider.cli.main.ProcessRunner") as runner_class:
            runner_class.return_value.find_client_executable.return_value = None

            result = CliRunner().invoke(cli, ["--env-file", env_file, "available"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_available_found(self, env_file):
        """Test the client lookup succeeding."""
        with patch("sourcesafe_provider.cli.main.ProcessRunner") as runner_class:
            runner_class.return_value.find_client_executable.return_value = "C:/VSS/ss.exe"

            result = CliRunner().invoke(cli, ["--env-file", env_file, "available"])

        assert result.exit_code == 0
        assert "✅ SourceSafe client found: C:/VSS/ss.exe" in result.output

    @patch("sourcesafe_provider.vcs.config.keyring")
    def test_config_saves_settings(self, mock_keyring, tmp_path, db_file):
        """Test saving settings keeps the password in the keyring."""
        config_file = tmp_path / "settings.json"

        result = CliRunner().invoke(
            cli,
            [
                "--config-file", str(config_file),
                "config",
                "--db-file", db_file,
                "--username", "build",
                "--password", "secret",
                "--timeout", "60",
            ],
        )

        assert result.exit_code == 0
        assert "✅ SourceSafe configuration saved successfully!" in result.output
        saved = json.loads(config_file.read_text())
        assert saved["db_file_path"] == db_file
        assert saved["timeout"] == 60
        assert "password" not in saved
        mock_keyring.set_password.assert_called_once()

    @patch("sourcesafe_provider.vcs.config.keyring")
    def test_saved_config_is_used(self, mock_keyring, tmp_path, db_file, mock_provider):
        """Test commands fall back to the saved configuration."""
        config_file = tmp_path / "settings.json"
        config_file.write_text(json.dumps({"db_file_path": db_file, "root_path": "$/ProjA"}))
        mock_provider.get_directory_entry_info.return_value = SAMPLE_TREE

        result = CliRunner().invoke(cli, ["--config-file", str(config_file), "dir"])

        assert result.exit_code == 0
        mock_provider.get_directory_entry_info.assert_called_once_with("$/ProjA")

    def test_config_rejects_short_timeout(self, tmp_path, db_file):
        """Test the timeout option enforces the minimum."""
        result = CliRunner().invoke(
            cli,
            ["--config-file", str(tmp_path / "settings.json"), "config", "--db-file", db_file, "--timeout", "10"],
        )

        assert result.exit_code == 2
        assert "at least 15 seconds" in result.output

    def test_config_rejects_missing_database(self, tmp_path):
        """Test the database file must exist."""
        result = CliRunner().invoke(
            cli,
            ["--config-file", str(tmp_path / "settings.json"), "config", "--db-file", str(tmp_path / "missing.ini")],
        )

        assert result.exit_code == 2
        assert "does not exist" in result.output
