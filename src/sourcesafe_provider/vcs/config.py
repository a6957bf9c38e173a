"""
SourceSafe provider configuration.

This module handles provider settings (client location, credentials, database
file and timeout), loading them from env files or the process environment, and
persisting them with the password held in the system keyring.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import keyring

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
MINIMUM_TIMEOUT = 15

# Keys understood in env files and in the process environment
ENV_KEYS = {
    "SS_DB_FILE_PATH": "db_file_path",
    "SS_CLIENT_EXE_PATH": "client_exe_path",
    "SS_USERNAME": "username",
    "SS_PASSWORD": "password",
    "SS_TIMEOUT": "timeout",
    "SS_ROOT_PATH": "root_path",
}


@dataclass
class SourceSafeConfig:
    """SourceSafe provider configuration data class."""

    db_file_path: str  # path to srcsafe.ini
    client_exe_path: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT
    root_path: Optional[str] = None

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ValueError: If the database path is missing or the timeout is too short
        """
        if not self.db_file_path or not self.db_file_path.strip():
            raise ValueError("Database file path cannot be empty")

        if self.timeout < MINIMUM_TIMEOUT:
            raise ValueError(f"The timeout must be at least {MINIMUM_TIMEOUT} seconds.")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding the password."""
        config_dict = asdict(self)
        del config_dict["password"]
        return config_dict

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "SourceSafeConfig":
        """Build a configuration from SS_* keys.

        Args:
            values: Mapping holding any of the SS_* keys

        Returns:
            SourceSafeConfig object

        Raises:
            ValueError: If SS_TIMEOUT is not an integer
        """
        kwargs: Dict[str, Any] = {}
        for key, field_name in ENV_KEYS.items():
            value = values.get(key)
            if value:
                kwargs[field_name] = value

        if "timeout" in kwargs:
            try:
                kwargs["timeout"] = int(kwargs["timeout"])
            except ValueError:
                raise ValueError(f"SS_TIMEOUT must be an integer, got: {kwargs['timeout']}")

        kwargs.setdefault("db_file_path", "")
        return cls(**kwargs)

    @classmethod
    def from_env_file(cls, env_file: str) -> "SourceSafeConfig":
        """Load configuration from an environment file.

        Parses a simple key=value file. Empty lines and lines starting with
        '#' are skipped and surrounding quotes are stripped from values.

        Args:
            env_file: Path to the environment file

        Returns:
            SourceSafeConfig object

        Raises:
            FileNotFoundError: If the environment file doesn't exist
        """
        env_path = Path(env_file)
        if not env_path.exists():
            raise FileNotFoundError(f"Environment file not found: {env_file}")
        logger.info(f"Loading configuration from: {env_file}")

        values = {}
        with open(env_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    values[key.strip()] = value.strip().strip('"').strip("'")

        return cls.from_mapping(values)

    @classmethod
    def from_environment(cls) -> "SourceSafeConfig":
        """Load configuration from SS_* environment variables."""
        return cls.from_mapping(os.environ)


class SourceSafeConfigManager:
    """Manages SourceSafe configuration storage and retrieval."""

    def __init__(self, config_file: Optional[str] = None):
        """Initialize the config manager.

        Args:
            config_file: Path to configuration file. Defaults to ~/.sourcesafe_provider.json
        """
        if config_file is None:
            self.config_file = Path.home() / ".sourcesafe_provider.json"
        else:
            self.config_file = Path(config_file)

        self.service_name = "sourcesafe-provider"

    def _password_key(self, config: SourceSafeConfig) -> str:
        return f"{config.db_file_path}_{config.username}_password"

    def save_config(self, config: SourceSafeConfig) -> bool:
        """Save configuration to file and keyring.

        Args:
            config: SourceSafe configuration object

        Returns:
            True if successful, False otherwise
        """
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)

            with open(self.config_file, "w") as f:
                json.dump(config.to_dict(), f, indent=2)

            if config.password:
                keyring.set_password(
                    self.service_name, self._password_key(config), config.password
                )

            logger.info(f"Saved SourceSafe configuration to {self.config_file}")
            return True

        except Exception as e:
            logger.error(f"Error saving SourceSafe configuration: {e}")
            return False

    def load_config(self) -> Optional[SourceSafeConfig]:
        """Load configuration from file and keyring.

        Returns:
            SourceSafeConfig object if found, None otherwise
        """
        try:
            if not self.config_file.exists():
                return None

            with open(self.config_file, "r") as f:
                config_dict = json.load(f)

            config = SourceSafeConfig(**config_dict)

            if config.username:
                password = keyring.get_password(
                    self.service_name, self._password_key(config)
                )
                if password:
                    config.password = password

            return config

        except Exception as e:
            logger.error(f"Error loading SourceSafe configuration: {e}")
            return None

    def delete_config(self) -> bool:
        """Delete the configuration file and its keyring entry.

        Returns:
            True if successful, False otherwise
        """
        try:
            config = self.load_config()

            if config and config.password:
                keyring.delete_password(self.service_name, self._password_key(config))

            if self.config_file.exists():
                self.config_file.unlink()

            return True

        except Exception as e:
            logger.error(f"Error deleting SourceSafe configuration: {e}")
            return False

    def config_exists(self) -> bool:
        """Check if a saved configuration exists."""
        return self.config_file.exists()
