"""
UpCloud API - Secure Configuration Loader

This module provides credential loading from multiple sources with cascading
priority: environment variables → config file → keyring.
Credentials are never exposed to the LLM or stored in conversation logs.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import keyring
import keyring.errors
import pydantic

from .exceptions import ConfigurationError
from .models import UpCloudConfig

logger = logging.getLogger("upcloud-api")

TRUE_VALUES = ("true", "1", "yes")


class ConfigLoader:
    """
    Secure configuration loader for UpCloud API credentials.

    Priority order for credential sources:
    1. Environment variables (highest priority) - for CI/CD and containers
    2. Config file (~/.upcloud-api/config.json) - for multiple profiles
    3. Keyring storage (lowest priority)

    Security features:
    - Automatic file permission enforcement (0600)
    - No credential logging
    - Profile-based multi-account support
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".upcloud-api"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"
    REQUIRED_FILE_PERMISSIONS = 0o600
    KEYRING_SERVICE_NAME = "upcloud-api"

    @classmethod
    def load(cls, profile: str = "default") -> UpCloudConfig:
        """
        Load UpCloud configuration for the specified profile.

        Args:
            profile: Profile name to load (default: "default")

        Returns:
            UpCloudConfig object with credentials

        Raises:
            ConfigurationError: If no credentials found or configuration invalid
        """
        logger.debug(f"Loading configuration for profile: {profile}")

        config = cls._load_from_env()
        if config:
            logger.info("Loaded configuration from environment variables")
            return config

        config = cls._load_from_config_file(profile)
        if config:
            logger.info(f"Loaded configuration for profile '{profile}' from config file")
            return config

        config = cls._load_from_keyring(profile)
        if config:
            logger.info(f"Loaded configuration for profile '{profile}' from keyring")
            return config

        raise ConfigurationError(
            f"No credentials found for profile '{profile}'. "
            f"Please configure credentials using 'upcloud-api setup' or set environment variables "
            f"(UPCLOUD_USERNAME, UPCLOUD_PASSWORD)"
        )

    @staticmethod
    def _build_config(data: Dict[str, Any], source: str) -> UpCloudConfig:
        options = {key: data[key] for key in ("api_url", "verify_ssl") if data.get(key) is not None}
        try:
            return UpCloudConfig(username=data["username"], password=data["password"], **options)
        except KeyError as e:
            logger.error(f"Missing required field in {source}: {e}")
            raise ConfigurationError(f"Missing required field in {source}: {e}") from e
        except pydantic.ValidationError as e:
            logger.error(f"Invalid credentials in {source}: {e.error_count()} error(s)")
            raise ConfigurationError(f"Invalid credentials in {source}: {e}") from e

    @classmethod
    def _load_from_env(cls) -> Optional[UpCloudConfig]:
        """Load configuration from environment variables."""
        username = os.getenv("UPCLOUD_USERNAME")
        password = os.getenv("UPCLOUD_PASSWORD")

        if not (username and password):
            return None

        return cls._build_config(
            {
                "username": username,
                "password": password,
                "api_url": os.getenv("UPCLOUD_API_URL"),
                "verify_ssl": os.getenv("UPCLOUD_VERIFY_SSL", "true").lower() in TRUE_VALUES,
            },
            "environment variables",
        )

    @classmethod
    def _read_config_file(cls) -> Dict[str, Any]:
        config_file = cls.DEFAULT_CONFIG_FILE
        cls._verify_file_permissions(config_file)
        try:
            with open(config_file, "r") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in config file: {e}")
            raise ConfigurationError(f"Invalid JSON in config file: {e}") from e
        except OSError as e:
            logger.error(f"Error reading config file: {e}")
            raise ConfigurationError(f"Error reading config file: {e}") from e

    @classmethod
    def _write_config_file(cls, config_data: Dict[str, Any]) -> None:
        config_file = cls.DEFAULT_CONFIG_FILE
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, "w") as f:
            json.dump(config_data, f, indent=2)
        cls._set_secure_permissions(config_file)

    @classmethod
    def _load_from_config_file(cls, profile: str) -> Optional[UpCloudConfig]:
        """Load configuration from config file."""
        if not cls.DEFAULT_CONFIG_FILE.exists():
            logger.debug(f"Config file not found: {cls.DEFAULT_CONFIG_FILE}")
            return None

        config_data = cls._read_config_file()
        if profile not in config_data:
            logger.debug(f"Profile '{profile}' not found in config file")
            return None

        return cls._build_config(config_data[profile], "config file")

    @classmethod
    def _load_from_keyring(cls, profile: str) -> Optional[UpCloudConfig]:
        """Load configuration stored as JSON under the profile name in the keyring."""
        try:
            stored = keyring.get_password(cls.KEYRING_SERVICE_NAME, profile)
        except keyring.errors.KeyringError as e:
            logger.debug(f"Could not load from keyring: {e}")
            return None

        if not stored:
            return None

        try:
            cred_data = json.loads(stored)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid credentials stored in keyring for profile '{profile}'") from e
        return cls._build_config(cred_data, "keyring")

    @classmethod
    def store_in_keyring(cls, profile: str, config: UpCloudConfig) -> None:
        """Store a profile in the system keyring."""
        keyring.set_password(cls.KEYRING_SERVICE_NAME, profile, json.dumps(cls._profile_data(config)))
        logger.debug("Credentials stored in keyring")

    @classmethod
    def remove_from_keyring(cls, profile: str) -> bool:
        """Remove a legacy keyring entry. Returns False if there was none to remove."""
        try:
            keyring.delete_password(cls.KEYRING_SERVICE_NAME, profile)
        except keyring.errors.PasswordDeleteError:
            return False
        except keyring.errors.KeyringError as e:
            logger.warning(f"Could not remove keyring entry for profile '{profile}': {e}")
            return False
        logger.info(f"Removed keyring entry for profile '{profile}'")
        return True

    @staticmethod
    def _profile_data(config: UpCloudConfig) -> Dict[str, Any]:
        return {
            "username": config.username,
            "password": config.password,
            "api_url": config.api_url,
            "verify_ssl": config.verify_ssl,
        }

    @classmethod
    def save_profile(cls, profile: str, config: UpCloudConfig) -> None:
        """
        Save configuration profile to config file.

        Args:
            profile: Profile name
            config: UpCloud configuration to save

        Raises:
            ConfigurationError: If the existing config file cannot be read
        """
        config_data = cls._read_config_file() if cls.DEFAULT_CONFIG_FILE.exists() else {}
        config_data[profile] = cls._profile_data(config)
        cls._write_config_file(config_data)

        logger.info(f"Saved profile '{profile}' to config file")

    @classmethod
    def delete_profile(cls, profile: str) -> None:
        """
        Delete a profile from config file.

        Args:
            profile: Profile name to delete

        Raises:
            ConfigurationError: If profile doesn't exist or deletion fails
        """
        if not cls.DEFAULT_CONFIG_FILE.exists():
            raise ConfigurationError(f"Config file not found: {cls.DEFAULT_CONFIG_FILE}")

        config_data = cls._read_config_file()
        if profile not in config_data:
            raise ConfigurationError(f"Profile '{profile}' not found")

        del config_data[profile]
        cls._write_config_file(config_data)

        logger.info(f"Deleted profile '{profile}' from config file")

    @classmethod
    def list_profiles(cls) -> List[str]:
        """
        List all configured profiles.

        Returns:
            List of profile names
        """
        if not cls.DEFAULT_CONFIG_FILE.exists():
            return []
        return list(cls._read_config_file().keys())

    @classmethod
    def get_profile_info(cls, profile: str) -> Dict[str, Any]:
        """
        Get non-sensitive information about a profile.

        Args:
            profile: Profile name

        Returns:
            Dictionary with API URL, verify_ssl and a username preview (no password)

        Raises:
            ConfigurationError: If profile doesn't exist
        """
        if not cls.DEFAULT_CONFIG_FILE.exists():
            raise ConfigurationError(f"Config file not found: {cls.DEFAULT_CONFIG_FILE}")

        config_data = cls._read_config_file()
        if profile not in config_data:
            raise ConfigurationError(f"Profile '{profile}' not found")

        profile_config = config_data[profile]
        username = profile_config.get("username", "")
        return {
            "api_url": profile_config.get("api_url") or UpCloudConfig.model_fields["api_url"].default,
            "verify_ssl": profile_config.get("verify_ssl", True),
            "username_preview": f"{username[:3]}..." if len(username) > 3 else "***",
        }

    @classmethod
    def _set_secure_permissions(cls, file_path: Path) -> None:
        """Set secure file permissions (0600 - owner read/write only)."""
        try:
            os.chmod(file_path, cls.REQUIRED_FILE_PERMISSIONS)
            logger.debug(f"Set secure permissions on {file_path}")
        except OSError as e:
            logger.warning(f"Could not set secure permissions on {file_path}: {e}")

    @classmethod
    def _verify_file_permissions(cls, file_path: Path) -> None:
        """Verify file has secure permissions and warn if not."""
        try:
            current_perms = os.stat(file_path).st_mode & 0o777
        except OSError as e:
            logger.debug(f"Could not verify file permissions: {e}")
            return

        if current_perms != cls.REQUIRED_FILE_PERMISSIONS:
            logger.warning(
                f"Config file {file_path} has insecure permissions {oct(current_perms)}. "
                f"Recommended: {oct(cls.REQUIRED_FILE_PERMISSIONS)}"
            )
            cls._set_secure_permissions(file_path)
