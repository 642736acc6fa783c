"""
UpCloud API - Server State Management

This module provides MCP server state management with proper lifecycle handling.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import httpx

from ..shared.constants import API_ACCOUNT
from .api import UpCloudApi
from .client import UpCloudClient
from .config_loader import ConfigLoader
from .exceptions import ConfigurationError, UpCloudError
from .models import UpCloudConfig

logger = logging.getLogger("upcloud-api")


@dataclass
class ServerState:
    """Managed server state with proper lifecycle."""

    config: UpCloudConfig | None = None
    api: Optional[UpCloudApi] = None
    session_created: datetime | None = None
    session_ttl: timedelta = timedelta(hours=1)  # 1 hour session timeout
    transport: Optional[httpx.AsyncBaseTransport] = None
    _current_profile: str | None = None  # Track which profile is loaded

    async def initialize(self, config: UpCloudConfig):
        """Initialize server state and validate the credentials.

        Args:
            config: UpCloud connection configuration

        Raises:
            ApplicationError: If the provider rejects the credentials
            TransportError: If the API cannot be reached
        """
        await self.cleanup()

        api = UpCloudApi(UpCloudClient(config, transport=self.transport))
        try:
            await api.client.request_json("GET", API_ACCOUNT, operation="validate_connection")
        except UpCloudError:
            await api.close()
            raise

        self.config = config
        self.api = api
        self.session_created = datetime.now()

        logger.info("UpCloud connection initialized successfully")

    def _config_changed(self, new_config: UpCloudConfig, old_config: UpCloudConfig) -> bool:
        """
        Detect if credentials have changed between configs.

        Notes:
            Compares API URL, username, and password to detect rotation.
            Changes to verify_ssl don't trigger reinitialization.
        """
        return (
            new_config.api_url != old_config.api_url
            or new_config.username != old_config.username
            or new_config.password != old_config.password
        )

    async def get_api(self) -> UpCloudApi:
        """Get the UpCloud API facade with session validation and credential rotation detection.

        Returns:
            Configured UpCloudApi

        Raises:
            ConfigurationError: If the connection is not configured

        Notes:
            Automatically detects and handles:
            - Session expiry (1 hour default)
            - Credential rotation (config file changes)
        """
        if not self.config or not self.api:
            raise ConfigurationError(
                "UpCloud connection not configured. Use configure_upcloud_connection first."
            )

        if self.session_created and datetime.now() - self.session_created > self.session_ttl:
            logger.info("Session expired, reinitializing...")
            await self.initialize(self.config)

        if self._current_profile:
            try:
                current_config = ConfigLoader.load(self._current_profile)
            except ConfigurationError as e:
                logger.debug(f"Could not check for config changes: {e}")
            else:
                if self._config_changed(current_config, self.config):
                    logger.info(
                        f"Credentials changed for profile '{self._current_profile}', reinitializing..."
                    )
                    await self.initialize(current_config)

        return self.api

    async def cleanup(self):
        """Cleanup resources."""
        if self.api:
            await self.api.close()
            self.api = None
        self.config = None
        self.session_created = None
