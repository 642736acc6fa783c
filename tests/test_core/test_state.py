"""
Tests for UpCloud API server state management.

This module tests the server state lifecycle including initialization,
session expiry, credential rotation and cleanup.
"""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from fixtures.mock_responses import MOCK_ACCOUNT, MOCK_UNAUTHORIZED
from upcloud_api.core.api import UpCloudApi
from upcloud_api.core.exceptions import ApplicationError, ConfigurationError, TransportError
from upcloud_api.core.models import UpCloudConfig
from upcloud_api.core.state import ServerState


class TestServerStateDefaults:
    def test_server_state_creation(self):
        state = ServerState()

        assert state.config is None
        assert state.api is None
        assert state.session_created is None
        assert state.session_ttl == timedelta(hours=1)

    def test_custom_session_ttl(self):
        assert ServerState(session_ttl=timedelta(hours=2)).session_ttl == timedelta(hours=2)

    def test_config_changed(self, upcloud_config):
        state = ServerState()
        rotated = upcloud_config.model_copy(update={"password": "rotated"})
        ssl_only = upcloud_config.model_copy(update={"verify_ssl": False})

        assert state._config_changed(rotated, upcloud_config)
        assert not state._config_changed(ssl_only, upcloud_config)


@pytest.mark.asyncio
class TestServerStateLifecycle:
    async def test_initialize_validates_credentials(self, upcloud_config, fake_upcloud):
        fake_upcloud.add("GET", "account", (200, MOCK_ACCOUNT))
        state = ServerState(transport=fake_upcloud)

        await state.initialize(upcloud_config)

        assert state.config == upcloud_config
        assert isinstance(state.api, UpCloudApi)
        assert isinstance(state.session_created, datetime)
        assert len(fake_upcloud.requests_to("GET", "account")) == 1
        await state.cleanup()

    async def test_initialize_rejected_credentials(self, upcloud_config, fake_upcloud):
        fake_upcloud.add("GET", "account", (401, MOCK_UNAUTHORIZED))
        state = ServerState(transport=fake_upcloud)

        with pytest.raises(ApplicationError) as exc_info:
            await state.initialize(upcloud_config)

        assert exc_info.value.status_code == 401
        assert state.api is None
        assert state.config is None

    async def test_initialize_unreachable(self, upcloud_config, fake_upcloud):
        import httpx

        fake_upcloud.add("GET", "account", httpx.ConnectError("connection refused"))
        state = ServerState(transport=fake_upcloud)

        with pytest.raises(TransportError):
            await state.initialize(upcloud_config)
        assert state.api is None

    async def test_reinitialize_closes_previous_api(self, upcloud_config, fake_upcloud):
        fake_upcloud.add("GET", "account", (200, MOCK_ACCOUNT))
        state = ServerState(transport=fake_upcloud)

        await state.initialize(upcloud_config)
        first_api = state.api
        with patch.object(first_api, "close", wraps=first_api.close) as mock_close:
            await state.initialize(upcloud_config)

        mock_close.assert_awaited_once()
        assert state.api is not first_api
        await state.cleanup()

    async def test_get_api_not_configured(self):
        with pytest.raises(ConfigurationError, match="not configured"):
            await ServerState().get_api()

    async def test_get_api_returns_facade(self, upcloud_config, fake_upcloud):
        fake_upcloud.add("GET", "account", (200, MOCK_ACCOUNT))
        state = ServerState(transport=fake_upcloud)
        await state.initialize(upcloud_config)

        assert await state.get_api() is state.api
        await state.cleanup()

    async def test_session_expiry_reinitializes(self, upcloud_config, fake_upcloud):
        fake_upcloud.add("GET", "account", (200, MOCK_ACCOUNT))
        state = ServerState(transport=fake_upcloud)
        await state.initialize(upcloud_config)
        state.session_created = datetime.now() - timedelta(hours=2)

        await state.get_api()

        assert len(fake_upcloud.requests_to("GET", "account")) == 2
        assert datetime.now() - state.session_created < timedelta(minutes=1)
        await state.cleanup()

    async def test_credential_rotation_reinitializes(self, upcloud_config, fake_upcloud):
        fake_upcloud.add("GET", "account", (200, MOCK_ACCOUNT))
        state = ServerState(transport=fake_upcloud)
        await state.initialize(upcloud_config)
        state._current_profile = "default"
        rotated = UpCloudConfig(username="testuser", password="rotated", poll_interval=0.01)

        with patch("upcloud_api.core.state.ConfigLoader.load", return_value=rotated):
            api = await state.get_api()

        assert state.config == rotated
        assert api.client.config.password == "rotated"
        await state.cleanup()

    async def test_rotation_check_failure_keeps_session(self, upcloud_config, fake_upcloud):
        fake_upcloud.add("GET", "account", (200, MOCK_ACCOUNT))
        state = ServerState(transport=fake_upcloud)
        await state.initialize(upcloud_config)
        state._current_profile = "default"
        api = state.api

        with patch(
            "upcloud_api.core.state.ConfigLoader.load",
            side_effect=ConfigurationError("profile removed"),
        ):
            assert await state.get_api() is api
        await state.cleanup()

    async def test_cleanup(self, upcloud_config, fake_upcloud):
        fake_upcloud.add("GET", "account", (200, MOCK_ACCOUNT))
        state = ServerState(transport=fake_upcloud)
        await state.initialize(upcloud_config)

        await state.cleanup()

        assert state.api is None
        assert state.config is None
        assert state.session_created is None
