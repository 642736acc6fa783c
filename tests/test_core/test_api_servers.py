"""
Tests for the account, catalogue and server operations of UpCloudApi.

Each operation is checked for the exact request it produces and for how the
response is turned into snapshots; synchronous operations are checked for
their wait outcome.
"""

import asyncio
import base64

import pytest

from fixtures.mock_responses import (
    MOCK_ACCOUNT,
    MOCK_NOT_FOUND,
    MOCK_PLANS,
    MOCK_SERVER_SIZES,
    MOCK_SERVERS,
    MOCK_UNAUTHORIZED,
    SECOND_SERVER_UUID,
    SERVER_UUID,
    TEMPLATE_UUID,
    server_body,
)
from upcloud_api.core.api import OperationResult, UpCloudApi
from upcloud_api.core.exceptions import ApplicationError, PollTimeoutError, ValidationError
from upcloud_api.core.models import IPAddressKind, StopType
from upcloud_api.core.poller import Disappeared, Reached, TimedOut

SERVER_PATH = f"server/{SERVER_UUID}"
CLONE_DEVICE = {"action": "clone", "storage": TEMPLATE_UUID, "title": "disk", "tier": "maxiops"}


@pytest.mark.asyncio
class TestAccountAndCatalogue:
    async def test_login_success(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("GET", "server", (200, MOCK_SERVERS))
        assert await upcloud_api.login() is True

    async def test_login_rejected(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("GET", "server", (401, MOCK_UNAUTHORIZED))
        assert await upcloud_api.login() is False

    async def test_account_information(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("GET", "account", (200, MOCK_ACCOUNT))

        account = await upcloud_api.account_information()

        assert account.username == "testuser"
        assert account.credits == pytest.approx(9972.2324)

    async def test_plans(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("GET", "plan", (200, MOCK_PLANS))

        plans = await upcloud_api.plans()

        assert [p.name for p in plans] == ["1xCPU-1GB", "2xCPU-4GB"]
        assert plans[1].storage_size == 80

    async def test_server_configurations(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("GET", "server_size", (200, MOCK_SERVER_SIZES))

        sizes = await upcloud_api.server_configurations()

        assert [(s.core_number, s.memory_amount) for s in sizes] == [("1", "512"), ("1", "1024"), ("2", "2048")]

    async def test_from_credentials(self, fake_upcloud):
        fake_upcloud.add("GET", "server", (200, MOCK_SERVERS))

        async with UpCloudApi.from_credentials("alice", "secret", transport=fake_upcloud) as api:
            assert await api.login() is True

        expected = "Basic " + base64.b64encode(b"alice:secret").decode()
        assert fake_upcloud.requests[-1].headers["Authorization"] == expected


@pytest.mark.asyncio
class TestServerQueries:
    async def test_servers_decoded_in_order(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("GET", "server", (200, MOCK_SERVERS))

        first = await upcloud_api.servers()
        second = await upcloud_api.servers()

        assert [s.uuid for s in first] == [SERVER_UUID, SECOND_SERVER_UUID]
        assert [s.state for s in first] == ["started", "stopped"]
        assert first[0].tag_names == ["PROD", "WEB"]
        assert first == second

    async def test_servers_missing_wrapper_is_parse_error(self, upcloud_api, fake_upcloud):
        from upcloud_api.core.exceptions import ParseError

        fake_upcloud.add("GET", "server", (200, {"unexpected": {}}))

        with pytest.raises(ParseError):
            await upcloud_api.servers()

    async def test_server_details(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("GET", SERVER_PATH, (200, server_body("started")))

        server = await upcloud_api.server_details(SERVER_UUID)

        assert server.uuid == SERVER_UUID
        assert server.state == "started"

    async def test_server_details_not_found(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("GET", SERVER_PATH, (404, MOCK_NOT_FOUND))

        assert await upcloud_api.server_details(SERVER_UUID) is None

    async def test_server_details_server_error_raises(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("GET", SERVER_PATH, (500, b"internal error"))

        with pytest.raises(ApplicationError) as exc_info:
            await upcloud_api.server_details(SERVER_UUID)
        assert exc_info.value.status_code == 500

    async def test_server_details_missing_wrapper_is_parse_error(self, upcloud_api, fake_upcloud):
        from upcloud_api.core.exceptions import ParseError

        fake_upcloud.add("GET", SERVER_PATH, (200, {}))

        with pytest.raises(ParseError):
            await upcloud_api.server_details(SERVER_UUID)


@pytest.mark.asyncio
class TestCreateServer:
    async def test_custom_configuration_body(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("POST", "server", (202, server_body("maintenance")))

        response = await upcloud_api.create_server(
            title="Web server 1",
            hostname="web1.example.com",
            storage_devices=[CLONE_DEVICE],
            zone="uk-lon1",
            core_number=2,
            memory_amount=2048,
        )

        assert response.status_code == 202
        body = fake_upcloud.body_of(fake_upcloud.requests[-1])
        assert body == {
            "server": {
                "zone": "uk-lon1",
                "title": "Web server 1",
                "hostname": "web1.example.com",
                "storage_devices": {"storage_device": [CLONE_DEVICE]},
                "core_number": 2,
                "memory_amount": 2048,
            }
        }

    async def test_plan_replaces_core_and_memory(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("POST", "server", (202, server_body("maintenance")))

        await upcloud_api.create_server(
            title="t", hostname="h", storage_devices=CLONE_DEVICE, plan="1xCPU-1GB"
        )

        server = fake_upcloud.body_of(fake_upcloud.requests[-1])["server"]
        assert server["plan"] == "1xCPU-1GB"
        assert "core_number" not in server
        assert "memory_amount" not in server
        assert server["storage_devices"] == {"storage_device": [CLONE_DEVICE]}
        assert server["zone"] == "fi-hel1"

    async def test_ip_addresses_and_login_user(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("POST", "server", (202, server_body("maintenance")))
        login_user = {"username": "root", "ssh_keys": {"ssh_key": ["ssh-ed25519 AAAA test"]}}

        await upcloud_api.create_server(
            title="t",
            hostname="h",
            storage_devices=[CLONE_DEVICE],
            ip_addresses=[IPAddressKind.PUBLIC, "private", "ipv6"],
            login_user=login_user,
        )

        server = fake_upcloud.body_of(fake_upcloud.requests[-1])["server"]
        assert server["ip_addresses"] == {
            "ip_address": [
                {"access": "public", "family": "IPv4"},
                {"access": "private", "family": "IPv4"},
                {"access": "public", "family": "IPv6"},
            ]
        }
        assert server["login_user"] == login_user

    async def test_other_attributes_merged_last(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("POST", "server", (202, server_body("maintenance")))

        await upcloud_api.create_server(
            title="t", hostname="h", storage_devices=[CLONE_DEVICE],
            other={"firewall": "on", "title": "override"},
        )

        server = fake_upcloud.body_of(fake_upcloud.requests[-1])["server"]
        assert server["firewall"] == "on"
        assert server["title"] == "override"

    async def test_no_storage_devices_rejected(self, upcloud_api, fake_upcloud):
        with pytest.raises(ValidationError):
            await upcloud_api.create_server(title="t", hostname="h", storage_devices=[])
        assert fake_upcloud.requests == []

    async def test_unknown_ip_kind_rejected(self, upcloud_api, fake_upcloud):
        with pytest.raises(ValidationError):
            await upcloud_api.create_server(
                title="t", hostname="h", storage_devices=[CLONE_DEVICE], ip_addresses=["ipv5"]
            )
        assert fake_upcloud.requests == []


@pytest.mark.asyncio
class TestServerMutations:
    async def test_modify_server(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("PUT", SERVER_PATH, (202, server_body("stopped")))

        await upcloud_api.modify_server(SERVER_UUID, {"title": "Renamed", "core_number": "2"})

        request = fake_upcloud.requests[-1]
        assert request.method == "PUT"
        assert fake_upcloud.body_of(request) == {"server": {"title": "Renamed", "core_number": "2"}}

    async def test_delete_server(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("DELETE", SERVER_PATH, (204, None))

        response = await upcloud_api.delete_server(SERVER_UUID)

        assert response.status_code == 204
        assert fake_upcloud.requests[-1].content == b""

    async def test_delete_running_server_raises(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("DELETE", SERVER_PATH, (400, {"error": {"error_code": "SERVER_STATE_ILLEGAL", "error_message": "Server running"}}))

        with pytest.raises(ApplicationError) as exc_info:
            await upcloud_api.delete_server(SERVER_UUID)
        assert exc_info.value.error_code == "SERVER_STATE_ILLEGAL"

    async def test_restart_server_body(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("POST", f"{SERVER_PATH}/restart", (202, server_body("maintenance")))

        await upcloud_api.restart_server(SERVER_UUID, stop_type="hard", timeout=60, timeout_action="destroy")

        assert fake_upcloud.body_of(fake_upcloud.requests[-1]) == {
            "restart_server": {"stop_type": "hard", "timeout_action": "destroy", "timeout": 60}
        }

    async def test_restart_invalid_timeout_action(self, upcloud_api, fake_upcloud):
        with pytest.raises(ValidationError):
            await upcloud_api.restart_server(SERVER_UUID, timeout_action="explode")
        assert fake_upcloud.requests == []


@pytest.mark.asyncio
class TestStartServer:
    async def test_asynchronous_by_default(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("POST", f"{SERVER_PATH}/start", (202, server_body("maintenance")))

        result = await upcloud_api.start_server(SERVER_UUID)

        assert isinstance(result, OperationResult)
        assert result.outcome is None
        assert not result.waited
        assert fake_upcloud.requests_to("GET", SERVER_PATH) == []

    async def test_synchronous_waits_for_started(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("POST", f"{SERVER_PATH}/start", (202, server_body("maintenance")))
        fake_upcloud.add("GET", SERVER_PATH, (200, server_body("maintenance")), (200, server_body("started")))

        result = await upcloud_api.start_server(SERVER_UUID, asynchronous=False)

        assert isinstance(result.outcome, Reached)
        assert result.outcome.snapshot.state == "started"
        assert len(fake_upcloud.requests_to("GET", SERVER_PATH)) == 2


@pytest.mark.asyncio
class TestStopServer:
    async def test_stop_then_poll_reaches_stopped(self, upcloud_api, fake_upcloud):
        loop = asyncio.get_running_loop()
        fake_upcloud.add("POST", f"{SERVER_PATH}/stop", (202, server_body("started")))
        fake_upcloud.add(
            "GET", SERVER_PATH,
            (200, server_body("started")),
            (200, server_body("started")),
            (200, server_body("stopped")),
        )

        started = loop.time()
        result = await upcloud_api.stop_server(SERVER_UUID, wait_timeout=30, poll_interval=0.05)
        elapsed = loop.time() - started

        assert isinstance(result.outcome, Reached)
        assert result.outcome.snapshot.state == "stopped"
        assert result.outcome.attempts == 3
        assert 0.09 <= elapsed < 1.0
        assert fake_upcloud.body_of(fake_upcloud.requests_to("POST", f"{SERVER_PATH}/stop")[0]) == {
            "stop_server": {"stop_type": "soft"}
        }

    async def test_hard_stop_with_timeout(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("POST", f"{SERVER_PATH}/stop", (202, server_body("started")))

        result = await upcloud_api.stop_server(
            SERVER_UUID, stop_type=StopType.HARD, timeout=60, asynchronous=True
        )

        assert result.outcome is None
        assert fake_upcloud.body_of(fake_upcloud.requests[-1]) == {
            "stop_server": {"stop_type": "hard", "timeout": 60}
        }
        assert len(fake_upcloud.requests) == 1

    async def test_invalid_stop_type(self, upcloud_api, fake_upcloud):
        with pytest.raises(ValidationError):
            await upcloud_api.stop_server(SERVER_UUID, stop_type="gentle")
        assert fake_upcloud.requests == []

    async def test_stop_times_out(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("POST", f"{SERVER_PATH}/stop", (202, server_body("started")))
        fake_upcloud.add("GET", SERVER_PATH, (200, server_body("started")))

        result = await upcloud_api.stop_server(SERVER_UUID, wait_timeout=0.05)

        assert isinstance(result.outcome, TimedOut)
        assert result.outcome.last_snapshot.state == "started"
        with pytest.raises(PollTimeoutError):
            result.outcome.unwrap()

    async def test_stop_rejected_does_not_poll(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("POST", f"{SERVER_PATH}/stop", (400, {"error": {"error_code": "SERVER_STATE_ILLEGAL", "error_message": "Already stopped"}}))

        with pytest.raises(ApplicationError):
            await upcloud_api.stop_server(SERVER_UUID)
        assert fake_upcloud.requests_to("GET", SERVER_PATH) == []

    async def test_malformed_snapshot_does_not_count_as_gone(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("POST", f"{SERVER_PATH}/stop", (202, server_body("started")))
        fake_upcloud.add(
            "GET", SERVER_PATH,
            (200, {"unexpected": {}}),
            (200, server_body("stopped")),
        )

        result = await upcloud_api.stop_server(SERVER_UUID, wait_timeout=5, poll_interval=0.01)

        assert isinstance(result.outcome, Reached)
        assert result.outcome.snapshot.state == "stopped"
        assert result.outcome.attempts == 2


@pytest.mark.asyncio
class TestWaitForServerState:
    async def test_server_deleted_while_waiting(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("GET", SERVER_PATH, (200, server_body("maintenance")), (404, MOCK_NOT_FOUND))

        outcome = await upcloud_api.wait_for_server_state(SERVER_UUID, "started", timeout=5)

        assert isinstance(outcome, Disappeared)
        assert outcome.attempts == 2

    async def test_uses_configured_poll_interval(self, upcloud_api, fake_upcloud):
        assert upcloud_api.poll_interval == 0.01

    @pytest.mark.parametrize("interval", [0, -1])
    async def test_non_positive_poll_interval_rejected(self, upcloud_api, fake_upcloud, interval):
        with pytest.raises(ValidationError):
            await upcloud_api.wait_for_server_state(
                SERVER_UUID, "stopped", timeout=1, poll_interval=interval
            )
        assert fake_upcloud.requests == []

    async def test_cancel_event(self, upcloud_api, fake_upcloud):
        from upcloud_api.core.exceptions import PollCancelledError

        fake_upcloud.add("GET", SERVER_PATH, (200, server_body("maintenance")))
        event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, event.set)

        with pytest.raises(PollCancelledError):
            await upcloud_api.wait_for_server_state(
                SERVER_UUID, "started", timeout=30, poll_interval=5, cancel_event=event
            )


@pytest.mark.asyncio
class TestAuthenticationOnEveryRequest:
    async def test_all_generated_requests_carry_credentials(self, upcloud_api, fake_upcloud):
        fake_upcloud.add("GET", "server", (200, MOCK_SERVERS))
        fake_upcloud.add("GET", SERVER_PATH, (200, server_body("stopped")))
        fake_upcloud.add("POST", "server", (202, server_body("maintenance")))
        fake_upcloud.add("PUT", SERVER_PATH, (202, server_body("stopped")))
        fake_upcloud.add("POST", f"{SERVER_PATH}/stop", (202, server_body("started")))
        fake_upcloud.add("DELETE", SERVER_PATH, (204, None))

        await upcloud_api.servers()
        await upcloud_api.server_details(SERVER_UUID)
        await upcloud_api.create_server(title="t", hostname="h", storage_devices=[CLONE_DEVICE])
        await upcloud_api.modify_server(SERVER_UUID, {"title": "x"})
        await upcloud_api.stop_server(SERVER_UUID)
        await upcloud_api.delete_server(SERVER_UUID)

        expected = "Basic " + base64.b64encode(b"testuser:testpass").decode()
        assert {r.method for r in fake_upcloud.requests} == {"GET", "POST", "PUT", "DELETE"}
        assert all(r.headers.get("Authorization") == expected for r in fake_upcloud.requests)
