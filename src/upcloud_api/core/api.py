"""
UpCloud API - Operation Facade

One async method per UpCloud API operation. Each method maps its arguments
onto a single request with a specific path and JSON body; operations that
start a long running job on the provider can additionally wait for the
affected resource to settle.
"""

import asyncio
import logging
import urllib.parse
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from ..shared.constants import (
    API_ACCOUNT,
    API_FIREWALL_RULE,
    API_FIREWALL_RULES,
    API_IP_ADDRESS,
    API_IP_ADDRESS_DETAIL,
    API_PLAN,
    API_SERVER,
    API_SERVER_DETAIL,
    API_SERVER_RESTART,
    API_SERVER_SIZE,
    API_SERVER_START,
    API_SERVER_STOP,
    API_SERVER_STORAGE_ATTACH,
    API_SERVER_STORAGE_DETACH,
    API_SERVER_TAG,
    API_SERVER_UNTAG,
    API_STORAGE,
    API_STORAGE_BACKUP,
    API_STORAGE_CLONE,
    API_STORAGE_DETAIL,
    API_STORAGE_FAVORITE,
    API_STORAGE_RESTORE,
    API_STORAGE_TEMPLATIZE,
    API_STORAGE_TYPE,
    API_TAG,
    API_TAG_DETAIL,
    API_TAGS,
    DEFAULT_STORAGE_TIER,
    DEFAULT_ZONE,
    IP_FAMILIES,
    RESTORE_BACKUP_TIMEOUT,
    SERVER_STATE_STARTED,
    SERVER_STATE_STOPPED,
    START_SERVER_TIMEOUT,
    STOP_SERVER_TIMEOUT,
    STORAGE_OPERATION_TIMEOUT,
    STORAGE_STATE_ONLINE,
    STORAGE_TYPES,
)
from . import codec
from .client import ApiResponse, UpCloudClient
from .exceptions import ApplicationError, ValidationError
from .models import IPAddressKind, StopType, TagSelector, UpCloudConfig, tag_selector
from .poller import PollOutcome, poll_until, state_is
from .resources import (
    Account,
    FirewallRule,
    IPAddress,
    Plan,
    Resource,
    Server,
    ServerSize,
    Storage,
    Tag,
    parse_resource,
    parse_resources,
)

logger = logging.getLogger("upcloud-api")

TIMEOUT_ACTIONS = ("ignore", "destroy")
STORAGE_DEVICE_TYPES = ("disk", "cdrom")


@dataclass(frozen=True)
class OperationResult:
    """The mutating response plus, for synchronous calls, how the wait ended."""

    response: ApiResponse
    outcome: Optional[PollOutcome] = None

    @property
    def waited(self) -> bool:
        return self.outcome is not None


def _segment(value: Any) -> str:
    """Quote one path segment; UUIDs, IPv6 addresses and tag lists pass through."""
    text = str(value)
    if not text:
        raise ValidationError("Path segment must not be empty")
    return urllib.parse.quote(text, safe=":,")


class UpCloudApi:
    """Typed facade over the UpCloud HTTP API."""

    def __init__(self, client: UpCloudClient, poll_interval: Optional[float] = None):
        """Initialize the facade.

        Args:
            client: Request executor holding the credentials
            poll_interval: Default delay between state polls; falls back to the
                client's configuration
        """
        self.client = client
        self.poll_interval = poll_interval if poll_interval is not None else client.config.poll_interval

    @classmethod
    def from_credentials(
        cls,
        username: str,
        password: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **options: Any,
    ) -> "UpCloudApi":
        """Build a facade straight from an account name and password."""
        config = UpCloudConfig(username=username, password=password, **options)
        return cls(UpCloudClient(config, transport=transport))

    async def close(self):
        await self.client.close()

    async def __aenter__(self) -> "UpCloudApi":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ========== REQUEST HELPERS ==========

    async def _get(self, path: str, operation: str) -> Any:
        response = await self.client.request_json("GET", path, operation=operation)
        return response.json()

    async def _list(self, path: str, keys: tuple[str, str], model: type, operation: str) -> list:
        data = await self._get(path, operation)
        return parse_resources(model, codec.unwrap(data, *keys))

    async def _detail(self, path: str, key: str, model: type, operation: str) -> Optional[Resource]:
        try:
            data = await self._get(path, operation)
        except ApplicationError as e:
            if e.not_found:
                return None
            raise
        return parse_resource(model, codec.unwrap(data, key))

    async def _post(self, path: str, data: Any = None, operation: str = "api_request") -> ApiResponse:
        return await self.client.request_json("POST", path, data, operation=operation)

    async def _put(self, path: str, data: Any, operation: str) -> ApiResponse:
        return await self.client.request_json("PUT", path, data, operation=operation)

    async def _delete(self, path: str, operation: str) -> ApiResponse:
        return await self.client.request_json("DELETE", path, operation=operation)

    async def _wait(
        self,
        fetch: Callable[[], Awaitable[Any]],
        state: str,
        timeout: float,
        poll_interval: Optional[float],
        cancel_event: Optional[asyncio.Event],
        description: str,
    ) -> PollOutcome:
        return await poll_until(
            fetch,
            state_is(state),
            timeout=timeout,
            poll_interval=poll_interval if poll_interval is not None else self.poll_interval,
            description=description,
            cancel_event=cancel_event,
        )

    # ========== ACCOUNT & CATALOGUE ==========

    async def login(self) -> bool:
        """Check that the credentials are accepted.

        Calls GET /1.2/server. Authentication is sent with every request, so
        calling this is never required.

        Returns:
            True if the provider answered 200, False otherwise
        """
        response = await self.client.request("GET", API_SERVER, operation="login")
        return response.status_code == 200

    async def account_information(self) -> Account:
        """Return account details, including available credits. Calls GET /1.2/account."""
        data = await self._get(API_ACCOUNT, "account_information")
        return parse_resource(Account, codec.unwrap(data, "account"))

    async def server_configurations(self) -> list[ServerSize]:
        """Return available server core/memory combinations. Calls GET /1.2/server_size."""
        return await self._list(
            API_SERVER_SIZE, ("server_sizes", "server_size"), ServerSize, "server_configurations"
        )

    async def plans(self) -> list[Plan]:
        """Return predefined plans usable for create_server. Calls GET /1.2/plan."""
        return await self._list(API_PLAN, ("plans", "plan"), Plan, "plans")

    # ========== SERVERS ==========

    async def servers(self) -> list[Server]:
        """List servers associated with the account. Calls GET /1.2/server."""
        return await self._list(API_SERVER, ("servers", "server"), Server, "servers")

    async def server_details(self, server_uuid: str) -> Optional[Server]:
        """Return details of a server, or None if it does not exist.

        Calls GET /1.2/server/_uuid_.
        """
        path = API_SERVER_DETAIL.format(uuid=_segment(server_uuid))
        return await self._detail(path, "server", Server, "server_details")

    async def create_server(
        self,
        *,
        title: str,
        hostname: str,
        storage_devices: Union[Mapping[str, Any], Iterable[Mapping[str, Any]]],
        zone: str = DEFAULT_ZONE,
        core_number: int = 1,
        memory_amount: int = 1024,
        ip_addresses: Optional[Iterable[Union[IPAddressKind, str]]] = None,
        plan: Optional[str] = None,
        login_user: Optional[Mapping[str, Any]] = None,
        other: Optional[Mapping[str, Any]] = None,
    ) -> ApiResponse:
        """Create a new server. Returns as soon as the provider accepted it.

        Calls POST /1.2/server.

        Args:
            title: Server title
            hostname: Server hostname
            storage_devices: One or more storage device dicts, e.g.
                {"action": "clone", "storage": template_uuid, "title": "disk", "tier": "maxiops"}
            zone: Zone where the server is created
            core_number: CPU cores for a custom configuration
            memory_amount: Memory in MiB for a custom configuration
            ip_addresses: Kinds of addresses to assign (public, private, ipv6);
                None assigns all three
            plan: Predefined plan; overrides core_number and memory_amount
            login_user: Login user definition, e.g. {"username": ..., "ssh_keys": {...}}
            other: Any further server attributes, merged in last

        Returns:
            ApiResponse whose body holds the new server
        """
        if isinstance(storage_devices, Mapping):
            devices = [dict(storage_devices)]
        else:
            devices = [dict(device) for device in storage_devices]
        if not devices:
            raise ValidationError("At least one storage device is required",
                                  context={"operation": "create_server"})

        server: dict[str, Any] = {
            "zone": zone,
            "title": title,
            "hostname": hostname,
            "storage_devices": {"storage_device": devices},
        }

        if plan is None:
            server["core_number"] = core_number
            server["memory_amount"] = memory_amount
        else:
            server["plan"] = plan

        if ip_addresses is not None:
            try:
                kinds = [IPAddressKind(kind) for kind in ip_addresses]
            except ValueError as e:
                raise ValidationError(str(e), context={"operation": "create_server"}) from e
            server["ip_addresses"] = {"ip_address": [kind.as_request() for kind in kinds]}

        if login_user is not None:
            server["login_user"] = dict(login_user)

        if other:
            server.update(other)

        return await self._post(API_SERVER, {"server": server}, operation="create_server")

    async def modify_server(self, server_uuid: str, params: Mapping[str, Any]) -> ApiResponse:
        """Modify an existing server. The server must be stopped first.

        Calls PUT /1.2/server/_uuid_.
        """
        path = API_SERVER_DETAIL.format(uuid=_segment(server_uuid))
        return await self._put(path, {"server": dict(params)}, "modify_server")

    async def delete_server(self, server_uuid: str) -> ApiResponse:
        """Delete a stopped server. Attached storages are kept.

        Calls DELETE /1.2/server/_uuid_.
        """
        path = API_SERVER_DETAIL.format(uuid=_segment(server_uuid))
        return await self._delete(path, "delete_server")

    async def start_server(
        self,
        server_uuid: str,
        *,
        asynchronous: bool = True,
        wait_timeout: float = START_SERVER_TIMEOUT,
        poll_interval: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> OperationResult:
        """Start a stopped server.

        Calls POST /1.2/server/_uuid_/start. With asynchronous=False, waits
        until the server state is "started".
        """
        path = API_SERVER_START.format(uuid=_segment(server_uuid))
        response = await self._post(path, operation="start_server")
        if asynchronous:
            return OperationResult(response)

        outcome = await self.wait_for_server_state(
            server_uuid, SERVER_STATE_STARTED, timeout=wait_timeout,
            poll_interval=poll_interval, cancel_event=cancel_event,
        )
        return OperationResult(response, outcome)

    async def stop_server(
        self,
        server_uuid: str,
        *,
        stop_type: Union[StopType, str] = StopType.SOFT,
        timeout: Optional[int] = None,
        asynchronous: bool = False,
        wait_timeout: float = STOP_SERVER_TIMEOUT,
        poll_interval: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> OperationResult:
        """Shut down a running server.

        Calls POST /1.2/server/_uuid_/stop.

        A hard stop is the same as pulling the power cable; a soft stop sends an
        ACPI signal and lets the guest shut down by itself.

        Args:
            server_uuid: UUID of the server
            stop_type: "soft" (default) or "hard"
            timeout: Seconds after which the provider hard stops a server that
                did not stop cleanly. Only affects soft stops.
            asynchronous: If False, wait until the server state is "stopped"
            wait_timeout: Maximum seconds to wait in synchronous mode
            poll_interval: Seconds between state polls
            cancel_event: Event that stops waiting early when set

        Returns:
            OperationResult; its outcome is None when asynchronous
        """
        try:
            stop_type = StopType(stop_type)
        except ValueError as e:
            raise ValidationError(f"Invalid stop type: {stop_type}",
                                  context={"operation": "stop_server"}) from e

        data: dict[str, Any] = {"stop_server": {"stop_type": stop_type.value}}
        if timeout is not None:
            data["stop_server"]["timeout"] = timeout

        path = API_SERVER_STOP.format(uuid=_segment(server_uuid))
        response = await self._post(path, data, operation="stop_server")
        if asynchronous:
            return OperationResult(response)

        outcome = await self.wait_for_server_state(
            server_uuid, SERVER_STATE_STOPPED, timeout=wait_timeout,
            poll_interval=poll_interval, cancel_event=cancel_event,
        )
        return OperationResult(response, outcome)

    async def restart_server(
        self,
        server_uuid: str,
        *,
        stop_type: Union[StopType, str] = StopType.SOFT,
        timeout: Optional[int] = None,
        timeout_action: str = "ignore",
    ) -> ApiResponse:
        """Restart a running server. Use wait_for_server_state to wait for it.

        Calls POST /1.2/server/_uuid_/restart.

        Args:
            server_uuid: UUID of the server
            stop_type: "soft" (default) or "hard"
            timeout: Seconds before timeout_action applies to a soft stop
            timeout_action: "destroy" hard stops the server on timeout,
                "ignore" (default) abandons the restart
        """
        try:
            stop_type = StopType(stop_type)
        except ValueError as e:
            raise ValidationError(f"Invalid stop type: {stop_type}",
                                  context={"operation": "restart_server"}) from e
        if timeout_action not in TIMEOUT_ACTIONS:
            raise ValidationError(
                f"Invalid timeout action '{timeout_action}'. Must be one of: {list(TIMEOUT_ACTIONS)}",
                context={"operation": "restart_server"},
            )

        data: dict[str, Any] = {
            "restart_server": {"stop_type": stop_type.value, "timeout_action": timeout_action}
        }
        if timeout is not None:
            data["restart_server"]["timeout"] = timeout

        path = API_SERVER_RESTART.format(uuid=_segment(server_uuid))
        return await self._post(path, data, operation="restart_server")

    async def wait_for_server_state(
        self,
        server_uuid: str,
        state: str,
        *,
        timeout: float = STOP_SERVER_TIMEOUT,
        poll_interval: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> PollOutcome:
        """Poll a server until its state equals `state`."""
        return await self._wait(
            lambda: self.server_details(server_uuid),
            state, timeout, poll_interval, cancel_event,
            description=f"server {server_uuid}",
        )

    # ========== STORAGE ==========

    async def storages(self, type: Optional[str] = None) -> list[Storage]:
        """List all storages, or only those of one type.

        Calls GET /1.2/storage or GET /1.2/storage/_type_.

        Args:
            type: One of public, private, normal, backup, cdrom, template, favorite
        """
        if type is None:
            path = API_STORAGE
        elif type in STORAGE_TYPES:
            path = API_STORAGE_TYPE.format(type=type)
        else:
            raise ValidationError(
                f"Invalid storage type '{type}'. Must be one of: {list(STORAGE_TYPES)}",
                context={"operation": "storages"},
            )
        return await self._list(path, ("storages", "storage"), Storage, "storages")

    async def templates(self) -> list[Storage]:
        """List template storages usable for cloning new servers."""
        return await self.storages(type="template")

    async def storage_details(self, storage_uuid: str) -> Optional[Storage]:
        """Return details of a storage, or None if it does not exist.

        Calls GET /1.2/storage/_uuid_.
        """
        path = API_STORAGE_DETAIL.format(uuid=_segment(storage_uuid))
        return await self._detail(path, "storage", Storage, "storage_details")

    async def create_storage(
        self,
        *,
        size: int,
        title: str,
        tier: str = DEFAULT_STORAGE_TIER,
        zone: str = DEFAULT_ZONE,
        backup_rule: Optional[Mapping[str, Any]] = None,
    ) -> ApiResponse:
        """Create a new storage.

        Calls POST /1.2/storage.

        Args:
            size: Size in gigabytes
            title: Name of the disk
            tier: "maxiops" (SSD) or "hdd"
            zone: Zone of the disk; must match the server it is attached to
            backup_rule: {"interval": daily|mon..sun, "time": "0000"-"2359",
                "retention": 1-1095}; no automatic backups if omitted
        """
        storage: dict[str, Any] = {"size": size, "tier": tier, "title": title, "zone": zone}
        if backup_rule is not None:
            storage["backup_rule"] = dict(backup_rule)
        return await self._post(API_STORAGE, {"storage": storage}, operation="create_storage")

    async def modify_storage(
        self,
        storage_uuid: str,
        *,
        size: Optional[int] = None,
        title: Optional[str] = None,
        backup_rule: Optional[Mapping[str, Any]] = None,
    ) -> ApiResponse:
        """Modify an existing storage.

        Calls PUT /1.2/storage/_uuid_.
        """
        storage: dict[str, Any] = {}
        if size is not None:
            storage["size"] = size
        if title is not None:
            storage["title"] = title
        if backup_rule is not None:
            storage["backup_rule"] = dict(backup_rule)
        if not storage:
            raise ValidationError("Nothing to modify: give size, title or backup_rule",
                                  context={"operation": "modify_storage"})

        path = API_STORAGE_DETAIL.format(uuid=_segment(storage_uuid))
        return await self._put(path, {"storage": storage}, "modify_storage")

    async def _wait_for_created_storage(
        self,
        response: ApiResponse,
        asynchronous: bool,
        wait_timeout: float,
        poll_interval: Optional[float],
        cancel_event: Optional[asyncio.Event],
    ) -> OperationResult:
        if asynchronous:
            return OperationResult(response)
        new_uuid = response.unwrap("storage", "uuid")
        outcome = await self.wait_for_storage_state(
            new_uuid, STORAGE_STATE_ONLINE, timeout=wait_timeout,
            poll_interval=poll_interval, cancel_event=cancel_event,
        )
        return OperationResult(response, outcome)

    async def clone_storage(
        self,
        storage_uuid: str,
        *,
        title: str,
        zone: str = DEFAULT_ZONE,
        tier: str = DEFAULT_STORAGE_TIER,
        asynchronous: bool = False,
        wait_timeout: float = STORAGE_OPERATION_TIMEOUT,
        poll_interval: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> OperationResult:
        """Clone a storage.

        Calls POST /1.2/storage/_uuid_/clone. With asynchronous=False, waits
        until the new storage is "online".
        """
        path = API_STORAGE_CLONE.format(uuid=_segment(storage_uuid))
        data = {"storage": {"zone": zone, "title": title, "tier": tier}}
        response = await self._post(path, data, operation="clone_storage")
        return await self._wait_for_created_storage(
            response, asynchronous, wait_timeout, poll_interval, cancel_event
        )

    async def templatize_storage(
        self,
        storage_uuid: str,
        *,
        title: str,
        asynchronous: bool = False,
        wait_timeout: float = STORAGE_OPERATION_TIMEOUT,
        poll_interval: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> OperationResult:
        """Create a template from a storage.

        Calls POST /1.2/storage/_uuid_/templatize. With asynchronous=False,
        waits until the new template is "online".
        """
        path = API_STORAGE_TEMPLATIZE.format(uuid=_segment(storage_uuid))
        response = await self._post(path, {"storage": {"title": title}}, operation="templatize_storage")
        return await self._wait_for_created_storage(
            response, asynchronous, wait_timeout, poll_interval, cancel_event
        )

    async def create_backup(
        self,
        storage_uuid: str,
        *,
        title: str,
        asynchronous: bool = False,
        wait_timeout: float = STORAGE_OPERATION_TIMEOUT,
        poll_interval: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> OperationResult:
        """Back up a storage.

        Calls POST /1.2/storage/_uuid_/backup. With asynchronous=False, waits
        until the new backup is "online".
        """
        path = API_STORAGE_BACKUP.format(uuid=_segment(storage_uuid))
        response = await self._post(path, {"storage": {"title": title}}, operation="create_backup")
        return await self._wait_for_created_storage(
            response, asynchronous, wait_timeout, poll_interval, cancel_event
        )

    async def restore_backup(
        self,
        backup_uuid: str,
        *,
        target_storage_uuid: Optional[str] = None,
        asynchronous: bool = True,
        wait_timeout: float = RESTORE_BACKUP_TIMEOUT,
        poll_interval: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> OperationResult:
        """Restore a backup onto the storage it was taken from.

        Calls POST /1.2/storage/_backup_uuid_/restore. If the storage is
        attached to a server, the server must be stopped first.

        With asynchronous=False, waits until the restored storage is "online".
        The restored storage is `target_storage_uuid`, or the backup's origin
        when not given.
        """
        target = target_storage_uuid
        if not asynchronous and target is None:
            backup = await self.storage_details(backup_uuid)
            if backup is None or not backup.origin:
                raise ValidationError(
                    f"Cannot determine which storage backup {backup_uuid} restores",
                    context={"operation": "restore_backup", "backup_uuid": backup_uuid},
                )
            target = backup.origin

        path = API_STORAGE_RESTORE.format(uuid=_segment(backup_uuid))
        response = await self._post(path, operation="restore_backup")
        if asynchronous:
            return OperationResult(response)

        outcome = await self.wait_for_storage_state(
            target, STORAGE_STATE_ONLINE, timeout=wait_timeout,
            poll_interval=poll_interval, cancel_event=cancel_event,
        )
        return OperationResult(response, outcome)

    async def attach_storage(
        self,
        server_uuid: str,
        *,
        storage_uuid: str,
        type: str = "disk",
        address: Optional[str] = None,
    ) -> ApiResponse:
        """Attach a storage to a stopped server.

        Calls POST /1.2/server/_uuid_/storage/attach.

        Args:
            server_uuid: Server to attach to
            storage_uuid: Storage to attach
            type: "disk" or "cdrom"
            address: ide[01]:[01], scsi:0:[0-7] or virtio:[0-7]; next free
                address if omitted
        """
        if type not in STORAGE_DEVICE_TYPES:
            raise ValidationError(
                f"Invalid storage device type '{type}'. Must be one of: {list(STORAGE_DEVICE_TYPES)}",
                context={"operation": "attach_storage"},
            )
        device: dict[str, Any] = {"type": type, "storage": storage_uuid}
        if address is not None:
            device["address"] = address

        path = API_SERVER_STORAGE_ATTACH.format(uuid=_segment(server_uuid))
        return await self._post(path, {"storage_device": device}, operation="attach_storage")

    async def detach_storage(self, server_uuid: str, *, address: str) -> ApiResponse:
        """Detach the storage at `address` from a stopped server.

        Calls POST /1.2/server/_uuid_/storage/detach.
        """
        path = API_SERVER_STORAGE_DETACH.format(uuid=_segment(server_uuid))
        return await self._post(path, {"storage_device": {"address": address}}, operation="detach_storage")

    async def favorite_storage(self, storage_uuid: str) -> ApiResponse:
        """Add a storage to favorites. Calls POST /1.2/storage/_uuid_/favorite."""
        path = API_STORAGE_FAVORITE.format(uuid=_segment(storage_uuid))
        return await self._post(path, operation="favorite_storage")

    async def defavorite_storage(self, storage_uuid: str) -> ApiResponse:
        """Remove a storage from favorites. Calls DELETE /1.2/storage/_uuid_/favorite."""
        path = API_STORAGE_FAVORITE.format(uuid=_segment(storage_uuid))
        return await self._delete(path, "defavorite_storage")

    async def delete_storage(self, storage_uuid: str) -> ApiResponse:
        """Delete an online, detached storage. Its backups are kept.

        Calls DELETE /1.2/storage/_uuid_.
        """
        path = API_STORAGE_DETAIL.format(uuid=_segment(storage_uuid))
        return await self._delete(path, "delete_storage")

    async def wait_for_storage_state(
        self,
        storage_uuid: str,
        state: str,
        *,
        timeout: float = STORAGE_OPERATION_TIMEOUT,
        poll_interval: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> PollOutcome:
        """Poll a storage until its state equals `state`."""
        return await self._wait(
            lambda: self.storage_details(storage_uuid),
            state, timeout, poll_interval, cancel_event,
            description=f"storage {storage_uuid}",
        )

    # ========== FIREWALL ==========

    async def firewall_rules(self, server_uuid: str) -> list[FirewallRule]:
        """List firewall rules of a server. Calls GET /1.2/server/_uuid_/firewall_rule."""
        path = API_FIREWALL_RULES.format(uuid=_segment(server_uuid))
        return await self._list(
            path, ("firewall_rules", "firewall_rule"), FirewallRule, "firewall_rules"
        )

    async def firewall_rule_details(self, server_uuid: str, position: int) -> Optional[FirewallRule]:
        """Return the rule at `position`, or None if there is none.

        Calls GET /1.2/server/_uuid_/firewall_rule/_position_.
        """
        path = API_FIREWALL_RULE.format(uuid=_segment(server_uuid), position=_segment(position))
        return await self._detail(path, "firewall_rule", FirewallRule, "firewall_rule_details")

    async def create_firewall_rule(self, server_uuid: str, params: Mapping[str, Any]) -> ApiResponse:
        """Create a firewall rule on a server.

        Calls POST /1.2/server/_uuid_/firewall_rule.

        `params` holds the rule attributes without the "firewall_rule" wrapper,
        e.g. {"direction": "in", "family": "IPv4", "protocol": "tcp",
        "destination_port_start": "22", "destination_port_end": "22", "action": "accept"}.
        """
        path = API_FIREWALL_RULES.format(uuid=_segment(server_uuid))
        return await self._post(path, {"firewall_rule": dict(params)}, operation="create_firewall_rule")

    async def remove_firewall_rule(self, server_uuid: str, position: int) -> ApiResponse:
        """Remove the firewall rule at `position`.

        Calls DELETE /1.2/server/_uuid_/firewall_rule/_position_.
        """
        path = API_FIREWALL_RULE.format(uuid=_segment(server_uuid), position=_segment(position))
        return await self._delete(path, "remove_firewall_rule")

    # ========== TAGS ==========

    async def tags(self) -> list[Tag]:
        """List all tags with the servers they are attached to. Calls GET /1.2/tags."""
        return await self._list(API_TAGS, ("tags", "tag"), Tag, "tags")

    @staticmethod
    def _tag_body(
        name: Optional[str],
        description: Optional[str],
        servers: Optional[Iterable[str]],
    ) -> dict[str, Any]:
        tag: dict[str, Any] = {}
        if name is not None:
            tag["name"] = name
        if description is not None:
            tag["description"] = description
        if servers is not None:
            tag["servers"] = {"server": list(servers)}
        return {"tag": tag}

    async def create_tag(
        self,
        name: str,
        *,
        description: Optional[str] = None,
        servers: Iterable[str] = (),
    ) -> Tag:
        """Create a new tag, optionally attached to servers.

        Calls POST /1.2/tag.

        Returns:
            The created tag
        """
        tag_selector(name)
        response = await self._post(
            API_TAG, self._tag_body(name, description, servers), operation="create_tag"
        )
        return parse_resource(Tag, response.unwrap("tag"))

    async def modify_tag(
        self,
        tag: str,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        servers: Optional[Iterable[str]] = None,
    ) -> Tag:
        """Modify an existing tag. Only the given attributes change.

        Calls PUT /1.2/tag/_tag_.

        Returns:
            The modified tag
        """
        body = self._tag_body(name, description, servers)
        if not body["tag"]:
            raise ValidationError("Nothing to modify: give name, description or servers",
                                  context={"operation": "modify_tag"})
        path = API_TAG_DETAIL.format(name=_segment(tag))
        response = await self._put(path, body, "modify_tag")
        return parse_resource(Tag, response.unwrap("tag"))

    async def delete_tag(self, tag: str) -> ApiResponse:
        """Delete a tag. Calls DELETE /1.2/tag/_tag_."""
        path = API_TAG_DETAIL.format(name=_segment(tag))
        return await self._delete(path, "delete_tag")

    async def add_tag_to_server(
        self, server_uuid: str, tags: Union[TagSelector, str, Iterable[str]]
    ) -> ApiResponse:
        """Attach one or more tags to a server.

        Calls POST /1.2/server/_uuid_/tag/_tags_.
        """
        selector = tag_selector(tags)
        path = API_SERVER_TAG.format(uuid=_segment(server_uuid), tags=_segment(selector.path_segment))
        return await self._post(path, operation="add_tag_to_server")

    async def remove_tag_from_server(
        self, server_uuid: str, tags: Union[TagSelector, str, Iterable[str]]
    ) -> ApiResponse:
        """Remove one or more tags from a server.

        Calls POST /1.2/server/_uuid_/untag/_tags_.
        """
        selector = tag_selector(tags)
        path = API_SERVER_UNTAG.format(uuid=_segment(server_uuid), tags=_segment(selector.path_segment))
        return await self._post(path, operation="remove_tag_from_server")

    # ========== IP ADDRESSES ==========

    async def ip_addresses(self) -> list[IPAddress]:
        """List IP addresses of the account. Calls GET /1.2/ip_address."""
        return await self._list(
            API_IP_ADDRESS, ("ip_addresses", "ip_address"), IPAddress, "ip_addresses"
        )

    async def ip_address_details(self, address: str) -> Optional[IPAddress]:
        """Return details of an IP address, or None if unknown.

        Calls GET /1.2/ip_address/_address_.
        """
        path = API_IP_ADDRESS_DETAIL.format(address=_segment(address))
        return await self._detail(path, "ip_address", IPAddress, "ip_address_details")

    async def new_ip_address_to_server(self, server_uuid: str, *, family: str = "IPv4") -> ApiResponse:
        """Assign a new public IP address to a stopped server.

        Calls POST /1.2/ip_address. A server can hold at most five public
        addresses and always exactly one private one.
        """
        if family not in IP_FAMILIES:
            raise ValidationError(
                f"Invalid IP family '{family}'. Must be one of: {list(IP_FAMILIES)}",
                context={"operation": "new_ip_address_to_server"},
            )
        data = {"ip_address": {"family": family, "server": server_uuid}}
        return await self._post(API_IP_ADDRESS, data, operation="new_ip_address_to_server")

    async def change_ip_address_ptr(self, address: str, ptr_record: str) -> ApiResponse:
        """Change the PTR record of a public IP address.

        Calls PUT /1.2/ip_address/_address_.
        """
        path = API_IP_ADDRESS_DETAIL.format(address=_segment(address))
        return await self._put(path, {"ip_address": {"ptr_record": ptr_record}}, "change_ip_address_ptr")

    async def remove_ip_address(self, address: str) -> ApiResponse:
        """Release an IP address from its server.

        Calls DELETE /1.2/ip_address/_address_.
        """
        path = API_IP_ADDRESS_DETAIL.format(address=_segment(address))
        return await self._delete(path, "remove_ip_address")
