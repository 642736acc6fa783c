"""
UpCloud API - Resource Snapshots

Read-only views of provider resources. A snapshot is built fresh from every
response and never mutated; fields the client does not reason about are kept
as extra attributes so nothing the provider sends is lost.
"""

from typing import Any, TypeVar, Union

import pydantic
from pydantic import BaseModel, ConfigDict

from .exceptions import ParseError

Number = Union[int, float, str]


class Resource(BaseModel):
    """Base class for all resource snapshots."""

    model_config = ConfigDict(frozen=True, extra="allow")

    def raw(self) -> dict[str, Any]:
        """Return the snapshot as the plain dictionary the provider sent."""
        return self.model_dump(exclude_none=True)


def _nested_list(container: dict[str, Any] | None, key: str) -> list[Any]:
    if not container:
        return []
    return list(container.get(key) or [])


class Server(Resource):
    uuid: str
    state: str | None = None
    title: str | None = None
    hostname: str | None = None
    zone: str | None = None
    plan: str | None = None
    core_number: Number | None = None
    memory_amount: Number | None = None
    storage_devices: dict[str, Any] | None = None
    ip_addresses: dict[str, Any] | None = None
    tags: dict[str, Any] | None = None

    @property
    def storage_device_list(self) -> list[dict[str, Any]]:
        return _nested_list(self.storage_devices, "storage_device")

    @property
    def ip_address_list(self) -> list[dict[str, Any]]:
        return _nested_list(self.ip_addresses, "ip_address")

    @property
    def tag_names(self) -> list[str]:
        return _nested_list(self.tags, "tag")


class Storage(Resource):
    uuid: str
    state: str | None = None
    title: str | None = None
    type: str | None = None
    size: Number | None = None
    zone: str | None = None
    tier: str | None = None
    access: str | None = None
    origin: str | None = None
    servers: dict[str, Any] | None = None

    @property
    def server_uuids(self) -> list[str]:
        return _nested_list(self.servers, "server")


class Tag(Resource):
    name: str
    description: str | None = None
    servers: dict[str, Any] | None = None

    @property
    def server_uuids(self) -> list[str]:
        return _nested_list(self.servers, "server")


class FirewallRule(Resource):
    position: Number | None = None
    direction: str | None = None
    action: str | None = None
    family: str | None = None
    protocol: str | None = None


class IPAddress(Resource):
    address: str
    access: str | None = None
    family: str | None = None
    server: str | None = None
    ptr_record: str | None = None


class Plan(Resource):
    name: str
    core_number: Number | None = None
    memory_amount: Number | None = None
    storage_size: Number | None = None
    storage_tier: str | None = None


class ServerSize(Resource):
    core_number: Number
    memory_amount: Number


class Account(Resource):
    username: str | None = None
    credits: Number | None = None


ResourceT = TypeVar("ResourceT", bound=Resource)


def parse_resource(model: type[ResourceT], data: Any) -> ResourceT:
    """Build a snapshot, reporting shape mismatches as ParseError."""
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise ParseError(
            f"Unexpected {model.__name__.lower()} data in response: {e.error_count()} error(s)",
            context={
                "resource": model.__name__,
                "fields": [".".join(str(part) for part in err["loc"]) for err in e.errors()],
            },
        ) from e


def parse_resources(model: type[ResourceT], items: Any) -> list[ResourceT]:
    """Build an ordered list of snapshots from a collection payload."""
    if items is None:
        return []
    if not isinstance(items, list):
        raise ParseError(
            f"Expected a list of {model.__name__.lower()} records",
            context={"resource": model.__name__, "type": type(items).__name__},
        )
    return [parse_resource(model, item) for item in items]
