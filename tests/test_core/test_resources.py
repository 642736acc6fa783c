"""
Tests for resource snapshot parsing.
"""

import pytest

from fixtures.mock_responses import MOCK_SERVERS, MOCK_TAGS, SERVER_UUID, server_body, storage_body
from upcloud_api.core.exceptions import ParseError
from upcloud_api.core.resources import (
    IPAddress,
    Server,
    ServerSize,
    Storage,
    Tag,
    parse_resource,
    parse_resources,
)


class TestParseResource:
    def test_server_fields(self):
        server = parse_resource(Server, server_body("started")["server"])

        assert server.uuid == SERVER_UUID
        assert server.state == "started"
        assert server.tag_names == ["PROD"]
        assert [ip["address"] for ip in server.ip_address_list] == ["10.0.0.1", "94.237.0.1"]
        assert server.storage_device_list[0]["address"] == "virtio:0"

    def test_unknown_fields_are_kept(self):
        server = parse_resource(Server, {"uuid": "abc", "state": "started", "license": 0})

        assert server.raw() == {"uuid": "abc", "state": "started", "license": 0}

    def test_snapshot_is_immutable(self):
        server = parse_resource(Server, {"uuid": "abc", "state": "started"})
        with pytest.raises(Exception):
            server.state = "stopped"

    def test_missing_required_field(self):
        with pytest.raises(ParseError) as exc_info:
            parse_resource(IPAddress, {"family": "IPv4"})
        assert exc_info.value.context["fields"] == ["address"]

    def test_not_an_object(self):
        with pytest.raises(ParseError):
            parse_resource(Storage, "online")

    def test_numbers_as_strings(self):
        size = parse_resource(ServerSize, {"core_number": "1", "memory_amount": "512"})
        assert size.core_number == "1"

    def test_storage_servers(self):
        storage = parse_resource(Storage, storage_body("online")["storage"])
        assert storage.server_uuids == [SERVER_UUID]

    def test_tag_without_servers(self):
        tag = parse_resource(Tag, {"name": "DEV"})
        assert tag.server_uuids == []


class TestParseResources:
    def test_list_servers_decoding_is_ordered_and_stable(self):
        items = MOCK_SERVERS["servers"]["server"]

        first = parse_resources(Server, items)
        second = parse_resources(Server, items)

        assert [s.uuid for s in first] == [item["uuid"] for item in items]
        assert first == second

    def test_none_is_empty(self):
        assert parse_resources(Tag, None) == []

    def test_tags(self):
        tags = parse_resources(Tag, MOCK_TAGS["tags"]["tag"])
        assert [t.name for t in tags] == ["PROD", "DEV"]

    def test_not_a_list(self):
        with pytest.raises(ParseError):
            parse_resources(Server, {"uuid": "abc"})
