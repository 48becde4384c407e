from __future__ import annotations

import pytest

from proxmox_mcp.errors import UpstreamError
from proxmox_mcp.server import FailureMode
from proxmox_mcp.tools import ListResourcesTool, NodeStatusTool
from tests.conftest import LXC_PATH, QEMU_PATH, STATUS_PATH

pytestmark = pytest.mark.anyio


async def test_all_lists_containers_then_vms_tagged(client, upstream):
    upstream.routes[LXC_PATH] = [{"id": 100}]
    upstream.routes[QEMU_PATH] = [{"id": 200}]

    result = await ListResourcesTool(client).handle({"type": "all"})

    assert result == [{"id": 100, "type": "lxc"}, {"id": 200, "type": "qemu"}]


async def test_missing_type_means_all(client, upstream):
    upstream.routes[LXC_PATH] = [{"vmid": 101, "name": "dns"}]
    upstream.routes[QEMU_PATH] = [{"vmid": 201, "name": "web"}, {"vmid": 202, "name": "db"}]

    result = await ListResourcesTool(client).handle({})

    assert [r["vmid"] for r in result] == [101, 201, 202]
    assert [r["type"] for r in result] == ["lxc", "qemu", "qemu"]


async def test_type_tag_overrides_upstream_field(client, upstream):
    upstream.routes[QEMU_PATH] = [{"vmid": 300, "type": "something-else"}]

    result = await ListResourcesTool(client).handle({"type": "qemu"})

    assert result == [{"vmid": 300, "type": "qemu"}]


async def test_both_categories_failing_yields_empty_list(client, upstream):
    upstream.fail(LXC_PATH)
    upstream.refuse(QEMU_PATH)

    assert await ListResourcesTool(client).handle({"type": "all"}) == []
    assert upstream.calls == [LXC_PATH, QEMU_PATH]


async def test_lxc_failure_does_not_touch_qemu(client, upstream):
    upstream.fail(LXC_PATH)
    upstream.routes[QEMU_PATH] = [{"id": 200}]

    assert await ListResourcesTool(client).handle({"type": "lxc"}) == []
    assert upstream.calls == [LXC_PATH]


async def test_one_category_failing_keeps_the_other(client, upstream, caplog):
    upstream.fail(LXC_PATH, status=500)
    upstream.routes[QEMU_PATH] = [{"id": 200}]

    with caplog.at_level("ERROR"):
        result = await ListResourcesTool(client).handle({"type": "all"})

    assert result == [{"id": 200, "type": "qemu"}]
    assert "skipping lxc listing" in caplog.text


async def test_malformed_listing_counts_as_failure(client, upstream):
    upstream.routes[LXC_PATH] = {"not": "a list"}
    upstream.routes[QEMU_PATH] = [{"id": 200}, "garbage"]

    assert await ListResourcesTool(client).handle({"type": "all"}) == []


async def test_node_status_passes_record_through(client, upstream):
    status = {"uptime": 3600, "cpu": 0.05, "memory": {"total": 8, "used": 3}}
    upstream.routes[STATUS_PATH] = status

    assert await NodeStatusTool(client).handle({}) == status


async def test_node_status_failure_propagates(client, upstream):
    upstream.fail(STATUS_PATH, status=502)

    with pytest.raises(UpstreamError):
        await NodeStatusTool(client).handle({})


def test_failure_modes():
    assert ListResourcesTool.failure_mode is FailureMode.TOLERANT
    assert NodeStatusTool.failure_mode is FailureMode.STRICT


def test_schemas(client):
    assert ListResourcesTool(client).get_schema() == {
        "type": "object",
        "properties": {
            "type": {
                "type": "string",
                "enum": ["all", "qemu", "lxc"],
                "description": "Filter by type",
            },
        },
    }
    assert NodeStatusTool(client).get_schema() == {"type": "object", "properties": {}}
