from __future__ import annotations

import httpx
import pytest

from proxmox_mcp.config import Settings
from proxmox_mcp.errors import UpstreamError
from proxmox_mcp.upstream import ProxmoxClient
from tests.conftest import LXC_PATH, STATUS_PATH

pytestmark = pytest.mark.anyio


async def test_get_returns_envelope_data(client, upstream):
    upstream.routes[STATUS_PATH] = {"uptime": 42}

    assert await client.get("/nodes/pve/status") == {"uptime": 42}
    assert upstream.calls == [STATUS_PATH]


async def test_requests_carry_token_and_base_path(client, upstream):
    upstream.routes[LXC_PATH] = []

    await client.list_lxc()

    request = upstream.requests[0]
    assert request.headers["Authorization"] == "PVEAPIToken=root@pam!mcp=secret"
    assert str(request.url) == "https://pve.test:8006/api2/json/nodes/pve/lxc"


async def test_http_error_status_raises(client, upstream):
    upstream.fail(STATUS_PATH, status=401)

    with pytest.raises(UpstreamError) as exc_info:
        await client.node_status()

    assert exc_info.value.status == 401
    assert exc_info.value.path == "/nodes/pve/status"
    assert "401" in str(exc_info.value)


async def test_connection_error_raises(client, upstream):
    upstream.refuse(STATUS_PATH)

    with pytest.raises(UpstreamError, match="failed"):
        await client.node_status()


async def test_timeout_raises(client, upstream):
    def slow(request):
        raise httpx.ReadTimeout("too slow", request=request)
    upstream.routes[STATUS_PATH] = slow

    with pytest.raises(UpstreamError, match="timed out"):
        await client.node_status()


async def test_non_json_body_raises(client, upstream):
    upstream.routes[STATUS_PATH] = httpx.Response(200, text="<html>proxy</html>")

    with pytest.raises(UpstreamError, match="non-JSON"):
        await client.node_status()


async def test_envelope_without_data_raises(client, upstream):
    upstream.routes[STATUS_PATH] = httpx.Response(200, json={"errors": {"node": "bad"}})

    with pytest.raises(UpstreamError, match="'data'"):
        await client.node_status()


async def test_failed_call_is_not_retried(client, upstream):
    upstream.fail(STATUS_PATH, status=503)

    with pytest.raises(UpstreamError):
        await client.node_status()

    assert upstream.calls == [STATUS_PATH]


def test_from_settings_uses_node_and_tls_choice():
    settings = Settings(proxmox_host="https://pve.lan:8006/", proxmox_node="node2", proxmox_verify_tls=True)

    client = ProxmoxClient.from_settings(settings)

    assert client.base_url == "https://pve.lan:8006/api2/json"
    assert client.node == "node2"
    assert client.verify_tls is True


def test_disabled_verification_is_logged(caplog):
    with caplog.at_level("WARNING"):
        ProxmoxClient("https://pve.lan:8006", "t")

    assert "verification is disabled" in caplog.text
