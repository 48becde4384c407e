from __future__ import annotations

from typing import Any

import httpx
import pytest

from proxmox_mcp.tools import build_registry
from proxmox_mcp.upstream import ProxmoxClient

BASE = "/api2/json"
LXC_PATH = f"{BASE}/nodes/pve/lxc"
QEMU_PATH = f"{BASE}/nodes/pve/qemu"
STATUS_PATH = f"{BASE}/nodes/pve/status"


class FakeProxmox:
    """
    Stand-in for the Proxmox API behind an httpx.MockTransport.

    routes maps a request path to either the ``data`` payload to return,
    an httpx.Response, or a callable taking the request.
    """

    def __init__(self):
        self.routes: dict[str, Any] = {}
        self.calls: list[str] = []
        self.requests: list[httpx.Request] = []

    def fail(self, path: str, status: int = 500) -> None:
        self.routes[path] = httpx.Response(status, json={"data": None})

    def refuse(self, path: str) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)
        self.routes[path] = _raise

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.path)
        self.requests.append(request)

        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"data": None})
        if isinstance(route, httpx.Response):
            return route
        if callable(route):
            return route(request)
        return httpx.Response(200, json={"data": route})


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def upstream() -> FakeProxmox:
    return FakeProxmox()


@pytest.fixture
def client(upstream: FakeProxmox) -> ProxmoxClient:
    return ProxmoxClient(
        "https://pve.test:8006",
        "root@pam!mcp=secret",
        transport=httpx.MockTransport(upstream.handler),
    )


@pytest.fixture
def registry(client: ProxmoxClient):
    return build_registry(client)
