"""
Async client for the Proxmox VE management API.

All calls go to ``<host>/api2/json`` with a static API token:

    client = ProxmoxClient("https://pve.lan:8006", "root@pam!mcp=secret")
    containers = await client.list_lxc()
    status = await client.node_status()
    await client.aclose()

Each call either returns the ``data`` member of the response envelope or
raises UpstreamError once. There are no retries.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from proxmox_mcp.config import Settings
from proxmox_mcp.errors import UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class ProxmoxClient:
    """
    Thin wrapper around one httpx.AsyncClient bound to the API base path.

    TLS verification is off unless verify_tls=True: Proxmox installs
    default to a self-signed certificate.
    """

    def __init__(
        self,
        host: str,
        token: str,
        node: str = "pve",
        timeout: float = DEFAULT_TIMEOUT,
        verify_tls: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            host: Scheme + host (+ port) of the Proxmox server.
            token: API token in ``user@realm!tokenid=secret`` form.
            node: Node name used by the node-scoped calls.
            timeout: Per-request timeout in seconds.
            verify_tls: Validate the server certificate.
            transport: Optional httpx transport (tests pass a MockTransport).
        """
        self.base_url = f"{host.rstrip('/')}/api2/json"
        self.node = node
        self.verify_tls = verify_tls

        if not verify_tls:
            logger.warning(f"TLS certificate verification is disabled for {self.base_url}")

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"PVEAPIToken={token}",
            },
            timeout=timeout,
            verify=verify_tls,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ProxmoxClient":
        return cls(
            host=settings.proxmox_host,
            token=settings.proxmox_token,
            node=settings.proxmox_node,
            timeout=settings.proxmox_timeout,
            verify_tls=settings.proxmox_verify_tls,
            transport=transport,
        )

    async def get(self, path: str) -> Any:
        """
        GET a path below /api2/json and return the envelope's ``data``.

        Raises:
            UpstreamError: on connection errors, timeouts, non-2xx
                responses, or a body that is not a Proxmox JSON envelope.
        """
        try:
            response = await self._client.get(path)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise UpstreamError(
                f"GET {path} returned HTTP {status}", path=path, status=status
            ) from e
        except httpx.TimeoutException as e:
            raise UpstreamError(f"GET {path} timed out", path=path) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"GET {path} failed: {e}", path=path) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(
                f"GET {path} returned a non-JSON body", path=path,
                status=response.status_code,
            ) from e

        if not isinstance(payload, dict) or "data" not in payload:
            raise UpstreamError(
                f"GET {path} returned no 'data' member", path=path,
                status=response.status_code,
            )

        logger.debug(f"GET {path} -> {response.status_code}")
        return payload["data"]

    async def list_lxc(self) -> Any:
        """Containers on the configured node."""
        return await self.get(f"/nodes/{self.node}/lxc")

    async def list_qemu(self) -> Any:
        """Virtual machines on the configured node."""
        return await self.get(f"/nodes/{self.node}/qemu")

    async def node_status(self) -> Any:
        return await self.get(f"/nodes/{self.node}/status")

    async def aclose(self) -> None:
        await self._client.aclose()
