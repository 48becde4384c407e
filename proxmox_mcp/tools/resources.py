"""
list-resources — containers and virtual machines on the node.

Each category is fetched on its own. A category whose fetch fails is
logged and left out; the call still succeeds with whatever survived:

    [{"vmid": 100, "name": "dns", ..., "type": "lxc"},
     {"vmid": 200, "name": "web", ..., "type": "qemu"}]
"""

from __future__ import annotations

from typing import Any

from proxmox_mcp.errors import UpstreamError
from proxmox_mcp.server import FailureMode
from proxmox_mcp.tools.base import ProxmoxTool

LXC = "lxc"
QEMU = "qemu"
ALL = "all"


class ListResourcesTool(ProxmoxTool):
    name = "list-resources"
    description = "List all VMs and containers"
    parameters = {
        "type": {
            "type": "string",
            "enum": [ALL, QEMU, LXC],
            "description": "Filter by type",
        },
    }
    failure_mode = FailureMode.TOLERANT

    async def handle(self, params: dict) -> list[dict[str, Any]]:
        kind = params.get("type") or ALL
        resources: list[dict[str, Any]] = []

        # lxc before qemu
        if kind in (ALL, LXC):
            resources.extend(await self._collect(LXC, self.client.list_lxc))
        if kind in (ALL, QEMU):
            resources.extend(await self._collect(QEMU, self.client.list_qemu))

        return resources

    async def _collect(self, category: str, fetch) -> list[dict[str, Any]]:
        """Fetch one category and tag its records; [] if the fetch was skipped."""

        async def tagged() -> list[dict[str, Any]]:
            records = await fetch()
            if not isinstance(records, list):
                raise UpstreamError(f"{category} listing is not a list: {type(records).__name__}")
            if not all(isinstance(record, dict) for record in records):
                raise UpstreamError(f"{category} listing contains non-object records")
            return [{**record, "type": category} for record in records]

        return await self.attempt(f"{category} listing", tagged) or []
