"""
get-node-status — status record of the configured node.

Unlike list-resources there is no partial answer here: if the upstream
call fails, the tool call fails.
"""

from __future__ import annotations

from typing import Any

from proxmox_mcp.server import FailureMode
from proxmox_mcp.tools.base import ProxmoxTool


class NodeStatusTool(ProxmoxTool):
    name = "get-node-status"
    description = "Get node status"
    parameters = {}
    failure_mode = FailureMode.STRICT

    async def handle(self, params: dict) -> Any:
        return await self.attempt("node status", self.client.node_status)
