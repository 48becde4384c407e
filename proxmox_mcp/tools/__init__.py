"""
Tools exposed by the gateway.

    list-resources   — containers + VMs, best effort per category
    get-node-status  — node status, fails if the upstream call fails
"""

from proxmox_mcp.server import ToolRegistry
from proxmox_mcp.tools.base import ProxmoxTool
from proxmox_mcp.tools.node import NodeStatusTool
from proxmox_mcp.tools.resources import ListResourcesTool
from proxmox_mcp.upstream import ProxmoxClient


def build_registry(client: ProxmoxClient) -> ToolRegistry:
    """Registry with every Proxmox tool bound to one upstream client."""
    return ToolRegistry([
        ListResourcesTool(client),
        NodeStatusTool(client),
    ])


__all__ = [
    "ListResourcesTool",
    "NodeStatusTool",
    "ProxmoxTool",
    "build_registry",
]
