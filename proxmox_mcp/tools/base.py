"""Shared base for tools that query the Proxmox API."""

from __future__ import annotations

from proxmox_mcp.server import ToolHandler
from proxmox_mcp.upstream import ProxmoxClient


class ProxmoxTool(ToolHandler):
    """A ToolHandler holding the upstream client it fetches through."""

    def __init__(self, client: ProxmoxClient):
        self.client = client
