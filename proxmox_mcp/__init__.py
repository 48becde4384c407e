"""
Proxmox MCP gateway — Proxmox VE queries as MCP tools over SSE.

Architecture:
    ┌──────────────┐   GET /sse (events)   ┌──────────────┐   HTTPS    ┌──────────────┐
    │  MCP client  │ ◀──────────────────── │   Gateway    │ ─────────▶ │  Proxmox VE  │
    │   (agent)    │ ────────────────────▶ │  (Starlette) │  api2/json │     API      │
    └──────────────┘   POST /message       └──────────────┘            └──────────────┘

One client session at a time. The SessionManager holds it; a new stream
supersedes the old one. The ProtocolDispatcher answers JSON-RPC messages
from a static ToolRegistry, whose handlers call the ProxmoxClient.

The LangChain bridge exposes the same tools to in-process agents.
"""

SERVICE_NAME = "proxmox-mcp"
__version__ = "1.0.0"

from proxmox_mcp.config import Settings
from proxmox_mcp.manager import Session, SessionManager
from proxmox_mcp.server import FailureMode, ProtocolDispatcher, ToolHandler, ToolRegistry
from proxmox_mcp.upstream import ProxmoxClient

# Bridge requires langchain — lazy import to keep the server standalone
def mcp_to_langchain_tool(*args, **kwargs):
    from proxmox_mcp.bridge import mcp_to_langchain_tool as _impl
    return _impl(*args, **kwargs)

def registry_to_langchain_tools(*args, **kwargs):
    from proxmox_mcp.bridge import registry_to_langchain_tools as _impl
    return _impl(*args, **kwargs)

__all__ = [
    "FailureMode",
    "ProtocolDispatcher",
    "ProxmoxClient",
    "SERVICE_NAME",
    "Session",
    "SessionManager",
    "Settings",
    "ToolHandler",
    "ToolRegistry",
    "mcp_to_langchain_tool",
    "registry_to_langchain_tools",
]
