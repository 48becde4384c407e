"""
Bridge between the gateway's tools and LangChain.

Lets an in-process LangChain/LangGraph agent call the same handlers the
SSE clients reach, without going through HTTP. Calls still go through
ProtocolDispatcher.call_tool, so argument checks and failure modes apply.

Usage:
    from proxmox_mcp.bridge import mcp_to_langchain_tool, registry_to_langchain_tools

    # Single tool
    lc_tool = mcp_to_langchain_tool(registry, "get-node-status")

    # Every registered tool
    tools = registry_to_langchain_tools(registry)
"""

from __future__ import annotations

from typing import Any

from langchain_core.tools import StructuredTool

from proxmox_mcp.errors import UnknownToolError
from proxmox_mcp.server import ProtocolDispatcher, ToolDescriptor, ToolRegistry


def mcp_to_langchain_tool(
    registry: ToolRegistry,
    tool_name: str,
    description_override: str | None = None,
) -> StructuredTool:
    """
    Create a LangChain StructuredTool that wraps one registered tool.

    The returned tool is async-only. It returns the same pretty-printed
    JSON text an SSE client receives, or an error string if the call fails.

    Args:
        registry: Registry holding the tool
        tool_name: The tool name (as registered)
        description_override: Optional override for the tool description

    Returns:
        A LangChain StructuredTool that proxies calls to the handler.
    """
    descriptor = registry.descriptor(tool_name)
    if descriptor is None:
        raise UnknownToolError(tool_name, registry.names())

    dispatcher = ProtocolDispatcher(registry)

    async def _call_tool(**kwargs: Any) -> str:
        """Proxy call to the registered handler."""
        try:
            result = await dispatcher.call_tool(tool_name, kwargs)
            return result["content"][0]["text"]
        except Exception as e:
            return f"Error calling {tool_name}: {e}"

    return StructuredTool.from_function(
        coroutine=_call_tool,
        name=tool_name,
        description=description_override or descriptor.description,
        args_schema=descriptor.input_schema,
    )


def registry_to_langchain_tools(registry: ToolRegistry) -> list[StructuredTool]:
    """Wrap every registered tool, in registration order."""
    return [mcp_to_langchain_tool(registry, name) for name in registry.names()]


def describe_tool(descriptor: ToolDescriptor) -> str:
    """Generate prompt instructions from a tool descriptor."""
    params = descriptor.input_schema.get("properties", {})

    lines = [f"## Tool: {descriptor.name}", descriptor.description, ""]
    if params:
        lines.append("Parameters:")
        for pname, pinfo in params.items():
            ptype = pinfo.get("type", "any")
            pdesc = pinfo.get("description", "")
            choices = f" one of {pinfo['enum']}" if "enum" in pinfo else ""
            lines.append(f"  - {pname} ({ptype}): {pdesc}{choices}")
    else:
        lines.append("Parameters: none")

    return "\n".join(lines)
