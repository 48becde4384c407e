"""
Tool registry and MCP protocol dispatcher.

The dispatcher answers JSON-RPC messages against a ToolRegistry:
1. "initialize" / "ping" → handshake and liveness
2. "tools/list"         → registered tool descriptors
3. "tools/call"         → validated arguments → handler → text content

To add a tool:

    from proxmox_mcp.server import ToolHandler, FailureMode

    class ClusterTasks(ToolHandler):
        name = "list-tasks"
        description = "Recent cluster tasks"
        parameters = {
            "limit": {"type": "integer", "description": "Max tasks"},
        }
        failure_mode = FailureMode.STRICT

        def __init__(self, client):
            self.client = client

        async def handle(self, params: dict) -> list:
            return await self.attempt("tasks", lambda: self.client.get("/cluster/tasks"))

    registry = ToolRegistry()
    registry.register(ClusterTasks(client))
"""

from __future__ import annotations

import enum
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from proxmox_mcp.errors import (
    GatewayError,
    InvalidArgumentsError,
    MethodNotFoundError,
    ToolExecutionError,
    UnknownToolError,
    UpstreamError,
    INTERNAL_ERROR,
)
from proxmox_mcp.transport import JsonRpcRequest, JsonRpcResponse

logger = logging.getLogger(__name__)

DEFAULT_PROTOCOL_VERSION = "2024-11-05"

_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "object": (dict,),
    "array": (list,),
    "null": (type(None),),
}


class FailureMode(enum.Enum):
    """How a handler treats a failed upstream fetch."""

    TOLERANT = "tolerant"  # log, contribute nothing, keep going
    STRICT = "strict"  # the whole tool call fails


@dataclass(frozen=True)
class ToolDescriptor:
    """Name, description and input schema advertised for one tool."""
    name: str
    description: str
    input_schema: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass(frozen=True)
class ToolInvocation:
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


class ToolHandler(ABC):
    """
    Base class for a tool implementation.

    Subclasses define what a tool does. The dispatcher handles the protocol.
    """

    # Subclasses must set these
    name: str = ""
    description: str = ""
    parameters: dict[str, dict] = {}
    required: tuple[str, ...] = ()
    failure_mode: FailureMode = FailureMode.STRICT

    @abstractmethod
    async def handle(self, params: dict[str, Any]) -> Any:
        """
        Execute the tool with the given parameters.

        Args:
            params: Validated dict of parameter name → value

        Returns:
            The tool result (will be JSON-serialized in the response)
        """
        ...

    async def attempt(self, label: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """
        Run one upstream fetch under this handler's failure mode.

        In tolerant mode an UpstreamError is logged and None is returned;
        in strict mode it propagates.
        """
        if self.failure_mode is FailureMode.STRICT:
            return await fetch()

        try:
            return await fetch()
        except UpstreamError as e:
            logger.error(f"[{self.name}] skipping {label}: {e}")
            return None

    def get_schema(self) -> dict[str, Any]:
        """Return the JSON schema of this tool's input."""
        schema: dict[str, Any] = {"type": "object", "properties": self.parameters}
        if self.required:
            schema["required"] = list(self.required)
        return schema

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(self.name, self.description, self.get_schema())


def validate_arguments(descriptor: ToolDescriptor, arguments: Any) -> dict[str, Any]:
    """
    Check arguments against a descriptor's schema, best effort.

    Missing arguments become {}. Fields the schema does not declare, and
    optional fields sent as null, are dropped. Declared fields are checked
    for JSON type and enum membership.

    Raises:
        InvalidArgumentsError: wrong container type, missing required
            field, wrong value type, or value outside the enum.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise InvalidArgumentsError(descriptor.name, "arguments must be an object")

    properties = descriptor.input_schema.get("properties", {})
    required = descriptor.input_schema.get("required", [])
    for key in required:
        if key not in arguments:
            raise InvalidArgumentsError(descriptor.name, f"missing required field '{key}'")

    cleaned: dict[str, Any] = {}
    for key, value in arguments.items():
        prop = properties.get(key)
        if prop is None:
            logger.debug(f"[{descriptor.name}] ignoring unknown argument '{key}'")
            continue

        if value is None and key not in required:
            # null for an optional field means "use the default"
            continue

        expected = prop.get("type")
        if expected in _JSON_TYPES:
            # bool is an int subclass; keep it out of numeric fields
            is_bool = isinstance(value, bool)
            if not isinstance(value, _JSON_TYPES[expected]) or (is_bool and expected != "boolean"):
                raise InvalidArgumentsError(
                    descriptor.name, f"'{key}' must be of type {expected}"
                )

        if "enum" in prop and value not in prop["enum"]:
            raise InvalidArgumentsError(
                descriptor.name, f"'{key}' must be one of {prop['enum']}, got {value!r}"
            )

        cleaned[key] = value

    return cleaned


class ToolRegistry:
    """
    Static mapping of tool name → handler.

    Handlers are checked when registered, so a malformed declaration fails
    at startup rather than on the first call.
    """

    def __init__(self, handlers: list[ToolHandler] | None = None):
        self._handlers: dict[str, ToolHandler] = {}
        self._descriptors: dict[str, ToolDescriptor] = {}
        for handler in handlers or []:
            self.register(handler)

    def register(self, handler: ToolHandler) -> None:
        """Register a tool handler."""
        if not handler.name:
            raise ValueError(f"ToolHandler {handler.__class__.__name__} has no name")
        if handler.name in self._handlers:
            raise ValueError(f"Tool already registered: {handler.name}")
        if not isinstance(handler.failure_mode, FailureMode):
            raise ValueError(f"Tool {handler.name} has an invalid failure_mode")

        for pname, pinfo in handler.parameters.items():
            ptype = pinfo.get("type")
            if ptype is not None and ptype not in _JSON_TYPES:
                raise ValueError(f"Tool {handler.name}: parameter '{pname}' has unknown type {ptype!r}")
            if "enum" in pinfo and not pinfo["enum"]:
                raise ValueError(f"Tool {handler.name}: parameter '{pname}' has an empty enum")
        missing = [r for r in handler.required if r not in handler.parameters]
        if missing:
            raise ValueError(f"Tool {handler.name}: required fields not declared: {missing}")

        self._handlers[handler.name] = handler
        self._descriptors[handler.name] = handler.descriptor()
        logger.info(f"Registered tool: {handler.name} ({handler.failure_mode.value})")

    def get(self, name: str) -> ToolHandler | None:
        return self._handlers.get(name)

    def descriptor(self, name: str) -> ToolDescriptor | None:
        return self._descriptors.get(name)

    def descriptors(self) -> list[ToolDescriptor]:
        return list(self._descriptors.values())

    def names(self) -> list[str]:
        return list(self._handlers.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)


class ProtocolDispatcher:
    """
    MCP request handler bound to a ToolRegistry.

    Protocol:
    - One JSON-RPC message in, at most one response out
    - Supports methods:
        - "initialize" → server info and capabilities
        - "ping"       → empty result
        - "tools/list" → registered tool descriptors
        - "tools/call" → calls a tool by name with arguments
    - Notifications (no id) are accepted and never answered
    """

    def __init__(self, registry: ToolRegistry, server_name: str = "proxmox-mcp", server_version: str = "1.0.0"):
        self.registry = registry
        self.server_name = server_name
        self.server_version = server_version

    def list_tools(self) -> list[dict[str, Any]]:
        return [d.to_dict() for d in self.registry.descriptors()]

    async def call_tool(self, name: str, arguments: Any = None) -> dict[str, Any]:
        """
        Run one tool and wrap its result as MCP text content.

        Raises:
            UnknownToolError: the name is not registered (no handler runs).
            InvalidArgumentsError: arguments do not fit the schema.
            Exception: whatever the handler raised.
        """
        logger.info(f"Tool call: {name} {json.dumps(arguments, default=str)}")

        if not isinstance(name, str):
            raise UnknownToolError(repr(name), self.registry.names())

        handler = self.registry.get(name)
        if handler is None:
            raise UnknownToolError(name, self.registry.names())

        invocation = ToolInvocation(name, validate_arguments(self.registry.descriptor(name), arguments))
        try:
            result = await handler.handle(invocation.arguments)
        except Exception as e:
            logger.error(f"Tool error ({name}): {e}")
            raise ToolExecutionError(name, e) from e

        return {
            "content": [{
                "type": "text",
                "text": json.dumps(result, indent=2),
            }]
        }

    async def handle(self, message: Any) -> JsonRpcResponse | None:
        """Route one decoded JSON-RPC message; None means no reply is due."""
        if isinstance(message, dict) and "method" not in message and ("result" in message or "error" in message):
            # A client-side response; this server never sends requests.
            return None

        request_id = message.get("id") if isinstance(message, dict) else None

        try:
            request = JsonRpcRequest.from_dict(message)
        except GatewayError as e:
            logger.warning(f"Rejected message: {e}")
            return JsonRpcResponse(request_id, error=e.to_error())

        if request.is_notification:
            logger.debug(f"Notification: {request.method}")
            return None

        try:
            result = await self._dispatch(request.method, request.params)
            return JsonRpcResponse(request.id, result=result)
        except GatewayError as e:
            logger.error(f"{request.method} failed: {e}")
            return JsonRpcResponse(request.id, error=e.to_error())
        except Exception as e:
            logger.exception(f"{request.method} failed unexpectedly")
            return JsonRpcResponse(request.id, error={
                "code": INTERNAL_ERROR,
                "message": f"Internal error: {e}",
            })

    async def _dispatch(self, method: str, params: dict) -> Any:
        """Route a method call to the appropriate handler."""

        if method == "initialize":
            return {
                "protocolVersion": params.get("protocolVersion") or DEFAULT_PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": self.server_name, "version": self.server_version},
            }

        if method == "ping":
            return {}

        if method == "tools/list":
            return {"tools": self.list_tools()}

        if method == "tools/call":
            return await self.call_tool(params.get("name", ""), params.get("arguments"))

        raise MethodNotFoundError(method)
