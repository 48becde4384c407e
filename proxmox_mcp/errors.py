"""
Gateway exception hierarchy.

Each error carries the JSON-RPC error code it maps to, so the dispatcher
can turn any GatewayError into an error object without a lookup table.
"""

from __future__ import annotations

from typing import Any

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class GatewayError(Exception):
    """Base class for errors raised by the gateway."""

    code: int = INTERNAL_ERROR

    def to_error(self) -> dict[str, Any]:
        """Return the JSON-RPC error object for this exception."""
        return {"code": self.code, "message": str(self)}


class UnknownToolError(GatewayError):
    """A tools/call named a tool that is not in the registry."""

    code = INVALID_PARAMS

    def __init__(self, name: str, available: list[str] | None = None):
        self.name = name
        self.available = available or []
        super().__init__(f"Unknown tool: '{name}'. Available: {self.available}")

    def to_error(self) -> dict[str, Any]:
        error = super().to_error()
        error["data"] = {"tool": self.name}
        return error


class InvalidArgumentsError(GatewayError):
    """Tool arguments do not match the tool's input schema."""

    code = INVALID_PARAMS

    def __init__(self, tool: str, message: str):
        self.tool = tool
        super().__init__(f"Invalid arguments for '{tool}': {message}")

    def to_error(self) -> dict[str, Any]:
        error = super().to_error()
        error["data"] = {"tool": self.tool}
        return error


class MethodNotFoundError(GatewayError):
    code = METHOD_NOT_FOUND

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Unknown method: '{method}'")


class ParseError(GatewayError):
    """A message body that is not valid JSON."""

    code = PARSE_ERROR


class InvalidRequestError(GatewayError):
    code = INVALID_REQUEST


class UpstreamError(GatewayError):
    """A call against the Proxmox API failed (transport, status or payload)."""

    def __init__(self, message: str, path: str = "", status: int | None = None):
        self.path = path
        self.status = status
        super().__init__(message)


class NoActiveSessionError(GatewayError):
    """A client message arrived while no streaming session is installed."""

    def __init__(self, message: str = "No active connection"):
        super().__init__(message)


class ListenerSetupError(GatewayError):
    """TLS material for the secure listener is missing or unusable."""


class ToolExecutionError(GatewayError):
    """A tool handler raised; carries the tool name and the original message."""

    def __init__(self, tool: str, cause: BaseException):
        self.tool = tool
        super().__init__(f"Tool '{tool}' failed: {cause}")

    def to_error(self) -> dict[str, Any]:
        error = super().to_error()
        error["data"] = {"tool": self.tool}
        return error
