"""
Transport layer for MCP messages.

Implements:
  - JsonRpcRequest / JsonRpcResponse: JSON-RPC 2.0 message types
  - SseTransport: server→client half of the MCP SSE transport

Client→server messages arrive as HTTP POSTs on the message endpoint; the
replies travel back as ``message`` events on the open event stream.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

from proxmox_mcp.errors import InvalidRequestError

logger = logging.getLogger(__name__)

DEFAULT_PING_INTERVAL = 15.0


@dataclass
class JsonRpcRequest:
    """JSON-RPC 2.0 request. A request without an id is a notification."""
    method: str
    params: dict[str, Any] = field(default_factory=dict)
    id: int | str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "JsonRpcRequest":
        if not isinstance(data, dict):
            raise InvalidRequestError("Message must be a JSON object")

        method = data.get("method")
        if not isinstance(method, str) or not method:
            raise InvalidRequestError("Message has no 'method'")

        params = data.get("params")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise InvalidRequestError("'params' must be an object")

        return cls(method=method, params=params, id=data.get("id"))

    @property
    def is_notification(self) -> bool:
        return self.id is None


@dataclass
class JsonRpcResponse:
    """JSON-RPC 2.0 response."""
    id: int | str | None
    result: Any = None
    error: dict | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        message: dict[str, Any] = {"jsonrpc": "2.0", "id": self.id}
        if self.error is not None:
            message["error"] = self.error
        else:
            message["result"] = self.result
        return message

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def format_event(event: str, data: str) -> str:
    """Encode one Server-Sent Event frame."""
    lines = "".join(f"data: {line}\n" for line in data.splitlines() or [""])
    return f"event: {event}\n{lines}\n"


class Transport(ABC):
    """Abstract server→client channel for one session."""

    @abstractmethod
    async def send(self, message: JsonRpcResponse) -> None:
        """Deliver a message to the client. Must not raise once closed."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Detach the transport. Later sends become no-ops."""
        ...

    @abstractmethod
    def is_alive(self) -> bool:
        """Check if the transport still reaches a client."""
        ...


class SseTransport(Transport):
    """
    Server-Sent Events stream for one client.

    Outgoing messages are queued and drained by ``events()``, which the
    HTTP layer streams as the response body. The first event names the
    endpoint the client must POST its messages to.
    """

    def __init__(self, endpoint: str, ping_interval: float = DEFAULT_PING_INTERVAL):
        """
        Args:
            endpoint: Path of the message endpoint, e.g. "/message".
            ping_interval: Seconds of silence before a keep-alive comment.
        """
        self.endpoint = endpoint
        self.ping_interval = ping_interval
        self.session_id = uuid.uuid4().hex
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._closed = False

    @property
    def endpoint_url(self) -> str:
        return f"{self.endpoint}?sessionId={self.session_id}"

    async def send(self, message: JsonRpcResponse) -> None:
        if self._closed:
            logger.debug(f"Dropping message {message.id!r} for detached session {self.session_id}")
            return
        await self._queue.put(format_event("message", message.to_json()))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    def is_alive(self) -> bool:
        return not self._closed

    async def events(self) -> AsyncIterator[str]:
        """Yield SSE frames until the transport is closed."""
        yield format_event("endpoint", self.endpoint_url)

        while True:
            try:
                frame = await asyncio.wait_for(self._queue.get(), timeout=self.ping_interval)
            except asyncio.TimeoutError:
                yield ": ping\n\n"
                continue
            if frame is None:
                return
            yield frame
