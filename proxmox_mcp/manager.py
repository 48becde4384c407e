"""
Session Manager — owns the one live streaming session.

The gateway serves a single client at a time. Opening a new stream
supersedes whatever session was installed before it:

    manager = SessionManager()

    session = manager.open(SseTransport("/message"))   # Idle → Active
    worker = asyncio.create_task(session.serve(dispatcher))

    manager.require(session_id).deliver(message)       # POST /message

    manager.close(session)                             # Active → Idle

A superseded session's transport is detached: its stream ends, anything
it still tries to send is dropped, and its worker stops after the message
it is currently handling.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from proxmox_mcp.errors import NoActiveSessionError
from proxmox_mcp.server import ProtocolDispatcher
from proxmox_mcp.transport import SseTransport

logger = logging.getLogger(__name__)

_STOP = object()


class Session:
    """One streaming connection plus its inbound message queue."""

    def __init__(self, transport: SseTransport):
        self.transport = transport
        self.id = transport.session_id
        self.created_at = datetime.now(timezone.utc)
        self._inbox: asyncio.Queue[Any] = asyncio.Queue()

    def deliver(self, message: Any) -> None:
        """Queue one decoded client message for the worker."""
        self._inbox.put_nowait(message)

    def pending(self) -> int:
        return self._inbox.qsize()

    def detach(self) -> None:
        """Cut the session loose: end its stream and stop its worker."""
        self.transport.close()
        self._inbox.put_nowait(_STOP)

    @property
    def detached(self) -> bool:
        return not self.transport.is_alive()

    async def serve(self, dispatcher: ProtocolDispatcher) -> None:
        """
        Handle queued messages one at a time, in arrival order.

        Runs until the session is detached. A message already being handled
        when that happens runs to completion; its reply goes to the detached
        transport and is dropped.
        """
        while True:
            message = await self._inbox.get()
            if message is _STOP:
                break

            response = await dispatcher.handle(message)
            if response is not None:
                await self.transport.send(response)

            if self.detached:
                break

        logger.debug(f"Session {self.id} worker stopped")


class SessionManager:
    """Holds zero or one active Session."""

    def __init__(self):
        self._active: Session | None = None

    @property
    def active(self) -> Session | None:
        return self._active

    def open(self, transport: SseTransport) -> Session:
        """Install a new session, superseding the current one if any."""
        previous = self._active
        if previous is not None:
            logger.info(f"Closing existing connection {previous.id}")
            previous.detach()

        session = Session(transport)
        self._active = session
        logger.info(f"Session {session.id} opened")
        return session

    def close(self, session: Session) -> None:
        """Remove a session. A session that was already superseded is ignored."""
        if session is not self._active:
            logger.debug(f"Session {session.id} already superseded")
            return

        session.detach()
        self._active = None
        logger.info(f"Session {session.id} closed")

    def require(self, session_id: str | None = None) -> Session | None:
        """
        Resolve the session a client message is meant for.

        Args:
            session_id: Session id the client was given, if it sent one.

        Returns:
            The active session, or None when session_id names a session
            that has since been superseded.

        Raises:
            NoActiveSessionError: no session is installed.
        """
        session = self._active
        if session is None:
            raise NoActiveSessionError()
        if session_id and session_id != session.id:
            return None
        return session
