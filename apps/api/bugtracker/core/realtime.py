"""
Real-time hub for project channels.

Connections subscribe to named channels (one per project, ``project-<id>``).
Services publish events from sync request handlers running in the threadpool;
delivery is scheduled on the event loop that owns the connections and is
fire-and-forget: per-connection sends are bounded by a timeout, and failed
connections are dropped from the registry.
"""

import asyncio
import concurrent.futures
import json
import logging
import threading
from typing import Any, Dict, Set
from uuid import UUID

from bugtracker.core import error_sink
from bugtracker.core.config import settings


logger = logging.getLogger(__name__)


class EventName:
    """Server -> client event names."""

    NOTIFICATION = "notification"
    TICKET_CREATED = "ticket-created"
    TICKET_UPDATED = "ticket-updated"
    TICKET_DELETED = "ticket-deleted"


def project_channel(project_id: UUID | str) -> str:
    """Channel name for a project's subscribers."""
    return f"project-{project_id}"


class RealtimeHub:
    """Registry of channel -> connections with best-effort broadcast."""

    def __init__(self, send_timeout: float | None = None):
        self._channels: Dict[str, Set[Any]] = {}
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        # Strong refs to in-flight broadcasts until they finish
        self._pending: Set[asyncio.Future] = set()
        self._send_timeout = (
            send_timeout
            if send_timeout is not None
            else settings.REALTIME_SEND_TIMEOUT_SECONDS
        )

    async def subscribe(self, channel: str, connection: Any) -> None:
        """Add a connection to a channel."""
        self._loop = asyncio.get_running_loop()
        with self._lock:
            self._channels.setdefault(channel, set()).add(connection)

    async def unsubscribe(self, channel: str, connection: Any) -> None:
        """Remove a connection from a channel."""
        with self._lock:
            self._discard(channel, connection)

    async def disconnect(self, connection: Any) -> None:
        """Remove a connection from every channel it joined."""
        with self._lock:
            for channel in list(self._channels):
                self._discard(channel, connection)

    def subscribers(self, channel: str) -> list[Any]:
        """Snapshot of the connections currently on a channel."""
        with self._lock:
            return list(self._channels.get(channel, ()))

    def publish(
        self, channel: str, event: str, payload: dict
    ) -> asyncio.Future | concurrent.futures.Future | None:
        """
        Schedule delivery of an event to a channel's subscribers.

        Safe to call from the event loop or from a worker thread. Never raises;
        returns the scheduled future (or None when nothing was scheduled).
        """
        connections = self.subscribers(channel)
        loop = self._loop
        if not connections or loop is None or loop.is_closed():
            return None

        try:
            message = json.dumps({"event": event, "data": payload}, default=str)
        except (TypeError, ValueError) as exc:
            error_sink.capture(exc, f"realtime.{event}")
            return None

        coro = self._broadcast(channel, message, connections)
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        try:
            if running is loop:
                future = loop.create_task(coro)
                self._pending.add(future)
            else:
                future = asyncio.run_coroutine_threadsafe(coro, loop)
        except RuntimeError as exc:
            # Loop shut down between the check and the schedule
            coro.close()
            error_sink.capture(exc, f"realtime.{event}")
            return None

        future.add_done_callback(lambda f: self._on_done(f, event))
        return future

    async def _broadcast(self, channel: str, message: str, connections: list[Any]) -> None:
        closed = []
        for connection in connections:
            try:
                await asyncio.wait_for(
                    connection.send_text(message), timeout=self._send_timeout
                )
            except Exception as exc:
                logger.warning("Dropping realtime connection on %s: %s", channel, exc)
                closed.append(connection)

        # Clean up closed connections
        if closed:
            with self._lock:
                for connection in closed:
                    self._discard(channel, connection)

    def _discard(self, channel: str, connection: Any) -> None:
        connections = self._channels.get(channel)
        if connections is None:
            return
        connections.discard(connection)
        if not connections:
            del self._channels[channel]

    def _on_done(self, future, event: str) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            error_sink.capture(exc, f"realtime.{event}")
