"""Broadcast hub — owns the set of connected gallery viewers.

Learn: register() and unregister() are the only ways in or out of the
connection set. Everything else (ingestion, cloud backup) can only call
broadcast(event).

Delivery is at-most-once:
- broadcast() never awaits. It serializes the event once and drops the
  text into each ready viewer's outbox (a bounded asyncio.Queue).
- Each viewer has its own writer task draining its outbox, so a slow or
  broken socket only hurts that viewer, and one viewer sees events in the
  order they were broadcast.
- Viewers that are closing/closed are skipped. A full outbox drops the
  event for that viewer. Nothing is retried or persisted.
"""

import asyncio
from typing import Awaitable, Callable, Optional, Protocol, Sequence

import structlog
from starlette.websockets import WebSocketState

from eventwall.schemas.events import BroadcastEvent, init_snapshot

logger = structlog.get_logger()

SnapshotLoader = Callable[[int], Awaitable[Sequence]]


class Connection(Protocol):
    """The part of a starlette WebSocket the hub relies on."""

    client_state: WebSocketState
    application_state: WebSocketState

    async def send_text(self, data: str) -> None: ...


def is_ready(connection: Connection) -> bool:
    """True while both sides of the socket are open."""
    return (
        connection.client_state == WebSocketState.CONNECTED
        and connection.application_state == WebSocketState.CONNECTED
    )


class ViewerSession:
    """One registered connection, its outbox, and its writer task."""

    def __init__(self, connection: Connection, outbox_size: int):
        self.connection = connection
        self.outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=outbox_size)
        self.writer: Optional[asyncio.Task] = None


class BroadcastHub:
    """Fan-out of broadcast events to every open viewer.

    Usage:
        hub = BroadcastHub(snapshot_loader=load_recent_media)
        await hub.register(websocket)      # sends initSnapshot
        hub.broadcast(new_media(record))   # never blocks
        hub.unregister(websocket)
    """

    def __init__(
        self,
        snapshot_loader: SnapshotLoader,
        *,
        snapshot_limit: int = 10,
        outbox_size: int = 100,
    ):
        self.snapshot_loader = snapshot_loader
        self.snapshot_limit = snapshot_limit
        self.outbox_size = outbox_size
        # Keyed by id(): starlette WebSockets are Mappings, so not hashable.
        self._sessions: dict[int, ViewerSession] = {}

    @property
    def connection_count(self) -> int:
        return len(self._sessions)

    def is_registered(self, connection: Connection) -> bool:
        return id(connection) in self._sessions

    # ─── Membership ──────────────────────────────────────

    async def register(self, connection: Connection) -> ViewerSession:
        """Add a connection and send it the initial snapshot.

        Learn: The connection joins the open set BEFORE the snapshot is
        loaded. Anything broadcast while the snapshot query runs waits in
        the outbox and goes out after the snapshot (the writer starts
        last), so the viewer can't miss an item that was persisted after
        the snapshot read. Items that appear in both are de-duplicated by
        id on the viewer side.
        """
        session = ViewerSession(connection, self.outbox_size)
        self._sessions[id(connection)] = session
        log = logger.bind(viewers=len(self._sessions))

        try:
            items = await self.snapshot_loader(self.snapshot_limit)
            await connection.send_text(init_snapshot(items).to_wire())
        except Exception as e:
            # Viewer stays connected without a snapshot; it resyncs on reconnect.
            log.error("hub.snapshot_failed", error=str(e))

        if self._sessions.get(id(connection)) is session:
            session.writer = asyncio.create_task(self._write_loop(session))
            log.info("hub.registered")
        return session

    def unregister(self, connection: Connection) -> None:
        """Remove a connection. Safe to call more than once."""
        session = self._sessions.pop(id(connection), None)
        if session is None:
            return
        if session.writer is not None and session.writer is not asyncio.current_task():
            session.writer.cancel()
        # Undelivered events are dropped; release anyone waiting in wait_idle().
        while not session.outbox.empty():
            session.outbox.get_nowait()
            session.outbox.task_done()
        logger.info("hub.unregistered", viewers=len(self._sessions))

    # ─── Fan-out ─────────────────────────────────────────

    def broadcast(self, event: BroadcastEvent) -> int:
        """Queue an event for every ready viewer. Returns how many got it."""
        payload = event.to_wire()
        queued = 0
        for session in list(self._sessions.values()):
            if not is_ready(session.connection):
                continue
            try:
                session.outbox.put_nowait(payload)
            except asyncio.QueueFull:
                logger.warning("hub.outbox_full", event_type=event.type)
                continue
            queued += 1

        logger.debug("hub.broadcast", event_type=event.type, viewers=queued)
        return queued

    async def _write_loop(self, session: ViewerSession) -> None:
        connection = session.connection
        while True:
            payload = await session.outbox.get()
            try:
                if is_ready(connection):
                    await connection.send_text(payload)
            except Exception as e:
                logger.warning("hub.delivery_failed", error=str(e))
                self.unregister(connection)
                return
            finally:
                session.outbox.task_done()

    # ─── Lifecycle ───────────────────────────────────────

    async def wait_idle(self) -> None:
        """Wait until every registered viewer's outbox has been sent."""
        for session in list(self._sessions.values()):
            if session.writer is not None and not session.writer.done():
                await session.outbox.join()

    async def close(self) -> None:
        """Cancel all writer tasks (app shutdown)."""
        writers = [s.writer for s in self._sessions.values() if s.writer is not None]
        self._sessions.clear()
        for writer in writers:
            writer.cancel()
        await asyncio.gather(*writers, return_exceptions=True)
