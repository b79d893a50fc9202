"""
Session registry.

A session is one connected client: an ephemeral id, an assigned color, timestamps and
a non-owning reference to its WebSocket. Outbound frames go through a bounded
per-session queue drained by `Session.pump`, so one slow client never holds up
delivery to the others.

Concurrency model:
- `register`/`unregister`/`touch` and the liveness sweep all take the registry lock
- Broadcasts copy the session list under the lock and deliver outside it
"""

# -------------------- Standard library imports --------------------
import asyncio
import logging
import time
import uuid
from typing import Any, Callable

# -------------------- Third-party imports --------------------
from starlette.websockets import WebSocketState

# -------------------- Local application imports --------------------
from pixelboard.core.colors import ColorAllocator
from pixelboard.core.grid import now_ms

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return f"u_{uuid.uuid4().hex[:8]}"


def transport_open(ws: Any) -> bool:
    """True while both sides of the WebSocket are still connected."""
    if ws is None:
        return False
    return (
        getattr(ws, "client_state", None) == WebSocketState.CONNECTED
        and getattr(ws, "application_state", None) == WebSocketState.CONNECTED
    )


class Session:
    def __init__(
        self,
        session_id: str,
        color: str,
        transport: Any,
        *,
        connected_at: int,
        last_seen: float,
        outbox_size: int = 256,
    ):
        self.id = session_id
        self.color = color
        self.transport = transport
        self.connected_at = connected_at
        self.last_seen = last_seen
        self.send_failed = False
        self.outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=outbox_size)

    def __repr__(self) -> str:
        return f"Session(id={self.id!r}, color={self.color!r})"

    @property
    def is_open(self) -> bool:
        return not self.send_failed and transport_open(self.transport)

    def deliver(self, text: str) -> bool:
        """Queue a serialized frame without blocking. Returns False if it was dropped."""
        if not self.is_open:
            return False
        try:
            self.outbox.put_nowait(text)
        except asyncio.QueueFull:
            # A client this far behind is treated like a dead one.
            logger.warning("Outbox full for %s, marking for eviction", self.id)
            self.send_failed = True
            return False
        return True

    async def pump(self, send_timeout: float = 5.0) -> None:
        """Write queued frames to the transport until a write fails or the task is cancelled."""
        while True:
            text = await self.outbox.get()
            if not transport_open(self.transport):
                self.send_failed = True
                return
            try:
                await asyncio.wait_for(self.transport.send_text(text), timeout=send_timeout)
            except asyncio.TimeoutError:
                logger.warning("WebSocket send timeout for %s, marking for eviction", self.id)
                self.send_failed = True
                return
            except Exception as exc:
                logger.debug("Send to %s failed: %s", self.id, exc)
                self.send_failed = True
                return


class SessionRegistry:
    def __init__(
        self,
        colors: ColorAllocator | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        outbox_size: int = 256,
        session_timeout: float | None = None,
    ):
        self.colors = colors or ColorAllocator()
        self.clock = clock
        self.outbox_size = outbox_size
        # Sessions silent for longer than this are not counted as live.
        self.session_timeout = session_timeout
        self._sessions: dict[str, Session] = {}
        self.lock = asyncio.Lock()

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    async def register(self, transport: Any) -> Session:
        async with self.lock:
            return self.register_locked(transport)

    def register_locked(self, transport: Any) -> Session:
        """Register while the caller already holds `lock`."""
        session_id = new_session_id()
        while session_id in self._sessions:
            session_id = new_session_id()
        color = self.colors.allocate()
        session = Session(
            session_id,
            color,
            transport,
            connected_at=now_ms(),
            last_seen=self.clock(),
            outbox_size=self.outbox_size,
        )
        self._sessions[session_id] = session
        return session

    async def touch(self, session_id: str) -> None:
        async with self.lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_seen = self.clock()

    async def unregister(self, session_id: str) -> Session | None:
        async with self.lock:
            return self.unregister_locked(session_id)

    def unregister_locked(self, session_id: str) -> Session | None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return None
        self.colors.release(session.color)
        return session

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def session_ids(self) -> list[str]:
        return list(self._sessions)

    def is_live(self, session: Session, now: float | None = None) -> bool:
        if not session.is_open:
            return False
        if self.session_timeout is None:
            return True
        now = self.clock() if now is None else now
        return now - session.last_seen <= self.session_timeout

    def live_count(self) -> int:
        now = self.clock()
        return sum(1 for s in self._sessions.values() if self.is_live(s, now))
