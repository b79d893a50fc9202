"""
The board: one explicitly owned state object per application.

It wires the grid, the session registry, the color allocator, the broadcaster, the
claim resolver and the per-session rate limiter together, and exposes the
connection-level operations (`join`, `leave`, `handle_frame`) used by the WebSocket
route. An instance lives on `app.state.board`; there are no module-level singletons.
"""

# -------------------- Standard library imports --------------------
import logging
import random
import time
from typing import Any

# -------------------- Local application imports --------------------
from pixelboard.config import Settings
from pixelboard.core import protocol
from pixelboard.core.broadcast import Broadcaster
from pixelboard.core.claims import ClaimResolver, ClaimResult, ClaimStatus
from pixelboard.core.colors import ColorAllocator
from pixelboard.core.grid import GridStore
from pixelboard.core.sessions import Session, SessionRegistry
from pixelboard.errors import InvalidRequest, MalformedMessage
from pixelboard.rate_limit import RateLimiter

logger = logging.getLogger(__name__)


class Board:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        clock=time.monotonic,
        rng: random.Random | None = None,
    ):
        self.settings = settings or Settings()
        self.started_at = time.monotonic()
        self.grid = GridStore(self.settings.grid_rows, self.settings.grid_cols)
        self.colors = ColorAllocator(self.settings.color_max_attempts, rng=rng)
        self.registry = SessionRegistry(
            self.colors,
            clock=clock,
            outbox_size=self.settings.outbox_max_size,
            session_timeout=self.settings.session_timeout_sec,
        )
        self.broadcaster = Broadcaster(self.registry)
        self.resolver = ClaimResolver(self.grid, self.registry, self.broadcaster)
        self.rate_limiter = RateLimiter(
            max_per_minute=self.settings.claim_rate_per_minute,
            max_per_second=self.settings.claim_rate_per_second,
            block_duration=self.settings.rate_limit_block_sec,
        )

    # -------------------- Connection lifecycle --------------------

    async def join(self, transport: Any) -> Session:
        """
        Register a new connection and queue its `init_state`.

        The snapshot is taken under the grid lock after the session is registered, so
        every claim committed before it is in the snapshot and every claim committed
        after it is broadcast to the new session behind `init_state`.
        """
        session = await self.registry.register(transport)
        async with self.grid.lock:
            grid = self.grid.snapshot_nowait()
            self.broadcaster.send(
                session, protocol.init_state(session, grid, self.registry.live_count())
            )
        logger.info("New connection: %s (%s total)", session.id, self.registry.live_count())
        await self.broadcaster.publish_count(exclude=session.id)
        return session

    async def leave(self, session_id: str) -> bool:
        """Drop a session. Idempotent: only the first call broadcasts the new count."""
        session = await self.registry.unregister(session_id)
        if session is None:
            return False
        self.rate_limiter.forget(session_id)
        logger.info("User %s disconnected", session_id)
        await self.broadcaster.publish_count()
        return True

    # -------------------- Inbound frames --------------------

    async def claim(self, session_id: str, cell_id: int) -> ClaimResult:
        return await self.resolver.claim(session_id, cell_id)

    async def handle_frame(self, session: Session, data: Any) -> None:
        """Dispatch one inbound frame; every frame counts as a liveness signal."""
        await self.registry.touch(session.id)
        try:
            msg = protocol.parse_frame(data)
            msg_type = msg["type"]

            if msg_type == protocol.PING:
                self.broadcaster.send(session, protocol.pong())
                return

            if msg_type == protocol.JOIN:
                logger.info("User %s joined", session.id)
                return

            if msg_type == protocol.CLAIM_CELL:
                claim = protocol.parse_claim(msg)
                allowed, reason = self.rate_limiter.check(session.id)
                if not allowed:
                    self.broadcaster.send(session, protocol.error(reason))
                    return
                result = await self.claim(session.id, claim.cellId)
                self._reply_to_claim(session, result)
                return

            logger.info("Unknown message type from %s: %s", session.id, msg_type)
            raise MalformedMessage(f"Unknown message type: {msg_type}")
        except InvalidRequest as exc:
            logger.debug("Invalid frame from %s: %s", session.id, exc.detail)
            self.broadcaster.send(session, protocol.error(exc.detail))

    def _reply_to_claim(self, session: Session, result: ClaimResult) -> None:
        if result.status == ClaimStatus.INVALID:
            self.broadcaster.send(session, protocol.error(result.message))
        elif result.status == ClaimStatus.REJECTED:
            self.broadcaster.send(
                session, protocol.claim_rejected(result.cellId, result.reason, result.message)
            )

    # -------------------- Read-only reflections --------------------

    def uptime(self) -> float:
        return time.monotonic() - self.started_at

    def stats(self) -> dict:
        claimed = self.grid.claimed_count()
        return {
            "totalCells": self.grid.size,
            "claimedCells": claimed,
            "unclaimedCells": self.grid.size - claimed,
            "connectedUsers": self.registry.live_count(),
            "users": self.registry.session_ids(),
        }
