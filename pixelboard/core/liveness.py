"""
Periodic eviction of dead sessions.

Transport close notifications are not always delivered (dropped networks, crashed
clients), so every `interval` seconds the monitor evicts sessions that are closed,
failed a write, or have been silent for longer than `timeout`. One `users_count`
broadcast follows each sweep that evicted anything.
"""

# -------------------- Standard library imports --------------------
import asyncio
import logging

# -------------------- Local application imports --------------------
from pixelboard.core.board import Board
from pixelboard.core.sessions import Session

logger = logging.getLogger(__name__)


class LivenessMonitor:
    def __init__(self, board: Board, interval: float = 30.0, timeout: float = 35.0):
        self.board = board
        self.interval = interval
        self.timeout = timeout
        self._stop = asyncio.Event()
        self._task: asyncio.Task | None = None

    def is_stale(self, session: Session, now: float) -> bool:
        if not session.is_open:
            return True
        return now - session.last_seen > self.timeout

    async def sweep(self) -> list[str]:
        """Run one pass. Returns the ids of the evicted sessions."""
        registry = self.board.registry
        async with registry.lock:
            now = registry.clock()
            stale = [s for s in registry.sessions() if self.is_stale(s, now)]
            evicted = [s for s in stale if registry.unregister_locked(s.id) is not None]

        if not evicted:
            return []

        for session in evicted:
            self.board.rate_limiter.forget(session.id)
            logger.info("Evicted stale session %s", session.id)

        await self.board.broadcaster.publish_count()
        await asyncio.gather(*(self._close(s) for s in evicted))
        return [s.id for s in evicted]

    async def _close(self, session: Session) -> None:
        # A peer that never completes the close handshake must not stall the sweep.
        try:
            await asyncio.wait_for(
                session.transport.close(code=1001),
                timeout=self.board.settings.send_timeout_sec,
            )
        except asyncio.TimeoutError:
            logger.warning("Close timeout for evicted session %s", session.id)
        except Exception as exc:
            logger.debug("Close failed for %s: %s", session.id, exc)

    async def _run(self) -> None:
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
            else:
                break
            try:
                evicted = await self.sweep()
                if evicted:
                    logger.info(
                        "Liveness sweep evicted %s session(s), %s remaining",
                        len(evicted),
                        self.board.registry.live_count(),
                    )
            except Exception as exc:
                logger.error("Liveness sweep failed: %s", exc, exc_info=True)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._stop.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Signal the loop and wait; a sweep already running finishes its pass first."""
        self._stop.set()
        if self._task is not None:
            await self._task
            self._task = None
