"""
Test doubles for the board core: a scriptable WebSocket and a controllable clock.
"""
import asyncio
import json
import random

from starlette.websockets import WebSocketState

from pixelboard.config import Settings
from pixelboard.core.board import Board


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeWebSocket:
    """Records frames written by `Session.pump`; can be made to fail or hang."""

    def __init__(self, *, fail: bool = False, hang: bool = False):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.fail = fail
        self.hang = hang
        self.sent: list[dict] = []
        self.close_code: int | None = None

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("connection reset by peer")
        if self.hang:
            await asyncio.sleep(3600)
        self.sent.append(json.loads(text))

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.close_code = code
        self.client_state = WebSocketState.DISCONNECTED
        self.application_state = WebSocketState.DISCONNECTED

    def drop(self) -> None:
        # Peer vanished without a close handshake being processed yet.
        self.client_state = WebSocketState.DISCONNECTED


def drain(session) -> list[dict]:
    """Pop every frame queued for a session, decoded."""
    frames = []
    while not session.outbox.empty():
        frames.append(json.loads(session.outbox.get_nowait()))
    return frames


def small_settings(**overrides) -> Settings:
    values = {"grid_rows": 20, "grid_cols": 20}
    values.update(overrides)
    return Settings(**values)


def make_board(clock=None, **overrides):
    return Board(small_settings(**overrides), clock=clock or FakeClock(), rng=random.Random(5))


async def connect(board, ws=None):
    """Join a fake client and discard its init_state."""
    session = await board.join(ws or FakeWebSocket())
    drain(session)
    return session
