import asyncio
import random
import re
import unittest

import pytest

from fakes import FakeClock, FakeWebSocket, drain
from pixelboard.core.colors import ColorAllocator
from pixelboard.core.sessions import SessionRegistry, transport_open


def _registry(clock=None, outbox_size=256):
    return SessionRegistry(
        ColorAllocator(rng=random.Random(11)),
        clock=clock or FakeClock(),
        outbox_size=outbox_size,
    )


class RegistryTest(unittest.TestCase):
    def test_register_assigns_id_color_and_timestamps(self):
        async def scenario():
            clock = FakeClock(50.0)
            registry = _registry(clock)
            ws = FakeWebSocket()
            return registry, ws, await registry.register(ws)

        registry, ws, session = asyncio.run(scenario())
        self.assertRegex(session.id, re.compile(r"^u_[0-9a-f]{8}$"))
        self.assertRegex(session.color, r"^#[0-9A-F]{6}$")
        self.assertEqual(session.last_seen, 50.0)
        self.assertGreater(session.connected_at, 0)
        self.assertIs(session.transport, ws)
        self.assertIs(registry.get(session.id), session)
        self.assertIn(session.color, registry.colors.in_use)
        self.assertEqual(registry.live_count(), 1)

    def test_touch_refreshes_last_seen(self):
        async def scenario():
            clock = FakeClock(10.0)
            registry = _registry(clock)
            session = await registry.register(FakeWebSocket())
            clock.advance(20)
            await registry.touch(session.id)
            await registry.touch("u_missing")
            return session

        session = asyncio.run(scenario())
        self.assertEqual(session.last_seen, 30.0)

    def test_unregister_releases_color_and_is_idempotent(self):
        async def scenario():
            registry = _registry()
            session = await registry.register(FakeWebSocket())
            first = await registry.unregister(session.id)
            second = await registry.unregister(session.id)
            return registry, session, first, second

        registry, session, first, second = asyncio.run(scenario())
        self.assertIs(first, session)
        self.assertIsNone(second)
        self.assertNotIn(session.color, registry.colors.in_use)
        self.assertNotIn(session.id, registry)
        self.assertEqual(registry.live_count(), 0)

    def test_live_count_ignores_closed_transports(self):
        async def scenario():
            registry = _registry()
            open_ws, closed_ws = FakeWebSocket(), FakeWebSocket()
            await registry.register(open_ws)
            await registry.register(closed_ws)
            closed_ws.drop()
            return registry

        registry = asyncio.run(scenario())
        self.assertEqual(len(registry.session_ids()), 2)
        self.assertEqual(registry.live_count(), 1)

    def test_live_count_excludes_sessions_silent_past_timeout(self):
        async def scenario():
            clock = FakeClock()
            registry = SessionRegistry(
                ColorAllocator(rng=random.Random(11)), clock=clock, session_timeout=35
            )
            active = await registry.register(FakeWebSocket())
            await registry.register(FakeWebSocket())
            clock.advance(35)
            at_boundary = registry.live_count()
            clock.advance(1)
            await registry.touch(active.id)
            return registry, at_boundary

        registry, at_boundary = asyncio.run(scenario())
        self.assertEqual(at_boundary, 2)
        # Not yet swept, but no longer counted
        self.assertEqual(len(registry.session_ids()), 2)
        self.assertEqual(registry.live_count(), 1)


@pytest.mark.asyncio
async def test_live_count_after_concurrent_register_and_unregister():
    registry = _registry()
    sessions = await asyncio.gather(*(registry.register(FakeWebSocket()) for _ in range(40)))
    removed = sessions[::3]
    await asyncio.gather(*(registry.unregister(s.id) for s in removed))
    assert registry.live_count() == 40 - len(removed)
    assert len({s.id for s in sessions}) == 40


def test_transport_open_requires_both_sides_connected():
    ws = FakeWebSocket()
    assert transport_open(ws)
    ws.drop()
    assert not transport_open(ws)
    assert not transport_open(None)


@pytest.mark.asyncio
async def test_deliver_skips_closed_session():
    registry = _registry()
    ws = FakeWebSocket()
    session = await registry.register(ws)
    ws.drop()
    assert session.deliver('{"type": "pong"}') is False
    assert session.outbox.empty()


@pytest.mark.asyncio
async def test_full_outbox_marks_session_failed():
    registry = _registry(outbox_size=2)
    session = await registry.register(FakeWebSocket())
    assert session.deliver('{"n": 1}')
    assert session.deliver('{"n": 2}')
    assert session.deliver('{"n": 3}') is False
    assert session.send_failed
    assert not session.is_open
    assert drain(session) == [{"n": 1}, {"n": 2}]


@pytest.mark.asyncio
async def test_pump_writes_frames_in_order():
    registry = _registry()
    ws = FakeWebSocket()
    session = await registry.register(ws)
    pump = asyncio.create_task(session.pump())
    for n in range(5):
        session.deliver(f'{{"n": {n}}}')
    await asyncio.sleep(0.05)
    pump.cancel()
    with pytest.raises(asyncio.CancelledError):
        await pump
    assert ws.sent == [{"n": n} for n in range(5)]


@pytest.mark.asyncio
async def test_pump_failure_marks_session_failed():
    registry = _registry()
    session = await registry.register(FakeWebSocket(fail=True))
    session.deliver('{"type": "pong"}')
    await asyncio.wait_for(session.pump(), timeout=1)
    assert session.send_failed


@pytest.mark.asyncio
async def test_pump_times_out_on_hung_client():
    registry = _registry()
    session = await registry.register(FakeWebSocket(hang=True))
    session.deliver('{"type": "pong"}')
    await asyncio.wait_for(session.pump(send_timeout=0.05), timeout=1)
    assert session.send_failed
