"""
Fan-out of board events to connected sessions.

Each event is serialized once. The recipient list is copied under the registry lock
and delivery (a non-blocking enqueue per session) happens outside it. Closed or
failed sessions are skipped; the liveness monitor cleans them up.
"""

# -------------------- Standard library imports --------------------
import logging

# -------------------- Local application imports --------------------
from pixelboard.core import protocol
from pixelboard.core.sessions import Session, SessionRegistry

logger = logging.getLogger(__name__)


class Broadcaster:
    def __init__(self, registry: SessionRegistry):
        self.registry = registry

    async def publish(self, event: dict, exclude: str | None = None) -> int:
        """Deliver `event` to every open session except `exclude`. Returns the recipient count."""
        async with self.registry.lock:
            targets = self.registry.sessions()
        message = protocol.encode(event)
        delivered = 0
        for session in targets:
            if session.id == exclude:
                continue
            if session.deliver(message):
                delivered += 1
        logger.debug("Broadcast %s to %s session(s)", event.get("type"), delivered)
        return delivered

    def send(self, session: Session, event: dict) -> bool:
        """Unicast to a single session."""
        return session.deliver(protocol.encode(event))

    async def publish_count(self, exclude: str | None = None) -> int:
        return await self.publish(protocol.users_count(self.registry.live_count()), exclude=exclude)
