"""
First-come-first-served claim resolution.

1. index outside the grid -> INVALID
2. session not registered -> INVALID
3. caller already owns the cell -> ACCEPTED, nothing changes, nothing is broadcast
4. someone else owns the cell -> REJECTED("already_claimed")
5. otherwise commit and broadcast `cell_updated` to every open session

Ownership is permanent: a claimed cell never changes owner again.
"""

# -------------------- Standard library imports --------------------
import logging
from enum import Enum

# -------------------- Third-party imports --------------------
from pydantic import BaseModel

# -------------------- Local application imports --------------------
from pixelboard.core import protocol
from pixelboard.core.broadcast import Broadcaster
from pixelboard.core.grid import Cell, GridStore
from pixelboard.core.sessions import SessionRegistry
from pixelboard.errors import CellConflict, CellOutOfRange, InvalidRequest, UnknownSession

logger = logging.getLogger(__name__)


class ClaimStatus(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    INVALID = "invalid"


class ClaimResult(BaseModel):
    status: ClaimStatus
    cellId: int | None = None
    reason: str | None = None
    message: str | None = None
    cell: Cell | None = None
    changed: bool = False


def _invalid(cell_id, exc: InvalidRequest) -> ClaimResult:
    return ClaimResult(
        status=ClaimStatus.INVALID,
        cellId=cell_id if isinstance(cell_id, int) and not isinstance(cell_id, bool) else None,
        reason=exc.reason,
        message=exc.message,
    )


class ClaimResolver:
    def __init__(self, grid: GridStore, registry: SessionRegistry, broadcaster: Broadcaster):
        self.grid = grid
        self.registry = registry
        self.broadcaster = broadcaster

    async def claim(self, session_id: str, cell_id: int) -> ClaimResult:
        try:
            self.grid.get(cell_id)
        except CellOutOfRange as exc:
            return _invalid(cell_id, exc)

        session = self.registry.get(session_id)
        if session is None:
            return _invalid(cell_id, UnknownSession(session_id))

        try:
            cell, changed = await self.grid.apply(cell_id, session.id, session.color)
        except CellConflict as exc:
            logger.debug("Claim on cell %s by %s rejected (owner %s)", cell_id, session_id, exc.owner_id)
            return ClaimResult(
                status=ClaimStatus.REJECTED,
                cellId=cell_id,
                reason=exc.reason,
                message=exc.message,
            )

        if changed:
            logger.info("Cell %s claimed by %s", cell_id, session_id)
            await self.broadcaster.publish(protocol.cell_updated(cell))
        return ClaimResult(status=ClaimStatus.ACCEPTED, cellId=cell_id, cell=cell, changed=changed)
