"""
Authoritative grid state.

The grid is created once with `rows * cols` cells and never grows or shrinks.
`apply` is the only mutator and runs under a single asyncio.Lock, so two claims on
the same cell always serialize: one sees it unowned, the other sees the owner.
"""

# -------------------- Standard library imports --------------------
import asyncio
import logging
import time

# -------------------- Third-party imports --------------------
from pydantic import BaseModel, model_validator

# -------------------- Local application imports --------------------
from pixelboard.errors import CellConflict, CellOutOfRange

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class Cell(BaseModel):
    id: int
    ownerId: str | None = None
    color: str | None = None
    updatedAt: int | None = None

    @model_validator(mode="after")
    def _all_or_nothing(self):
        # A cell is either fully unclaimed or fully claimed.
        filled = {self.ownerId is None, self.color is None, self.updatedAt is None}
        if len(filled) != 1:
            raise ValueError("ownerId, color and updatedAt must be set together")
        return self

    @property
    def claimed(self) -> bool:
        return self.ownerId is not None


class GridStore:
    def __init__(self, rows: int = 20, cols: int = 20, clock=now_ms):
        if rows <= 0 or cols <= 0:
            raise ValueError("grid dimensions must be positive")
        self.rows = rows
        self.cols = cols
        self._clock = clock
        self._cells = [Cell(id=i) for i in range(rows * cols)]
        self.lock = asyncio.Lock()
        logger.info("Grid initialized with %s cells (%sx%s)", len(self._cells), cols, rows)

    @property
    def size(self) -> int:
        return len(self._cells)

    def _check_index(self, index) -> int:
        if isinstance(index, bool) or not isinstance(index, int):
            raise CellOutOfRange(index, self.size)
        if index < 0 or index >= self.size:
            raise CellOutOfRange(index, self.size)
        return index

    def get(self, index: int) -> Cell:
        return self._cells[self._check_index(index)].model_copy()

    async def apply(self, index: int, owner_id: str, color: str) -> tuple[Cell, bool]:
        """
        Claim `index` for `owner_id`.

        Returns `(cell, changed)`; `changed` is False when the caller already owns
        the cell. Raises `CellConflict` if another session owns it.
        """
        index = self._check_index(index)
        async with self.lock:
            cell = self._cells[index]
            if cell.ownerId == owner_id:
                return cell.model_copy(), False
            if cell.ownerId is not None:
                raise CellConflict(index, cell.ownerId)
            committed = Cell(id=index, ownerId=owner_id, color=color, updatedAt=self._clock())
            self._cells[index] = committed
            return committed.model_copy(), True

    async def snapshot(self) -> list[dict]:
        async with self.lock:
            return self.snapshot_nowait()

    def snapshot_nowait(self) -> list[dict]:
        # Safe without the lock: cells are replaced whole, never edited in place.
        return [cell.model_dump() for cell in self._cells]

    def claimed_count(self) -> int:
        return sum(1 for cell in self._cells if cell.claimed)
