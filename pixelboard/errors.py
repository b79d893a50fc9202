"""
Error taxonomy for the board core.

- `InvalidRequest`: malformed or out-of-range input, reported to the sender only
- `CellConflict`: the cell already belongs to another session (a normal outcome, not a fault)

Transport failures are not represented here: they never leave the broadcaster.
"""


class BoardError(Exception):
    """Base class for every error raised by the board core."""


class InvalidRequest(BoardError):
    """Input that can never succeed (bad index, unknown session, unparseable frame)."""

    reason = "invalid_request"
    message = "Invalid request"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.message)
        self.detail = detail or self.message


class CellOutOfRange(InvalidRequest):
    reason = "invalid_cell"
    message = "Invalid cell ID"

    def __init__(self, index, size: int):
        super().__init__(f"Cell {index!r} is outside the grid (0..{size - 1})")
        self.index = index
        self.size = size


class UnknownSession(InvalidRequest):
    reason = "unknown_session"
    message = "User not found"

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id!r} is not registered")
        self.session_id = session_id


class MalformedMessage(InvalidRequest):
    reason = "malformed_message"
    message = "Invalid message format"


class CellConflict(BoardError):
    """Raised by the grid when a claim targets a cell owned by someone else."""

    reason = "already_claimed"
    message = "Cell already claimed by another user"

    def __init__(self, index: int, owner_id: str):
        super().__init__(f"Cell {index} is already owned by {owner_id}")
        self.index = index
        self.owner_id = owner_id
