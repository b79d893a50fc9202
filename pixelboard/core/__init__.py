from .board import Board
from .broadcast import Broadcaster
from .claims import ClaimResolver, ClaimResult, ClaimStatus
from .colors import ColorAllocator
from .grid import Cell, GridStore
from .liveness import LivenessMonitor
from .sessions import Session, SessionRegistry

__all__ = [
    "Board",
    "Broadcaster",
    "Cell",
    "ClaimResolver",
    "ClaimResult",
    "ClaimStatus",
    "ColorAllocator",
    "GridStore",
    "LivenessMonitor",
    "Session",
    "SessionRegistry",
]
