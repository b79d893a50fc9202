# pixelboard/api/public.py
"""
Public read-only reflections of the board state.

- GET `/api/stats`: claimed/unclaimed counts and the active session ids
- GET `/api/grid`: full grid snapshot with its dimensions
"""

from fastapi import APIRouter, Depends

from pixelboard.api.live import get_board
from pixelboard.core.board import Board

router = APIRouter(tags=["public"])


@router.get("/stats")
async def board_stats(board: Board = Depends(get_board)):
    return board.stats()


@router.get("/grid")
async def board_grid(board: Board = Depends(get_board)):
    return {
        "grid": await board.grid.snapshot(),
        "gridSize": board.grid.size,
        "gridCols": board.grid.cols,
        "gridRows": board.grid.rows,
    }
