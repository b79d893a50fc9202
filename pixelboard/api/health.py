# pixelboard/api/health.py
"""Health check endpoints for monitoring and load balancer probes."""

# Read-only diagnostics, safe to expose:
# - Liveness probe (process is running)
# - Readiness probe (board state is reachable)
# - Summary health with the live session count and grid dimensions

# -------------------- Standard library imports --------------------
import logging
from datetime import datetime, timezone

# -------------------- Third-party imports --------------------
from fastapi import APIRouter, Depends

# -------------------- Local application imports --------------------
from pixelboard.api.live import get_board
from pixelboard.core.board import Board

logger = logging.getLogger(__name__)
# Router is mounted under `/api` in `pixelboard/main.py`.
router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(board: Board = Depends(get_board)):
    """
    Health check endpoint for monitoring.

    Returns:
        - status: "healthy"
        - connectedUsers: sessions with an open transport
        - gridSize / rows / cols: board dimensions
        - uptime: seconds since the board was created
        - timestamp: current server time (UTC)
    """
    return {
        "status": "healthy",
        "connectedUsers": board.registry.live_count(),
        "gridSize": board.grid.size,
        "rows": board.grid.rows,
        "cols": board.grid.cols,
        "uptime": round(board.uptime(), 3),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/ready")
async def readiness_check(board: Board = Depends(get_board)):
    """
    Readiness probe - checks if the service is ready to accept connections.
    """
    try:
        return {"status": "ready", "cells": board.grid.size}
    except Exception as e:
        logger.error("Readiness check failed: %s", e)
        return {"status": "not_ready", "error": str(e)}


@router.get("/health/live")
async def liveness_check():
    """
    Liveness probe - basic check that the service is running.
    """
    return {"status": "alive"}
