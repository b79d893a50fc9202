# pixelboard/api/live.py
"""
Live board WebSocket.

Flow per connection:
- Accept, register the session and queue `init_state` (grid snapshot + live count)
- Start the session's outbound pump (one writer per connection)
- Read frames with a receive timeout and dispatch them to the board
- On exit: stop the pump, unregister (broadcasts `users_count`), close the socket
"""

# -------------------- Standard library imports --------------------
import asyncio
import logging

# -------------------- Third-party imports --------------------
from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect

# -------------------- Local application imports --------------------
from pixelboard.core.board import Board

logger = logging.getLogger(__name__)

router = APIRouter(tags=["live"])


def get_board(request: Request) -> Board:
    return request.app.state.board


async def _serve(ws: WebSocket) -> None:
    board: Board = ws.app.state.board
    settings = board.settings
    await ws.accept()

    session = await board.join(ws)
    pump_task = asyncio.create_task(session.pump(settings.send_timeout_sec))

    try:
        while True:
            try:
                data = await asyncio.wait_for(ws.receive_text(), timeout=settings.receive_timeout_sec)
            except asyncio.TimeoutError:
                logger.warning("WebSocket receive timeout for %s", session.id)
                break
            except WebSocketDisconnect:
                break
            except Exception as e:
                logger.warning("WebSocket receive error for %s: %s", session.id, e)
                break

            await board.handle_frame(session, data)
    except Exception as e:
        logger.error("WebSocket error for %s: %s", session.id, e, exc_info=True)
    finally:
        pump_task.cancel()
        try:
            await pump_task
        except asyncio.CancelledError:
            pass

        await board.leave(session.id)

        try:
            await ws.close()
        except Exception:
            pass


@router.websocket("/ws")
async def board_websocket(ws: WebSocket):
    await _serve(ws)


@router.websocket("/")
async def board_websocket_root(ws: WebSocket):
    # Legacy clients connect on the bare host URL.
    await _serve(ws)
