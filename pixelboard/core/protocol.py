"""
Wire protocol: JSON objects with a `type` discriminator.

Client -> server: `join`, `claim_cell {cellId}`, `ping`.
Server -> client: `init_state`, `cell_updated`, `claim_rejected`, `users_count`, `pong`, `error`.
"""

# -------------------- Standard library imports --------------------
import json
from typing import Any, Literal

# -------------------- Third-party imports --------------------
from pydantic import BaseModel, ConfigDict, StrictInt, ValidationError

# -------------------- Local application imports --------------------
from pixelboard.errors import MalformedMessage

JOIN = "join"
CLAIM_CELL = "claim_cell"
PING = "ping"

INIT_STATE = "init_state"
CELL_UPDATED = "cell_updated"
CLAIM_REJECTED = "claim_rejected"
USERS_COUNT = "users_count"
PONG = "pong"
ERROR = "error"


class ClaimCellMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["claim_cell"]
    cellId: StrictInt


def parse_frame(data: Any) -> dict:
    """Decode an inbound frame into a dict with a string `type`."""
    try:
        msg = json.loads(data) if isinstance(data, (str, bytes)) else data
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedMessage() from exc
    if not isinstance(msg, dict) or not isinstance(msg.get("type"), str):
        raise MalformedMessage()
    return msg


def parse_claim(msg: dict) -> ClaimCellMessage:
    try:
        return ClaimCellMessage.model_validate(msg)
    except ValidationError as exc:
        raise MalformedMessage("Invalid cell ID") from exc


def encode(event: dict) -> str:
    return json.dumps(event, ensure_ascii=False)


# -------------------- Outbound event builders --------------------


def init_state(session, grid: list[dict], connected_users: int) -> dict:
    return {
        "type": INIT_STATE,
        "you": {"userId": session.id, "color": session.color},
        "grid": grid,
        "connectedUsers": connected_users,
    }


def cell_updated(cell) -> dict:
    return {
        "type": CELL_UPDATED,
        "cellId": cell.id,
        "ownerId": cell.ownerId,
        "color": cell.color,
        "updatedAt": cell.updatedAt,
    }


def claim_rejected(cell_id: int, reason: str, message: str) -> dict:
    return {"type": CLAIM_REJECTED, "cellId": cell_id, "reason": reason, "message": message}


def users_count(count: int) -> dict:
    return {"type": USERS_COUNT, "count": count}


def pong() -> dict:
    return {"type": PONG}


def error(message: str) -> dict:
    return {"type": ERROR, "message": message}
