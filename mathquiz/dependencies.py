"""
FastAPI dependencies shared by the API routers.
"""

from fastapi import Header, Request

from mathquiz.common.error_handling import ValidationError
from mathquiz.game.session import GameSessionManager
from mathquiz.progress.service import ProgressService

MAX_PLAYER_ID_LENGTH = 128


def get_player_id(x_player_id: str = Header(..., alias="X-Player-Id")) -> str:
    """Player identity taken from the X-Player-Id header."""
    player_id = x_player_id.strip()
    if not player_id or len(player_id) > MAX_PLAYER_ID_LENGTH:
        raise ValidationError("Invalid player id", details={"header": "X-Player-Id"})
    return player_id


def get_progress_service(request: Request) -> ProgressService:
    return request.app.state.progress_service


def get_session_manager(request: Request) -> GameSessionManager:
    return request.app.state.session_manager
