"""
Progress API

Endpoints for reading and updating a player's stored progress.
"""

from fastapi import APIRouter, Depends

from mathquiz.common.error_handling import ErrorCode, MathQuizError, convert_exception
from mathquiz.common.logger import app_logger
from mathquiz.dependencies import get_player_id, get_progress_service
from mathquiz.progress.models import ProgressResponse, ProgressUpdateRequest
from mathquiz.progress.service import ProgressService

# Set up module logger
logger = app_logger.getChild("progress.router")

router = APIRouter()


@router.get("", response_model=ProgressResponse, response_model_by_alias=True)
async def get_progress(
    player_id: str = Depends(get_player_id),
    service: ProgressService = Depends(get_progress_service)
) -> ProgressResponse:
    """
    Get the stored progress of the calling player.

    Returns 404 if the player has not finished a game yet.
    """
    try:
        progress = await service.get_progress(player_id)
    except MathQuizError:
        raise
    except Exception as e:
        logger.error(f"Error loading progress for player {player_id}: {e}")
        raise convert_exception(e, default_code=ErrorCode.DATABASE_ERROR)

    return ProgressResponse.from_progress(progress)


@router.post("/update", response_model=ProgressResponse, response_model_by_alias=True)
async def update_progress(
    request: ProgressUpdateRequest,
    player_id: str = Depends(get_player_id),
    service: ProgressService = Depends(get_progress_service)
) -> ProgressResponse:
    """
    Merge a finished game into the calling player's progress.

    The stored high score only increases; the level is replaced; the game
    count goes up by one; history entries are appended and capped.
    """
    try:
        progress = await service.update_progress(
            player_id=player_id,
            high_score=request.high_score,
            current_level=request.current_level,
            history=request.history_entries()
        )
    except MathQuizError:
        raise
    except Exception as e:
        logger.error(f"Error updating progress for player {player_id}: {e}")
        raise convert_exception(e, default_code=ErrorCode.DATABASE_ERROR)

    return ProgressResponse.from_progress(progress)
