"""
Progress Service

Merges the result of a finished game into a player's stored progress.
"""

import datetime
from typing import Any, Dict, List, Optional

from mathquiz.common.error_handling import ProgressNotFoundError
from mathquiz.common.logger import app_logger
from mathquiz.progress.models import PlayerProgress
from mathquiz.progress.repository import ProgressRepository

# Module logger
logger = app_logger.getChild("progress.service")

DEFAULT_HISTORY_LIMIT = 50


class ProgressService:
    """
    Service for reading and updating player progress.

    The high score only ever goes up, the level is overwritten by the latest
    game, every update counts as one game played, and the stored history keeps
    the newest ``history_limit`` entries.
    """

    def __init__(self, repository: ProgressRepository, history_limit: int = DEFAULT_HISTORY_LIMIT):
        """
        Initialize the progress service.

        Args:
            repository: Storage for progress records
            history_limit: Maximum number of history entries kept per player
        """
        self.repository = repository
        self.history_limit = history_limit

    async def get_progress(self, player_id: str) -> PlayerProgress:
        """
        Get a player's stored progress.

        Raises:
            ProgressNotFoundError: If the player has no stored progress
        """
        progress = await self.repository.get(player_id)
        if progress is None:
            raise ProgressNotFoundError(player_id)
        return progress

    async def update_progress(
        self,
        player_id: str,
        high_score: int,
        current_level: float,
        history: Optional[List[Dict[str, Any]]] = None
    ) -> PlayerProgress:
        """
        Merge a finished game into the player's progress.

        Args:
            player_id: Player identifier
            high_score: Score reached in the game
            current_level: Level reached in the game
            history: Entries to append to the stored history

        Returns:
            The merged progress
        """
        progress = await self.repository.get(player_id)
        if progress is None:
            logger.info(f"Creating progress record for player {player_id}")
            progress = PlayerProgress(player_id=player_id)

        progress.high_score = max(progress.high_score, high_score)
        progress.current_level = current_level
        progress.total_games_played += 1

        if history:
            progress.history = (progress.history + list(history))[-self.history_limit:]

        progress.updated_at = datetime.datetime.now()

        saved = await self.repository.save(progress)
        logger.debug(
            f"Progress updated for player {player_id}: high score {saved.high_score}, "
            f"games played {saved.total_games_played}"
        )
        return saved
