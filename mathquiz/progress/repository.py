"""
Progress Repository Module

This module defines the repository interface for player progress and two
implementations: in-memory (development and tests) and SQLAlchemy.
"""

import abc
import copy
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from mathquiz.common.error_handling import DatabaseError
from mathquiz.common.logger import app_logger
from mathquiz.progress.models import PlayerProgress, ProgressRecord

# Setup logging
logger = app_logger.getChild("progress.repository")


class ProgressRepository(abc.ABC):
    """
    Abstract base class for progress repositories.

    Records are keyed by player identity.
    """

    @abc.abstractmethod
    async def get(self, player_id: str) -> Optional[PlayerProgress]:
        """
        Get a player's progress.

        Args:
            player_id: Player identifier

        Returns:
            The stored progress if found, None otherwise
        """
        pass

    @abc.abstractmethod
    async def save(self, progress: PlayerProgress) -> PlayerProgress:
        """
        Save a player's progress, creating or replacing the stored record.

        Args:
            progress: Progress to save

        Returns:
            The saved progress
        """
        pass


class MemoryProgressRepository(ProgressRepository):
    """
    In-memory implementation of the ProgressRepository.

    Intended for development and testing purposes only.
    """

    def __init__(self):
        self._records: Dict[str, PlayerProgress] = {}

    async def get(self, player_id: str) -> Optional[PlayerProgress]:
        progress = self._records.get(player_id)
        return copy.deepcopy(progress) if progress else None

    async def save(self, progress: PlayerProgress) -> PlayerProgress:
        self._records[progress.player_id] = copy.deepcopy(progress)
        return progress

    def clear(self) -> None:
        """Remove all records."""
        self._records.clear()


class SQLAlchemyProgressRepository(ProgressRepository):
    """Progress repository stored in a relational database."""

    def __init__(self, session_factory: async_sessionmaker):
        """
        Initialize the repository.

        Args:
            session_factory: Factory producing async sessions
        """
        self.session_factory = session_factory

    async def get(self, player_id: str) -> Optional[PlayerProgress]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(ProgressRecord).where(ProgressRecord.player_id == player_id)
                )
                record = result.scalar_one_or_none()
                return record.to_domain() if record else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load progress for player {player_id}: {e}")
            raise DatabaseError("Failed to load progress", cause=e, details={"player_id": player_id})

    async def save(self, progress: PlayerProgress) -> PlayerProgress:
        values = {
            "high_score": progress.high_score,
            "current_level": progress.current_level,
            "total_games_played": progress.total_games_played,
            "history": list(progress.history),
            "updated_at": progress.updated_at
        }

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        select(ProgressRecord).where(ProgressRecord.player_id == progress.player_id)
                    )
                    record = result.scalar_one_or_none()
                    if record is None:
                        session.add(ProgressRecord(player_id=progress.player_id, **values))
                    else:
                        record.update(values)
        except SQLAlchemyError as e:
            logger.error(f"Failed to save progress for player {progress.player_id}: {e}")
            raise DatabaseError(
                "Failed to save progress", cause=e, details={"player_id": progress.player_id}
            )

        return progress
