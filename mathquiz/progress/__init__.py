"""
Player progress storage.

Stores per-player high score, level, game count, and a capped history.
"""

from mathquiz.progress.models import PlayerProgress, ProgressRecord
from mathquiz.progress.repository import (
    ProgressRepository,
    MemoryProgressRepository,
    SQLAlchemyProgressRepository
)
from mathquiz.progress.service import ProgressService

__all__ = [
    'PlayerProgress',
    'ProgressRecord',
    'ProgressRepository',
    'MemoryProgressRepository',
    'SQLAlchemyProgressRepository',
    'ProgressService',
]
