"""
Progress Models

This module defines the stored progress of a player across games:
1. ``PlayerProgress`` - the storage-agnostic record used by the service
2. ``ProgressRecord`` - its SQLAlchemy mapping
3. Request/response schemas for the progress API
"""

import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy import JSON, Column, DateTime, Float, Integer, String

from mathquiz.database.base import ModelBase


@dataclass
class PlayerProgress:
    """Durable progress of one player."""

    player_id: str
    high_score: int = 0
    current_level: float = 1.0
    total_games_played: int = 0
    history: List[Dict[str, Any]] = field(default_factory=list)
    updated_at: datetime.datetime = field(default_factory=datetime.datetime.now)


class ProgressRecord(ModelBase):
    """SQLAlchemy model for player progress."""
    __tablename__ = "player_progress"

    id = Column(Integer, primary_key=True)
    player_id = Column(String(255), unique=True, index=True, nullable=False)
    high_score = Column(Integer, nullable=False, default=0)
    current_level = Column(Float, nullable=False, default=1.0)
    total_games_played = Column(Integer, nullable=False, default=0)
    history = Column(JSON, nullable=False, default=list)
    updated_at = Column(DateTime, nullable=False, default=datetime.datetime.now)

    def to_domain(self) -> PlayerProgress:
        """Convert to the storage-agnostic record."""
        return PlayerProgress(
            player_id=self.player_id,
            high_score=self.high_score or 0,
            current_level=self.current_level if self.current_level is not None else 1.0,
            total_games_played=self.total_games_played or 0,
            history=list(self.history or []),
            updated_at=self.updated_at or datetime.datetime.now()
        )


class CamelModel(BaseModel):
    """Schema base using camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HistoryEntry(CamelModel):
    """One entry of the stored history, as sent by the client."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    question: Optional[str] = None
    answer: Optional[str] = None
    correct: Optional[bool] = None
    time_spent: Optional[float] = None
    difficulty: Optional[float] = None
    timestamp: Optional[datetime.datetime] = None


class ProgressUpdateRequest(CamelModel):
    """Body of a progress update."""
    high_score: int = Field(0, ge=0, description="Score reached in the finished game")
    current_level: float = Field(1.0, ge=1.0, le=5.0, description="Level reached in the finished game")
    history: Optional[Union[HistoryEntry, List[HistoryEntry]]] = Field(
        None, description="Entry or entries to append to the stored history"
    )

    def history_entries(self) -> List[Dict[str, Any]]:
        """History as plain JSON-ready dicts."""
        if self.history is None:
            return []
        entries = self.history if isinstance(self.history, list) else [self.history]
        return [entry.model_dump(mode="json", by_alias=True, exclude_none=True) for entry in entries]


class ProgressResponse(CamelModel):
    """Stored progress returned to the client."""
    player_id: str
    high_score: int
    current_level: float
    total_games_played: int
    history: List[Dict[str, Any]]
    updated_at: datetime.datetime

    @classmethod
    def from_progress(cls, progress: PlayerProgress) -> 'ProgressResponse':
        return cls(
            player_id=progress.player_id,
            high_score=progress.high_score,
            current_level=progress.current_level,
            total_games_played=progress.total_games_played,
            history=progress.history,
            updated_at=progress.updated_at
        )
