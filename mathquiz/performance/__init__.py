"""
Player Performance Tracking

This package tracks a player's attempts within a game session and derives
the adaptive difficulty level, score, and time limits from them.
"""

from mathquiz.performance.tracker import (
    AttemptRecord,
    AttemptOutcome,
    PerformanceSnapshot,
    PerformanceTracker,
    create_tracker
)

from mathquiz.performance.difficulty import (
    DifficultyLevel,
    difficulty_guidelines,
    recommended_time
)

__all__ = [
    'AttemptRecord',
    'AttemptOutcome',
    'PerformanceSnapshot',
    'PerformanceTracker',
    'create_tracker',
    'DifficultyLevel',
    'difficulty_guidelines',
    'recommended_time'
]
