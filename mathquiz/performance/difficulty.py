"""
Difficulty helpers

Pure functions and enums that turn tracker state into things the rest of the
game needs: a time limit for the next question and a plain-language
description of each difficulty band for the question generator.
"""

import enum
import math
from typing import List

from mathquiz.performance.tracker import round_half_up

BASE_TIME_SECONDS = 20
DIFFICULTY_TIME_FACTOR = 0.3
MIN_RECOMMENDED_TIME = 15
MAX_RECOMMENDED_TIME = 60


class DifficultyLevel(enum.Enum):
    """Difficulty bands for arithmetic questions."""
    SIMPLE = 1
    TWO_STEP = 2
    MIXED = 3
    COMPLEX = 4
    ADVANCED = 5

    @property
    def guideline(self) -> str:
        """Example of a question in this band."""
        return {
            DifficultyLevel.SIMPLE: "Simple calculations (e.g., 45×8, √144)",
            DifficultyLevel.TWO_STEP: "Two-step operations (e.g., 125×4+50)",
            DifficultyLevel.MIXED: "Mixed operations (e.g., 234×6÷3)",
            DifficultyLevel.COMPLEX: "Complex calculations (e.g., √3025+15×12)",
            DifficultyLevel.ADVANCED: "Advanced problems (e.g., 1500÷25×16+√900)"
        }[self]


def difficulty_guidelines() -> List[str]:
    """One line per band, in the form used by the generator prompt."""
    return [f"Level {band.value}: {band.guideline}" for band in DifficultyLevel]


def recommended_time(difficulty: float, average_time: float) -> int:
    """
    Time limit in seconds for a question.

    The base time grows 30% per difficulty step above 1 and is then averaged
    with the player's own solve-time estimate.

    Args:
        difficulty: Question difficulty, normally the tracker level
        average_time: Tracker's moving average solve time in seconds

    Returns:
        Whole seconds, always between 15 and 60
    """
    base = BASE_TIME_SECONDS * (1 + (difficulty - 1) * DIFFICULTY_TIME_FACTOR)
    if math.isfinite(base):
        base = round_half_up(base)
    adjusted = (base + average_time) / 2

    if math.isnan(adjusted):
        return MIN_RECOMMENDED_TIME
    # Bounds are whole seconds, so clamping before rounding gives the same result
    clamped = max(MIN_RECOMMENDED_TIME, min(MAX_RECOMMENDED_TIME, adjusted))
    return round_half_up(clamped)
