"""
Performance Tracker

This module tracks a single player's performance during a game session and
derives the adaptive difficulty level and score from it.

Each answered (or timed-out) question is fed to ``PerformanceTracker.record_attempt``.
Difficulty ramps up slowly on success (a streak of two is needed before the
level moves, and then only by 0.2) and drops at once on failure (0.3, or 0.5
while failures keep coming). Points are weighted by the current level, so the
same answer is worth more at a higher difficulty.
"""

import math
import datetime
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Set

from mathquiz.common.logger import app_logger

# Module logger
logger = app_logger.getChild("performance.tracker")

MIN_LEVEL = 1.0
MAX_LEVEL = 5.0
HISTORY_LIMIT = 10

INITIAL_SCORE = 100
INITIAL_AVERAGE_TIME = 30.0

# Recorded solve times are clamped to [0, MAX_TIME_SPENT] seconds
MAX_TIME_SPENT = 24 * 60 * 60.0

LEVEL_STEP_UP = 0.2
LEVEL_STEP_DOWN = 0.3
LEVEL_STEP_DOWN_REPEATED = 0.5
STREAK_FOR_LEVEL_UP = 2

SPEED_BONUS_FACTOR = 2
DIFFICULTY_BONUS_FACTOR = 20
STREAK_BONUS_FACTOR = 10
MAX_STREAK_BONUS = 50
PENALTY_FACTOR = 25

# Weight of the newest sample in the solve-time moving average
AVERAGE_TIME_ALPHA = 0.3


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going toward positive infinity."""
    return int(math.floor(value + 0.5))


@dataclass
class AttemptRecord:
    """A single answered or timed-out question."""

    question: str
    correct: bool
    time_spent: float
    level: float
    timestamp: datetime.datetime = field(default_factory=datetime.datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "question": self.question,
            "correct": self.correct,
            "time_spent": self.time_spent,
            "level": self.level,
            "timestamp": self.timestamp.isoformat()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AttemptRecord':
        """Create from dictionary."""
        return cls(
            question=data["question"],
            correct=bool(data["correct"]),
            time_spent=float(data["time_spent"]),
            level=float(data["level"]),
            timestamp=datetime.datetime.fromisoformat(data["timestamp"])
                if data.get("timestamp") else datetime.datetime.now()
        )


@dataclass(frozen=True)
class AttemptOutcome:
    """What a single attempt changed."""

    correct: bool
    score_delta: int
    score: int
    previous_level: float
    level: float


@dataclass(frozen=True)
class PerformanceSnapshot:
    """Read-only view of a tracker, handed to the question generator."""

    history: List[AttemptRecord]
    current_level: float
    score: int
    streak: int
    failures: int
    average_time: float
    used_questions: List[str]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "history": [record.to_dict() for record in self.history],
            "current_level": self.current_level,
            "score": self.score,
            "streak": self.streak,
            "failures": self.failures,
            "average_time": self.average_time,
            "used_questions": list(self.used_questions)
        }


class PerformanceTracker:
    """
    Tracks one player's attempts and derives level and score.

    The tracker is owned by a single game session. ``record_attempt`` is the
    only mutator; every other method is a pure read.
    """

    def __init__(self, history_limit: int = HISTORY_LIMIT):
        self._history: Deque[AttemptRecord] = deque(maxlen=history_limit)
        self._used_questions: Set[str] = set()
        # Insertion order of used questions, for stable snapshots
        self._used_order: List[str] = []
        self.current_level: float = MIN_LEVEL
        self.score: int = INITIAL_SCORE
        self.streak_count: int = 0
        self.consecutive_failures: int = 0
        self.average_time: float = INITIAL_AVERAGE_TIME

    @property
    def history(self) -> List[AttemptRecord]:
        """Recent attempts, oldest first."""
        return list(self._history)

    @property
    def used_questions(self) -> Set[str]:
        """Every question text seen during this session."""
        return set(self._used_questions)

    def record_attempt(self, question: str, correct: bool, time_spent: float) -> AttemptOutcome:
        """
        Record the outcome of one question.

        Args:
            question: Question text, used to avoid repeats
            correct: Whether the player answered correctly
            time_spent: Seconds between showing the question and the answer

        Returns:
            The score change and level movement caused by this attempt
        """
        question = "" if question is None else str(question)
        time_spent = float(time_spent)
        if math.isnan(time_spent):
            time_spent = self.average_time
        time_spent = min(max(0.0, time_spent), MAX_TIME_SPENT)
        previous_score = self.score
        previous_level = self.current_level

        if question not in self._used_questions:
            self._used_questions.add(question)
            self._used_order.append(question)

        self._history.append(AttemptRecord(
            question=question,
            correct=bool(correct),
            time_spent=time_spent,
            level=self.current_level
        ))

        if correct:
            self._apply_success(time_spent)
        else:
            self._apply_failure()

        self.average_time = (
            self.average_time * (1 - AVERAGE_TIME_ALPHA) + time_spent * AVERAGE_TIME_ALPHA
        )

        outcome = AttemptOutcome(
            correct=bool(correct),
            score_delta=self.score - previous_score,
            score=self.score,
            previous_level=previous_level,
            level=self.current_level
        )
        logger.debug(
            f"Attempt recorded: correct={outcome.correct} delta={outcome.score_delta} "
            f"level {previous_level:.1f} -> {self.current_level:.1f}"
        )
        return outcome

    def _apply_success(self, time_spent: float) -> None:
        self.consecutive_failures = 0
        self.streak_count += 1

        if self.streak_count >= STREAK_FOR_LEVEL_UP:
            self.current_level = min(MAX_LEVEL, self.current_level + LEVEL_STEP_UP)

        speed_bonus = max(0.0, (self.average_time - time_spent) * SPEED_BONUS_FACTOR)
        difficulty_bonus = self.current_level * DIFFICULTY_BONUS_FACTOR
        streak_bonus = min(self.streak_count * STREAK_BONUS_FACTOR, MAX_STREAK_BONUS)

        self.score += round_half_up(speed_bonus + difficulty_bonus + streak_bonus)

    def _apply_failure(self) -> None:
        self.streak_count = 0
        self.consecutive_failures += 1

        # Checked after the increment: the first failure after a streak is the small step
        decrease = LEVEL_STEP_DOWN_REPEATED if self.consecutive_failures > 1 else LEVEL_STEP_DOWN
        self.current_level = max(MIN_LEVEL, self.current_level - decrease)

        # Penalty uses the already lowered level
        penalty = round_half_up(PENALTY_FACTOR * self.current_level)
        self.score = max(0, self.score - penalty)

    def get_snapshot(self) -> PerformanceSnapshot:
        """
        Get a read-only projection of the tracker state.

        Returns:
            Snapshot with copies of history and used questions
        """
        return PerformanceSnapshot(
            history=list(self._history),
            current_level=self.current_level,
            score=self.score,
            streak=self.streak_count,
            failures=self.consecutive_failures,
            average_time=self.average_time,
            used_questions=list(self._used_order)
        )

    def get_recent_performance(self, n: int = 5) -> List[AttemptRecord]:
        """
        Get the last ``n`` attempts, oldest first.

        Args:
            n: Number of attempts to return

        Returns:
            Up to ``n`` attempt records
        """
        if n <= 0:
            return []
        return list(self._history)[-n:]


def create_tracker(history_limit: Optional[int] = None) -> PerformanceTracker:
    """
    Create a tracker with default starting values.

    Args:
        history_limit: Optional override for the rolling history size

    Returns:
        Performance tracker
    """
    return PerformanceTracker(
        history_limit=HISTORY_LIMIT if history_limit is None else history_limit
    )
