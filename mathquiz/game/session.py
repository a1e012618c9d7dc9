"""
Game Session Service

This module runs the rounds of a quiz game. Each session owns exactly one
performance tracker; all tracker updates for a session go through the
session's lock, so concurrent requests on the same session cannot interleave.
"""

import time
import uuid
import asyncio
import datetime
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from mathquiz.common.error_handling import (
    MathQuizError,
    QuestionGenerationError,
    RoundStateError,
    SessionNotFoundError
)
from mathquiz.common.logger import app_logger, with_context
from mathquiz.performance.tracker import PerformanceSnapshot, PerformanceTracker, create_tracker
from mathquiz.questions.answers import answers_match
from mathquiz.questions.generator import QuestionGenerator
from mathquiz.questions.model import GeneratedQuestion

# Module logger
logger = app_logger.getChild("game.session")

SPEED_RATING_FAST = "Fast!"
SPEED_RATING_GOOD = "Good"

# Sessions unused for this long are evicted
DEFAULT_IDLE_TIMEOUT = 1800.0


@dataclass(frozen=True)
class RoundResult:
    """Outcome of a finished round, for player feedback."""

    correct: bool
    timed_out: bool
    question: str
    expected_answer: str
    submitted_answer: Optional[str]
    time_spent: float
    recommended_time: Optional[int]
    score_delta: int
    score: int
    level: float
    streak: int
    failures: int
    speed_rating: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "correct": self.correct,
            "timed_out": self.timed_out,
            "question": self.question,
            "expected_answer": self.expected_answer,
            "submitted_answer": self.submitted_answer,
            "time_spent": round(self.time_spent, 1),
            "recommended_time": self.recommended_time,
            "score_delta": self.score_delta,
            "score": self.score,
            "level": self.level,
            "streak": self.streak,
            "failures": self.failures,
            "speed_rating": self.speed_rating
        }


class GameSession:
    """
    One player's game: a tracker plus the round currently being played.

    A round starts when a question has been generated and ends with either an
    answer or a timeout. Only one round can be active at a time.
    """

    def __init__(
        self,
        session_id: str,
        generator: QuestionGenerator,
        player_id: Optional[str] = None,
        tracker: Optional[PerformanceTracker] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize a game session.

        Args:
            session_id: Session identifier
            generator: Source of new questions
            player_id: Optional player identifier, used for log context
            tracker: Optional tracker, a fresh one is created by default
            clock: Monotonic clock in seconds, replaceable in tests
        """
        self.session_id = session_id
        self.player_id = player_id
        self.generator = generator
        self.tracker = tracker or create_tracker()
        self.created_at = datetime.datetime.now()
        self.current_question: Optional[GeneratedQuestion] = None
        self.round_started_at: Optional[float] = None
        self._clock = clock
        self.last_active = clock()
        self._lock = asyncio.Lock()
        self.log = with_context("game.session", session_id=session_id, player_id=player_id)

    def touch(self) -> None:
        """Mark the session as used now."""
        self.last_active = self._clock()

    def idle_seconds(self) -> float:
        """Seconds since the session was last used."""
        return self._clock() - self.last_active

    @property
    def round_active(self) -> bool:
        """Whether a question is waiting for an answer."""
        return self.current_question is not None

    def snapshot(self) -> PerformanceSnapshot:
        """Current tracker snapshot."""
        return self.tracker.get_snapshot()

    async def start_round(self) -> GeneratedQuestion:
        """
        Generate the next question and start the round timer.

        Raises:
            RoundStateError: If a round is already active
            QuestionGenerationError: If the generator fails; nothing is changed
        """
        async with self._lock:
            if self.round_active:
                raise RoundStateError("A round is already in progress", session_id=self.session_id)

            try:
                question = await self.generator.generate(self.tracker)
            except MathQuizError:
                raise
            except Exception as e:
                self.log.error(f"Question generator raised {type(e).__name__}: {e}")
                raise QuestionGenerationError("Question generation failed", cause=e)

            self.current_question = question
            self.round_started_at = self._clock()
            self.last_active = self.round_started_at
            self.log.info(f"Round started at level {self.tracker.current_level:.1f}")
            return question

    async def submit_answer(self, answer: Any) -> RoundResult:
        """
        Check an answer against the active question and record the attempt.

        An answer given after the round's recommended time is recorded as a
        timeout, whatever its content.

        Raises:
            RoundStateError: If no round is active
        """
        async with self._lock:
            question = self._require_round()
            correct = answers_match(answer, question.answer)
            return self._finish_round(question, correct, submitted=str(answer), timed_out=False)

    async def expire_round(self) -> RoundResult:
        """
        End the active round as a timeout, counting it as an incorrect attempt.

        Raises:
            RoundStateError: If no round is active
        """
        async with self._lock:
            question = self._require_round()
            return self._finish_round(question, False, submitted=None, timed_out=True)

    def _require_round(self) -> GeneratedQuestion:
        if self.current_question is None:
            raise RoundStateError("No round in progress", session_id=self.session_id)
        return self.current_question

    def _finish_round(
        self,
        question: GeneratedQuestion,
        correct: bool,
        submitted: Optional[str],
        timed_out: bool
    ) -> RoundResult:
        now = self._clock()
        self.last_active = now
        started = self.round_started_at if self.round_started_at is not None else now
        time_spent = max(0.0, now - started)

        # Answers arriving after the time limit count as a timeout
        if question.recommended_time is not None and time_spent > question.recommended_time:
            correct = False
            timed_out = True

        outcome = self.tracker.record_attempt(question.question, correct, time_spent)

        speed_rating = None
        if correct:
            fast = question.recommended_time is not None and time_spent < question.recommended_time
            speed_rating = SPEED_RATING_FAST if fast else SPEED_RATING_GOOD

        self.current_question = None
        self.round_started_at = None

        self.log.info(
            f"Round finished: correct={correct} timed_out={timed_out} "
            f"time={time_spent:.1f}s delta={outcome.score_delta}"
        )

        return RoundResult(
            correct=correct,
            timed_out=timed_out,
            question=question.question,
            expected_answer=question.answer,
            submitted_answer=submitted,
            time_spent=time_spent,
            recommended_time=question.recommended_time,
            score_delta=outcome.score_delta,
            score=outcome.score,
            level=outcome.level,
            streak=self.tracker.streak_count,
            failures=self.tracker.consecutive_failures,
            speed_rating=speed_rating
        )


class GameSessionManager:
    """
    Registry of live game sessions.

    Sessions live in process memory. They are discarded when ended, or once
    they have been idle for longer than ``idle_timeout`` seconds.
    """

    def __init__(
        self,
        generator: QuestionGenerator,
        clock: Callable[[], float] = time.monotonic,
        idle_timeout: Optional[float] = DEFAULT_IDLE_TIMEOUT
    ):
        """
        Initialize the session manager.

        Args:
            generator: Question generator shared by all sessions
            clock: Monotonic clock passed to new sessions
            idle_timeout: Seconds of inactivity before a session is evicted,
                None or 0 to keep sessions until they are ended
        """
        self.generator = generator
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._sessions: Dict[str, GameSession] = {}

    def _cleanup_idle_sessions(self) -> None:
        """Evict sessions idle for longer than the timeout."""
        if not self.idle_timeout:
            return

        expired = [
            session_id for session_id, session in self._sessions.items()
            if session.idle_seconds() > self.idle_timeout
        ]
        for session_id in expired:
            del self._sessions[session_id]

        if expired:
            logger.info(f"Evicted {len(expired)} idle sessions")

    def create_session(self, player_id: Optional[str] = None) -> GameSession:
        """Start a new game with a fresh tracker."""
        self._cleanup_idle_sessions()
        session_id = str(uuid.uuid4())
        session = GameSession(
            session_id=session_id,
            generator=self.generator,
            player_id=player_id,
            clock=self._clock
        )
        self._sessions[session_id] = session
        logger.debug(f"Created session {session_id} for player {player_id}")
        return session

    def get_session(self, session_id: str) -> GameSession:
        """
        Get a live session.

        Raises:
            SessionNotFoundError: If the session does not exist or has expired
        """
        self._cleanup_idle_sessions()
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        session.touch()
        return session

    def end_session(self, session_id: str) -> PerformanceSnapshot:
        """
        End a session and discard its tracker.

        Returns:
            The final snapshot of the session

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        logger.debug(f"Ended session {session_id}")
        return session.snapshot()

    def list_sessions(self) -> List[str]:
        """Identifiers of all live sessions."""
        return list(self._sessions.keys())
