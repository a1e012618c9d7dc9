"""
Game API

Endpoints for playing a quiz game: creating a session, starting rounds,
answering, timing out, and ending the session.
"""

from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel, Field

from mathquiz.common.logger import app_logger
from mathquiz.dependencies import get_session_manager
from mathquiz.game.session import GameSession, GameSessionManager, RoundResult

# Set up module logger
logger = app_logger.getChild("game.router")

router = APIRouter()


# Request models
class AnswerRequest(BaseModel):
    answer: Union[str, int, float] = Field(..., description="Answer typed by the player")


# Response models
class AttemptResponse(BaseModel):
    question: str = Field(..., description="Question text")
    correct: bool = Field(..., description="Whether the answer was correct")
    time_spent: float = Field(..., description="Seconds spent on the question")
    level: float = Field(..., description="Level before the attempt")
    timestamp: str = Field(..., description="When the attempt was recorded")


class SnapshotResponse(BaseModel):
    current_level: float = Field(..., description="Current difficulty level")
    score: int = Field(..., description="Cumulative score")
    streak: int = Field(..., description="Consecutive correct answers")
    failures: int = Field(..., description="Consecutive incorrect answers")
    average_time: float = Field(..., description="Smoothed solve time in seconds")
    history: List[AttemptResponse] = Field(..., description="Recent attempts, newest last")
    used_questions: List[str] = Field(..., description="Questions already asked")


class SessionResponse(BaseModel):
    session_id: str = Field(..., description="Session ID")
    round_active: bool = Field(..., description="Whether a question awaits an answer")
    performance: SnapshotResponse = Field(..., description="Tracker snapshot")


class QuestionResponse(BaseModel):
    question_id: str = Field(..., description="Question ID")
    question: str = Field(..., description="Question text")
    difficulty: float = Field(..., description="Difficulty of the question")
    estimated_time: float = Field(..., description="Estimated solve time from the generator")
    recommended_time: Optional[int] = Field(None, description="Time limit for the round in seconds")
    operations: List[str] = Field(default_factory=list, description="Operations used")


class RoundResultResponse(BaseModel):
    correct: bool = Field(..., description="Whether the answer was correct")
    timed_out: bool = Field(..., description="Whether the round ended by timeout")
    question: str = Field(..., description="Question text")
    expected_answer: str = Field(..., description="Correct answer")
    submitted_answer: Optional[str] = Field(None, description="Answer given by the player")
    time_spent: float = Field(..., description="Seconds spent on the question")
    recommended_time: Optional[int] = Field(None, description="Time limit for the round")
    score_delta: int = Field(..., description="Points gained or lost")
    score: int = Field(..., description="Score after the round")
    level: float = Field(..., description="Level after the round")
    streak: int = Field(..., description="Consecutive correct answers")
    failures: int = Field(..., description="Consecutive incorrect answers")
    speed_rating: Optional[str] = Field(None, description="Speed feedback for correct answers")


def _session_payload(session: GameSession) -> Dict[str, Any]:
    return {
        "session_id": session.session_id,
        "round_active": session.round_active,
        "performance": session.snapshot().to_dict()
    }


def _result_payload(result: RoundResult) -> Dict[str, Any]:
    return result.to_dict()


@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session(
    x_player_id: Optional[str] = Header(None, alias="X-Player-Id"),
    manager: GameSessionManager = Depends(get_session_manager)
) -> Dict[str, Any]:
    """
    Start a new game with a fresh tracker.

    Returns:
        Session ID and the initial snapshot
    """
    session = manager.create_session(player_id=x_player_id)
    logger.info(f"Game session {session.session_id} created")
    return _session_payload(session)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    manager: GameSessionManager = Depends(get_session_manager)
) -> Dict[str, Any]:
    """Get the current snapshot of a session."""
    return _session_payload(manager.get_session(session_id))


@router.post("/sessions/{session_id}/rounds", response_model=QuestionResponse)
async def start_round(
    session_id: str,
    manager: GameSessionManager = Depends(get_session_manager)
) -> Dict[str, Any]:
    """
    Generate the next question and start the round timer.

    The answer is never included in the response.
    """
    session = manager.get_session(session_id)
    question = await session.start_round()
    return question.to_dict(include_answer=False)


@router.post("/sessions/{session_id}/answer", response_model=RoundResultResponse)
async def submit_answer(
    session_id: str,
    request: AnswerRequest,
    manager: GameSessionManager = Depends(get_session_manager)
) -> Dict[str, Any]:
    """Check an answer for the active round."""
    session = manager.get_session(session_id)
    result = await session.submit_answer(request.answer)
    return _result_payload(result)


@router.post("/sessions/{session_id}/timeout", response_model=RoundResultResponse)
async def expire_round(
    session_id: str,
    manager: GameSessionManager = Depends(get_session_manager)
) -> Dict[str, Any]:
    """End the active round because the player ran out of time."""
    session = manager.get_session(session_id)
    result = await session.expire_round()
    return _result_payload(result)


@router.delete("/sessions/{session_id}", response_model=SnapshotResponse)
async def end_session(
    session_id: str,
    manager: GameSessionManager = Depends(get_session_manager)
) -> Dict[str, Any]:
    """
    End a session.

    Returns:
        The final snapshot, ready to be merged into stored progress
    """
    snapshot = manager.end_session(session_id)
    logger.info(f"Game session {session_id} ended with score {snapshot.score}")
    return snapshot.to_dict()
