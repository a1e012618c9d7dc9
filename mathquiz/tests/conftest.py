"""
Shared fixtures for the MathQuiz tests.
"""

from typing import Iterable, List, Optional

import pytest

from mathquiz.common.error_handling import QuestionGenerationError
from mathquiz.performance.difficulty import recommended_time
from mathquiz.questions.generator import QuestionGenerator
from mathquiz.questions.model import GeneratedQuestion


class ScriptedQuestionGenerator(QuestionGenerator):
    """Hands out prepared questions in order, then falls back to numbered sums."""

    def __init__(self, questions: Optional[Iterable[GeneratedQuestion]] = None):
        self.questions: List[GeneratedQuestion] = list(questions or [])
        self.calls = 0

    async def generate(self, tracker) -> GeneratedQuestion:
        self.calls += 1
        if self.questions:
            question = self.questions.pop(0)
        else:
            question = GeneratedQuestion(
                question=f"{self.calls}+{self.calls}",
                answer=str(self.calls * 2),
                difficulty=tracker.current_level,
                estimated_time=10
            )
        if question.recommended_time is None:
            question.recommended_time = recommended_time(question.difficulty, tracker.average_time)
        return question


class FailingQuestionGenerator(QuestionGenerator):
    """Always fails, like an unreachable completions API."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error or QuestionGenerationError("Question generation request failed")
        self.calls = 0

    async def generate(self, tracker) -> GeneratedQuestion:
        self.calls += 1
        raise self.error


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def generator():
    return ScriptedQuestionGenerator()


@pytest.fixture
def failing_generator():
    return FailingQuestionGenerator()
