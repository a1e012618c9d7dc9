"""
Question Generator Module

This module defines the interface the game uses to obtain new questions and
an implementation backed by an OpenAI-compatible chat completions API.

The generator only reads tracker state. Any failure is raised as
``QuestionGenerationError`` so the caller can abort the round without
touching the tracker.
"""

import abc
import json
import re
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI

from mathquiz.common.error_handling import QuestionGenerationError
from mathquiz.common.logger import app_logger, log_execution_time
from mathquiz.performance.difficulty import difficulty_guidelines, recommended_time
from mathquiz.performance.tracker import PerformanceTracker
from mathquiz.questions.model import GeneratedQuestion

# Module logger
logger = app_logger.getChild("questions.generator")

_CODE_FENCE_JSON = re.compile(r"```json\n?")
_CODE_FENCE = re.compile(r"```\n?")

RECENT_PERFORMANCE_WINDOW = 5


class QuestionGenerator(abc.ABC):
    """
    Abstract base class for question generators.

    Implementations receive the player's tracker and must not mutate it.
    """

    @abc.abstractmethod
    async def generate(self, tracker: PerformanceTracker) -> GeneratedQuestion:
        """
        Generate the next question for a player.

        Args:
            tracker: The player's performance tracker (read only)

        Returns:
            A question with ``recommended_time`` filled in

        Raises:
            QuestionGenerationError: If no usable question could be produced
        """
        pass


def clean_json_response(response: str) -> str:
    """Strip Markdown code fences the model sometimes wraps JSON in."""
    return _CODE_FENCE.sub("", _CODE_FENCE_JSON.sub("", response)).strip()


def parse_question_payload(content: str) -> Dict[str, Any]:
    """
    Parse the model's reply into a JSON object.

    Raises:
        QuestionGenerationError: If the reply is not a JSON object
    """
    try:
        payload = json.loads(clean_json_response(content))
    except json.JSONDecodeError as e:
        raise QuestionGenerationError(
            "Question generator returned invalid JSON",
            details={"content": content[:200]},
            cause=e
        )

    if not isinstance(payload, dict):
        raise QuestionGenerationError(
            "Question generator returned an unexpected payload",
            details={"content": content[:200]}
        )
    return payload


def build_system_prompt(level: float, failures: int, used_questions: List[str]) -> str:
    """Build the system message describing level, rules, and excluded questions."""
    guidelines = "\n".join(f"          {line}" for line in difficulty_guidelines())
    return f"""You are an adaptive mathematics challenge generator.
          Current level: {level:.1f}
          Recent failures: {failures}

          Rules for question generation:
          1. If user has recent failures, generate slightly easier questions
          2. Gradually increase complexity as user succeeds
          3. Focus on building confidence after failures
          4. Ensure questions are engaging and varied

          Difficulty guidelines:
{guidelines}

          NEVER repeat these questions: {json.dumps(used_questions)}"""


def build_user_prompt(level: float, failures: int, recent_performance: List[Dict[str, Any]]) -> str:
    """Build the user message asking for one question in a fixed JSON format."""
    easier = "Make it slightly easier to help build confidence." if failures > 0 else ""
    return f"""Generate a level {round(level, 1)} question.
          {easier}
          Recent performance: {json.dumps(recent_performance)}

          Return in this exact JSON format:
          {{
            "question": "the math expression",
            "answer": "numerical answer only",
            "difficulty": {round(level, 1)},
            "estimated_time": number (seconds),
            "operations": ["operations used"]
          }}"""


class OpenAIQuestionGenerator(QuestionGenerator):
    """
    Question generator backed by an OpenAI-compatible chat completions API.

    Defaults target DeepSeek; any endpoint speaking the same protocol works
    by changing ``api_base`` and ``model``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        model: str = "deepseek-chat",
        temperature: float = 0.8,
        timeout: float = 30.0,
        client: Optional[AsyncOpenAI] = None
    ):
        """
        Initialize the generator.

        Args:
            api_key: API key for the completions endpoint
            api_base: Base URL of the completions endpoint
            model: Model name
            temperature: Sampling temperature
            timeout: Request timeout in seconds
            client: Optional preconfigured client, mainly for tests
        """
        self.api_key = api_key
        self.api_base = api_base
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        """The API client, created on first use."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.api_base,
                timeout=self.timeout
            )
        return self._client

    @log_execution_time(logger)
    async def generate(self, tracker: PerformanceTracker) -> GeneratedQuestion:
        snapshot = tracker.get_snapshot()
        recent = [record.to_dict() for record in tracker.get_recent_performance(RECENT_PERFORMANCE_WINDOW)]

        messages = [
            {
                "role": "system",
                "content": build_system_prompt(
                    snapshot.current_level, snapshot.failures, snapshot.used_questions
                )
            },
            {
                "role": "user",
                "content": build_user_prompt(snapshot.current_level, snapshot.failures, recent)
            }
        ]

        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature
            )
            content = completion.choices[0].message.content or ""
        except openai.OpenAIError as e:
            logger.error(f"Question generation request failed: {e}")
            raise QuestionGenerationError("Question generation request failed", cause=e)
        except (IndexError, AttributeError) as e:
            raise QuestionGenerationError("Question generator returned no choices", cause=e)

        payload = parse_question_payload(content)

        try:
            question = GeneratedQuestion.from_dict(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise QuestionGenerationError(
                "Question generator returned an incomplete question",
                details={"fields": sorted(payload.keys())},
                cause=e
            )

        question.recommended_time = recommended_time(question.difficulty, snapshot.average_time)
        logger.info(
            f"Generated level {question.difficulty:.1f} question "
            f"(recommended time {question.recommended_time}s)"
        )
        return question


def create_question_generator(settings) -> QuestionGenerator:
    """
    Create the default question generator from application settings.

    Args:
        settings: Application settings

    Returns:
        Configured question generator
    """
    if not settings.AI_API_KEY:
        logger.warning("AI_API_KEY is not set; question generation requests will be rejected")

    return OpenAIQuestionGenerator(
        api_key=settings.AI_API_KEY or "missing",
        api_base=settings.AI_API_BASE,
        model=settings.AI_MODEL_NAME,
        temperature=settings.AI_TEMPERATURE,
        timeout=settings.AI_TIMEOUT
    )
