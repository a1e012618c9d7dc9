"""
Question module.

This module contains the question entity, the question generator interface
and its OpenAI-compatible implementation, and answer normalization.
"""

from .model import GeneratedQuestion
from .answers import normalize_answer, answers_match
from .generator import (
    QuestionGenerator,
    OpenAIQuestionGenerator,
    clean_json_response,
    create_question_generator
)

__all__ = [
    'GeneratedQuestion',
    'normalize_answer',
    'answers_match',
    'QuestionGenerator',
    'OpenAIQuestionGenerator',
    'clean_json_response',
    'create_question_generator',
]
