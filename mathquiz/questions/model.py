"""
Question Model Module

This module defines the question entity returned by the question generator.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class GeneratedQuestion:
    """
    A math question produced by the question generator.

    Attributes:
        question: The expression shown to the player
        answer: Expected answer, kept as text and compared after normalization
        difficulty: Level the question was generated for
        estimated_time: Generator's own estimate of the solve time in seconds
        operations: Operations the question uses, as reported by the generator
        recommended_time: Time limit for the round, computed locally
        question_id: Unique identifier for the question
    """
    question: str
    answer: str
    difficulty: float
    estimated_time: float
    operations: List[str] = field(default_factory=list)
    recommended_time: Optional[int] = None
    question_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GeneratedQuestion':
        """
        Build a question from the generator's JSON payload.

        Raises:
            KeyError: If a required field is missing
            ValueError: If a field has the wrong shape
        """
        question = str(data["question"]).strip()
        if not question:
            raise ValueError("Question text is empty")

        operations = data.get("operations") or []
        if not isinstance(operations, list):
            raise ValueError("operations must be a list")

        return cls(
            question=question,
            answer=str(data["answer"]),
            difficulty=float(data["difficulty"]),
            estimated_time=float(data.get("estimated_time") or 0),
            operations=[str(op) for op in operations],
            recommended_time=data.get("recommended_time")
        )

    def to_dict(self, include_answer: bool = True) -> Dict[str, Any]:
        """
        Convert to dictionary for serialization.

        Args:
            include_answer: Set to False for payloads sent to the player
        """
        data = {
            "question_id": self.question_id,
            "question": self.question,
            "difficulty": self.difficulty,
            "estimated_time": self.estimated_time,
            "operations": list(self.operations),
            "recommended_time": self.recommended_time
        }
        if include_answer:
            data["answer"] = self.answer
        return data
