"""Answer normalization and comparison."""

import re
from typing import Any

_WHITESPACE = re.compile(r"\s+")


def normalize_answer(answer: Any) -> str:
    """Trim an answer and drop all whitespace inside it, e.g. "  12 3" -> "123"."""
    return _WHITESPACE.sub("", str(answer).strip())


def answers_match(submitted: Any, expected: Any) -> bool:
    """
    Compare a submitted answer with the expected one.

    The comparison is on normalized text, not on numbers: "4.2" does not
    match "42" and "4.0" does not match "4".
    """
    return normalize_answer(submitted) == normalize_answer(expected)
