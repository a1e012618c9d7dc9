"""
Tests for answer normalization.
"""

import pytest

from mathquiz.questions.answers import answers_match, normalize_answer


@pytest.mark.parametrize("raw,expected", [
    ("  12 3", "123"),
    (" 4 2 ", "42"),
    ("42", "42"),
    ("\t-7\n", "-7"),
    (42, "42"),
    ("", ""),
])
def test_normalize_answer(raw, expected):
    assert normalize_answer(raw) == expected


def test_answers_compare_as_text():
    assert answers_match(" 4 2 ", "42")
    assert answers_match(42, "42")
    assert not answers_match("4.2", "42")
    assert not answers_match("4.0", "4")
    assert not answers_match("43", "42")
