"""Tests for decoding model responses that contain LaTeX."""
from __future__ import annotations

import pytest

from services.ai_response_parser import (
    AIResponseParseError,
    analysis_to_draft,
    fix_latex_escapes,
    parse_analysis_response,
    strip_code_fence,
)


def test_single_backslash_latex_survives() -> None:
    parsed = parse_analysis_response(r'{"content": "\frac{1}{2} + \theta \neq \beta"}')

    assert parsed["content"] == r"\frac{1}{2} + \theta \neq \beta"


def test_real_escapes_are_kept() -> None:
    parsed = parse_analysis_response(r'{"content": "第一行\n第二行\t\"引号\" 中"}')

    assert parsed["content"] == '第一行\n第二行\t"引号" 中'


def test_already_doubled_backslashes_are_untouched() -> None:
    raw = r'{"content": "\\sqrt{2}"}'

    assert fix_latex_escapes(raw) == raw
    assert parse_analysis_response(raw)["content"] == r"\sqrt{2}"


def test_code_fences_are_stripped() -> None:
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('```\n{"a": 1}```') == '{"a": 1}'
    assert parse_analysis_response('```json\n{"answer": "A"}\n```') == {"answer": "A"}


def test_control_characters_are_dropped_as_last_resort() -> None:
    assert parse_analysis_response('{"content": "a\x01b"}') == {"content": "ab"}


@pytest.mark.parametrize("raw", ["", "not json", "{\"content\": ", "[1, 2]"])
def test_unparseable_responses_raise(raw: str) -> None:
    with pytest.raises(AIResponseParseError):
        parse_analysis_response(raw)


def test_analysis_to_draft_normalizes_text() -> None:
    draft = analysis_to_draft({
        "content": "根据\\sqrt{2}可得",
        "options": ["x^2", "普通"],
        "answer": ["A", "B"],
        "analysis": "$x$ 已有分隔符",
        "knowledgePoints": "函数",
        "difficulty": "7",
    })

    assert draft["content"] == "根据$\\sqrt{2}$可得"
    assert draft["options"] == ["$x^2$", "普通"]
    assert draft["answer"] == "A, B"
    assert draft["analysis"] == "$x$ 已有分隔符"
    assert draft["knowledgePoints"] == ["函数"]
    assert draft["difficulty"] == 5
    assert draft["subject"] is None


def test_analysis_to_draft_drops_bad_difficulty() -> None:
    assert analysis_to_draft({"difficulty": "hard"})["difficulty"] is None
    assert analysis_to_draft({"difficulty": 0})["difficulty"] == 1
