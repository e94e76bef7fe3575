"""
Parse the JSON a vision model returns for a captured question.

Models often emit single backslashes for LaTeX inside JSON strings
(``"\\frac{1}{2}"`` written as ``"\frac{1}{2}"``). A strict JSON decoder then
reads ``\f`` as a form feed and the formula is silently corrupted, so stray
backslashes are doubled before decoding.
"""
from __future__ import annotations

import json
import re
from typing import Any

from core.logger import logger
from services.latex.normalizer import normalize, normalize_options

_HEX4 = re.compile(r"[0-9a-fA-F]{4}")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_JSON_SHORT_ESCAPES = "bfnrt"


class AIResponseParseError(ValueError):
    """The model response could not be decoded as JSON."""


def fix_latex_escapes(content: str) -> str:
    """Double every backslash that is not a JSON escape the model meant."""
    out: list[str] = []
    i = 0
    length = len(content)
    while i < length:
        char = content[i]
        if char != "\\" or i + 1 >= length:
            out.append(char)
            i += 1
            continue

        nxt = content[i + 1]
        if nxt == "\\":
            out.append("\\\\")
            i += 2
        elif nxt in ('"', "/"):
            out.append("\\" + nxt)
            i += 2
        elif nxt == "u" and _HEX4.fullmatch(content, i + 2, i + 6):
            out.append(content[i:i + 6])
            i += 6
        elif nxt in _JSON_SHORT_ESCAPES and not (i + 2 < length and content[i + 2].isascii() and content[i + 2].isalpha()):
            # \n, \t ... followed by a non-letter is a real escape; \frac, \theta are LaTeX
            out.append("\\" + nxt)
            i += 2
        else:
            out.append("\\\\" + nxt)
            i += 2
    return "".join(out)


def strip_code_fence(content: str) -> str:
    cleaned = content.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_analysis_response(content: str) -> dict[str, Any]:
    """Decode a model response, trying progressively looser cleanups."""
    cleaned = strip_code_fence(content or "")
    fixed = fix_latex_escapes(cleaned)

    attempts = (fixed, cleaned, _CONTROL_CHARS.sub("", fixed))
    first_error: ValueError | None = None
    for candidate in attempts:
        try:
            parsed = json.loads(candidate)
        except ValueError as exc:
            first_error = first_error or exc
            continue
        if not isinstance(parsed, dict):
            raise AIResponseParseError("Model response is not a JSON object")
        return parsed

    logger.error("JSON parsing failed after all cleanup attempts: %s", cleaned[:500])
    raise AIResponseParseError(f"JSON parse failed: {first_error}")


def analysis_to_draft(parsed: dict[str, Any]) -> dict[str, Any]:
    """Map a parsed response onto question fields, with text already normalized."""
    options = parsed.get("options") or []
    answer = parsed.get("answer") or ""
    if isinstance(answer, list):
        answer = ", ".join(str(item) for item in answer)
    knowledge_points = parsed.get("knowledgePoints") or []
    difficulty = parsed.get("difficulty")
    try:
        difficulty = min(max(int(difficulty), 1), 5)
    except (TypeError, ValueError):
        difficulty = None
    return {
        "content": normalize(parsed.get("content") or ""),
        "options": normalize_options(options),
        "answer": normalize(answer),
        "analysis": normalize(parsed.get("analysis") or ""),
        "learningGuide": normalize(parsed.get("learningGuide") or ""),
        "diagramDescription": parsed.get("diagramDescription") or None,
        "knowledgePoints": [str(point) for point in knowledge_points] if isinstance(knowledge_points, list) else [str(knowledge_points)],
        "subject": parsed.get("subject") or None,
        "difficulty": difficulty,
    }
