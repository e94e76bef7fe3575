"""Rewrite question text into canonical ``$...$``-delimited form before storage."""
from __future__ import annotations

import json

from core.config import settings
from core.logger import logger
from services.latex.fragment_classifier import find_raw_fragments, looks_like_math_only
from services.latex.span_scanner import has_stray_dollar, scan_math_spans

INLINE_DELIMITER = "$"


def wrap_inline(fragment: str) -> str:
    return f"{INLINE_DELIMITER}{fragment}{INLINE_DELIMITER}"


def normalize(field: object, max_length: int | None = None) -> str:
    """Wrap undelimited math in ``field`` with inline delimiters.

    Existing spans are copied byte-for-byte and text outside any wrapped
    fragment is untouched, so stripping the inserted ``$`` characters gives
    back the input. Applying the function twice changes nothing.
    """
    text = "" if field is None else str(field)
    if not text.strip():
        return text

    limit = settings.max_field_length if max_length is None else max_length
    if limit and len(text) > limit:
        logger.warning(
            "Skipping LaTeX normalization for oversized field (%d > %d chars)",
            len(text), limit,
        )
        return text

    if looks_like_math_only(text):
        return wrap_inline(text)

    spans = scan_math_spans(text)
    if has_stray_dollar(text, spans):
        # New "$" pairs would re-pair with the unmatched one on the next pass
        logger.debug("Unmatched '$' in field, leaving raw fragments unwrapped")
        return text

    fragments = find_raw_fragments(text, [(span.start, span.end) for span in spans])
    if not fragments:
        return text

    # Touching fragments share one pair of delimiters instead of "$a$$b$"
    merged: list[list[int]] = []
    for fragment in fragments:
        if merged and merged[-1][1] == fragment.start:
            merged[-1][1] = fragment.end
        else:
            merged.append([fragment.start, fragment.end])

    parts: list[str] = []
    cursor = 0
    for start, end in merged:
        parts.append(text[cursor:start])
        parts.append(wrap_inline(text[start:end]))
        cursor = end
    parts.append(text[cursor:])
    logger.debug("Wrapped %d raw LaTeX fragment(s)", len(fragments))
    return "".join(parts)


def normalize_options(options: object) -> list[str]:
    """Normalize each option string; non-string options are JSON-encoded first."""
    if not options:
        return []
    items = options if isinstance(options, list) else [options]
    return [
        normalize(item if isinstance(item, str) else json.dumps(item, ensure_ascii=False))
        for item in items
    ]
