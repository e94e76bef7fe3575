"""Locate explicitly delimited math spans in free text."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

SpanKind = Literal["display", "inline"]

# Display forms come first in the alternation so "$$x$$" is never split
# into two inline spans. A backslash always consumes the next character
# inside $...$, so "\$" can neither open nor close inline math.
MATH_SPAN_PATTERN = re.compile(
    r"(?<!\\)\$\$[\s\S]+?\$\$"
    r"|\\\[[\s\S]+?\\\]"
    r"|\\\([\s\S]+?\\\)"
    r"|(?<!\\)\$(?:[^$\\]|\\[\s\S])+?\$"
)

UNESCAPED_DOLLAR = re.compile(r"(?<!\\)\$")

_DELIMITERS: dict[str, tuple[str, str, SpanKind]] = {
    "$$": ("$$", "$$", "display"),
    "\\[": ("\\[", "\\]", "display"),
    "\\(": ("\\(", "\\)", "inline"),
    "$": ("$", "$", "inline"),
}


@dataclass(frozen=True)
class MathSpan:
    """Half-open [start, end) offsets of a delimited math span."""

    start: int
    end: int
    kind: SpanKind
    opener: str

    @property
    def closer(self) -> str:
        return _DELIMITERS[self.opener][1]

    def source(self, text: str) -> str:
        return text[self.start:self.end]

    def body(self, text: str) -> str:
        """Span contents with the delimiters stripped."""
        return text[self.start + len(self.opener):self.end - len(self.closer)]

    def contains(self, index: int) -> bool:
        return self.start <= index < self.end


def _opener_of(token: str) -> str:
    for opener in ("$$", "\\[", "\\("):
        if token.startswith(opener):
            return opener
    return "$"


def scan_math_spans(text: str) -> list[MathSpan]:
    """Return ordered, non-overlapping spans of delimited math in ``text``."""
    if not text:
        return []
    spans: list[MathSpan] = []
    for match in MATH_SPAN_PATTERN.finditer(text):
        opener = _opener_of(match.group(0))
        spans.append(MathSpan(match.start(), match.end(), _DELIMITERS[opener][2], opener))
    return spans


def has_math_delimiters(text: str) -> bool:
    """True if ``text`` carries any math delimiter, paired or not."""
    return (
        "$$" in text
        or "\\(" in text
        or "\\[" in text
        or UNESCAPED_DOLLAR.search(text) is not None
    )


def has_stray_dollar(text: str, spans: list[MathSpan]) -> bool:
    """True if an unescaped ``$`` sits outside every span (an unmatched delimiter)."""
    for match in UNESCAPED_DOLLAR.finditer(text):
        if not is_inside_span(match.start(), spans):
            return True
    return False


def is_inside_span(index: int, spans: list[MathSpan]) -> bool:
    return any(span.contains(index) for span in spans)


def unclaimed_regions(length: int, claimed: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """Complement of the sorted, non-overlapping ``claimed`` intervals within [0, length)."""
    regions: list[tuple[int, int]] = []
    cursor = 0
    for start, end in sorted(claimed):
        if start > cursor:
            regions.append((cursor, start))
        cursor = max(cursor, end)
    if cursor < length:
        regions.append((cursor, length))
    return regions
