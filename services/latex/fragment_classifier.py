"""
Heuristic detection of math written without delimiters.

Two tiers:
- ``looks_like_math_only`` decides whether a whole field is a bare formula
  (e.g. an answer of ``\\sqrt{2}`` or ``x_1+x^2``).
- ``find_raw_fragments`` carves math-like tokens out of mixed prose, applying
  the pattern classes in priority order. A region claimed by an earlier class
  is never re-matched by a later one.

Word boundaries are ASCII-only so a CJK character next to a formula still
counts as a boundary (``可得x^2`` must find ``x^2``).
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from services.latex.span_scanner import has_math_delimiters, unclaimed_regions

MATH_COMMANDS: tuple[str, ...] = (
    "frac", "sqrt", "times", "cdot", "pm", "leq", "geq", "neq", "approx",
    "pi", "theta", "sin", "cos", "tan", "log", "ln",
    "sum", "prod", "int", "cdots", "ldots",
)

# Commands strong enough on their own to trigger render-time autofix
STRONG_HINT_COMMANDS: tuple[str, ...] = (
    "frac", "sqrt", "times", "cdot", "pm", "leq", "geq", "neq", "approx",
    "sin", "cos", "tan", "log", "ln",
)

RAW_FRAC_PATTERN = re.compile(r"(?<!\\)\\frac[ \t]*\{[^{}\n]*\}[ \t]*\{[^{}\n]*\}")

RAW_COMMAND_PATTERN = re.compile(
    r"(?<!\\)\\(?:" + "|".join(MATH_COMMANDS) + r")\b(?:[ \t]*\{[^{}\n]*\})?",
    re.ASCII,
)

RAW_SIMPLE_EXPR_PATTERN = re.compile(
    r"(?<!\\)\b[A-Za-z0-9]+(?:\^[A-Za-z0-9]+|_\{[^{}\n]*\}|_[A-Za-z0-9]+)(?:[ \t]*[+\-*/][ \t]*\d+)?",
    re.ASCII,
)

RAW_SUPSUB_PATTERN = re.compile(
    r"(?<!\\)\b[A-Za-z0-9]+(?:\^\{[^{}\n]*\}|\^[A-Za-z0-9]+|_\{[^{}\n]*\}|_[A-Za-z0-9]+)+",
    re.ASCII,
)

# Most specific first.
FRAGMENT_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("fraction", RAW_FRAC_PATTERN),
    ("command", RAW_COMMAND_PATTERN),
    ("simple_expr", RAW_SIMPLE_EXPR_PATTERN),
    ("supsub", RAW_SUPSUB_PATTERN),
)

STRONG_HINT_PATTERN = re.compile(
    r"(?<!\\)\\(?:" + "|".join(STRONG_HINT_COMMANDS) + r")\b"
    r"|(?<!\\)\b[A-Za-z0-9]+(?:\^[A-Za-z0-9]+|_\{[^{}\n]*\}|_[A-Za-z0-9]+)",
    re.ASCII,
)

# "\n", "\t", "\r" typed as two literal characters. "\neq", "\theta",
# "\times" etc. are commands, hence the letter lookahead.
LITERAL_ESCAPE_PATTERN = re.compile(r"\\[ntr](?![A-Za-z])")

CJK_PATTERN = re.compile(r"[\u4e00-\u9fff]")
ARITHMETIC_SYMBOL_PATTERN = re.compile(r"[=+\-*/()<>]")


@dataclass(frozen=True)
class RawFragment:
    start: int
    end: int
    pattern: str

    def text(self, source: str) -> str:
        return source[self.start:self.end]


def contains_literal_escape(text: str) -> bool:
    return LITERAL_ESCAPE_PATTERN.search(text) is not None


def looks_like_math_only(text: str) -> bool:
    """Whole-field check: a bare formula with no delimiters and no CJK prose.

    Known limitation: short plain answers containing arithmetic or bracket
    characters (e.g. ``(1)``) are classified as math.
    """
    trimmed = str(text or "").strip()
    if not trimmed:
        return False
    if has_math_delimiters(trimmed):
        return False
    if CJK_PATTERN.search(trimmed):
        return False
    if contains_literal_escape(trimmed) or "\n" in trimmed:
        return False
    if trimmed.endswith("\\"):
        # a trailing backslash would escape the closing delimiter
        return False
    return bool(
        RAW_COMMAND_PATTERN.search(trimmed)
        or RAW_SUPSUB_PATTERN.search(trimmed)
        or ARITHMETIC_SYMBOL_PATTERN.search(trimmed)
    )


def has_strong_math_hints(text: str) -> bool:
    """Cheap pre-check used by the renderer before running the fragment scan."""
    return STRONG_HINT_PATTERN.search(text) is not None


def find_raw_fragments(
    text: str,
    claimed: list[tuple[int, int]] | None = None,
) -> list[RawFragment]:
    """Locate undelimited math fragments outside the ``claimed`` intervals.

    Each pattern class runs over the text that is still unclaimed after the
    previous classes, and every unclaimed region is matched in isolation so
    that its boundaries behave like the delimiters that will surround the
    neighbouring claimed regions once they are wrapped.
    """
    taken: list[tuple[int, int]] = list(claimed or [])
    fragments: list[RawFragment] = []
    for name, pattern in FRAGMENT_PATTERNS:
        found: list[tuple[int, int]] = []
        for region_start, region_end in unclaimed_regions(len(text), taken):
            region = text[region_start:region_end]
            for match in pattern.finditer(region):
                token = match.group(0)
                start = region_start + match.start()
                if not token or contains_literal_escape(token):
                    continue
                if start > 0 and text[start - 1] == "\\":
                    # an opening "$" placed after a backslash would read as "\$"
                    continue
                found.append((start, region_start + match.end()))
        for start, end in found:
            fragments.append(RawFragment(start, end, name))
        taken.extend(found)
    fragments.sort(key=lambda fragment: fragment.start)
    return fragments
