"""
Split question text into plain/math segments and render display markup.

Every display surface (card, detail, edit preview, workbook) goes through
``LatexRenderer.render`` so stored text looks the same everywhere. The
output is an HTML fragment: escaped prose with ``<br/>`` for newlines and
one MathML element per math segment.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from core.config import settings
from core.logger import logger
from services.latex.fragment_classifier import find_raw_fragments, has_strong_math_hints
from services.latex.math_engine import MathEngine, render_math
from services.latex.render_cache import RenderCache
from services.latex.span_scanner import has_math_delimiters, scan_math_spans
from services.settings_store import resolve_autofix
from utils.html_utils import escape_with_line_breaks

SegmentKind = Literal["text", "math"]


@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    content: str
    display: bool = False


def _split_plain(text: str, carve_raw_math: bool) -> list[Segment]:
    if not carve_raw_math:
        return [Segment("text", text)]

    segments: list[Segment] = []
    cursor = 0
    for fragment in find_raw_fragments(text):
        if fragment.start > cursor:
            segments.append(Segment("text", text[cursor:fragment.start]))
        segments.append(Segment("math", fragment.text(text)))
        cursor = fragment.end
    if cursor < len(text):
        segments.append(Segment("text", text[cursor:]))
    return segments


def segment_text(text: str, autofix: bool = True, max_length: Optional[int] = None) -> list[Segment]:
    """Ordered plain/math segments covering ``text``.

    With ``autofix`` on, text that has no delimiters at all but shows strong
    raw-LaTeX hints gets its fragments carved out as inline math, for content
    that never went through the save-time normalizer.
    """
    if not text:
        return []

    limit = settings.max_field_length if max_length is None else max_length
    carve_raw_math = (
        autofix
        and not (limit and len(text) > limit)
        and not has_math_delimiters(text)
        and has_strong_math_hints(text)
    )

    segments: list[Segment] = []
    cursor = 0
    for span in scan_math_spans(text):
        if span.start > cursor:
            segments.extend(_split_plain(text[cursor:span.start], carve_raw_math))
        segments.append(Segment("math", span.body(text), display=span.kind == "display"))
        cursor = span.end
    if cursor < len(text):
        segments.extend(_split_plain(text[cursor:], carve_raw_math))
    return segments


class LatexRenderer:
    """Render text to markup, memoizing on ``(text, autofix)``."""

    def __init__(self, engine: Optional[MathEngine] = None, cache: Optional[RenderCache] = None) -> None:
        self.engine = engine
        self.cache = cache if cache is not None else RenderCache(settings.render_cache_size)

    def render(self, text: object, autofix: bool = True) -> str:
        content = "" if text is None else str(text)
        if not content:
            return ""

        cached = self.cache.get(content, autofix)
        if cached is not None:
            return cached

        try:
            parts = [
                render_math(segment.content, segment.display, self.engine)
                if segment.kind == "math"
                else escape_with_line_breaks(segment.content)
                for segment in segment_text(content, autofix)
            ]
            markup = "".join(parts)
        except Exception:  # noqa: BLE001
            logger.exception("Rendering failed, falling back to escaped text")
            return escape_with_line_breaks(content)

        self.cache.put(content, autofix, markup)
        return markup


_default_renderer = LatexRenderer()


def get_renderer() -> LatexRenderer:
    return _default_renderer


def render(text: object, autofix: Optional[bool] = None) -> str:
    """Render with the shared renderer; ``autofix=None`` uses the saved setting."""
    return get_renderer().render(text, resolve_autofix(autofix))
