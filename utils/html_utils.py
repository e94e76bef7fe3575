"""Utilities for producing safe HTML from question text."""
from __future__ import annotations

import html

LINE_BREAK = "<br/>"


def escape_html(text: str) -> str:
    """Escape HTML reserved characters, quotes included."""
    if not text:
        return text
    return html.escape(text, quote=True)


def escape_with_line_breaks(text: str) -> str:
    """Escape plain text and turn each real newline into a ``<br/>`` marker."""
    return escape_html(text).replace("\n", LINE_BREAK)
