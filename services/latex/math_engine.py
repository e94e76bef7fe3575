"""
LaTeX → MathML typesetting and the per-segment error fallback.

- ``LatexToMathML`` wraps latex2mathml and raises ``MathRenderError`` on any
  rejection so callers see one exception type.
- ``render_math`` never raises: a rejected formula is shown as its escaped
  source inside a ``math-error`` element and the rest of the document still
  renders.
"""
from __future__ import annotations

from typing import Protocol

from latex2mathml.converter import convert as latex2mathml_convert

from core.logger import logger
from utils.html_utils import escape_html

MATHML_NAMESPACE = "http://www.w3.org/1998/Math/MathML"


class MathRenderError(ValueError):
    """The typesetting engine rejected a formula."""

    def __init__(self, latex: str, reason: str) -> None:
        super().__init__(f"LaTeX→MathML conversion failed: {reason}. LaTeX input: {latex[:200]}")
        self.latex = latex
        self.reason = reason


class MathEngine(Protocol):
    def to_markup(self, latex: str, display: bool) -> str: ...


class LatexToMathML:
    """Convert a single delimiter-free formula to MathML."""

    def to_markup(self, latex: str, display: bool) -> str:
        if not latex or not latex.strip():
            mode = "block" if display else "inline"
            return f'<math xmlns="{MATHML_NAMESPACE}" display="{mode}"></math>'

        # Formatting newlines must not split a formula
        latex_normalized = " ".join(latex.split())
        try:
            mathml = latex2mathml_convert(
                latex_normalized, display="block" if display else "inline"
            )
        except Exception as exc:  # noqa: BLE001
            raise MathRenderError(latex, f"{type(exc).__name__}: {exc}") from exc

        if "<math" not in mathml:
            raise MathRenderError(latex, "engine returned no <math> root")
        return self._ensure_namespace(mathml)

    def _ensure_namespace(self, mathml: str) -> str:
        """Ensure MathML output carries the namespace declaration."""
        if 'xmlns="' not in mathml:
            mathml = mathml.replace("<math", f'<math xmlns="{MATHML_NAMESPACE}"', 1)
        return mathml


def error_markup(latex: str) -> str:
    return f'<code class="math-error">{escape_html(latex)}</code>'


def render_math(latex: str, display: bool, engine: MathEngine | None = None) -> str:
    """Typeset one formula; on any engine failure return the flagged source instead."""
    engine = engine or _default_engine
    try:
        markup = engine.to_markup(latex, display)
    except MathRenderError as exc:
        logger.warning("Math render failed: %s | Input (first 200 chars): %s", exc.reason, latex[:200])
        return error_markup(latex)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Math engine error: %s | Input (first 200 chars): %s", exc, latex[:200])
        return error_markup(latex)

    css_class = "math math-display" if display else "math math-inline"
    return f'<span class="{css_class}">{markup}</span>'


_default_engine = LatexToMathML()
