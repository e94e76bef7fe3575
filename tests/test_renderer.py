"""Tests for segmentation, rendering and the error fallback."""
from __future__ import annotations

import pytest

from services.latex import renderer as renderer_module
from services.latex.math_engine import LatexToMathML, MathRenderError, render_math
from services.latex.render_cache import RenderCache, cache_key
from services.latex.renderer import LatexRenderer, Segment, segment_text
from services.settings_store import set_autofix_enabled


class CountingEngine:
    def __init__(self) -> None:
        self.calls = 0

    def to_markup(self, latex: str, display: bool) -> str:
        self.calls += 1
        return f"<m>{latex}</m>"


class FailingEngine:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def to_markup(self, latex: str, display: bool) -> str:
        raise self.exc


@pytest.fixture
def fresh_renderer() -> LatexRenderer:
    return LatexRenderer(cache=RenderCache(0))


def test_inline_spans_render_between_prose(fresh_renderer: LatexRenderer) -> None:
    html = fresh_renderer.render("先写 $\\sqrt{2}$ 再写 $x$")

    assert html.count('class="math math-inline"') == 2
    assert "先写" in html
    assert "再写" in html
    assert "math-error" not in html


def test_bare_fraction_is_one_segment() -> None:
    assert segment_text("\\frac{1}{6}") == [Segment("math", "\\frac{1}{6}")]


def test_autofix_off_leaves_raw_latex_as_text(fresh_renderer: LatexRenderer) -> None:
    html = fresh_renderer.render("根据\\sqrt{2}可得x^2+1", autofix=False)

    assert "<math" not in html
    assert "\\sqrt{2}" in html


def test_autofix_on_carves_raw_latex(fresh_renderer: LatexRenderer) -> None:
    html = fresh_renderer.render("根据\\sqrt{2}可得x^2+1", autofix=True)

    assert html.count('class="math math-inline"') == 2
    assert "根据" in html


def test_autofix_does_not_carve_when_delimiters_present() -> None:
    assert segment_text("$x$ 和 y^2") == [Segment("math", "x"), Segment("text", " 和 y^2")]


def test_autofix_needs_strong_hints() -> None:
    assert segment_text("\\pi 很常见") == [Segment("text", "\\pi 很常见")]


def test_display_math(fresh_renderer: LatexRenderer) -> None:
    assert segment_text("$$x$$") == [Segment("math", "x", display=True)]

    html = fresh_renderer.render("$$x$$")
    assert "math-display" in html
    assert 'display="block"' in html


def test_newlines_become_line_breaks(fresh_renderer: LatexRenderer) -> None:
    html = fresh_renderer.render("第一行\n第二行\n第三行")

    assert html == "第一行<br/>第二行<br/>第三行"


def test_plain_text_is_escaped(fresh_renderer: LatexRenderer) -> None:
    assert fresh_renderer.render("a < b & c") == "a &lt; b &amp; c"
    assert "<script>" not in fresh_renderer.render("<script>alert(1)</script>")


def test_empty_input(fresh_renderer: LatexRenderer) -> None:
    assert fresh_renderer.render("") == ""
    assert fresh_renderer.render(None) == ""
    assert segment_text("") == []


@pytest.mark.parametrize(
    "text",
    [
        "$\\frac{1}{$",
        "$$\\left( x$$",
        "\\frac{",
        "$x",
        "\\(\\)",
        "$ $",
        "\\begin{matrix} a $",
        "x^{^{}}",
        "花费 $5",
    ],
)
@pytest.mark.parametrize("autofix", [True, False])
def test_rendering_never_raises(fresh_renderer: LatexRenderer, text: str, autofix: bool) -> None:
    assert isinstance(fresh_renderer.render(text, autofix=autofix), str)


@pytest.mark.parametrize("exc", [MathRenderError("x < 1", "bad input"), RuntimeError("boom")])
def test_engine_failure_falls_back_to_source(exc: Exception) -> None:
    renderer = LatexRenderer(engine=FailingEngine(exc), cache=RenderCache(0))

    html = renderer.render("已知 $x < 1$ 成立")

    assert '<code class="math-error">x &lt; 1</code>' in html
    assert html.startswith("已知 ")
    assert html.endswith(" 成立")


def test_latex2mathml_engine_output() -> None:
    markup = LatexToMathML().to_markup("x^2", display=False)

    assert markup.startswith("<math")
    assert 'xmlns="http://www.w3.org/1998/Math/MathML"' in markup


def test_empty_formula_is_empty_math_element() -> None:
    assert "</math>" in render_math("  ", display=False)


def test_cache_avoids_repeat_typesetting() -> None:
    engine = CountingEngine()
    renderer = LatexRenderer(engine=engine, cache=RenderCache(8))

    first = renderer.render("$x$")
    second = renderer.render("$x$")

    assert first == second
    assert engine.calls == 1
    assert renderer.cache.hits == 1


def test_cache_keys_include_autofix() -> None:
    assert cache_key("x^2", True) != cache_key("x^2", False)

    engine = CountingEngine()
    renderer = LatexRenderer(engine=engine, cache=RenderCache(8))
    on = renderer.render("可得x^2", autofix=True)
    off = renderer.render("可得x^2", autofix=False)

    assert on != off
    assert len(renderer.cache) == 2


def test_cache_evicts_least_recently_used() -> None:
    cache = RenderCache(2)
    cache.put("a", True, "A")
    cache.put("b", True, "B")
    assert cache.get("a", True) == "A"
    cache.put("c", True, "C")

    assert cache.get("b", True) is None
    assert cache.get("a", True) == "A"
    assert cache.get("c", True) == "C"


def test_disabled_cache_stores_nothing() -> None:
    cache = RenderCache(0)
    cache.put("a", True, "A")

    assert cache.get("a", True) is None
    assert len(cache) == 0


def test_module_render_uses_saved_setting(monkeypatch) -> None:
    monkeypatch.setattr(renderer_module, "_default_renderer", LatexRenderer(cache=RenderCache(0)))

    set_autofix_enabled(False)
    assert "<math" not in renderer_module.render("可得x^2")

    set_autofix_enabled(True)
    assert "<math" in renderer_module.render("可得x^2")
    assert "<math" not in renderer_module.render("可得x^2", autofix=False)


def test_autofix_keeps_newline_next_to_fragment(fresh_renderer: LatexRenderer) -> None:
    assert segment_text("已知x^2\n+1为正") == [
        Segment("text", "已知"),
        Segment("math", "x^2"),
        Segment("text", "\n+1为正"),
    ]
    assert fresh_renderer.render("已知x^2\n+1为正").count("<br/>") == 1


def test_quotes_are_escaped(fresh_renderer: LatexRenderer) -> None:
    assert fresh_renderer.render("他说\"好\"'") == "他说&quot;好&quot;&#x27;"


def test_shared_renderer_is_built_once() -> None:
    assert renderer_module.get_renderer() is renderer_module.get_renderer()
    assert isinstance(renderer_module.get_renderer(), LatexRenderer)
