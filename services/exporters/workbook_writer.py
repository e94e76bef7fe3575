"""Printable HTML workbook for a set of questions."""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Optional

from core.config import settings
from core.logger import logger
from services.latex.renderer import render
from services.questions.models import Question
from utils.file_utils import save_text, timestamped_path
from utils.html_utils import escape_html

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="zh-CN">
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
  body {{ font-family: "Noto Serif SC", serif; max-width: 800px; margin: 0 auto; padding: 24px; }}
  .question {{ page-break-inside: avoid; margin-bottom: 28px; }}
  .question-number {{ font-weight: bold; margin-right: 6px; }}
  .options {{ list-style: none; padding-left: 1.5em; }}
  .answer-block {{ border-left: 3px solid #94a3b8; padding-left: 12px; margin-top: 8px; color: #334155; }}
  .math-display {{ display: block; text-align: center; margin: 8px 0; }}
  .math-error {{ background: #fef2f2; color: #dc2626; padding: 0 4px; border-radius: 4px; }}
</style>
</head>
<body>
<h1>{title}</h1>
{body}
</body>
</html>
"""


def option_label(index: int) -> str:
    return chr(ord("A") + index) if index < 26 else str(index + 1)


class WorkbookWriter:
    """Render questions through the shared renderer and write one HTML file."""

    def __init__(self, autofix: Optional[bool] = None, renderer: Callable[..., str] = render) -> None:
        self.output_dir = settings.workbooks_dir
        self.autofix = autofix
        self._render = renderer

    def _render_field(self, text: str) -> str:
        return self._render(text, self.autofix)

    def render_question(self, number: int, question: Question, include_answers: bool) -> str:
        parts = [
            '<section class="question">',
            f'<div class="stem"><span class="question-number">{number}.</span>'
            f"{self._render_field(question.content)}</div>",
        ]
        if question.options:
            parts.append('<ol class="options">')
            for idx, option in enumerate(question.options):
                parts.append(f"<li>{option_label(idx)}. {self._render_field(option)}</li>")
            parts.append("</ol>")
        if include_answers:
            parts.append('<div class="answer-block">')
            parts.append(f"<p><strong>答案：</strong>{self._render_field(question.answer)}</p>")
            parts.append(f"<p><strong>解析：</strong>{self._render_field(question.analysis)}</p>")
            parts.append(f"<p><strong>学习建议：</strong>{self._render_field(question.learning_guide)}</p>")
            parts.append("</div>")
        parts.append("</section>")
        return "\n".join(parts)

    def build_document(self, questions: Iterable[Question], title: str = "错题本", include_answers: bool = True) -> str:
        body = "\n".join(
            self.render_question(number, question, include_answers)
            for number, question in enumerate(questions, 1)
        )
        return _PAGE_TEMPLATE.format(title=escape_html(title), body=body)

    def write_document(self, questions: Iterable[Question], title: str = "错题本", include_answers: bool = True) -> Path:
        """Write the workbook with an auto-generated file name."""
        questions = list(questions)
        if not questions:
            raise ValueError("No questions to export")
        path = timestamped_path(self.output_dir, "workbook", ".html")
        logger.info("Writing workbook with %d question(s) to %s", len(questions), path)
        return save_text(self.build_document(questions, title, include_answers), path)
