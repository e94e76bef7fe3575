"""Application entry point: question bank API with LaTeX normalization and rendering."""
from __future__ import annotations

from typing import Any, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from core.config import settings
from core.logger import init_logging, logger
from services.ai_response_parser import AIResponseParseError, analysis_to_draft, parse_analysis_response
from services.exporters.workbook_writer import WorkbookWriter
from services.latex.normalizer import normalize
from services.latex.renderer import get_renderer
from services.questions.models import TEXT_FIELDS, Question, QuestionCreate, QuestionUpdate
from services.questions.question_service import QuestionNotFoundError, QuestionService
from services.settings_store import get_autofix_enabled, resolve_autofix, set_autofix_enabled
from utils.file_utils import ensure_directories


class TextPayload(BaseModel):
    text: str = ""


class RenderPayload(BaseModel):
    text: str = ""
    autofix: Optional[bool] = None


class AutofixPayload(BaseModel):
    enabled: bool


class WorkbookPayload(BaseModel):
    ids: list[str] = Field(default_factory=list)
    title: str = "错题本"
    include_answers: bool = True
    autofix: Optional[bool] = None


def _question_json(question: Question) -> dict[str, Any]:
    return question.to_dict()


def create_app(service: Optional[QuestionService] = None) -> FastAPI:
    """Create FastAPI app with LaTeX, settings and question routes."""
    app = FastAPI(title="Question Bank", version="0.1.0")
    questions = service or QuestionService()
    renderer = get_renderer()

    def _get_or_404(question_id: str) -> Question:
        try:
            return questions.get(question_id)
        except QuestionNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.on_event("startup")
    async def startup_event() -> None:
        init_logging()
        ensure_directories()
        logger.info("FastAPI service started")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    # ------------------------------------------------------------------
    # LaTeX
    # ------------------------------------------------------------------
    @app.post("/latex/normalize")
    async def normalize_text(payload: TextPayload) -> dict[str, str]:
        return {"text": normalize(payload.text)}

    @app.post("/latex/render")
    async def render_text(payload: RenderPayload) -> dict[str, Any]:
        autofix = resolve_autofix(payload.autofix)
        return {"html": renderer.render(payload.text, autofix), "autofix": autofix}

    @app.get("/settings/autofix")
    async def get_autofix() -> dict[str, bool]:
        return {"enabled": get_autofix_enabled()}

    @app.put("/settings/autofix")
    async def put_autofix(payload: AutofixPayload) -> dict[str, bool]:
        set_autofix_enabled(payload.enabled)
        return {"enabled": payload.enabled}

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------
    @app.get("/questions")
    async def list_questions(
        page: int = Query(1, ge=1),
        page_size: int = Query(20, ge=1, le=200, alias="pageSize"),
        subject: Optional[str] = None,
    ) -> dict[str, Any]:
        result = questions.list_questions(page=page, page_size=page_size, subject=subject)
        return {
            "items": [_question_json(q) for q in result["items"]],
            "total": result["total"],
            "page": result["page"],
            "pageSize": result["page_size"],
        }

    @app.get("/questions/trash")
    async def list_trash() -> list[dict[str, Any]]:
        return [_question_json(q) for q in questions.list_trash()]

    @app.post("/questions", status_code=201)
    async def create_question(payload: QuestionCreate) -> dict[str, Any]:
        return _question_json(questions.create(payload))

    @app.get("/questions/{question_id}")
    async def get_question(question_id: str) -> dict[str, Any]:
        return _question_json(_get_or_404(question_id))

    @app.get("/questions/{question_id}/rendered")
    async def get_rendered_question(question_id: str, autofix: Optional[bool] = None) -> dict[str, Any]:
        question = _get_or_404(question_id)
        effective = resolve_autofix(autofix)
        rendered = {name: renderer.render(getattr(question, name), effective) for name in TEXT_FIELDS}
        return {
            "id": question.id,
            "content": rendered["content"],
            "answer": rendered["answer"],
            "analysis": rendered["analysis"],
            "learningGuide": rendered["learning_guide"],
            "options": [renderer.render(option, effective) for option in question.options],
            "autofix": effective,
        }

    @app.put("/questions/{question_id}")
    async def update_question(question_id: str, payload: QuestionUpdate) -> dict[str, Any]:
        try:
            return _question_json(questions.update(question_id, payload))
        except QuestionNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.delete("/questions/{question_id}")
    async def delete_question(question_id: str) -> dict[str, Any]:
        try:
            return _question_json(questions.soft_delete(question_id))
        except QuestionNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.post("/questions/{question_id}/restore")
    async def restore_question(question_id: str) -> dict[str, Any]:
        try:
            return _question_json(questions.restore(question_id))
        except QuestionNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.post("/questions/{question_id}/review")
    async def review_question(question_id: str) -> dict[str, Any]:
        try:
            return _question_json(questions.mark_reviewed(question_id))
        except QuestionNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.delete("/questions/{question_id}/hard")
    async def hard_delete_question(question_id: str) -> dict[str, str]:
        try:
            questions.hard_delete(question_id)
        except QuestionNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return {"status": "deleted"}

    # ------------------------------------------------------------------
    # Backup, workbook, capture
    # ------------------------------------------------------------------
    @app.get("/backup")
    async def export_backup() -> dict[str, Any]:
        return questions.export_backup()

    @app.post("/backup")
    async def import_backup(payload: dict[str, Any]) -> dict[str, int]:
        try:
            return {"imported": questions.import_backup(payload)}
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    @app.post("/workbook", response_class=HTMLResponse)
    async def build_workbook(payload: WorkbookPayload) -> str:
        selected = [_get_or_404(question_id) for question_id in payload.ids]
        if not selected:
            raise HTTPException(status_code=400, detail="No questions selected")
        writer = WorkbookWriter(autofix=resolve_autofix(payload.autofix))
        return writer.build_document(selected, payload.title, payload.include_answers)

    @app.post("/analysis/parse")
    async def parse_analysis(payload: TextPayload) -> dict[str, Any]:
        try:
            parsed = parse_analysis_response(payload.text)
        except AIResponseParseError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return analysis_to_draft(parsed)

    return app


def main() -> None:
    """Entry point for CLI; starts the API server."""
    init_logging()
    ensure_directories()
    logger.info("Starting FastAPI server at %s:%s", settings.host, settings.port)
    uvicorn.run(create_app(), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
