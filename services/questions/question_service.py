"""
Create/update/list questions; the place where text crosses into storage.

Every text field (content, answer, analysis, learning guide and each option)
is normalized independently before the record is saved. Subject, difficulty,
knowledge points and image references pass through unchanged.
"""
from __future__ import annotations

import json
import time
from typing import Any, Optional

from core.logger import logger
from services.latex.normalizer import normalize, normalize_options
from services.questions.models import (
    DEFAULT_ANALYSIS,
    DEFAULT_ANSWER,
    DEFAULT_DIFFICULTY,
    DEFAULT_KNOWLEDGE_POINTS,
    DEFAULT_LEARNING_GUIDE,
    Question,
    QuestionCreate,
    QuestionUpdate,
    Subject,
    TEXT_FIELDS,
    utc_now,
)
from services.questions.question_store import JsonQuestionStore

BACKUP_VERSION = "1.0"


class QuestionNotFoundError(KeyError):
    """No stored question has the requested id."""

    def __init__(self, question_id: str) -> None:
        super().__init__(question_id)
        self.question_id = question_id

    def __str__(self) -> str:
        return f"Question not found: {self.question_id}"


def ensure_list(value: Any, default: Optional[list[str]] = None) -> list[Any]:
    """Accept a list, a JSON-encoded list, or a single value."""
    if not value:
        return list(default or [])
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return [value]
        return parsed if isinstance(parsed, list) else [value]
    return list(default or [])


def join_answer(answer: Any) -> str:
    """Multiple-choice answers such as ["A", "B"] are stored as "A, B"."""
    if isinstance(answer, list):
        return ", ".join(str(item) for item in answer)
    return str(answer or DEFAULT_ANSWER)


def _subject_value(subject: Optional[Subject]) -> str:
    return (subject or Subject.MATH).value


class QuestionService:
    """Question CRUD with normalization at the persistence boundary."""

    def __init__(self, store: Optional[JsonQuestionStore] = None) -> None:
        self.store = store or JsonQuestionStore()

    def create(self, data: QuestionCreate) -> Question:
        question = Question(
            content=normalize(data.content or ""),
            options=normalize_options(ensure_list(data.options)),
            answer=normalize(join_answer(data.answer)),
            analysis=normalize(data.analysis or DEFAULT_ANALYSIS),
            learning_guide=normalize(data.learning_guide or DEFAULT_LEARNING_GUIDE),
            knowledge_points=ensure_list(data.knowledge_points, DEFAULT_KNOWLEDGE_POINTS),
            subject=_subject_value(data.subject),
            difficulty=data.difficulty or DEFAULT_DIFFICULTY,
            image=data.image,
            cropped_diagram=data.cropped_diagram,
            diagram_description=data.diagram_description,
        )
        self.store.save(question)
        logger.info("Created question %s", question.id)
        return question

    def update(self, question_id: str, changes: QuestionUpdate) -> Question:
        question = self.get(question_id)
        updates = changes.model_dump(exclude_unset=True)

        for key, value in updates.items():
            if key == "content":
                value = normalize(value or "")
            elif key == "analysis":
                value = normalize(value or DEFAULT_ANALYSIS)
            elif key == "learning_guide":
                value = normalize(value or DEFAULT_LEARNING_GUIDE)
            elif key == "answer":
                value = normalize(join_answer(value))
            elif key == "options":
                value = normalize_options(ensure_list(value))
            elif key == "subject":
                value = _subject_value(value)
            elif value is None and key in ("difficulty", "knowledge_points"):
                continue
            setattr(question, key, value)

        self.store.save(question)
        logger.info("Updated question %s (%s)", question_id, ", ".join(sorted(updates)) or "no fields")
        return question

    def get(self, question_id: str) -> Question:
        question = self.store.get(question_id)
        if question is None:
            raise QuestionNotFoundError(question_id)
        return question

    def list_questions(
        self,
        page: int = 1,
        page_size: int = 20,
        subject: Optional[str] = None,
        include_deleted: bool = False,
    ) -> dict[str, Any]:
        """Newest-first page of questions, trashed ones hidden by default."""
        page = max(page, 1)
        page_size = max(page_size, 1)
        questions = [
            q for q in self.store.all()
            if (include_deleted or not q.is_deleted)
            and (subject is None or q.subject == subject)
        ]
        questions.sort(key=lambda q: q.created_at, reverse=True)
        offset = (page - 1) * page_size
        return {
            "items": questions[offset:offset + page_size],
            "total": len(questions),
            "page": page,
            "page_size": page_size,
        }

    def list_trash(self) -> list[Question]:
        trashed = [q for q in self.store.all() if q.is_deleted]
        trashed.sort(key=lambda q: q.deleted_at or "", reverse=True)
        return trashed

    def soft_delete(self, question_id: str) -> Question:
        question = self.get(question_id)
        question.deleted_at = utc_now()
        self.store.save(question)
        logger.info("Moved question %s to trash", question_id)
        return question

    def restore(self, question_id: str) -> Question:
        question = self.get(question_id)
        question.deleted_at = None
        self.store.save(question)
        logger.info("Restored question %s", question_id)
        return question

    def hard_delete(self, question_id: str) -> None:
        if not self.store.delete(question_id):
            raise QuestionNotFoundError(question_id)
        logger.info("Permanently deleted question %s", question_id)

    def mark_reviewed(self, question_id: str) -> Question:
        question = self.get(question_id)
        question.last_reviewed_at = utc_now()
        self.store.save(question)
        return question

    def export_backup(self) -> dict[str, Any]:
        return {
            "version": BACKUP_VERSION,
            "exportedAt": int(time.time() * 1000),
            "data": [q.to_dict() for q in self.store.all()],
        }

    def import_backup(self, payload: dict[str, Any]) -> int:
        """Import records from a backup; ids that already exist are skipped.

        Imported text is normalized again, which leaves canonical text as is.
        """
        records = payload.get("data")
        if not isinstance(records, list):
            raise ValueError("Backup payload has no 'data' list")

        imported: list[Question] = []
        for record in records:
            if not isinstance(record, dict) or "content" not in record:
                logger.warning("Skipping malformed backup record")
                continue
            question = Question.from_dict(record)
            for name in TEXT_FIELDS:
                setattr(question, name, normalize(getattr(question, name)))
            question.options = normalize_options(ensure_list(question.options))
            imported.append(question)

        added = self.store.save_many(imported)
        logger.info("Imported %d of %d question(s) from backup", added, len(records))
        return added
