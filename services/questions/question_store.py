"""JSON-file persistence for question records."""
from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from core.config import settings
from core.logger import logger
from services.questions.models import Question


class JsonQuestionStore:
    """Persist questions as a JSON list; every write replaces the file atomically."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path or settings.questions_file
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _read(self) -> list[Question]:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return [Question.from_dict(item) for item in raw]

    def _write(self, questions: list[Question]) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".questions-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump([q.to_dict() for q in questions], f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Saved %d question(s) to %s", len(questions), self.path)

    def all(self) -> list[Question]:
        with self._lock:
            return self._read()

    def get(self, question_id: str) -> Optional[Question]:
        with self._lock:
            return next((q for q in self._read() if q.id == question_id), None)

    def save(self, question: Question) -> Question:
        """Insert or replace by id."""
        with self._lock:
            questions = self._read()
            for idx, existing in enumerate(questions):
                if existing.id == question.id:
                    questions[idx] = question
                    break
            else:
                questions.append(question)
            self._write(questions)
        return question

    def save_many(self, new_questions: list[Question]) -> int:
        """Append records whose ids are not stored yet; returns how many were added."""
        with self._lock:
            questions = self._read()
            known = {q.id for q in questions}
            added: list[Question] = []
            for question in new_questions:
                if question.id not in known:
                    known.add(question.id)
                    added.append(question)
            if added:
                questions.extend(added)
                self._write(questions)
        return len(added)

    def delete(self, question_id: str) -> bool:
        with self._lock:
            questions = self._read()
            remaining = [q for q in questions if q.id != question_id]
            if len(remaining) == len(questions):
                return False
            self._write(remaining)
        return True
