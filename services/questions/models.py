"""Question records and the request schemas accepted at the persistence boundary."""
from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Subject(str, Enum):
    MATH = "数学"
    PHYSICS = "物理"
    CHEMISTRY = "化学"
    BIOLOGY = "生物"
    ENGLISH = "英语"
    CHINESE = "语文"
    OTHER = "其他"


# Text fields that are normalized before storage and rendered on display
TEXT_FIELDS: tuple[str, ...] = ("content", "answer", "analysis", "learning_guide")

DEFAULT_ANSWER = "暂无答案"
DEFAULT_ANALYSIS = "暂无解析"
DEFAULT_LEARNING_GUIDE = "暂无建议"
DEFAULT_KNOWLEDGE_POINTS = ["综合"]
DEFAULT_DIFFICULTY = 3

# snake_case attribute -> camelCase JSON key
_JSON_KEYS = {
    "learning_guide": "learningGuide",
    "knowledge_points": "knowledgePoints",
    "cropped_diagram": "croppedDiagram",
    "diagram_description": "diagramDescription",
    "created_at": "createdAt",
    "last_reviewed_at": "lastReviewedAt",
    "deleted_at": "deletedAt",
}


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_question_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Question:
    """A stored question. Text fields hold canonical (normalized) text."""

    content: str
    options: list[str] = field(default_factory=list)
    answer: str = DEFAULT_ANSWER
    analysis: str = DEFAULT_ANALYSIS
    learning_guide: str = DEFAULT_LEARNING_GUIDE
    knowledge_points: list[str] = field(default_factory=lambda: list(DEFAULT_KNOWLEDGE_POINTS))
    subject: str = Subject.MATH.value
    difficulty: int = DEFAULT_DIFFICULTY
    image: Optional[str] = None
    cropped_diagram: Optional[str] = None
    diagram_description: Optional[str] = None
    id: str = field(default_factory=new_question_id)
    created_at: str = field(default_factory=utc_now)
    last_reviewed_at: Optional[str] = None
    deleted_at: Optional[str] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def to_dict(self) -> dict[str, Any]:
        return {_JSON_KEYS.get(key, key): value for key, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Question":
        reverse = {json_key: attr for attr, json_key in _JSON_KEYS.items()}
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            attr = reverse.get(key, key)
            if attr in known:
                kwargs[attr] = value
        return cls(**kwargs)


class QuestionCreate(BaseModel):
    """Raw fields as captured or typed; normalized by the service before storage."""

    model_config = ConfigDict(populate_by_name=True)

    content: str = ""
    options: Union[list[Any], str, None] = None
    answer: Union[str, list[str], None] = None
    analysis: Optional[str] = None
    learning_guide: Optional[str] = Field(default=None, alias="learningGuide")
    knowledge_points: Union[list[str], str, None] = Field(default=None, alias="knowledgePoints")
    subject: Optional[Subject] = None
    difficulty: Optional[int] = Field(default=None, ge=1, le=5)
    image: Optional[str] = None
    cropped_diagram: Optional[str] = Field(default=None, alias="croppedDiagram")
    diagram_description: Optional[str] = Field(default=None, alias="diagramDescription")


class QuestionUpdate(BaseModel):
    """Partial update; only fields that are set are applied."""

    model_config = ConfigDict(populate_by_name=True)

    content: Optional[str] = None
    options: Union[list[Any], str, None] = None
    answer: Union[str, list[str], None] = None
    analysis: Optional[str] = None
    learning_guide: Optional[str] = Field(default=None, alias="learningGuide")
    knowledge_points: Optional[list[str]] = Field(default=None, alias="knowledgePoints")
    subject: Optional[Subject] = None
    difficulty: Optional[int] = Field(default=None, ge=1, le=5)
    image: Optional[str] = None
    cropped_diagram: Optional[str] = Field(default=None, alias="croppedDiagram")
    diagram_description: Optional[str] = Field(default=None, alias="diagramDescription")
    last_reviewed_at: Optional[str] = Field(default=None, alias="lastReviewedAt")
