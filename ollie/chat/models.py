"""
Pydantic models for conversation messages and learning tool payloads.

Messages are a tagged union on ``type``; each variant carries only its own
payload. Wire shapes use camelCase (``isStreaming``, ``correctAnswer``,
``imageData``) and both spellings are accepted on input.
"""

import time
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel


_last_message_id = 0


def next_message_id() -> int:
    """Epoch-ms derived id, strictly increasing within the process."""
    global _last_message_id
    _last_message_id = max(int(time.time() * 1000), _last_message_id + 1)
    return _last_message_id


class CamelModel(BaseModel):
    """Base model using camelCase JSON serialization."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Role(str, Enum):
    """Conversation participant."""
    USER = "user"
    ASSISTANT = "assistant"


class MessageType(str, Enum):
    """Message discriminant."""
    TEXT = "text"
    FLASHCARDS = "flashcards"
    SUMMARY = "summary"
    QUIZ = "quiz"
    INFOGRAPHIC = "infographic"
    IMAGE = "image"


class AgeGroup(str, Enum):
    """Coarse learner age bucket used to scale generated content."""
    YOUNG = "YOUNG"  # 4-7
    OLDER = "OLDER"  # 8-12


class Flashcard(CamelModel):
    """Single flashcard. Immutable once generated."""
    model_config = ConfigDict(frozen=True)

    id: Union[int, str]
    front: str
    back: str
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    hint: Optional[str] = None


class Question(CamelModel):
    """Multiple-choice quiz question."""
    question: str
    options: List[str]
    correct_answer: int
    explanation: Optional[str] = None
    encouragement: Optional[str] = None

    @model_validator(mode="after")
    def _check_correct_answer(self) -> "Question":
        if not self.options:
            raise ValueError("options must not be empty")
        if not 0 <= self.correct_answer < len(self.options):
            raise ValueError(
                f"correct_answer {self.correct_answer} out of range for {len(self.options)} options"
            )
        return self


class Quiz(CamelModel):
    """Quiz document."""
    title: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)


class VocabularyItem(CamelModel):
    term: str
    definition: str


class Summary(CamelModel):
    """Structured lesson summary; every section is optional."""
    title: Optional[str] = None
    overview: Optional[str] = None
    key_points: List[str] = Field(default_factory=list)
    vocabulary: List[VocabularyItem] = Field(default_factory=list)
    fun_facts: List[str] = Field(default_factory=list)
    takeaway: Optional[str] = None


class QuotaRecord(CamelModel):
    """Persisted demo-usage counter."""
    count: int = Field(ge=0)
    timestamp: int  # window start, epoch ms


class BaseMessage(CamelModel):
    """Fields shared by every conversation turn."""
    id: int = Field(default_factory=next_message_id)
    role: Role
    content: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
    is_streaming: bool = False
    is_error: bool = False
    is_limit_message: bool = False
    safety_flags: List[str] = Field(default_factory=list)


class TextMessage(BaseMessage):
    type: Literal["text"] = "text"


class FlashcardsMessage(BaseMessage):
    type: Literal["flashcards"] = "flashcards"
    flashcards: List[Flashcard]


class SummaryMessage(BaseMessage):
    type: Literal["summary"] = "summary"
    summary: Summary


class QuizMessage(BaseMessage):
    type: Literal["quiz"] = "quiz"
    quiz: Quiz


class InfographicMessage(BaseMessage):
    """Generated lesson infographic; ``content`` holds the optional description."""
    type: Literal["infographic"] = "infographic"
    image_data: str
    mime_type: str = "image/png"


class ImageMessage(BaseMessage):
    type: Literal["image"] = "image"
    image_data: str
    mime_type: str = "image/png"


Message = Annotated[
    Union[
        TextMessage,
        FlashcardsMessage,
        SummaryMessage,
        QuizMessage,
        InfographicMessage,
        ImageMessage,
    ],
    Field(discriminator="type"),
]

_message_adapter = TypeAdapter(Message)


def parse_message(data: dict) -> Message:
    """Validate an external message dict into its variant."""
    return _message_adapter.validate_python(data)


def user_message(content: str) -> TextMessage:
    return TextMessage(role=Role.USER, content=content)


def assistant_message(content: str, **flags) -> TextMessage:
    return TextMessage(role=Role.ASSISTANT, content=content, **flags)
