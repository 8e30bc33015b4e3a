"""
Learning tool generation: flashcards, summaries, quizzes and infographics.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import ValidationError

from ollie.chat.models import AgeGroup, CamelModel, Flashcard, Quiz, Summary
from ollie.services import prompts
from ollie.shared.config import settings
from ollie.shared.exceptions import ToolGenerationError
from ollie.shared.llm import LLMClient, LLMError
from ollie.shared.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class GenerationResult(Generic[T]):
    """Response envelope of every generation call."""
    data: T


class InfographicData(CamelModel):
    description: Optional[str] = None
    image_data: str
    mime_type: str = "image/png"


class ToolGenerationService(ABC):
    """Backend that turns lesson text into learning materials."""

    @abstractmethod
    async def generate_flashcards(
        self,
        content: str,
        count: int = 5,
        child_id: Optional[str] = None,
        age_group: str = AgeGroup.OLDER.value
    ) -> GenerationResult[List[Flashcard]]:
        ...

    @abstractmethod
    async def generate_summary(
        self,
        content: str,
        title: Optional[str] = None,
        child_id: Optional[str] = None,
        age_group: str = AgeGroup.OLDER.value
    ) -> GenerationResult[Summary]:
        ...

    @abstractmethod
    async def generate_quiz(
        self,
        content: str,
        title: Optional[str] = None,
        count: int = 5,
        child_id: Optional[str] = None,
        age_group: str = AgeGroup.OLDER.value
    ) -> GenerationResult[Quiz]:
        ...

    @abstractmethod
    async def generate_infographic(
        self,
        content: str,
        title: Optional[str] = None,
        key_concepts: Optional[List[str]] = None,
        child_id: Optional[str] = None,
        age_group: str = AgeGroup.OLDER.value
    ) -> GenerationResult[InfographicData]:
        ...


def _age(age_group: str) -> AgeGroup:
    try:
        return AgeGroup(age_group)
    except ValueError:
        return AgeGroup.OLDER


class LLMToolGenerationService(ToolGenerationService):
    """Generates learning materials with an LLM."""

    def __init__(self, llm: Optional[LLMClient] = None, max_content_chars: Optional[int] = None):
        self.llm = llm or LLMClient()
        self.max_content_chars = max_content_chars or settings.tools.max_content_chars

    def _content(self, content: str) -> str:
        if not content or not content.strip():
            raise ToolGenerationError("No lesson content to generate from")
        return prompts.truncate_content(content, self.max_content_chars)

    async def _structured(self, prompt: str, schema: dict, age_group: str) -> dict:
        try:
            return await self.llm.get_structured_completion(
                prompt=prompt,
                schema=schema,
                system_prompt=prompts.tool_system_prompt(_age(age_group))
            )
        except LLMError as e:
            raise ToolGenerationError(str(e)) from e

    async def generate_flashcards(
        self,
        content: str,
        count: int = 5,
        child_id: Optional[str] = None,
        age_group: str = AgeGroup.OLDER.value
    ) -> GenerationResult[List[Flashcard]]:
        data = await self._structured(
            prompts.flashcards_prompt(self._content(content), count),
            prompts.FLASHCARDS_SCHEMA,
            age_group
        )
        raw_cards = data.get("flashcards") if isinstance(data, dict) else None
        if not isinstance(raw_cards, list) or not raw_cards:
            raise ToolGenerationError("Flashcard response has no cards")

        try:
            cards = [
                Flashcard.model_validate({**card, "id": index})
                for index, card in enumerate(raw_cards, start=1)
                if isinstance(card, dict)
            ]
        except ValidationError as e:
            raise ToolGenerationError(f"Malformed flashcards: {e}") from e

        if not cards:
            raise ToolGenerationError("Flashcard response has no cards")

        logger.info(f"Generated {len(cards)} flashcards", extra={"action": "generate_flashcards"})
        return GenerationResult(data=cards[:count])

    async def generate_summary(
        self,
        content: str,
        title: Optional[str] = None,
        child_id: Optional[str] = None,
        age_group: str = AgeGroup.OLDER.value
    ) -> GenerationResult[Summary]:
        data = await self._structured(
            prompts.summary_prompt(self._content(content), title),
            prompts.SUMMARY_SCHEMA,
            age_group
        )
        summary = self._validate(Summary, data, "summary")
        if summary.title is None and title:
            summary.title = title
        return GenerationResult(data=summary)

    async def generate_quiz(
        self,
        content: str,
        title: Optional[str] = None,
        count: int = 5,
        child_id: Optional[str] = None,
        age_group: str = AgeGroup.OLDER.value
    ) -> GenerationResult[Quiz]:
        data = await self._structured(
            prompts.quiz_prompt(self._content(content), title, count),
            prompts.QUIZ_SCHEMA,
            age_group
        )
        quiz = self._validate(Quiz, data, "quiz")
        if not quiz.questions:
            raise ToolGenerationError("Quiz response has no questions")
        return GenerationResult(data=quiz)

    async def generate_infographic(
        self,
        content: str,
        title: Optional[str] = None,
        key_concepts: Optional[List[str]] = None,
        child_id: Optional[str] = None,
        age_group: str = AgeGroup.OLDER.value
    ) -> GenerationResult[InfographicData]:
        content = self._content(content)
        age = _age(age_group)
        try:
            image = await self.llm.generate_image(
                prompts.infographic_prompt(content, title, key_concepts or [], age)
            )
            description = await self.llm.get_completion(
                prompts.infographic_description_prompt(content, title),
                system_prompt=prompts.tool_system_prompt(age, json_only=False)
            )
        except LLMError as e:
            raise ToolGenerationError(str(e)) from e

        return GenerationResult(data=InfographicData(
            description=description.strip() or None,
            image_data=image["imageData"],
            mime_type=image.get("mimeType", "image/png"),
        ))

    @staticmethod
    def _validate(model: Any, data: Any, kind: str):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ToolGenerationError(f"Malformed {kind}: {e}") from e
