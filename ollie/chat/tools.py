"""
On-demand learning tools: flashcards, summary, quiz and infographic.

Each tool runs independently with its own re-entrancy guard. Success
appends the learner's action message and the assistant's result as one
unit; failure appends a single friendly error message. The loading flag
is cleared on every path.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

from ollie.chat.context import ChildProfile, LessonContext
from ollie.chat.models import (
    FlashcardsMessage,
    InfographicMessage,
    Message,
    QuizMessage,
    Role,
    SummaryMessage,
    assistant_message,
    user_message,
)
from ollie.services.generation import ToolGenerationService
from ollie.shared.config import settings
from ollie.shared.exceptions import ToolGenerationError, ToolTimeoutError
from ollie.shared.logging import get_logger, log_with_context

logger = get_logger(__name__)


class ToolName(str, Enum):
    FLASHCARDS = "flashcards"
    SUMMARY = "summary"
    QUIZ = "quiz"
    INFOGRAPHIC = "infographic"


ACTION_TEXT = {
    ToolName.FLASHCARDS: "📚 Generate flashcards for this lesson",
    ToolName.SUMMARY: "📝 Summarize this lesson",
    ToolName.QUIZ: "🧠 Quiz me on this lesson",
    ToolName.INFOGRAPHIC: "🎨 Create an infographic for this lesson",
}

FAILURE_TEXT = {
    ToolName.FLASHCARDS: (
        "Oops! I couldn't make flashcards right now. 😅 Try asking me to explain "
        "the main ideas of the lesson instead!"
    ),
    ToolName.SUMMARY: (
        "Hmm, I had trouble summarizing this lesson. 🤔 You can ask me "
        "\"What is this lesson about?\" and I'll explain it!"
    ),
    ToolName.QUIZ: (
        "Oh no, I couldn't create a quiz this time. 😕 Try asking me to give you "
        "a practice question instead!"
    ),
    ToolName.INFOGRAPHIC: (
        "I couldn't draw the infographic right now. 🎨 Try the summary or "
        "flashcards to review the lesson instead!"
    ),
}

TIMEOUT_TEXT = (
    "This is taking longer than expected. ⏳ Let's try again in a moment, "
    "or ask me a question about the lesson while we wait!"
)


MessageSink = Callable[[List[Message]], None]


class ToolRunner:
    """Runs learning tools for the current lesson and tracks their loading state."""

    def __init__(
        self,
        service: Optional[ToolGenerationService],
        lesson: Optional[LessonContext],
        sink: MessageSink,
        profile: Optional[ChildProfile] = None,
        config: Optional[Dict] = None
    ):
        self.service = service
        self.lesson = lesson
        self.sink = sink
        self.profile = profile or ChildProfile()
        self.config = config or {}
        self.flashcard_count = self.config.get("flashcard_count", settings.tools.flashcard_count)
        self.quiz_question_count = self.config.get(
            "quiz_question_count", settings.tools.quiz_question_count
        )
        self.timeout_seconds = self.config.get("timeout_seconds", settings.tools.timeout_seconds)

        self.loading: Dict[ToolName, bool] = {tool: False for tool in ToolName}

    @property
    def any_loading(self) -> bool:
        return any(self.loading.values())

    @property
    def available(self) -> bool:
        return (
            self.service is not None
            and self.lesson is not None
            and self.lesson.source_text() is not None
        )

    def can_run(self, tool: ToolName) -> bool:
        return self.available and not self.loading[tool]

    async def run(self, tool: ToolName) -> bool:
        """Run one tool. Returns False when gated off, True once it has finished."""
        if not self.can_run(tool):
            return False

        self.loading[tool] = True
        try:
            result = await self._with_timeout(self._generate(tool))
            self.sink([user_message(ACTION_TEXT[tool]), result])
            log_with_context(
                logger, logging.INFO, "Tool generated",
                child_id=self.profile.child_id, action=f"tool_{tool.value}"
            )
        except ToolTimeoutError as e:
            logger.error(f"Tool {tool.value} timed out: {str(e)}")
            self.sink([assistant_message(TIMEOUT_TEXT, is_error=True)])
        except Exception as e:
            logger.error(f"Tool {tool.value} failed: {str(e)}", extra={"action": f"tool_{tool.value}"})
            self.sink([assistant_message(FAILURE_TEXT[tool], is_error=True)])
        finally:
            self.loading[tool] = False
        return True

    async def _with_timeout(self, operation: Awaitable[Message]) -> Message:
        if not self.timeout_seconds:
            return await operation
        try:
            return await asyncio.wait_for(operation, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise ToolTimeoutError(f"No result after {self.timeout_seconds}s") from e

    async def _generate(self, tool: ToolName) -> Message:
        content = self.lesson.source_text()
        title = self.lesson.title
        child_id = self.profile.child_id
        age_group = self.profile.age_group.value

        if tool == ToolName.FLASHCARDS:
            result = await self.service.generate_flashcards(
                content=content, count=self.flashcard_count,
                child_id=child_id, age_group=age_group
            )
            if not result.data:
                raise ToolGenerationError("No flashcards returned")
            return FlashcardsMessage(
                role=Role.ASSISTANT,
                content=f"Here are {len(result.data)} flashcards! Tap a card to flip it. 🃏",
                flashcards=result.data,
            )

        if tool == ToolName.SUMMARY:
            result = await self.service.generate_summary(
                content=content, title=title, child_id=child_id, age_group=age_group
            )
            return SummaryMessage(
                role=Role.ASSISTANT,
                content="Here's a quick summary of the lesson! ✨",
                summary=result.data,
            )

        if tool == ToolName.QUIZ:
            result = await self.service.generate_quiz(
                content=content, title=title, count=self.quiz_question_count,
                child_id=child_id, age_group=age_group
            )
            if not result.data.questions:
                raise ToolGenerationError("Quiz has no questions")
            return QuizMessage(
                role=Role.ASSISTANT,
                content="Let's see what you remember! Good luck! 🍀",
                quiz=result.data,
            )

        if tool == ToolName.INFOGRAPHIC:
            result = await self.service.generate_infographic(
                content=content, title=title,
                key_concepts=list(self.lesson.key_concepts_for_chat),
                child_id=child_id, age_group=age_group
            )
            if not result.data.image_data:
                raise ToolGenerationError("Infographic has no image data")
            return InfographicMessage(
                role=Role.ASSISTANT,
                content=result.data.description or "Here's an infographic of the lesson! 🎨",
                image_data=result.data.image_data,
                mime_type=result.data.mime_type,
            )

        raise ToolGenerationError(f"Unknown tool: {tool}")
