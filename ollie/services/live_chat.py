"""
LLM-backed chat context for live sessions, with input/output safety checks.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Set

from ollie.chat.context import ChildProfile, LessonContext
from ollie.chat.models import Message, Role, TextMessage, assistant_message, user_message
from ollie.safety.filters import SafetyFilters
from ollie.services.prompts import tutor_system_prompt
from ollie.shared.config import settings
from ollie.shared.llm import LLMClient, LLMError
from ollie.shared.logging import get_logger, log_with_context

logger = get_logger(__name__)

REPLY_FAILED_TEXT = "Oops! I had a little hiccup and couldn't answer that. 🙈 Can you try again?"


def default_welcome(lesson: Optional[LessonContext]) -> str:
    if lesson is not None and lesson.title:
        return (
            f"Hi! I'm Ollie! 🎉 I just read \"{lesson.title}\" and I'm ready to help you "
            "learn! What would you like to know?"
        )
    return "Hi! I'm Ollie. Open a lesson and I'll help you learn! 📚"


class LLMChatContext:
    """Authenticated chat context that answers with an LLM."""

    def __init__(
        self,
        llm: Optional[LLMClient] = None,
        lesson: Optional[LessonContext] = None,
        profile: Optional[ChildProfile] = None,
        filters: Optional[SafetyFilters] = None,
        config: Optional[Dict] = None
    ):
        self.llm = llm or LLMClient()
        self.lesson = lesson
        self.profile = profile or ChildProfile()
        self.filters = filters or SafetyFilters()
        self.config = config or {}
        self.history_messages = self.config.get("history_messages", settings.llm.history_messages)

        self.welcome_message: Optional[str] = default_welcome(lesson)
        self.messages: List[Message] = []
        self._in_flight = 0
        self.is_streaming = False
        self.safety_flags: List[str] = []
        self.error: Optional[str] = None
        self._last_user_text: Optional[str] = None
        self._pending: Set[asyncio.Task] = set()
        self._reset()

    def _reset(self):
        self.messages = [assistant_message(self.welcome_message)] if self.welcome_message else []
        self.safety_flags = []
        self.error = None
        self._last_user_text = None

    @property
    def is_loading(self) -> bool:
        """True while any reply is still awaited."""
        return self._in_flight > 0

    @property
    def suggested_questions(self) -> List[str]:
        if self.lesson is None:
            return []
        questions = [f"What is {concept}?" for concept in self.lesson.key_concepts_for_chat[:3]]
        if self.lesson.title:
            questions.append(f"Can you explain \"{self.lesson.title}\" simply?")
        return questions

    def _add_flags(self, flags: List[str]):
        for flag in flags:
            if flag not in self.safety_flags:
                self.safety_flags.append(flag)

    def _history(self) -> List[Dict[str, str]]:
        turns = [
            {"role": m.role.value, "content": m.content}
            for m in self.messages
            if isinstance(m, TextMessage) and m.content and not m.is_error
        ]
        return turns[-self.history_messages:]

    async def send_message(self, text: str) -> None:
        text = text.strip()
        if not text:
            return

        age_group = self.profile.age_group
        check = self.filters.validate_input(text, age_group)
        self._add_flags(check.flags)

        if not check.passed:
            self.messages.append(user_message(self.filters.sanitize_pii(text)))
            self.messages.append(assistant_message(
                check.blocked_reason or self.filters.blocked_message(check.flags),
                safety_flags=list(check.flags)
            ))
            return

        self._last_user_text = text
        self.error = None
        self.messages.append(user_message(self.filters.sanitize_pii(text)))
        self._in_flight += 1
        try:
            reply = await self.llm.get_chat_completion(
                self._history(),
                system_prompt=tutor_system_prompt(
                    age_group, self.lesson, settings.tools.max_content_chars
                )
            )
        except LLMError as e:
            logger.error(f"Chat reply failed: {str(e)}", extra={"action": "chat_reply"})
            self.error = str(e)
            self.messages.append(assistant_message(REPLY_FAILED_TEXT, is_error=True))
            return
        finally:
            self._in_flight -= 1

        output_check = self.filters.validate_output(reply, age_group)
        self._add_flags(output_check.flags)
        if output_check.passed:
            content = self.filters.sanitize_output(reply)
        else:
            content = self.filters.blocked_message(output_check.flags)

        self.messages.append(assistant_message(content, safety_flags=list(output_check.flags)))
        log_with_context(
            logger, logging.DEBUG, "Chat reply delivered",
            child_id=self.profile.child_id, action="chat_reply"
        )

    def retry_last_message(self) -> None:
        """Drop the trailing error reply and send the last learner message again."""
        if self._last_user_text is None:
            return
        if self.messages and self.messages[-1].is_error:
            self.messages.pop()
            if self.messages and self.messages[-1].role == Role.USER:
                self.messages.pop()

        task = asyncio.get_running_loop().create_task(self.send_message(self._last_user_text))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def wait_for_pending(self):
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def clear_chat(self) -> None:
        self._reset()

    def add_message(self, message: Message) -> None:
        self.messages.append(message)

    def add_messages(self, messages: List[Message]) -> None:
        self.messages.extend(messages)
