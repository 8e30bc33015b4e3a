"""
The two disjoint conversation paths behind a chat session.

DemoChatPort keeps everything local and enforces the anonymous message
quota. LiveChatPort delegates to an authenticated ChatContext. A session
picks one at construction; the demo path is never given a ChatContext.
"""

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional, Set

from ollie.chat.context import ChatContext
from ollie.chat.models import Message, assistant_message, user_message
from ollie.chat.responses import (
    DEMO_WELCOME_MESSAGE,
    LIMIT_REACHED_MESSAGE,
    demo_response,
    typing_delay_ms,
)
from ollie.shared.config import settings
from ollie.shared.logging import get_logger
from ollie.storage.quota import QuotaRepository

logger = get_logger(__name__)

DEMO_SUGGESTED_QUESTIONS = [
    "What are black holes?",
    "How big were dinosaurs?",
    "Why do volcanoes erupt?",
]


class SessionMode(str, Enum):
    DEMO = "demo"
    LIVE = "live"


class ChatSessionPort(ABC):
    """Common interface of the demo and live conversation paths."""

    mode: SessionMode

    @property
    @abstractmethod
    def messages(self) -> List[Message]:
        """Conversation in display order."""

    @property
    @abstractmethod
    def is_composing(self) -> bool:
        """True while the assistant is preparing a reply."""

    @property
    @abstractmethod
    def safety_flags(self) -> List[str]:
        """Active content-safety flags."""

    @property
    def error(self) -> Optional[str]:
        return None

    @property
    def suggested_questions(self) -> List[str]:
        return []

    @property
    def can_send(self) -> bool:
        return True

    @abstractmethod
    async def send(self, text: str) -> bool:
        """Send a learner message. Returns False when nothing was sent."""

    @abstractmethod
    def clear(self):
        """Reset the conversation."""

    @abstractmethod
    def retry_last(self):
        """Retry the last failed learner message."""

    @abstractmethod
    def add_messages(self, messages: List[Message]):
        """Append messages in order as one unit."""

    async def close(self):
        """Release timers and other pending work."""


class DemoChatPort(ChatSessionPort):
    """Client-side conversation with canned replies and a rolling message quota."""

    mode = SessionMode.DEMO

    def __init__(
        self,
        quota: Optional[QuotaRepository] = None,
        config: Optional[Dict] = None
    ):
        self.config = config or {}
        self.message_limit = self.config.get("message_limit", settings.demo.message_limit)
        self.min_delay_ms = self.config.get("min_typing_delay_ms", settings.demo.min_typing_delay_ms)
        self.max_delay_ms = self.config.get("max_typing_delay_ms", settings.demo.max_typing_delay_ms)
        self.per_char_ms = self.config.get("typing_ms_per_char", settings.demo.typing_ms_per_char)
        self.limit_delay_ms = self.config.get(
            "limit_message_delay_ms", settings.demo.limit_message_delay_ms
        )

        self.quota = quota or QuotaRepository()
        self.message_count = 0
        self._sync_quota()

        self._messages: List[Message] = [assistant_message(DEMO_WELCOME_MESSAGE)]
        self._timers: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    @property
    def is_composing(self) -> bool:
        return bool(self._timers)

    @property
    def safety_flags(self) -> List[str]:
        return []

    @property
    def suggested_questions(self) -> List[str]:
        return list(DEMO_SUGGESTED_QUESTIONS)

    def _sync_quota(self):
        """Reload the count from storage so an elapsed window unlocks the session.

        When storage cannot be read the in-memory count stands.
        """
        reading = self.quota.read()
        if reading.available:
            self.message_count = reading.count

    @property
    def limit_reached(self) -> bool:
        self._sync_quota()
        return self.message_count >= self.message_limit

    @property
    def remaining_messages(self) -> int:
        self._sync_quota()
        return max(0, self.message_limit - self.message_count)

    @property
    def can_send(self) -> bool:
        return not self._closed and not self.limit_reached

    async def send(self, text: str) -> bool:
        text = text.strip()
        if not text or not self.can_send:
            return False

        self._messages.append(user_message(text))
        self.message_count += 1
        self.quota.increment(self.message_count)
        logger.info("Demo message sent", extra={
            "action": "demo_send",
            "count": self.message_count,
            "limit": self.message_limit
        })

        if self.limit_reached:
            self._schedule(
                self.limit_delay_ms,
                assistant_message(LIMIT_REACHED_MESSAGE, is_limit_message=True)
            )
            return True

        reply = demo_response(text)
        delay = typing_delay_ms(reply, self.min_delay_ms, self.max_delay_ms, self.per_char_ms)
        self._schedule(delay, assistant_message(reply))
        return True

    def _schedule(self, delay_ms: int, message: Message):
        task = asyncio.get_running_loop().create_task(self._deliver(delay_ms, message))
        self._timers.add(task)
        task.add_done_callback(self._timers.discard)

    async def _deliver(self, delay_ms: int, message: Message):
        await asyncio.sleep(delay_ms / 1000)
        if not self._closed:
            self._messages.append(message)

    async def wait_for_replies(self):
        """Wait until every scheduled reply has been delivered."""
        while self._timers:
            await asyncio.gather(*list(self._timers), return_exceptions=True)

    def _cancel_timers(self):
        for task in list(self._timers):
            task.cancel()

    def clear(self):
        self._cancel_timers()
        self._messages = [assistant_message(DEMO_WELCOME_MESSAGE)]

    def retry_last(self):
        # Canned replies cannot fail
        return None

    def add_messages(self, messages: List[Message]):
        self._messages.extend(messages)

    async def close(self):
        self._closed = True
        pending = list(self._timers)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


class LiveChatPort(ChatSessionPort):
    """Delegates the conversation to an authenticated chat context."""

    mode = SessionMode.LIVE

    def __init__(self, context: ChatContext):
        self.context = context

    @property
    def messages(self) -> List[Message]:
        return list(self.context.messages)

    @property
    def is_composing(self) -> bool:
        return bool(self.context.is_loading or self.context.is_streaming)

    @property
    def safety_flags(self) -> List[str]:
        return list(self.context.safety_flags or [])

    @property
    def error(self) -> Optional[str]:
        return self.context.error

    @property
    def suggested_questions(self) -> List[str]:
        return list(self.context.suggested_questions or [])

    async def send(self, text: str) -> bool:
        text = text.strip()
        if not text:
            return False
        try:
            await self.context.send_message(text)
        except Exception as e:
            # The context owns error display; a failed send must not end the session
            logger.error(f"Live send failed: {str(e)}", extra={"action": "live_send"})
        return True

    def clear(self):
        self.context.clear_chat()

    def retry_last(self):
        self.context.retry_last_message()

    def add_messages(self, messages: List[Message]):
        self.context.add_messages(messages)
