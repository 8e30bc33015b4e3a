"""
Chat session orchestrator.

Owns the draft input, the choice between demo and live conversation,
learning tool invocations and per-message views. The mode is resolved once
at construction and never changes for the lifetime of the session.
"""

from typing import Callable, Dict, List, Optional

from ollie.chat.context import ChatContext, ChildProfile, LessonContext
from ollie.chat.models import Message
from ollie.chat.ports import ChatSessionPort, DemoChatPort, LiveChatPort, SessionMode
from ollie.chat.tools import ToolName, ToolRunner
from ollie.chat.views import FlashcardsView, MessageView, QuizView, view_for
from ollie.safety.status import SafetyReport, resolve_safety_status
from ollie.services.generation import ToolGenerationService
from ollie.shared.logging import get_logger
from ollie.storage.quota import QuotaRepository

logger = get_logger(__name__)


def resolve_mode(demo_mode: bool, chat_context: Optional[ChatContext]) -> SessionMode:
    """Demo when requested; live when a chat context exists; demo otherwise."""
    if demo_mode:
        return SessionMode.DEMO
    if chat_context is not None:
        return SessionMode.LIVE
    logger.warning("Chat context unavailable, live features disabled", extra={"action": "mode_fallback"})
    return SessionMode.DEMO


class ChatSession:
    """Top-level controller for one mounted chat."""

    def __init__(
        self,
        demo_mode: bool = False,
        chat_context: Optional[ChatContext] = None,
        lesson: Optional[LessonContext] = None,
        generation_service: Optional[ToolGenerationService] = None,
        quota: Optional[QuotaRepository] = None,
        profile: Optional[ChildProfile] = None,
        initial_input: str = "",
        on_input_change: Optional[Callable[[str], None]] = None,
        config: Optional[Dict] = None
    ):
        self.config = config or {}
        self.mode = resolve_mode(demo_mode, chat_context)

        self.port: ChatSessionPort
        if self.mode == SessionMode.DEMO:
            self.port = DemoChatPort(quota=quota, config=self.config)
        else:
            self.port = LiveChatPort(chat_context)

        self.lesson = lesson
        self.tools = ToolRunner(
            service=generation_service,
            lesson=lesson,
            sink=self.port.add_messages,
            profile=profile,
            config=self.config,
        )

        self.input = initial_input
        self._initial_input = initial_input
        self.on_input_change = on_input_change
        self._views: Dict[int, MessageView] = {}

    async def __aenter__(self) -> "ChatSession":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    # Conversation

    @property
    def messages(self) -> List[Message]:
        return self.port.messages

    @property
    def is_demo(self) -> bool:
        return self.mode == SessionMode.DEMO

    @property
    def is_typing(self) -> bool:
        """Shared typing indicator: assistant composing or any tool in flight."""
        return self.port.is_composing or self.tools.any_loading

    @property
    def error(self) -> Optional[str]:
        return self.port.error

    @property
    def suggested_questions(self) -> List[str]:
        return self.port.suggested_questions

    @property
    def remaining_messages(self) -> Optional[int]:
        if isinstance(self.port, DemoChatPort):
            return self.port.remaining_messages
        return None

    @property
    def limit_reached(self) -> bool:
        return isinstance(self.port, DemoChatPort) and self.port.limit_reached

    @property
    def can_send(self) -> bool:
        return bool(self.input.strip()) and self.port.can_send

    def change_input(self, value: str):
        self.input = value
        if self.on_input_change:
            self.on_input_change(value)

    def sync_initial_input(self, value: str):
        """Adopt a new externally supplied initial value."""
        if value == self._initial_input:
            return
        self._initial_input = value
        self.input = value

    async def send(self) -> bool:
        """Send the draft. Returns False when nothing was sent."""
        text = self.input.strip()
        if not text or not self.port.can_send:
            return False
        self.input = ""
        return await self.port.send(text)

    def clear(self):
        self.port.clear()
        self._views.clear()

    def retry_last(self):
        self.port.retry_last()

    def safety_report(self) -> SafetyReport:
        return resolve_safety_status(self.port.safety_flags)

    # Learning tools

    @property
    def can_use_tools(self) -> bool:
        return self.tools.available

    def is_tool_loading(self, tool: ToolName) -> bool:
        return self.tools.loading[tool]

    @property
    def any_tool_loading(self) -> bool:
        return self.tools.any_loading

    async def generate_flashcards(self) -> bool:
        return await self.tools.run(ToolName.FLASHCARDS)

    async def generate_summary(self) -> bool:
        return await self.tools.run(ToolName.SUMMARY)

    async def generate_quiz(self) -> bool:
        return await self.tools.run(ToolName.QUIZ)

    async def generate_infographic(self) -> bool:
        return await self.tools.run(ToolName.INFOGRAPHIC)

    # Rendering

    def view(self, message: Message) -> MessageView:
        """View for a message; engine state persists for the message's lifetime."""
        cached = self._views.get(message.id)
        if cached is not None and (cached.message is message or isinstance(cached, (FlashcardsView, QuizView))):
            return cached
        view = view_for(message)
        self._views[message.id] = view
        return view

    def views(self) -> List[MessageView]:
        current = self.messages
        live_ids = {m.id for m in current}
        for stale in [key for key in self._views if key not in live_ids]:
            del self._views[stale]
        return [self.view(m) for m in current]

    async def close(self):
        await self.port.close()
        self._views.clear()
