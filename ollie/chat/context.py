"""
Collaborator contracts consumed by the chat session: the live chat
context, the current lesson and the current child profile.
"""

from typing import List, Optional, Protocol

from pydantic import Field

from ollie.chat.models import AgeGroup, CamelModel, Message


class ChatContext(Protocol):
    """Authenticated chat backend used in live mode."""

    messages: List[Message]
    is_loading: bool
    is_streaming: bool
    safety_flags: List[str]
    error: Optional[str]
    suggested_questions: List[str]
    welcome_message: Optional[str]

    async def send_message(self, text: str) -> None: ...

    def clear_chat(self) -> None: ...

    def retry_last_message(self) -> None: ...

    def add_message(self, message: Message) -> None: ...

    def add_messages(self, messages: List[Message]) -> None: ...


class LessonContent(CamelModel):
    raw_text: Optional[str] = None


class Chapter(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None


class LessonContext(CamelModel):
    """The lesson the learner is currently studying."""
    id: Optional[str] = None
    title: Optional[str] = None
    raw_text: Optional[str] = None
    content: Optional[LessonContent] = None
    summary: Optional[str] = None
    key_concepts_for_chat: List[str] = Field(default_factory=list)
    chapters: List[Chapter] = Field(default_factory=list)

    def source_text(self) -> Optional[str]:
        """First non-empty textual field, used as tool generation input."""
        candidates = [
            self.raw_text,
            self.content.raw_text if self.content else None,
            self.summary,
            "\n\n".join(c.content for c in self.chapters if c.content),
        ]
        for text in candidates:
            if text and text.strip():
                return text
        return None


class ChildProfile(CamelModel):
    """Learner identity passed along with tool generation requests."""
    child_id: Optional[str] = None
    age_group: AgeGroup = AgeGroup.OLDER
