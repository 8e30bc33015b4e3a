"""
Message-type dispatch: one view per message, routing structured payloads
to the flashcard, quiz and summary engines and media to the expanded viewer.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Union

from ollie.chat.models import (
    FlashcardsMessage,
    ImageMessage,
    InfographicMessage,
    Message,
    MessageType,
    QuizMessage,
    Role,
    SummaryMessage,
    TextMessage,
)
from ollie.learning.flashcards import FlashcardReview
from ollie.learning.quiz import QuizResult, QuizSession
from ollie.learning.summary import format_summary, summary_sections


@dataclass
class ExpandedView:
    """Full-screen presentation of a tool result or image."""
    type: MessageType
    data: Any
    on_close: Optional[Callable[[], None]] = None
    is_open: bool = True

    def close(self):
        if not self.is_open:
            return
        self.is_open = False
        if self.on_close:
            self.on_close()


@dataclass
class MediaPayload:
    image_data: str
    mime_type: str
    text: Optional[str] = None

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type or 'image/png'};base64,{self.image_data}"


@dataclass
class TextView:
    message: TextMessage


@dataclass
class FlashcardsView:
    message: FlashcardsMessage
    review: FlashcardReview

    def expand(self, on_close: Optional[Callable[[], None]] = None) -> ExpandedView:
        return ExpandedView(MessageType.FLASHCARDS, self.message.flashcards, on_close)


@dataclass
class QuizView:
    message: QuizMessage
    session: QuizSession
    results: List[QuizResult] = field(default_factory=list)

    def expand(self, on_close: Optional[Callable[[], None]] = None) -> ExpandedView:
        return ExpandedView(MessageType.QUIZ, self.message.quiz, on_close)


@dataclass
class SummaryView:
    message: SummaryMessage

    @property
    def sections(self):
        return summary_sections(self.message.summary)

    def expand(self, on_close: Optional[Callable[[], None]] = None) -> ExpandedView:
        return ExpandedView(MessageType.SUMMARY, self.message.summary, on_close)


@dataclass
class MediaView:
    message: Union[InfographicMessage, ImageMessage]

    @property
    def payload(self) -> MediaPayload:
        return MediaPayload(
            image_data=self.message.image_data,
            mime_type=self.message.mime_type,
            text=self.message.content or None,
        )

    def expand(self, on_close: Optional[Callable[[], None]] = None) -> ExpandedView:
        return ExpandedView(MessageType(self.message.type), self.payload, on_close)


MessageView = Union[TextView, FlashcardsView, QuizView, SummaryView, MediaView]


def view_for(message: Message) -> MessageView:
    """Build the view for a message according to its type."""
    if isinstance(message, TextMessage):
        return TextView(message)
    if isinstance(message, FlashcardsMessage):
        return FlashcardsView(message, FlashcardReview(message.flashcards))
    if isinstance(message, QuizMessage):
        view = QuizView(message, QuizSession(message.quiz))
        view.session.on_complete = view.results.append
        return view
    if isinstance(message, SummaryMessage):
        return SummaryView(message)
    if isinstance(message, (InfographicMessage, ImageMessage)):
        return MediaView(message)
    raise TypeError(f"Unhandled message type: {type(message).__name__}")


def render_text(view: MessageView) -> str:
    """Plain-text rendering for the terminal front end."""
    message = view.message
    speaker = "You" if message.role == Role.USER else "Ollie"
    lines = [f"{speaker}: {message.content}"] if message.content else []

    if isinstance(view, FlashcardsView):
        review = view.review
        lines.append(f"  [{review.status_line()}]")
        card = review.current_card
        if card is not None:
            face = card.back if review.is_flipped else card.front
            lines.append(f"  {face}  ({card.difficulty})")
            if card.hint and not review.is_flipped:
                lines.append(f"  Hint: {card.hint}")
    elif isinstance(view, QuizView):
        session = view.session
        lines.append(f"  [{session.status_line()}]")
        question = session.current_question
        if question is not None:
            lines.append(f"  {question.question}")
            for index, option in enumerate(question.options):
                lines.append(f"    {chr(65 + index)}. {option}")
        elif session.show_results:
            result = session.result_message()
            lines.append(f"  {result.emoji} {result.text}")
    elif isinstance(view, SummaryView):
        lines.extend(f"  {line}" for line in format_summary(view.message.summary).splitlines())
    elif isinstance(view, MediaView):
        size_kb = len(view.message.image_data) * 3 // 4 // 1024
        lines.append(f"  [{view.message.type} {view.message.mime_type}, ~{size_kb} KB]")

    return "\n".join(lines)
