"""
Quiz taking state machine with scoring, feedback and an answer key.

Phases: ANSWERING(i) -> ANSWERED(i) -> ANSWERING(i+1) -> ... -> RESULTS.
One answer per question, no skipping; ``advance`` is ignored outside
ANSWERED, so repeated "Next" presses cannot skip a question or report
completion twice.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from ollie.chat.models import Question, Quiz

EMPTY_QUIZ_TEXT = "No quiz available"

# (lower bound inclusive, emoji, text), checked top to bottom
RESULT_BANDS: List[Tuple[int, str, str]] = [
    (100, "🏆", "Perfect score! You're amazing!"),
    (80, "🌟", "Excellent work! You really know your stuff!"),
    (60, "👍", "Good job! Keep learning!"),
    (40, "📚", "Nice try! Review the lesson and try again!"),
    (0, "💪", "Keep practicing! You'll get there!"),
]


class QuizPhase(str, Enum):
    ANSWERING = "answering"
    ANSWERED = "answered"
    RESULTS = "results"


class OptionState(str, Enum):
    NEUTRAL = "neutral"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    DIMMED = "dimmed"


@dataclass(frozen=True)
class AnswerRecord:
    question_index: int
    selected: int
    correct: int
    is_correct: bool


@dataclass(frozen=True)
class QuizResult:
    score: int
    total: int


@dataclass(frozen=True)
class Feedback:
    is_correct: bool
    headline: str
    explanation: Optional[str] = None
    encouragement: Optional[str] = None


@dataclass(frozen=True)
class ResultMessage:
    emoji: str
    text: str


@dataclass(frozen=True)
class AnswerKeyEntry:
    question_index: int
    question: str
    options: List[str]
    correct: int
    selected: Optional[int]
    is_correct: bool
    explanation: Optional[str] = None

    def option_marks(self) -> List[OptionState]:
        """Correct option and a wrong selection are marked independently."""
        marks = []
        for index in range(len(self.options)):
            if index == self.correct:
                marks.append(OptionState.CORRECT)
            elif index == self.selected:
                marks.append(OptionState.INCORRECT)
            else:
                marks.append(OptionState.NEUTRAL)
        return marks


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def result_message_for(percentage: int) -> ResultMessage:
    for lower, emoji, text in RESULT_BANDS:
        if percentage >= lower:
            return ResultMessage(emoji=emoji, text=text)
    return ResultMessage(emoji=RESULT_BANDS[-1][1], text=RESULT_BANDS[-1][2])


class QuizSession:
    """Attempt state for one quiz, scoped to a single message instance."""

    def __init__(
        self,
        quiz: Optional[Quiz],
        on_complete: Optional[Callable[[QuizResult], None]] = None
    ):
        self.quiz = quiz or Quiz()
        self.on_complete = on_complete
        self.retry()

    @property
    def questions(self) -> List[Question]:
        return self.quiz.questions

    @property
    def title(self) -> str:
        return self.quiz.title or "Quiz"

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    @property
    def current_question(self) -> Optional[Question]:
        if self.is_empty or self.phase == QuizPhase.RESULTS:
            return None
        return self.questions[self.question_index]

    @property
    def is_last_question(self) -> bool:
        return self.question_index == self.total - 1

    @property
    def show_results(self) -> bool:
        return self.phase == QuizPhase.RESULTS

    @property
    def answered_count(self) -> int:
        return len(self.answers)

    @property
    def progress(self) -> float:
        if self.is_empty:
            return 0.0
        if self.show_results:
            return 1.0
        answered = 1 if self.phase == QuizPhase.ANSWERED else 0
        return (self.question_index + answered) / self.total

    @property
    def percentage(self) -> int:
        if self.is_empty:
            return 0
        return round_half_up(100 * self.score / self.total)

    def select_answer(self, index: int) -> bool:
        """Answer the current question. Returns False when ignored."""
        question = self.current_question
        if self.phase != QuizPhase.ANSWERING or question is None:
            return False
        if not 0 <= index < len(question.options):
            return False

        is_correct = index == question.correct_answer
        self.selected = index
        self.phase = QuizPhase.ANSWERED
        if is_correct:
            self.score += 1
        self.answers.append(AnswerRecord(
            question_index=self.question_index,
            selected=index,
            correct=question.correct_answer,
            is_correct=is_correct,
        ))
        return True

    def advance(self) -> bool:
        """Move past an answered question. Returns False when ignored."""
        if self.phase != QuizPhase.ANSWERED:
            return False

        if self.is_last_question:
            self.phase = QuizPhase.RESULTS
            if self.on_complete:
                self.on_complete(QuizResult(score=self.score, total=self.total))
        else:
            self.question_index += 1
            self.selected = None
            self.phase = QuizPhase.ANSWERING
        return True

    def retry(self):
        self.question_index = 0
        self.selected: Optional[int] = None
        self.score = 0
        self.answers: List[AnswerRecord] = []
        self.phase = QuizPhase.ANSWERING
        self.answer_key_visible = False

    def toggle_answer_key(self) -> bool:
        if self.phase != QuizPhase.RESULTS:
            return False
        self.answer_key_visible = not self.answer_key_visible
        return True

    def feedback(self) -> Optional[Feedback]:
        """Feedback for the question just answered."""
        if self.phase != QuizPhase.ANSWERED:
            return None
        question = self.questions[self.question_index]
        is_correct = self.selected == question.correct_answer
        return Feedback(
            is_correct=is_correct,
            headline="🎉 Correct!" if is_correct else "💡 Not quite!",
            explanation=question.explanation,
            encouragement=question.encouragement,
        )

    def option_states(self) -> List[OptionState]:
        question = self.current_question
        if question is None:
            return []
        if self.phase == QuizPhase.ANSWERING:
            return [OptionState.NEUTRAL] * len(question.options)

        states = []
        for index in range(len(question.options)):
            if index == question.correct_answer:
                states.append(OptionState.CORRECT)
            elif index == self.selected:
                states.append(OptionState.INCORRECT)
            else:
                states.append(OptionState.DIMMED)
        return states

    def result_message(self) -> ResultMessage:
        return result_message_for(self.percentage)

    def answer_key(self) -> List[AnswerKeyEntry]:
        selected_by_question = {a.question_index: a.selected for a in self.answers}
        entries = []
        for index, question in enumerate(self.questions):
            selected = selected_by_question.get(index)
            entries.append(AnswerKeyEntry(
                question_index=index,
                question=question.question,
                options=list(question.options),
                correct=question.correct_answer,
                selected=selected,
                is_correct=selected == question.correct_answer,
                explanation=question.explanation,
            ))
        return entries

    def score_line(self) -> str:
        return f"Score: {self.score}/{self.answered_count}"

    def status_line(self) -> str:
        if self.is_empty:
            return EMPTY_QUIZ_TEXT
        if self.show_results:
            return f"{self.title}: {self.score}/{self.total} ({self.percentage}%)"
        return f"{self.title} - Question {self.question_index + 1} of {self.total}"
