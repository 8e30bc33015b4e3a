"""
Pytest fixtures for Ollie tests.
"""

import pytest
from typing import List
from unittest.mock import AsyncMock

from ollie.chat.context import ChildProfile, LessonContext
from ollie.chat.models import AgeGroup, Flashcard, Question, Quiz, Summary, VocabularyItem
from ollie.services.generation import GenerationResult, InfographicData
from ollie.storage.kv import InMemoryKeyValueStore
from ollie.storage.quota import QuotaRepository


class FakeClock:
    """Settable wall clock in seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_hours(self, hours: float):
        self.now += hours * 3600


@pytest.fixture
def fast_demo_config():
    """Demo port config with no artificial delays."""
    return {
        "min_typing_delay_ms": 0,
        "max_typing_delay_ms": 0,
        "typing_ms_per_char": 0,
        "limit_message_delay_ms": 0,
    }


@pytest.fixture
def memory_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def quota(memory_store, clock):
    """Quota repository over memory storage with a controllable clock."""
    return QuotaRepository(store=memory_store, clock=clock)


@pytest.fixture
def lesson():
    return LessonContext(
        id="lesson-1",
        title="The Solar System",
        raw_text=(
            "The Solar System has eight planets that orbit the Sun. "
            "Jupiter is the largest planet and Mercury is the closest to the Sun."
        ),
        key_concepts_for_chat=["planets", "orbit", "the Sun"],
    )


@pytest.fixture
def profile():
    return ChildProfile(child_id="child-42", age_group=AgeGroup.YOUNG)


@pytest.fixture
def sample_flashcards() -> List[Flashcard]:
    return [
        Flashcard(id=1, front="Biggest planet?", back="Jupiter", difficulty="easy"),
        Flashcard(id=2, front="Closest planet to the Sun?", back="Mercury", hint="Starts with M"),
        Flashcard(id=3, front="How many planets?", back="Eight", difficulty="hard"),
    ]


def make_quiz(count: int = 5) -> Quiz:
    """Quiz whose correct answer is always option 1."""
    return Quiz(
        title="Planets Quiz",
        questions=[
            Question(
                question=f"Question {i + 1}?",
                options=["A", "B", "C", "D"],
                correct_answer=1,
                explanation=f"Because of fact {i + 1}.",
                encouragement="Keep going!",
            )
            for i in range(count)
        ],
    )


@pytest.fixture
def sample_quiz() -> Quiz:
    return make_quiz()


@pytest.fixture
def sample_summary() -> Summary:
    return Summary(
        title="The Solar System",
        overview="Eight planets travel around the Sun.",
        key_points=["Jupiter is the biggest", "Mercury is the closest"],
        vocabulary=[VocabularyItem(term="Orbit", definition="The path around the Sun")],
        fun_facts=["A day on Venus is longer than its year"],
        takeaway="Our Sun holds the planets together.",
    )


@pytest.fixture
def mock_generation_service(sample_flashcards, sample_quiz, sample_summary):
    """Mock tool generation service that returns canned results."""
    mock = AsyncMock()
    mock.generate_flashcards.return_value = GenerationResult(data=sample_flashcards)
    mock.generate_summary.return_value = GenerationResult(data=sample_summary)
    mock.generate_quiz.return_value = GenerationResult(data=sample_quiz)
    mock.generate_infographic.return_value = GenerationResult(data=InfographicData(
        description="A picture of the planets.",
        image_data="aGVsbG8=",
    ))
    return mock


@pytest.fixture
def mock_llm():
    """Mock LLM client that returns canned text."""
    mock = AsyncMock()
    mock.get_chat_completion.return_value = "Planets travel around the Sun."
    mock.get_completion.return_value = "A picture of the planets."
    mock.get_structured_completion.return_value = {}
    mock.generate_image.return_value = {"imageData": "aGVsbG8=", "mimeType": "image/png"}
    return mock


@pytest.fixture
def quiz_factory():
    return make_quiz
