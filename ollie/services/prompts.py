"""
Prompts and JSON schemas for the tutor and its learning tools.
"""

from typing import Any, Dict, List, Optional

from ollie.chat.context import LessonContext
from ollie.chat.models import AgeGroup

AUDIENCE = {
    AgeGroup.YOUNG: (
        "The learner is 4 to 7 years old. Use very short sentences, simple everyday "
        "words and one idea at a time."
    ),
    AgeGroup.OLDER: (
        "The learner is 8 to 12 years old. Use clear sentences, explain new words and "
        "give concrete examples."
    ),
}

TUTOR_PERSONA = (
    "You are Ollie, a warm and encouraging learning buddy for children. "
    "Answer questions about the current lesson, ask gentle follow-up questions, "
    "and celebrate effort. Never ask for or repeat personal information, never "
    "include links, and steer away from topics that are not suitable for children."
)


def truncate_content(content: str, max_chars: int) -> str:
    """Keep head and tail of long lesson text."""
    if len(content) <= max_chars:
        return content
    head = max_chars // 2
    tail = max_chars - head - 30
    return content[:head] + "\n\n[... lesson truncated ...]\n\n" + content[-tail:]


def tutor_system_prompt(
    age_group: AgeGroup,
    lesson: Optional[LessonContext] = None,
    max_chars: int = 8000
) -> str:
    parts = [TUTOR_PERSONA, AUDIENCE[age_group]]

    if lesson is not None:
        if lesson.title:
            parts.append(f"## Current Lesson\n{lesson.title}")
        if lesson.key_concepts_for_chat:
            parts.append("## Key Concepts\n" + "\n".join(f"- {c}" for c in lesson.key_concepts_for_chat))
        source = lesson.source_text()
        if source:
            parts.append(f"## Lesson Content\n{truncate_content(source, max_chars)}")

    return "\n\n".join(parts)


def tool_system_prompt(age_group: AgeGroup, json_only: bool = True) -> str:
    prompt = f"You create learning materials for children from lesson text. {AUDIENCE[age_group]}"
    if json_only:
        prompt += " Respond only with JSON matching the schema."
    return prompt


def flashcards_prompt(content: str, count: int) -> str:
    return (
        f"Create {count} flashcards from this lesson. Each card has a short question or "
        "term on the front, a clear answer on the back, a difficulty of easy, medium or "
        "hard, and an optional hint.\n\n"
        f"Lesson:\n{content}"
    )


def summary_prompt(content: str, title: Optional[str]) -> str:
    heading = f"Lesson title: {title}\n\n" if title else ""
    return (
        "Summarize this lesson with a title, a two-sentence overview, 3 to 5 key points, "
        "important vocabulary with kid-friendly definitions, 2 fun facts and one takeaway "
        "sentence.\n\n"
        f"{heading}Lesson:\n{content}"
    )


def quiz_prompt(content: str, title: Optional[str], count: int) -> str:
    heading = f"Lesson title: {title}\n\n" if title else ""
    return (
        f"Write a {count}-question multiple-choice quiz about this lesson. Each question "
        "has 3 or 4 options, the zero-based index of the correct option, a one-sentence "
        "explanation and a short encouragement.\n\n"
        f"{heading}Lesson:\n{content}"
    )


def infographic_prompt(
    content: str,
    title: Optional[str],
    key_concepts: List[str],
    age_group: AgeGroup
) -> str:
    concepts = ", ".join(key_concepts) if key_concepts else "the main ideas"
    style = "big friendly pictures and very few words" if age_group == AgeGroup.YOUNG else \
        "labelled pictures and short captions"
    return (
        f"A colorful educational infographic for children about "
        f"\"{title or 'this lesson'}\" showing {concepts}. Use {style}, a bright cheerful "
        f"palette and a clean layout. Lesson notes: {content[:1000]}"
    )


def infographic_description_prompt(content: str, title: Optional[str]) -> str:
    return (
        "In one or two sentences, tell a child what an infographic about this lesson "
        f"shows.\n\nTitle: {title or 'Untitled'}\n\nLesson:\n{content}"
    )


FLASHCARDS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "flashcards": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "front": {"type": "string"},
                    "back": {"type": "string"},
                    "difficulty": {"type": "string", "enum": ["easy", "medium", "hard"]},
                    "hint": {"type": ["string", "null"]},
                },
                "required": ["front", "back", "difficulty", "hint"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["flashcards"],
    "additionalProperties": False,
}

SUMMARY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "overview": {"type": "string"},
        "keyPoints": {"type": "array", "items": {"type": "string"}},
        "vocabulary": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "term": {"type": "string"},
                    "definition": {"type": "string"},
                },
                "required": ["term", "definition"],
                "additionalProperties": False,
            },
        },
        "funFacts": {"type": "array", "items": {"type": "string"}},
        "takeaway": {"type": "string"},
    },
    "required": ["title", "overview", "keyPoints", "vocabulary", "funFacts", "takeaway"],
    "additionalProperties": False,
}

QUIZ_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "questions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "question": {"type": "string"},
                    "options": {"type": "array", "items": {"type": "string"}},
                    "correctAnswer": {"type": "integer"},
                    "explanation": {"type": "string"},
                    "encouragement": {"type": "string"},
                },
                "required": ["question", "options", "correctAnswer", "explanation", "encouragement"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["title", "questions"],
    "additionalProperties": False,
}
