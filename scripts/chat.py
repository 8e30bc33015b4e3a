"""
CLI entry point for an interactive Ollie chat session.
"""

import asyncio
import argparse
from pathlib import Path
from typing import Optional

from ollie.chat.context import LessonContext
from ollie.chat.ports import DemoChatPort
from ollie.chat.session import ChatSession
from ollie.chat.views import FlashcardsView, QuizView, render_text
from ollie.services.generation import LLMToolGenerationService
from ollie.services.live_chat import LLMChatContext
from ollie.shared.config import settings
from ollie.shared.logging import setup_logging
from ollie.storage.kv import open_store
from ollie.storage.profiles import resolve_child_profile
from ollie.storage.quota import QuotaRepository

HELP_TEXT = """Commands:
  /flashcards /summary /quiz /infographic   run a learning tool
  /flip /next /prev /learned /skip          review the latest flashcards
  /answer A  /continue  /key  /retry        take the latest quiz
  /resend  /clear  /quit"""


def load_lesson(path: Optional[Path]) -> Optional[LessonContext]:
    """Plain text files become the lesson body; .json files are parsed as a lesson."""
    if path is None:
        return None
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        return LessonContext.model_validate_json(text)
    return LessonContext(id=path.stem, title=path.stem.replace("_", " ").title(), raw_text=text)


def latest_view(session: ChatSession, kind):
    for view in reversed(session.views()):
        if isinstance(view, kind):
            return view
    return None


async def handle_flashcards(session: ChatSession, command: str):
    view = latest_view(session, FlashcardsView)
    if view is None:
        print("No flashcards yet. Try /flashcards")
        return
    review = view.review
    if command == "/flip":
        review.flip()
    elif command == "/next":
        await review.next()
    elif command == "/prev":
        await review.prev()
    elif command == "/learned":
        await review.mark_learned()
        if review.is_complete:
            print("🎉 You learned every card!")
    elif command == "/skip":
        await review.mark_not_learned()
    print(render_text(view))


def handle_quiz(session: ChatSession, command: str, argument: str):
    view = latest_view(session, QuizView)
    if view is None:
        print("No quiz yet. Try /quiz")
        return
    quiz = view.session
    if command == "/answer":
        letter = argument.strip().upper()[:1]
        if not letter or not quiz.select_answer(ord(letter) - ord("A")):
            print("Pick one of the listed letters.")
            return
        feedback = quiz.feedback()
        print(feedback.headline)
        if feedback.explanation:
            print(feedback.explanation)
        print(quiz.score_line())
        return
    if command == "/continue":
        quiz.advance()
    elif command == "/retry":
        quiz.retry()
    elif command == "/key":
        if quiz.toggle_answer_key() and quiz.answer_key_visible:
            for entry in quiz.answer_key():
                mark = "✓" if entry.is_correct else "✗"
                print(f"{mark} {entry.question} -> {entry.options[entry.correct]}")
            return
    print(render_text(view))


async def run_tool(session: ChatSession, command: str):
    tools = {
        "/flashcards": session.generate_flashcards,
        "/summary": session.generate_summary,
        "/quiz": session.generate_quiz,
        "/infographic": session.generate_infographic,
    }
    if not session.can_use_tools:
        print("Learning tools need a lesson and a live session (--lesson FILE).")
        return
    before = len(session.messages)
    await tools[command]()
    for message in session.messages[before:]:
        print(render_text(session.view(message)))


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Ollie learning chat")
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Anonymous demo mode with canned replies and a daily message limit"
    )
    parser.add_argument(
        "--lesson",
        type=Path,
        default=None,
        help="Lesson file (.txt or .json)"
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=Path(settings.storage.db_path),
        help="Local storage path"
    )

    args = parser.parse_args()

    # Setup logging
    setup_logging()

    store = open_store(args.db)
    lesson = load_lesson(args.lesson)
    profile = resolve_child_profile(store)

    chat_context = None
    generation_service = None
    if not args.demo:
        chat_context = LLMChatContext(lesson=lesson, profile=profile)
        generation_service = LLMToolGenerationService()

    session = ChatSession(
        demo_mode=args.demo,
        chat_context=chat_context,
        lesson=lesson,
        generation_service=generation_service,
        quota=QuotaRepository(store),
        profile=profile,
    )

    loop = asyncio.get_running_loop()
    async with session:
        for message in session.messages:
            print(render_text(session.view(message)))
        if session.suggested_questions:
            print("Try: " + " | ".join(session.suggested_questions))
        print(HELP_TEXT)

        while True:
            try:
                line = await loop.run_in_executor(None, input, "> ")
            except EOFError:
                break
            line = line.strip()
            if not line:
                continue

            command, _, argument = line.partition(" ")
            if command == "/quit":
                break
            if command == "/clear":
                session.clear()
                for message in session.messages:
                    print(render_text(session.view(message)))
                continue
            if command == "/resend":
                session.retry_last()
                if isinstance(chat_context, LLMChatContext):
                    await chat_context.wait_for_pending()
                for message in session.messages[-2:]:
                    print(render_text(session.view(message)))
                continue
            if command in ("/flashcards", "/summary", "/quiz", "/infographic"):
                await run_tool(session, command)
                continue
            if command in ("/flip", "/next", "/prev", "/learned", "/skip"):
                await handle_flashcards(session, command)
                continue
            if command in ("/answer", "/continue", "/key", "/retry"):
                handle_quiz(session, command, argument)
                continue

            if session.limit_reached:
                print("You've used all your free messages for today.")
                continue

            before = len(session.messages)
            session.change_input(line)
            if not await session.send():
                continue
            if isinstance(session.port, DemoChatPort):
                await session.port.wait_for_replies()
            for message in session.messages[before:]:
                print(render_text(session.view(message)))
            if session.error:
                print("(Something went wrong. Type /resend to try again.)")
            if session.is_demo and session.remaining_messages:
                print(f"[{session.remaining_messages} free messages left]")


if __name__ == "__main__":
    asyncio.run(main())
