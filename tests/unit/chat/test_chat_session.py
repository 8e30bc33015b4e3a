"""
Tests for the chat session orchestrator: mode selection, demo quota,
live delegation, drafts and views.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from ollie.chat.models import FlashcardsMessage, QuizMessage, Role, assistant_message, user_message
from ollie.chat.ports import DemoChatPort, SessionMode
from ollie.chat.responses import DEMO_WELCOME_MESSAGE, LIMIT_REACHED_MESSAGE
from ollie.chat.session import ChatSession, resolve_mode
from ollie.chat.views import FlashcardsView, QuizView
from ollie.safety.status import SafetyStatus
from ollie.shared.exceptions import StorageError
from ollie.storage.kv import KeyValueStore
from ollie.storage.quota import QuotaRepository


def make_context(messages=None):
    """Stand-in for an authenticated chat context."""
    context = MagicMock()
    context.messages = messages if messages is not None else [assistant_message("Welcome back!")]
    context.is_loading = False
    context.is_streaming = False
    context.safety_flags = []
    context.error = None
    context.suggested_questions = ["What is an orbit?"]
    context.send_message = AsyncMock()
    return context


async def send_text(session: ChatSession, text: str) -> bool:
    session.change_input(text)
    sent = await session.send()
    if isinstance(session.port, DemoChatPort):
        await session.port.wait_for_replies()
    return sent


def test_resolve_mode():
    assert resolve_mode(True, make_context()) == SessionMode.DEMO
    assert resolve_mode(False, make_context()) == SessionMode.LIVE
    assert resolve_mode(False, None) == SessionMode.DEMO


@pytest.mark.asyncio
async def test_demo_starts_with_welcome(quota, fast_demo_config):
    async with ChatSession(demo_mode=True, quota=quota, config=fast_demo_config) as session:
        assert session.is_demo
        assert [m.content for m in session.messages] == [DEMO_WELCOME_MESSAGE]
        assert session.remaining_messages == 3
        assert session.suggested_questions


@pytest.mark.asyncio
async def test_demo_black_hole_reply(quota, fast_demo_config):
    async with ChatSession(demo_mode=True, quota=quota, config=fast_demo_config) as session:
        assert await send_text(session, "What are black holes?")

        user, reply = session.messages[1:]
        assert user.role == Role.USER
        assert reply.role == Role.ASSISTANT
        assert reply.content.startswith("Black holes are places in space")
        assert session.input == ""
        assert quota.read().count == 1


@pytest.mark.asyncio
async def test_demo_limit_scenario(quota, fast_demo_config):
    async with ChatSession(demo_mode=True, quota=quota, config=fast_demo_config) as session:
        for _ in range(3):
            assert await send_text(session, "hi")

        assert session.limit_reached
        assert session.remaining_messages == 0
        assert quota.read().count == 3

        last = session.messages[-1]
        assert last.is_limit_message
        assert last.content == LIMIT_REACHED_MESSAGE
        # welcome + (hi, reply) x2 + (hi, limit)
        assert len(session.messages) == 7

        assert not await send_text(session, "hi")
        assert len(session.messages) == 7
        assert quota.read().count == 3
        assert not session.can_send


@pytest.mark.asyncio
async def test_demo_quota_survives_new_session(quota, fast_demo_config):
    async with ChatSession(demo_mode=True, quota=quota, config=fast_demo_config) as session:
        await send_text(session, "hi")
        await send_text(session, "hi")

    async with ChatSession(demo_mode=True, quota=quota, config=fast_demo_config) as session:
        assert session.remaining_messages == 1
        await send_text(session, "tell me about volcanoes")
        assert session.limit_reached


@pytest.mark.asyncio
async def test_demo_quota_resets_after_window(quota, clock, fast_demo_config):
    quota.increment(3)
    clock.advance_hours(24)

    async with ChatSession(demo_mode=True, quota=quota, config=fast_demo_config) as session:
        assert not session.limit_reached
        assert session.remaining_messages == 3


@pytest.mark.asyncio
async def test_open_demo_session_unlocks_when_window_elapses(quota, clock, fast_demo_config):
    async with ChatSession(demo_mode=True, quota=quota, config=fast_demo_config) as session:
        for _ in range(3):
            await send_text(session, "hi")
        assert session.limit_reached

        clock.advance_hours(25)
        assert quota.read().count == 0
        assert not session.limit_reached
        assert session.remaining_messages == 3

        assert await send_text(session, "hi")
        assert quota.read().count == 1
        assert session.remaining_messages == 2


class UnreadableStore(KeyValueStore):
    def get(self, key):
        raise StorageError("storage disabled")

    def set(self, key, value):
        raise StorageError("storage disabled")

    def delete(self, key):
        raise StorageError("storage disabled")


@pytest.mark.asyncio
async def test_demo_limit_holds_without_storage(clock, fast_demo_config):
    quota = QuotaRepository(store=UnreadableStore(), clock=clock)
    async with ChatSession(demo_mode=True, quota=quota, config=fast_demo_config) as session:
        for _ in range(3):
            assert await send_text(session, "hi")

        assert session.limit_reached
        assert not await send_text(session, "hi")


@pytest.mark.asyncio
async def test_blank_draft_is_not_sent(quota, fast_demo_config):
    async with ChatSession(demo_mode=True, quota=quota, config=fast_demo_config) as session:
        assert not await send_text(session, "   ")
        assert len(session.messages) == 1
        assert quota.read().count == 0


@pytest.mark.asyncio
async def test_demo_never_touches_chat_context(quota, fast_demo_config):
    context = make_context()
    async with ChatSession(
        demo_mode=True, chat_context=context, quota=quota, config=fast_demo_config
    ) as session:
        await send_text(session, "hi")
        session.clear()

    context.send_message.assert_not_called()
    context.clear_chat.assert_not_called()


@pytest.mark.asyncio
async def test_demo_clear_resets_to_welcome(quota, fast_demo_config):
    async with ChatSession(demo_mode=True, quota=quota, config=fast_demo_config) as session:
        await send_text(session, "hi")
        session.clear()
        assert [m.content for m in session.messages] == [DEMO_WELCOME_MESSAGE]
        # Clearing does not refund the quota
        assert session.remaining_messages == 2


@pytest.mark.asyncio
async def test_close_cancels_pending_replies(quota):
    session = ChatSession(demo_mode=True, quota=quota, config={"min_typing_delay_ms": 60_000})
    session.change_input("hi")
    await session.send()
    assert session.is_typing

    await session.close()
    assert len(session.messages) == 2
    assert not session.is_typing


@pytest.mark.asyncio
async def test_live_delegates_to_context():
    context = make_context()
    async with ChatSession(chat_context=context) as session:
        assert not session.is_demo
        assert session.remaining_messages is None
        assert session.suggested_questions == ["What is an orbit?"]

        assert await send_text(session, "  What is an orbit?  ")
        context.send_message.assert_awaited_once_with("What is an orbit?")

        session.clear()
        context.clear_chat.assert_called_once()

        session.retry_last()
        context.retry_last_message.assert_called_once()


@pytest.mark.asyncio
async def test_live_send_failure_is_contained():
    context = make_context()
    context.send_message.side_effect = RuntimeError("backend down")

    async with ChatSession(chat_context=context) as session:
        assert await send_text(session, "hello")


@pytest.mark.asyncio
async def test_live_typing_and_safety_follow_context():
    context = make_context()
    context.is_loading = True
    context.safety_flags = ["profanity"]

    async with ChatSession(chat_context=context) as session:
        assert session.is_typing
        report = session.safety_report()
        assert report.status == SafetyStatus.WARNING
        assert report.label == "Content Filtered"


@pytest.mark.asyncio
async def test_demo_safety_is_always_safe(quota, fast_demo_config):
    async with ChatSession(demo_mode=True, quota=quota, config=fast_demo_config) as session:
        assert session.safety_report().status == SafetyStatus.SAFE


def test_input_observer_and_initial_value():
    changes = []
    session = ChatSession(
        demo_mode=True,
        quota=QuotaRepository(),
        initial_input="Tell me about",
        on_input_change=changes.append,
    )

    assert session.input == "Tell me about"
    session.change_input("Tell me about owls")
    assert changes == ["Tell me about owls"]

    session.sync_initial_input("Tell me about")
    assert session.input == "Tell me about owls"

    session.sync_initial_input("What is a fossil?")
    assert session.input == "What is a fossil?"


@pytest.mark.asyncio
async def test_views_keep_engine_state(quota, fast_demo_config, sample_flashcards, sample_quiz):
    async with ChatSession(demo_mode=True, quota=quota, config=fast_demo_config) as session:
        cards = FlashcardsMessage(role=Role.ASSISTANT, flashcards=sample_flashcards)
        quiz = QuizMessage(role=Role.ASSISTANT, quiz=sample_quiz)
        session.port.add_messages([user_message("Make flashcards"), cards, quiz])

        flash_view = session.view(cards)
        assert isinstance(flash_view, FlashcardsView)
        flash_view.review.flip()
        assert session.view(cards) is flash_view
        assert session.view(cards).review.is_flipped

        quiz_view = session.view(quiz)
        assert isinstance(quiz_view, QuizView)
        quiz_view.session.select_answer(1)
        assert session.view(quiz).session.score == 1

        assert len(session.views()) == 4

        session.clear()
        assert len(session.views()) == 1
        assert session.view(cards) is not flash_view
