"""
Tests for the LLM-backed live chat context.
"""

import asyncio

import pytest

from ollie.chat.models import Role
from ollie.chat.session import ChatSession
from ollie.safety.filters import BLOCKED_MESSAGES
from ollie.safety.status import SafetyStatus
from ollie.services.live_chat import REPLY_FAILED_TEXT, LLMChatContext
from ollie.shared.llm import LLMError


@pytest.fixture
def context(mock_llm, lesson, profile):
    return LLMChatContext(llm=mock_llm, lesson=lesson, profile=profile)


def test_welcome_and_suggestions(context):
    assert len(context.messages) == 1
    assert "The Solar System" in context.welcome_message
    assert context.suggested_questions[0] == "What is planets?"


@pytest.mark.asyncio
async def test_reply_is_appended(context, mock_llm):
    await context.send_message("How do planets move?")

    user, reply = context.messages[1:]
    assert user.role == Role.USER
    assert reply.content == "Planets travel around the Sun."
    assert not context.is_loading

    history = mock_llm.get_chat_completion.await_args.args[0]
    assert history[-1] == {"role": "user", "content": "How do planets move?"}
    assert "The Solar System" in mock_llm.get_chat_completion.await_args.kwargs["system_prompt"]


@pytest.mark.asyncio
async def test_blocked_input_never_reaches_llm(context, mock_llm):
    await context.send_message("you are stupid")

    mock_llm.get_chat_completion.assert_not_called()
    assert context.safety_flags == ["profanity"]
    assert context.messages[-1].content == BLOCKED_MESSAGES["profanity"]
    assert context.messages[-1].safety_flags == ["profanity"]


@pytest.mark.asyncio
async def test_unsafe_reply_is_replaced(context, mock_llm):
    mock_llm.get_chat_completion.return_value = "See https://example.com for more"

    await context.send_message("Where can I learn more?")

    assert "external_links" in context.safety_flags
    assert "https://" not in context.messages[-1].content


@pytest.mark.asyncio
async def test_failure_then_retry(context, mock_llm):
    mock_llm.get_chat_completion.side_effect = LLMError("timeout")

    await context.send_message("What is an orbit?")
    assert context.error == "timeout"
    assert context.messages[-1].is_error
    assert context.messages[-1].content == REPLY_FAILED_TEXT

    mock_llm.get_chat_completion.side_effect = None
    context.retry_last_message()
    await context.wait_for_pending()

    assert context.error is None
    assert [m.role for m in context.messages] == [Role.ASSISTANT, Role.USER, Role.ASSISTANT]
    assert not context.messages[-1].is_error


@pytest.mark.asyncio
async def test_loading_holds_until_every_reply_arrives(context, mock_llm):
    first_reply = asyncio.Event()
    second_reply = asyncio.Event()
    replies = iter([first_reply, second_reply])

    async def answer(*args, **kwargs):
        await next(replies).wait()
        return "Planets travel around the Sun."

    mock_llm.get_chat_completion.side_effect = answer

    first = asyncio.get_running_loop().create_task(context.send_message("What is an orbit?"))
    second = asyncio.get_running_loop().create_task(context.send_message("What is a moon?"))
    await asyncio.sleep(0)
    assert context.is_loading

    first_reply.set()
    await first
    assert context.is_loading

    second_reply.set()
    await second
    assert not context.is_loading


@pytest.mark.asyncio
async def test_clear_resets(context):
    await context.send_message("you are stupid")
    context.clear_chat()

    assert len(context.messages) == 1
    assert context.safety_flags == []
    assert context.error is None


@pytest.mark.asyncio
async def test_live_session_end_to_end(context, mock_generation_service, lesson, profile):
    async with ChatSession(
        chat_context=context,
        lesson=lesson,
        generation_service=mock_generation_service,
        profile=profile,
    ) as session:
        session.change_input("How do planets move?")
        assert await session.send()
        assert await session.generate_summary()

        assert len(session.messages) == 5
        assert session.safety_report().status == SafetyStatus.SAFE

        session.change_input("my email is kid@example.com")
        await session.send()
        assert session.safety_report().status == SafetyStatus.WARNING
        assert "kid@example.com" not in session.messages[-2].content
