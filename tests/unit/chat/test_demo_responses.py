"""
Tests for canned demo replies and typing delay.
"""

import pytest

from ollie.chat.responses import (
    FALLBACK_RESPONSE,
    demo_response,
    match_topic,
    typing_delay_ms,
)


def test_black_hole_reply():
    reply = demo_response("What are black holes?")
    assert reply.startswith("Black holes are places in space")


def test_specific_topics_win_over_general_ones():
    assert match_topic("Tell me about the sun").startswith("The Sun is a giant star")
    assert match_topic("how far is the moon").startswith("The Moon is Earth's closest")
    assert match_topic("hi, what are black holes").startswith("Black holes")


def test_greeting():
    assert demo_response("hi").startswith("Hello, friend!")


def test_keywords_match_whole_words():
    # "this" and "ship" must not trigger the "hi" greeting
    assert demo_response("this ship") == FALLBACK_RESPONSE


def test_plural_forms():
    assert match_topic("I love dinosaurs").startswith("Dinosaurs lived")


def test_unknown_topic_falls_back():
    assert demo_response("qwerty") == FALLBACK_RESPONSE


@pytest.mark.parametrize("text", ["", "short", "x" * 80, "x" * 10_000])
def test_typing_delay_is_clamped(text):
    delay = typing_delay_ms(text, 500, 1500, 10)
    assert 500 <= delay <= 1500


def test_typing_delay_scales_with_length():
    assert typing_delay_ms("x" * 100, 500, 1500, 10) == 1000


def test_black_hole_delay_within_bounds():
    reply = demo_response("What are black holes?")
    assert 500 <= typing_delay_ms(reply) <= 1500
