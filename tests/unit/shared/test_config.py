"""
Tests for YAML configuration loading and structured logging.
"""

import json
import logging

from ollie.shared.config import DEMO_MESSAGE_LIMIT, OllieSettings
from ollie.shared.logging import ChildIdFilter, StructuredFormatter, anonymize_child_id


def test_load_from_yaml_flattens_typing_delay(tmp_path):
    config_path = tmp_path / "ollie.yaml"
    config_path.write_text(
        "ollie:\n"
        "  demo:\n"
        "    message_limit: 5\n"
        "    typing_delay:\n"
        "      min_ms: 100\n"
        "      max_ms: 200\n"
        "  tools:\n"
        "    timeout_seconds: 30\n"
    )

    loaded = OllieSettings.load_from_yaml(config_path)

    assert loaded.demo.message_limit == 5
    assert loaded.demo.min_typing_delay_ms == 100
    assert loaded.demo.max_typing_delay_ms == 200
    assert loaded.demo.typing_ms_per_char == 10
    assert loaded.tools.timeout_seconds == 30


def test_missing_yaml_uses_defaults(tmp_path):
    loaded = OllieSettings.load_from_yaml(tmp_path / "missing.yaml")

    assert loaded.demo.message_limit == DEMO_MESSAGE_LIMIT == 3
    assert loaded.quota.storage_key == "orbit_demo_chat_count"
    assert loaded.quota.window_hours == 24


def test_structured_formatter_includes_context():
    record = logging.LogRecord("ollie.test", logging.INFO, __file__, 1, "Tool generated", None, None)
    record.child_id = "child-42"
    record.action = "tool_quiz"
    record.count = 3

    data = json.loads(StructuredFormatter().format(record))

    assert data["message"] == "Tool generated"
    assert data["child_id"] == "child-42"
    assert data["action"] == "tool_quiz"
    assert data["count"] == "3"


def test_child_ids_are_hashed_once():
    record = logging.LogRecord("ollie.test", logging.INFO, __file__, 1, "Chat reply", None, None)
    record.child_id = "child-42"

    id_filter = ChildIdFilter()
    assert id_filter.filter(record)
    hashed = record.child_id
    assert hashed == anonymize_child_id("child-42")
    assert hashed != "child-42"

    id_filter.filter(record)
    assert record.child_id == hashed
