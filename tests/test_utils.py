import logging

from hitl_email_assistant.utils import (
    format_email_markdown,
    format_for_display,
    format_messages_string,
    parse_email,
)
from tests.agent_test_utils import ai_message, tool_call


def test_parse_email_accepts_aliases():
    assert parse_email({"author": "a", "to": "b", "subject": "c", "thread": "d"}) == ("a", "b", "c", "d")
    assert parse_email({"from": "a", "To": "b", "Subject": "c", "body": "d"}) == ("a", "b", "c", "d")
    assert parse_email("not a dict") == ("", "", "", "")


def test_format_email_markdown_contains_fields():
    markdown = format_email_markdown("Hello", "Alice", "Bob", "Body text")
    assert "**Subject**: Hello" in markdown
    assert "**From**: Alice" in markdown
    assert "**To**: Bob" in markdown
    assert "Body text" in markdown
    assert "**ID**" not in markdown


def test_format_for_display_handles_none_args(caplog):
    caplog.set_level(logging.WARNING)
    call = {"name": "write_email", "args": None}

    output = format_for_display(call)

    assert "# Email Draft" in output
    assert "_Note: Original tool args were discarded" in output
    assert "write_email emitted None args" in caplog.text


def test_format_for_display_normalises_schedule_list():
    call = {
        "name": "schedule_meeting",
        "args": {
            "attendees": [None, "alex@example.com", ""],
            "duration_minutes": None,
            "subject": "Sync",
            "preferred_day": None,
        },
    }

    output = format_for_display(call)

    assert "alex@example.com" in output
    assert "N/A" in output
    assert "# Calendar Invite" in output


def test_format_for_display_logs_on_string_args(caplog):
    caplog.set_level(logging.WARNING)
    call = {"name": "write_email", "args": "to=alex"}

    output = format_for_display(call)

    assert "Original tool args were discarded" in output
    assert "non-dict args" in caplog.text


def test_format_for_display_question_and_generic():
    assert "# Question for User" in format_for_display({"name": "question", "args": {"content": "When?"}})
    generic = format_for_display({"name": "check_calendar_availability", "args": {"day": "Monday"}})
    assert "# Tool Call: check_calendar_availability" in generic
    assert '"day": "Monday"' in generic


def test_format_messages_string():
    messages = [
        {"role": "user", "content": "Respond to the email"},
        ai_message(tool_call("write_email", {"to": "a"}, "c1"), tool_call("Done", {}, "c2")),
    ]
    rendered = format_messages_string(messages)
    assert "=== user ===" in rendered
    assert "tool_call -> write_email (c1)" in rendered
