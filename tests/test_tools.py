import pytest
from pydantic import BaseModel

from hitl_email_assistant.errors import InvalidArguments, UnknownAction
from hitl_email_assistant.tools import ActionRegistry, default_registry, get_tools, get_tools_by_name


def test_default_registry_holds_builtin_actions(registry):
    assert set(registry.names) == {
        "write_email",
        "schedule_meeting",
        "check_calendar_availability",
        "question",
        "done",
    }
    assert len(registry.tools) == 5


def test_get_tools_skips_unknown_names():
    tools = get_tools(["write_email", "not_a_tool", "done"])
    assert [t.name for t in tools] == ["write_email", "done"]
    assert set(get_tools_by_name(tools)) == {"write_email", "done"}


def test_write_email_output(registry):
    result = registry.invoke("write_email", {"to": "a@b.com", "subject": "S", "content": "C"})
    assert result == "Email sent to a@b.com with subject 'S' and content: C"


def test_schedule_meeting_output(registry):
    result = registry.invoke(
        "schedule_meeting",
        {
            "attendees": ["a@b.com", "c@d.com"],
            "subject": "Planning",
            "duration_minutes": 30,
            "preferred_day": "2024-05-01",
            "start_time": 1400,
        },
    )
    assert result == (
        "Meeting 'Planning' scheduled on Wednesday, May 01, 2024 at 1400"
        " for 30 minutes with 2 attendees"
    )


def test_check_calendar_and_done(registry):
    assert registry.invoke("check_calendar_availability", {"day": "2024-05-01"}) == (
        "Available times on 2024-05-01: 9:00 AM, 2:00 PM, 4:00 PM"
    )
    assert registry.invoke("done", {}) == "Done"
    assert registry.invoke("question", {"content": "Which day?"}) == "Which day?"


def test_unknown_action_raises(registry):
    with pytest.raises(UnknownAction):
        registry.lookup("send_fax")
    with pytest.raises(UnknownAction):
        registry.invoke("send_fax", {})
    assert "send_fax" not in registry


def test_invalid_arguments_raise(registry):
    with pytest.raises(InvalidArguments):
        registry.invoke("write_email", {"to": "a@b.com"})
    with pytest.raises(InvalidArguments):
        registry.invoke("schedule_meeting", {
            "attendees": ["a@b.com"],
            "subject": "S",
            "duration_minutes": "half an hour",
            "preferred_day": "2024-05-01",
            "start_time": 900,
        })
    with pytest.raises(InvalidArguments):
        registry.invoke("check_calendar_availability", "2024-05-01")


def test_register_plain_callable():
    class EchoArgs(BaseModel):
        text: str

    def echo(text: str) -> str:
        return text.upper()

    registry = ActionRegistry()
    tool = registry.register("echo", EchoArgs, echo, description="Echo text back.")

    assert registry.lookup("echo") is tool
    assert registry.invoke("echo", {"text": "hi"}) == "HI"
    with pytest.raises(InvalidArguments):
        registry.invoke("echo", {})


def test_registries_are_independent():
    first = default_registry(["write_email"])
    second = default_registry()
    assert "done" not in first
    assert "done" in second
