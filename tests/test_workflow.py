"""End-to-end runs of the compiled workflow with real interrupts and resumes."""

import logging
import os

import pytest
from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

from hitl_email_assistant.configuration import AssistantConfig
from hitl_email_assistant.email_assistant_hitl import (
    CANCELLED_NOTE,
    IGNORE_NOTES,
    build_email_assistant,
)
from hitl_email_assistant.errors import InvalidResponse
from langgraph.checkpoint.memory import MemorySaver
from langgraph.types import Command
from tests.agent_test_utils import (
    FakeRouterLLM,
    FakeToolLLM,
    ai_message,
    compile_assistant,
    final_values,
    new_thread,
    pending_requests,
    resume,
    tool_call,
)

WRITE_ARGS = {
    "to": "alice.smith@company.com",
    "subject": "Re: Quick question about API documentation",
    "content": "Hi Alice, the /auth endpoints are documented in the wiki.",
}
SCHEDULE_ARGS = {
    "attendees": ["alice.smith@company.com", "lance@company.com"],
    "subject": "API docs walkthrough",
    "duration_minutes": 30,
    "preferred_day": "2024-05-01",
    "start_time": 1400,
}


def _done():
    return ai_message(tool_call("done", {"done": True}))


def _start(graph, email_input):
    thread = new_thread()
    graph.invoke({"email_input": email_input}, thread)
    return thread


def test_ignore_ends_without_messages(email_input):
    tool_llm = FakeToolLLM([])
    graph = compile_assistant(FakeRouterLLM("ignore"), tool_llm)

    thread = _start(graph, email_input)

    values = final_values(graph, thread)
    assert values["classification_decision"] == "ignore"
    assert values.get("messages", []) == []
    assert pending_requests(graph, thread) == []
    assert tool_llm.calls == []


def test_respond_then_done(email_input):
    tool_llm = FakeToolLLM([_done()])
    graph = compile_assistant(FakeRouterLLM("respond"), tool_llm)

    thread = _start(graph, email_input)

    messages = final_values(graph, thread)["messages"]
    assert isinstance(messages[0], HumanMessage)
    assert messages[0].content.startswith("Respond to the email: ")
    assert "Quick question about API documentation" in messages[0].content
    assert [tc["name"] for tc in messages[-1].tool_calls] == ["done"]
    assert len(messages) == 2
    assert pending_requests(graph, thread) == []


def test_calendar_check_runs_without_review(email_input):
    check = tool_call("check_calendar_availability", {"day": "Tuesday"}, "cal-1")
    tool_llm = FakeToolLLM([ai_message(check), _done()])
    graph = compile_assistant(FakeRouterLLM("respond"), tool_llm)

    thread = _start(graph, email_input)

    messages = final_values(graph, thread)["messages"]
    assert pending_requests(graph, thread) == []
    tool_messages = [m for m in messages if isinstance(m, ToolMessage)]
    assert len(tool_messages) == 1
    assert tool_messages[0].tool_call_id == "cal-1"
    assert tool_messages[0].content.startswith("Available times on Tuesday")
    assert len(tool_llm.calls) == 2


def test_write_email_accept_round_trip(email_input):
    tool_llm = FakeToolLLM([ai_message(tool_call("write_email", WRITE_ARGS, "w1")), _done()])
    graph = compile_assistant(FakeRouterLLM("respond"), tool_llm)

    thread = _start(graph, email_input)
    [request] = pending_requests(graph, thread)
    assert request["action_request"] == {"action": "write_email", "args": WRITE_ARGS}
    assert request["config"]["allow_edit"] is True

    resume(graph, thread, {"type": "accept", "args": None})

    messages = final_values(graph, thread)["messages"]
    [sent] = [m for m in messages if isinstance(m, ToolMessage)]
    assert sent.tool_call_id == "w1"
    assert sent.content.startswith("Email sent to alice.smith@company.com")
    assert pending_requests(graph, thread) == []


def test_edit_keeps_message_identity_and_position(email_input):
    proposal = ai_message(
        tool_call("write_email", WRITE_ARGS, "w1"),
        tool_call("check_calendar_availability", {"day": "Friday"}, "c1"),
        message_id="ai-draft",
    )
    tool_llm = FakeToolLLM([proposal, _done()])
    graph = compile_assistant(FakeRouterLLM("respond"), tool_llm)
    edited = dict(WRITE_ARGS, content="Hi Alice, see the wiki page on /auth.")

    thread = _start(graph, email_input)
    resume(graph, thread, {"type": "edit", "args": {"action": "write_email", "args": edited}})

    messages = final_values(graph, thread)["messages"]
    ai_messages = [m for m in messages if isinstance(m, AIMessage)]
    assert len(messages) == 5
    assert messages[1].id == "ai-draft"
    assert len(ai_messages) == 2
    assert [tc["id"] for tc in messages[1].tool_calls] == ["w1", "c1"]
    assert messages[1].tool_calls[0]["args"] == edited
    assert messages[1].tool_calls[1]["args"] == {"day": "Friday"}
    assert messages[2].tool_call_id == "w1"
    assert messages[2].content.endswith("see the wiki page on /auth.")
    assert messages[3].tool_call_id == "c1"


def test_ignore_stops_after_first_review(email_input):
    proposal = ai_message(
        tool_call("schedule_meeting", SCHEDULE_ARGS, "m1"),
        tool_call("write_email", WRITE_ARGS, "w1"),
    )
    tool_llm = FakeToolLLM([proposal])
    graph = compile_assistant(FakeRouterLLM("respond"), tool_llm)

    thread = _start(graph, email_input)
    [request] = pending_requests(graph, thread)
    assert request["action_request"]["action"] == "schedule_meeting"

    resume(graph, thread, {"type": "ignore", "args": None})

    messages = final_values(graph, thread)["messages"]
    tool_messages = [m for m in messages if isinstance(m, ToolMessage)]
    assert [m.content for m in tool_messages] == [
        IGNORE_NOTES["schedule_meeting"],
        CANCELLED_NOTE.format(name="write_email"),
    ]
    assert not any(m.content.startswith("Email sent") for m in tool_messages)
    assert pending_requests(graph, thread) == []
    assert len(tool_llm.calls) == 1


def test_notify_ignore_leaves_no_messages(email_input):
    tool_llm = FakeToolLLM([])
    graph = compile_assistant(FakeRouterLLM("notify"), tool_llm)

    thread = _start(graph, email_input)
    [request] = pending_requests(graph, thread)
    assert request["action_request"]["action"] == "Email Assistant: notify"
    assert request["config"]["allow_accept"] is False

    resume(graph, thread, {"type": "ignore", "args": None})

    values = final_values(graph, thread)
    assert values["classification_decision"] == "notify"
    assert values.get("messages", []) == []
    assert tool_llm.calls == []


def test_notify_reply_enters_response_agent(email_input):
    tool_llm = FakeToolLLM([_done()])
    graph = compile_assistant(FakeRouterLLM("notify"), tool_llm)

    thread = _start(graph, email_input)
    resume(graph, thread, {"type": "response", "args": "Let her know the docs ship Friday"})

    messages = final_values(graph, thread)["messages"]
    assert messages[0].content.startswith("Email to notify user about: ")
    assert messages[1].content.endswith("Let her know the docs ship Friday")
    assert len(tool_llm.calls) == 1


def test_notify_rejects_accept(email_input):
    graph = compile_assistant(FakeRouterLLM("notify"), FakeToolLLM([]))

    thread = _start(graph, email_input)

    with pytest.raises(InvalidResponse):
        resume(graph, thread, {"type": "accept", "args": None})


def test_question_answer_reaches_the_model(email_input):
    question = ai_message(tool_call("question", {"content": "Which day suits you?"}, "q1"))
    tool_llm = FakeToolLLM([question, _done()])
    graph = compile_assistant(FakeRouterLLM("respond"), tool_llm)

    thread = _start(graph, email_input)
    [request] = pending_requests(graph, thread)
    assert request["config"]["allow_accept"] is False

    resume(graph, thread, {"type": "reply", "args": "Thursday afternoon"})

    second_prompt = tool_llm.calls[1]
    answer = second_prompt[-1]
    assert isinstance(answer, ToolMessage)
    assert answer.tool_call_id == "q1"
    assert answer.content.endswith("Feedback: Thursday afternoon")


def test_auto_accept_runs_to_completion(email_input):
    tool_llm = FakeToolLLM([ai_message(tool_call("write_email", WRITE_ARGS, "w1")), _done()])
    graph = compile_assistant(
        FakeRouterLLM("respond"), tool_llm, AssistantConfig(auto_accept=True)
    )

    thread = _start(graph, email_input)

    assert pending_requests(graph, thread) == []
    messages = final_values(graph, thread)["messages"]
    assert any(isinstance(m, ToolMessage) and m.content.startswith("Email sent") for m in messages)


def test_assistants_do_not_share_state(email_input):
    first = compile_assistant(FakeRouterLLM("ignore"), FakeToolLLM([]))
    second = compile_assistant(FakeRouterLLM("respond"), FakeToolLLM([_done()]))

    first_thread = _start(first, email_input)
    second_thread = _start(second, email_input)

    assert final_values(first, first_thread)["classification_decision"] == "ignore"
    assert final_values(second, second_thread)["classification_decision"] == "respond"


def test_build_email_assistant_uses_given_checkpointer(monkeypatch, email_input):
    monkeypatch.setenv("EMAIL_ASSISTANT_TRACE_PROJECT", "hitl-tests")
    checkpointer = MemorySaver()
    graph = build_email_assistant(
        AssistantConfig(),
        checkpointer=checkpointer,
        router_llm=FakeRouterLLM("ignore"),
        tool_llm=FakeToolLLM([]),
    )

    thread = _start(graph, email_input)

    assert graph.checkpointer is checkpointer
    assert checkpointer.get(thread) is not None
    assert os.environ["LANGSMITH_PROJECT"] == "hitl-tests"


@pytest.mark.parametrize("resume_value", [{"type": "ignore", "args": None}, []])
def test_notify_rejects_resume_without_response_list(email_input, resume_value):
    graph = compile_assistant(FakeRouterLLM("notify"), FakeToolLLM([]))

    thread = _start(graph, email_input)

    with pytest.raises(InvalidResponse):
        graph.invoke(Command(resume=resume_value), thread)


def _summaries(caplog):
    return [r.getMessage() for r in caplog.records if r.getMessage().startswith("Run finished:")]


def test_run_summary_logged_when_triage_ignores(caplog, email_input):
    graph = compile_assistant(FakeRouterLLM("ignore"), FakeToolLLM([]))

    with caplog.at_level(logging.INFO, logger="hitl_email_assistant"):
        _start(graph, email_input)

    assert _summaries(caplog) == ["Run finished:\nClassification: ignore\nLast action: none"]


def test_run_summary_logged_when_notification_dismissed(caplog, email_input):
    graph = compile_assistant(FakeRouterLLM("notify"), FakeToolLLM([]))
    thread = _start(graph, email_input)

    with caplog.at_level(logging.INFO, logger="hitl_email_assistant"):
        resume(graph, thread, {"type": "ignore", "args": None})

    assert _summaries(caplog) == ["Run finished:\nClassification: notify\nLast action: none"]


def test_run_summary_logged_when_reviewer_ignores(caplog, email_input):
    tool_llm = FakeToolLLM([ai_message(tool_call("write_email", WRITE_ARGS, "w1"))])
    graph = compile_assistant(FakeRouterLLM("respond"), tool_llm)
    thread = _start(graph, email_input)

    with caplog.at_level(logging.INFO, logger="hitl_email_assistant"):
        resume(graph, thread, {"type": "ignore", "args": None})

    assert _summaries(caplog) == [
        f"Run finished:\nClassification: respond\nLast action: write_email -> {IGNORE_NOTES['write_email']}"
    ]


def test_run_summary_logged_when_done(caplog, email_input):
    graph = compile_assistant(FakeRouterLLM("respond"), FakeToolLLM([_done()]))

    with caplog.at_level(logging.INFO, logger="hitl_email_assistant"):
        _start(graph, email_input)

    assert _summaries(caplog) == ["Run finished:\nClassification: respond\nLast action: done"]
