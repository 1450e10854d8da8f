"""Triage-and-action workflow with human review of side-effecting actions.

Graph layout::

    START -> triage_router -+-> END                        (ignore)
                            +-> triage_interrupt_handler   (notify) -> response_agent | END
                            +-> response_agent             (respond)

    response_agent: START -> llm_call -> interrupt_handler -> llm_call ... -> END

Every collaborator (router model, tool model, action registry, config) is
handed to the node objects at build time, so two assistants built with
different settings never share state.
"""

import logging
from datetime import date
from typing import Any, Literal

from langchain_core.messages import AIMessage
from langgraph.graph import StateGraph, START, END
from langgraph.types import Command

from hitl_email_assistant.classifier import EmailClassifier
from hitl_email_assistant.configuration import AssistantConfig, get_llm
from hitl_email_assistant.errors import (
    InvalidArguments,
    InvalidClassification,
    InvalidResponse,
    NoActionProposed,
)
from hitl_email_assistant.hitl import (
    build_notify_request,
    build_review_request,
    request_review,
)
from hitl_email_assistant.prompts import agent_system_prompt_hitl
from hitl_email_assistant.schemas import RouterSchema, State, StateInput
from hitl_email_assistant.tools import ActionRegistry, default_registry
from hitl_email_assistant.tools.default.prompt_templates import HITL_TOOLS_PROMPT
from hitl_email_assistant.tracing import agent_project_name, format_final_output, init_project
from hitl_email_assistant.utils import email_markdown_from_input

logger = logging.getLogger(__name__)

DONE_TOOL = "done"

IGNORE_NOTES = {
    "write_email": "User ignored this email draft. Ignore this email and end the workflow.",
    "schedule_meeting": "User ignored this calendar meeting draft. Ignore this email and end the workflow.",
    "question": "User ignored this question. Ignore this email and end the workflow.",
}
FEEDBACK_NOTES = {
    "write_email": "User gave feedback, which we can incorporate into the email. Feedback: {feedback}",
    "schedule_meeting": "User gave feedback, which we can incorporate into the meeting request. Feedback: {feedback}",
    "question": "User answered the question, which we can use for any follow up actions. Feedback: {feedback}",
}
CANCELLED_NOTE = "Not executed: the user ended the workflow before this {name} call was reviewed."


def _log_run_finished(state, **updates) -> None:
    """Log the run summary for a run that is about to reach END."""
    logger.info("Run finished:\n%s", format_final_output(dict(state, **updates)))


def _tool_message(content: str, tool_call: dict) -> dict:
    return {"role": "tool", "content": content, "tool_call_id": tool_call["id"]}


def _replace_tool_call_args(ai_message: AIMessage, call_id: str, new_args: dict) -> AIMessage:
    """Copy of ``ai_message`` with one call's args swapped, order and id kept."""

    updated_tool_calls = [
        {**tc, "args": new_args} if tc["id"] == call_id else tc
        for tc in ai_message.tool_calls
    ]
    # Same message id: the add_messages reducer overwrites in place
    return ai_message.model_copy(update={"tool_calls": updated_tool_calls})


class TriageRouter:
    """Classify the email and route to END, the notify handler or the agent."""

    def __init__(self, classifier: EmailClassifier):
        self.classifier = classifier

    def __call__(
        self, state: State
    ) -> Command[Literal["triage_interrupt_handler", "response_agent", "__end__"]]:
        email_input = state["email_input"]
        result = self.classifier.classify(email_input)
        classification = result.classification

        if classification == "respond":
            logger.info("📧 Classification: RESPOND - This email requires a response")
            goto = "response_agent"
            update = {
                "classification_decision": classification,
                "messages": [{"role": "user",
                              "content": f"Respond to the email: {email_markdown_from_input(email_input)}",
                              }],
            }
        elif classification == "ignore":
            logger.info("🚫 Classification: IGNORE - This email can be safely ignored")
            goto = END
            update = {"classification_decision": classification}
            _log_run_finished(state, classification_decision=classification)
        elif classification == "notify":
            logger.info("🔔 Classification: NOTIFY - This email contains important information")
            goto = "triage_interrupt_handler"
            update = {"classification_decision": classification}
        else:
            raise InvalidClassification(classification)

        return Command(goto=goto, update=update)


class TriageInterruptHandler:
    """Show a notify-classified email to the human; reply or drop it."""

    def __init__(self, config: AssistantConfig):
        self.config = config

    def __call__(self, state: State) -> Command[Literal["response_agent", "__end__"]]:
        email_input = state["email_input"]
        request = build_notify_request(
            email_input, state.get("classification_decision", "notify")
        )
        response = request_review(request, auto_accept=self.config.auto_accept)

        if response["type"] == "response":
            # Used by the response agent
            messages = [
                {"role": "user",
                 "content": f"Email to notify user about: {request['description']}"},
                {"role": "user",
                 "content": f"User wants to reply to the email. Use this feedback to respond: {response['args']}"},
            ]
            return Command(goto="response_agent", update={"messages": messages})

        if response["type"] == "ignore":
            logger.info("Notification dismissed by user")
            _log_run_finished(state)
            return Command(goto=END, update={"messages": []})

        raise InvalidResponse(response)


class LLMCall:
    """Ask the tool-calling model for the next action(s)."""

    def __init__(self, llm_with_tools: Any, config: AssistantConfig):
        self.llm_with_tools = llm_with_tools
        self.config = config

    def system_prompt(self) -> str:
        return agent_system_prompt_hitl.format(
            tools_prompt=HITL_TOOLS_PROMPT,
            background=self.config.background,
            response_preferences=self.config.response_preferences,
            cal_preferences=self.config.cal_preferences,
            today=date.today().isoformat(),
            timezone=self.config.timezone,
        )

    def __call__(self, state: State) -> dict:
        prompt = [{"role": "system", "content": self.system_prompt()}] + list(state["messages"])
        msg = self.llm_with_tools.invoke(prompt)

        invalid = getattr(msg, "invalid_tool_calls", None)
        if invalid:
            first = invalid[0]
            raise InvalidArguments(first.get("name") or "<unknown>", first.get("error") or first.get("args"))
        if not getattr(msg, "tool_calls", None):
            raise NoActionProposed("Tool model replied without proposing an action")

        logger.info(
            "Model proposed: %s", ", ".join(tc["name"] for tc in msg.tool_calls)
        )
        return {"messages": [msg]}


class InterruptHandler:
    """Review or execute each proposed action of the latest AI message, in order."""

    def __init__(self, registry: ActionRegistry, config: AssistantConfig):
        self.registry = registry
        self.hitl_tools = frozenset(config.hitl_tools)
        self.auto_accept = config.auto_accept

    def __call__(self, state: State) -> Command[Literal["llm_call", "__end__"]]:
        ai_message = state["messages"][-1]
        tool_calls = list(ai_message.tool_calls)
        email_input = state["email_input"]

        result = []
        goto = "llm_call"
        # Set once the reviewer edits a call; later edits build on it
        edited_message = None

        for index, tool_call in enumerate(tool_calls):
            name = tool_call["name"]

            if name not in self.hitl_tools:
                observation = self.registry.invoke(name, tool_call["args"])
                result.append(_tool_message(observation, tool_call))
                continue

            request = build_review_request(tool_call, email_input)
            response = request_review(request, auto_accept=self.auto_accept)
            kind = response["type"]

            if kind == "accept":
                observation = self.registry.invoke(name, tool_call["args"])
                result.append(_tool_message(observation, tool_call))

            elif kind == "edit":
                edited_args = self.registry.validate(name, response["args"]["args"])
                edited_message = _replace_tool_call_args(
                    edited_message or ai_message, tool_call["id"], edited_args
                )
                observation = self.registry.invoke(name, edited_args)
                result.append(_tool_message(observation, tool_call))

            elif kind == "ignore":
                result.append(_tool_message(IGNORE_NOTES[name], tool_call))
                # Remaining calls are never reviewed; answer them so history stays well-formed
                for skipped in tool_calls[index + 1:]:
                    result.append(_tool_message(CANCELLED_NOTE.format(name=skipped["name"]), skipped))
                goto = END
                break

            elif kind == "response":
                result.append(_tool_message(
                    FEEDBACK_NOTES[name].format(feedback=response["args"]), tool_call
                ))

            else:
                raise InvalidResponse(response)

        if edited_message is not None:
            result.insert(0, edited_message)

        if goto == END:
            logger.info("Workflow ended by reviewer")
            _log_run_finished(state, messages=list(state["messages"]) + result)

        return Command(goto=goto, update={"messages": result})


def should_continue(state: State) -> Literal["interrupt_handler", "__end__"]:
    """Route to the review handler, or end if the done action was called"""
    last_message = state["messages"][-1]
    names = [tc["name"] for tc in getattr(last_message, "tool_calls", None) or []]
    if DONE_TOOL in names:
        _log_run_finished(state)
        return END
    return "interrupt_handler"


def build_response_agent(llm_with_tools: Any, registry: ActionRegistry, config: AssistantConfig):
    """Compile the agentic loop used as the ``response_agent`` subgraph."""

    agent_builder = StateGraph(State)
    agent_builder.add_node("llm_call", LLMCall(llm_with_tools, config))
    agent_builder.add_node(
        "interrupt_handler",
        InterruptHandler(registry, config),
        destinations=("llm_call", END),
    )
    agent_builder.add_edge(START, "llm_call")
    agent_builder.add_conditional_edges(
        "llm_call",
        should_continue,
        {
            "interrupt_handler": "interrupt_handler",
            END: END,
        },
    )
    return agent_builder.compile()


def build_overall_workflow(
    config: AssistantConfig | None = None,
    *,
    registry: ActionRegistry | None = None,
    router_llm: Any = None,
    tool_llm: Any = None,
) -> StateGraph:
    """
    Wire triage, notification and the response agent into one workflow.

    Parameters:
        config: Assistant settings; read from the environment when omitted.
        registry: Actions offered to the tool model; the built-in stubs by default.
        router_llm: Model already constrained to ``RouterSchema``.
        tool_llm: Model already bound to the registry's tools.

    Models that are not injected are created with ``get_llm`` from the
    config's router/tool model names.
    """

    config = config or AssistantConfig.from_env()
    registry = registry if registry is not None else default_registry()

    if router_llm is None:
        router_llm = get_llm(temperature=0.0, model=config.router_model).with_structured_output(RouterSchema)
    if tool_llm is None:
        # Gemini rejects 'required' as a tool choice; 'any' forces a tool call
        tool_llm = get_llm(temperature=0.0, model=config.tool_model).bind_tools(
            registry.tools, tool_choice="any"
        )
    logger.debug(
        "Models -> router=%s, tools=%s", config.router_identifier, config.tool_identifier
    )

    return (
        StateGraph(State, input_schema=StateInput)
        .add_node(
            "triage_router",
            TriageRouter(EmailClassifier(router_llm, config)),
            destinations=("triage_interrupt_handler", "response_agent", END),
        )
        .add_node(
            "triage_interrupt_handler",
            TriageInterruptHandler(config),
            destinations=("response_agent", END),
        )
        .add_node("response_agent", build_response_agent(tool_llm, registry, config))
        .add_edge(START, "triage_router")
    )


def build_email_assistant(
    config: AssistantConfig | None = None,
    *,
    checkpointer: Any = None,
    registry: ActionRegistry | None = None,
    router_llm: Any = None,
    tool_llm: Any = None,
):
    """Compile the workflow with a checkpointer so suspended runs can resume."""

    init_project(agent_project_name())
    if checkpointer is None:
        from hitl_email_assistant.checkpointing import get_sqlite_checkpointer

        checkpointer = get_sqlite_checkpointer()

    return build_overall_workflow(
        config,
        registry=registry,
        router_llm=router_llm,
        tool_llm=tool_llm,
    ).compile(checkpointer=checkpointer)
