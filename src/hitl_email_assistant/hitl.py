"""Suspend/resume protocol between the workflow and a human reviewer.

Requests and responses use the Agent Inbox wire format. A request is sent with
LangGraph's ``interrupt`` and the run stays suspended in its checkpointer until
it is resumed with ``Command(resume=[response])``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from typing import Any

from langgraph.types import interrupt

from hitl_email_assistant.errors import InvalidEdit, InvalidResponse, UnknownAction
from hitl_email_assistant.schemas import (
    ActionRequest,
    HumanInterrupt,
    HumanInterruptConfig,
    HumanResponse,
)
from hitl_email_assistant.utils import email_markdown_from_input, format_for_display

logger = logging.getLogger(__name__)

RESPONSE_TYPES = ("accept", "edit", "ignore", "response")
# "reply" is what reviewers tend to type; Agent Inbox sends "response"
_RESPONSE_ALIASES = {"reply": "response"}

_FULL_REVIEW = HumanInterruptConfig(
    allow_ignore=True,
    allow_respond=True,
    allow_edit=True,
    allow_accept=True,
)
_ANSWER_ONLY = HumanInterruptConfig(
    allow_ignore=True,
    allow_respond=True,
    allow_edit=False,
    allow_accept=False,
)

REVIEW_CONFIGS: dict[str, HumanInterruptConfig] = {
    "write_email": _FULL_REVIEW,
    "schedule_meeting": _FULL_REVIEW,
    "question": _ANSWER_ONLY,
}
NOTIFY_CONFIG = _ANSWER_ONLY

# Only actions with a side effect worth rewriting can be edited
EDITABLE_TOOLS = frozenset({"write_email", "schedule_meeting"})

AUTO_QUESTION_ANSWER = "No additional info, please proceed."


def allowed_response_types(config: Mapping[str, Any]) -> frozenset[str]:
    flags = {
        "accept": "allow_accept",
        "edit": "allow_edit",
        "ignore": "allow_ignore",
        "response": "allow_respond",
    }
    return frozenset(kind for kind, flag in flags.items() if config.get(flag))


def build_notify_request(email_input: dict, classification: str) -> HumanInterrupt:
    return HumanInterrupt(
        action_request=ActionRequest(
            action=f"Email Assistant: {classification}",
            args={},
        ),
        config=dict(NOTIFY_CONFIG),
        description=email_markdown_from_input(email_input),
    )


def build_review_request(tool_call: Mapping[str, Any], email_input: dict) -> HumanInterrupt:
    """Review request for one proposed action: the email plus the rendered draft."""

    name = tool_call["name"]
    config = REVIEW_CONFIGS.get(name)
    if config is None:
        raise UnknownAction(name)

    return HumanInterrupt(
        action_request=ActionRequest(
            action=name,
            args=dict(tool_call.get("args") or {}),
        ),
        config=dict(config),
        description=email_markdown_from_input(email_input) + format_for_display(tool_call),
    )


def _auto_response(request: HumanInterrupt) -> HumanResponse:
    """Deterministic answer used when auto-accept is on."""

    allowed = allowed_response_types(request.get("config") or {})
    action = str((request.get("action_request") or {}).get("action", ""))
    if "accept" in allowed:
        return {"type": "accept", "args": None}
    if "response" in allowed and action == "question":
        return {"type": "response", "args": AUTO_QUESTION_ANSWER}
    # Notifications are dropped rather than guessed into a reply
    return {"type": "ignore", "args": None}


def _suspend(request: HumanInterrupt, auto_accept: bool) -> Any:
    if auto_accept or os.getenv("HITL_AUTO_ACCEPT", "").lower() in ("1", "true", "yes"):
        response = _auto_response(request)
        logger.info("Auto-answered %s with %s", request["action_request"]["action"], response["type"])
        return response
    # Agent Inbox responds with one answer per request, as a list
    answers = interrupt([request])
    if isinstance(answers, (str, bytes, Mapping)) or not isinstance(answers, Sequence) or not answers:
        raise InvalidResponse(answers, "Resume value must be a non-empty list of responses")
    return answers[0]


def validate_response(response: Any, request: HumanInterrupt) -> HumanResponse:
    """Normalise a raw resume value and check it against the request's config."""

    if not isinstance(response, Mapping) or "type" not in response:
        raise InvalidResponse(response)

    kind = _RESPONSE_ALIASES.get(response["type"], response["type"])
    if kind not in RESPONSE_TYPES:
        raise InvalidResponse(response)

    action = request["action_request"]["action"]
    if kind == "edit" and action not in EDITABLE_TOOLS:
        raise InvalidEdit(action, response)
    if kind not in allowed_response_types(request["config"]):
        raise InvalidResponse(
            response, f"Response type {kind!r} is not allowed for {action!r}"
        )

    args = response.get("args")
    if kind == "edit":
        edited = args.get("args") if isinstance(args, Mapping) else None
        if not isinstance(edited, Mapping):
            raise InvalidResponse(response, f"Edit for {action!r} carries no arguments")
    elif kind == "response" and not isinstance(args, str):
        raise InvalidResponse(response, f"Reply for {action!r} must be text")

    return HumanResponse(type=kind, args=args)


def request_review(request: HumanInterrupt, *, auto_accept: bool = False) -> HumanResponse:
    """Suspend until a human answers ``request``; return the validated answer."""

    logger.info("Awaiting human review for %s", request["action_request"]["action"])
    response = _suspend(request, auto_accept)
    return validate_response(response, request)
