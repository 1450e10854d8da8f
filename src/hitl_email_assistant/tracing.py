"""LangSmith project wiring and run summaries."""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)

_DEFAULT_PROJECT = "hitl-email-assistant"

_HIDDEN_FLAGS = (
    "LANGSMITH_HIDE_INPUTS",
    "LANGSMITH_HIDE_OUTPUTS",
    "LANGCHAIN_HIDE_INPUTS",
    "LANGCHAIN_HIDE_OUTPUTS",
)


def agent_project_name() -> str:
    return (
        os.getenv("EMAIL_ASSISTANT_TRACE_PROJECT")
        or os.getenv("LANGSMITH_PROJECT")
        or _DEFAULT_PROJECT
    )


def init_project(project: str | None) -> None:
    """Pin the LangSmith/LangChain project used by traced runs."""

    if not project:
        return

    os.environ.setdefault("LANGSMITH_PROJECT", project)
    os.environ.setdefault("LANGCHAIN_PROJECT", project)
    # Quiet Gemini gRPC client noise unless the user overrides it.
    os.environ.setdefault("GRPC_VERBOSITY", "ERROR")

    for flag in _HIDDEN_FLAGS:
        os.environ.pop(flag, None)

    from langsmith import utils as langsmith_utils

    # LangSmith caches env lookups; drop them so the project change applies.
    if hasattr(langsmith_utils.get_env_var, "cache_clear"):
        langsmith_utils.get_env_var.cache_clear()


def _message_field(message: Any, key: str) -> Any:
    if isinstance(message, Mapping):
        return message.get(key)
    return getattr(message, key, None)


def format_final_output(state: Mapping[str, Any]) -> str:
    """Two-line plain-text summary of a finished run."""

    classification = str(state.get("classification_decision") or "ignore").lower()
    messages = list(state.get("messages") or [])

    last_action = None
    for message in reversed(messages):
        tool_calls = _message_field(message, "tool_calls") or []
        if tool_calls:
            last_action = tool_calls[-1].get("name")
            break

    last_observation = ""
    for message in reversed(messages):
        role = _message_field(message, "type") or _message_field(message, "role")
        if role == "tool":
            last_observation = str(_message_field(message, "content") or "")
            break

    lines = [f"Classification: {classification}"]
    if last_action:
        summary = last_observation.replace("\n", " ").strip()
        if len(summary) > 200:
            summary = summary[:199] + "…"
        lines.append(f"Last action: {last_action}" + (f" -> {summary}" if summary else ""))
    else:
        lines.append("Last action: none")
    return "\n".join(lines)
