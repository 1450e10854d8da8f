#!/usr/bin/env python
"""Run one email through the HITL assistant and review actions from the console.

Usage:
  python scripts/run_hitl_console.py --author "Alice <alice@example.com>" \
      --to "Me <me@example.com>" --subject "Quick question" --body "Can we meet Tuesday?"

  python scripts/run_hitl_console.py --email-json email.json --thread-id demo-1

Notes:
  - Requires GOOGLE_API_KEY (Gemini via langchain-google-genai) unless overridden
    with EMAIL_ASSISTANT_MODEL / EMAIL_ASSISTANT_MODEL_PROVIDER.
  - Suspended runs live in the SQLite checkpointer; re-run with the same
    --thread-id and --resume to answer a pending review later.
  - Set HITL_AUTO_ACCEPT=1 (or pass --auto-accept) to skip the prompts.
"""
from __future__ import annotations

import argparse
import json
import logging
import uuid
from typing import Any

from langgraph.types import Command

from hitl_email_assistant.checkpointing import get_sqlite_checkpointer
from hitl_email_assistant.configuration import AssistantConfig
from hitl_email_assistant.email_assistant_hitl import build_email_assistant
from hitl_email_assistant.hitl import allowed_response_types
from hitl_email_assistant.utils import format_messages_string

logger = logging.getLogger(__name__)


def _load_email(args: argparse.Namespace) -> dict:
    if args.email_json:
        with open(args.email_json, encoding="utf-8") as handle:
            return json.load(handle)
    return {
        "author": args.author,
        "to": args.to,
        "subject": args.subject,
        "email_thread": args.body,
    }


def _ask(request: dict) -> dict:
    """Prompt on stdin for one review request and build the resume payload."""

    print(request.get("description") or "")
    action = request["action_request"]["action"]
    allowed = sorted(allowed_response_types(request["config"]))
    while True:
        choice = input(f"[{action}] respond with one of {allowed}: ").strip().lower()
        if choice in ("reply", "r"):
            choice = "response"
        if choice not in allowed:
            print(f"'{choice}' is not allowed here.")
            continue
        if choice == "response":
            return {"type": "response", "args": input("Feedback: ")}
        if choice == "edit":
            current = request["action_request"]["args"]
            print(json.dumps(current, indent=2, default=str))
            raw = input("New args as JSON (blank keeps current): ").strip()
            edited = json.loads(raw) if raw else current
            return {"type": "edit", "args": {"action": action, "args": edited}}
        return {"type": choice, "args": None}


def _pending_requests(graph: Any, config: dict) -> list[dict]:
    requests: list[dict] = []
    for item in graph.get_state(config).interrupts:
        # Each interrupt value is the list of HumanInterrupt requests it was raised with
        requests.extend(item.value)
    return requests


def main() -> None:
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    ap.add_argument("--email-json", help="Path to a JSON email record")
    ap.add_argument("--author", default="Alice Smith <alice.smith@company.com>")
    ap.add_argument("--to", default="Me <me@company.com>")
    ap.add_argument("--subject", default="Quick question about API documentation")
    ap.add_argument("--body", default="Hi, are the /auth endpoints documented anywhere? Thanks, Alice")
    ap.add_argument("--thread-id", default=None, help="Checkpoint thread id (new uuid by default)")
    ap.add_argument("--checkpoint-path", default=None, help="SQLite checkpoint file")
    ap.add_argument("--resume", action="store_true", help="Answer pending reviews of an existing thread")
    ap.add_argument("--auto-accept", action="store_true", help="Auto-answer review requests")
    args = ap.parse_args()

    overrides = {"auto_accept": True} if args.auto_accept else {}
    config = AssistantConfig.from_env(**overrides)
    graph = build_email_assistant(
        config, checkpointer=get_sqlite_checkpointer(args.checkpoint_path)
    )
    thread_config = {"configurable": {"thread_id": args.thread_id or f"thread-{uuid.uuid4()}"}}
    logger.info("Running thread %s", thread_config["configurable"]["thread_id"])

    if not args.resume:
        graph.invoke({"email_input": _load_email(args)}, thread_config)

    while True:
        pending = _pending_requests(graph, thread_config)
        if not pending:
            break
        answers = [_ask(request) for request in pending[:1]]
        graph.invoke(Command(resume=answers), thread_config)

    values = graph.get_state(thread_config).values
    print(f"\nClassification: {values.get('classification_decision')}")
    print(format_messages_string(values.get("messages", [])))


if __name__ == "__main__":
    main()
