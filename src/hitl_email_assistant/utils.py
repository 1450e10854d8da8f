from typing import Any, List
import json
import logging

logger = logging.getLogger(__name__)

_DISCARDED_ARGS_NOTE = "_Note: Original tool args were discarded because they were not a mapping._"


def parse_email(email_input: dict) -> tuple[str, str, str, str]:
    """Parse an email input dictionary, accepting multiple common schemas.

    Supports the dataset schema (author, to, subject, email_thread), the short
    ``thread`` alias, and a Gmail-like schema (from, to, subject, body).

    Returns (author, to, subject, email_thread). Missing fields are returned as
    empty strings to keep downstream prompts resilient.
    """
    if not isinstance(email_input, dict):
        return ("", "", "", "")

    author = email_input.get("author")
    to = email_input.get("to")
    subject = email_input.get("subject")
    thread = email_input.get("email_thread")

    # Fallbacks (alias / Gmail-like / alternate capitalizations)
    if author is None:
        author = email_input.get("from") or email_input.get("From")
    if subject is None:
        subject = email_input.get("Subject")
    if to is None:
        to = email_input.get("To")
    if thread is None:
        thread = (
            email_input.get("thread")
            or email_input.get("body")
            or email_input.get("Body")
        )

    return (author or "", to or "", subject or "", thread or "")


def format_email_markdown(subject, author, to, email_thread, email_id=None):
    """Format email details into a nicely formatted markdown string for display

    Args:
        subject: Email subject
        author: Email sender
        to: Email recipient
        email_thread: Email content
        email_id: Optional email ID
    """
    id_section = f"\n**ID**: {email_id}" if email_id else ""

    return f"""

**Subject**: {subject}
**From**: {author}
**To**: {to}{id_section}

{email_thread}

---
"""


def email_markdown_from_input(email_input: dict) -> str:
    author, to, subject, email_thread = parse_email(email_input)
    return format_email_markdown(subject, author, to, email_thread)


def _display_args(tool_call) -> tuple[dict, str]:
    """Return (args, note) where args is always a dict for rendering."""
    name = tool_call.get("name")
    args = tool_call.get("args")
    if isinstance(args, dict):
        return args, ""
    if args is None:
        logger.warning("%s emitted None args; rendering empty draft", name)
    else:
        logger.warning("%s emitted non-dict args (%s); rendering empty draft", name, type(args).__name__)
    return {}, f"\n{_DISCARDED_ARGS_NOTE}\n"


def _render_write_email(args: dict) -> str:
    return f"""# Email Draft

**To**: {args.get("to") or ''}
**Subject**: {args.get("subject") or ''}

{args.get("content") or ''}
"""


def _render_schedule_meeting(args: dict) -> str:
    attendees = [str(a) for a in (args.get("attendees") or []) if a]
    return f"""# Calendar Invite

**Meeting**: {args.get("subject") or 'N/A'}
**Attendees**: {', '.join(attendees) or 'N/A'}
**Duration**: {args.get("duration_minutes") or 'N/A'} minutes
**Day**: {args.get("preferred_day") or 'N/A'}
**Start**: {args.get("start_time") or 'N/A'}
"""


def _render_question(args: dict) -> str:
    return f"""# Question for User

{args.get("content") or ''}
"""


_RENDERERS = {
    "write_email": _render_write_email,
    "schedule_meeting": _render_schedule_meeting,
    "question": _render_question,
}


def format_for_display(tool_call):
    """Format a proposed tool call as markdown for the reviewer

    Args:
        tool_call: The tool call to format (``name``, ``args``, ``id``)
    """
    args, note = _display_args(tool_call)
    renderer = _RENDERERS.get(tool_call.get("name"))
    if renderer is not None:
        return renderer(args) + note

    # Generic format for other tools
    return f"""# Tool Call: {tool_call.get("name")}

Arguments:
{json.dumps(args, indent=2, default=str)}
""" + note


def format_messages_string(messages: List[Any]) -> str:
    """Render a conversation as plain text, one block per message."""

    blocks: List[str] = []
    for message in messages:
        if isinstance(message, dict):
            role = message.get("role", "")
            content = message.get("content", "")
            tool_calls = message.get("tool_calls") or []
        else:
            role = getattr(message, "type", "")
            content = getattr(message, "content", "")
            tool_calls = getattr(message, "tool_calls", None) or []

        lines = [f"=== {role} ==="]
        if content:
            lines.append(str(content))
        for call in tool_calls:
            lines.append(
                f"tool_call -> {call.get('name')} ({call.get('id')}) "
                f"{json.dumps(call.get('args'), ensure_ascii=False, default=str)}"
            )
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
