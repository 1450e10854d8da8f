from hitl_email_assistant.tools.base import (
    ActionRegistry,
    default_registry,
    get_tools,
    get_tools_by_name,
)
from hitl_email_assistant.tools.default.email_tools import write_email, question, done
from hitl_email_assistant.tools.default.calendar_tools import schedule_meeting, check_calendar_availability

__all__ = [
    "ActionRegistry",
    "default_registry",
    "get_tools",
    "get_tools_by_name",
    "write_email",
    "question",
    "done",
    "schedule_meeting",
    "check_calendar_availability",
]
