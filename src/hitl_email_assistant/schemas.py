from typing import Any, Literal

from pydantic import BaseModel, Field
from typing_extensions import TypedDict
from langgraph.graph import MessagesState

Classification = Literal["ignore", "respond", "notify"]


class RouterSchema(BaseModel):
    """Analyze the unread email and route it according to its content."""

    reasoning: str = Field(
        description="Step-by-step reasoning behind the classification."
    )
    classification: Classification = Field(
        description="The classification of an email: 'ignore' for irrelevant emails, "
        "'notify' for important information that doesn't need a response, "
        "'respond' for emails that need a reply",
    )


class EmailRecord(TypedDict, total=False):
    """Incoming email. ``thread``, ``from`` and ``body`` are accepted as aliases."""

    author: str
    to: str
    subject: str
    email_thread: str


class StateInput(TypedDict):
    # This is the input to the state
    email_input: EmailRecord


class State(MessagesState):
    # This state class has the messages key built in
    email_input: EmailRecord
    classification_decision: Classification


# Agent Inbox wire shapes for interrupts and the human's answer

class ActionRequest(TypedDict):
    action: str
    args: dict


class HumanInterruptConfig(TypedDict):
    allow_ignore: bool
    allow_respond: bool
    allow_edit: bool
    allow_accept: bool


class HumanInterrupt(TypedDict):
    action_request: ActionRequest
    config: HumanInterruptConfig
    description: str | None


class HumanResponse(TypedDict):
    type: Literal["accept", "ignore", "response", "edit"]
    args: Any
