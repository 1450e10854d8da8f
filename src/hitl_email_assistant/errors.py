"""Fatal error taxonomy for the triage-and-action workflow.

None of these are caught inside the graph. A run that raises one is aborted
and the exception surfaces to whoever invoked or resumed the graph.
"""

from __future__ import annotations


class EmailAssistantError(ValueError):
    """Base class for every workflow failure."""


class ClassificationError(EmailAssistantError):
    """The router model's output could not be coerced to ``RouterSchema``."""


class InvalidClassification(EmailAssistantError):
    """A classification outside ``ignore`` / ``respond`` / ``notify``."""

    def __init__(self, classification: object):
        self.classification = classification
        super().__init__(f"Invalid classification: {classification!r}")


class UnknownAction(EmailAssistantError):
    """No action with the requested name is registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown action: {name!r}")


class InvalidArguments(EmailAssistantError):
    """Arguments for an action failed its schema."""

    def __init__(self, name: str, detail: object):
        self.name = name
        self.detail = detail
        super().__init__(f"Invalid arguments for {name!r}: {detail}")


class InvalidResponse(EmailAssistantError):
    """A human response that the pending review request does not allow."""

    def __init__(self, response: object, message: str | None = None):
        self.response = response
        super().__init__(message or f"Invalid response: {response!r}")


class InvalidEdit(InvalidResponse):
    """An edit response for an action that does not support editing."""

    def __init__(self, action: str, response: object = None):
        self.action = action
        super().__init__(response, f"Action {action!r} cannot be edited")


class NoActionProposed(EmailAssistantError):
    """The tool-calling model replied without any tool call."""
