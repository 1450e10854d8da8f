"""Action registry: named, schema-validated tools behind one invoke-by-name seam."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Dict, Iterable, List, Optional

from langchain_core.tools import BaseTool, StructuredTool
from langsmith import traceable
from pydantic import BaseModel, ValidationError

from hitl_email_assistant.errors import InvalidArguments, UnknownAction

logger = logging.getLogger(__name__)


def get_tools(tool_names: Optional[List[str]] = None) -> List[BaseTool]:
    """
    Return the requested built-in tools, or all of them when no names are given.

    Unknown names are skipped so callers can request optional tools freely.
    """
    from hitl_email_assistant.tools.default.email_tools import write_email, question, done
    from hitl_email_assistant.tools.default.calendar_tools import (
        schedule_meeting,
        check_calendar_availability,
    )

    all_tools = {
        "write_email": write_email,
        "schedule_meeting": schedule_meeting,
        "check_calendar_availability": check_calendar_availability,
        "question": question,
        "done": done,
    }

    if tool_names is None:
        return list(all_tools.values())

    return [all_tools[name] for name in tool_names if name in all_tools]


def get_tools_by_name(tools: Optional[List[BaseTool]] = None) -> Dict[str, BaseTool]:
    """Get a dictionary of tools mapped by name."""
    if tools is None:
        tools = get_tools()

    return {tool.name: tool for tool in tools}


class ActionRegistry:
    """Name -> tool bookkeeping with schema validation.

    The registry itself has no side effects; whatever the registered executor
    does happens inside :meth:`invoke`. Executor exceptions are not caught.
    """

    def __init__(self, tools: Iterable[BaseTool] | None = None):
        self._tools: Dict[str, BaseTool] = {}
        for tool in tools or ():
            self.register_tool(tool)

    def register(
        self,
        name: str,
        argument_schema: type[BaseModel],
        executor: Callable[..., str],
        description: str | None = None,
    ) -> BaseTool:
        """Wrap a plain callable as a structured tool and register it."""

        tool = StructuredTool.from_function(
            func=executor,
            name=name,
            description=description or (executor.__doc__ or "").strip() or name,
            args_schema=argument_schema,
        )
        return self.register_tool(tool)

    def register_tool(self, tool: BaseTool) -> BaseTool:
        if tool.name in self._tools:
            logger.warning("Replacing registered action %s", tool.name)
        self._tools[tool.name] = tool
        return tool

    def lookup(self, name: str) -> BaseTool:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownAction(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    @property
    def tools(self) -> List[BaseTool]:
        """Registered tools, in registration order (used for ``bind_tools``)."""
        return list(self._tools.values())

    def validate(self, name: str, arguments: Any) -> Dict[str, Any]:
        """Check ``arguments`` against the action's schema and return them as a dict."""

        tool = self.lookup(name)
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            raise InvalidArguments(name, f"expected a mapping, got {type(arguments).__name__}")
        arguments = dict(arguments)
        schema = tool.get_input_schema()
        try:
            schema.model_validate(arguments)
        except ValidationError as exc:
            raise InvalidArguments(name, exc) from exc
        return arguments

    @traceable(run_type="tool", name="invoke_action")
    def invoke(self, name: str, arguments: Any) -> str:
        """Run the named action and return its observation text."""

        arguments = self.validate(name, arguments)
        logger.debug("Invoking action %s with %s", name, arguments)
        observation = self._tools[name].invoke(arguments)
        return observation if isinstance(observation, str) else str(observation)


def default_registry(tool_names: Optional[List[str]] = None) -> ActionRegistry:
    """Registry holding the built-in stub actions."""
    return ActionRegistry(get_tools(tool_names))
