"""
Tool abstractions.

A tool receives a ``ToolContext`` and streams zero or more intermediate
``ToolStreamEvent``s before yielding its ``ToolResultBlock``.
"""
from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, Callable, Literal, Union

from pydantic import BaseModel

from weft_ai.types import JsonBlock, TextBlock, ToolResultBlock, ToolSpec, ToolUse

if TYPE_CHECKING:
    from ..agent import Agent


class ToolStreamEvent(BaseModel):
    """Intermediate progress reported by a running tool."""
    type: Literal["tool_stream"] = "tool_stream"
    tool_use_id: str
    data: Any = None


class ToolContext:
    """What a tool sees of the invocation that called it."""

    def __init__(self, tool_use: ToolUse, agent: "Agent") -> None:
        self.tool_use = tool_use
        self.agent = agent


ToolStreamItem = Union[ToolStreamEvent, ToolResultBlock]


class Tool(ABC):
    """Base class for tools an agent can call."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @property
    def tool_spec(self) -> ToolSpec:
        return ToolSpec(name=self.name, description=self.description)

    @abstractmethod
    def stream(self, context: ToolContext) -> AsyncIterator[ToolStreamItem]:
        """Run the tool. The last ToolResultBlock yielded is its result."""


FunctionToolCallback = Callable[[Any, ToolContext], Union[Any, Awaitable[Any]]]


class FunctionTool(Tool):
    """
    Wraps a plain (sync or async) callable as a tool.

    The callback is called with ``(input, context)``. Its return value
    becomes the tool result: a ``ToolResultBlock`` is used unchanged, a
    string becomes a text block and anything else a JSON block.
    """

    def __init__(
        self,
        name: str,
        description: str,
        callback: FunctionToolCallback,
        input_schema: dict[str, Any] | None = None,
    ) -> None:
        self._name = name
        self._description = description
        self._callback = callback
        self._input_schema = input_schema or {"type": "object", "properties": {}}

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def tool_spec(self) -> ToolSpec:
        return ToolSpec(name=self._name, description=self._description, input_schema=self._input_schema)

    async def stream(self, context: ToolContext) -> AsyncIterator[ToolStreamItem]:
        value = self._callback(context.tool_use.input, context)
        if inspect.isawaitable(value):
            value = await value
        yield _to_result(context.tool_use.tool_use_id, value)


def _to_result(tool_use_id: str, value: Any) -> ToolResultBlock:
    if isinstance(value, ToolResultBlock):
        return value
    if isinstance(value, str):
        return ToolResultBlock(tool_use_id=tool_use_id, status="success", content=[TextBlock(text=value)])
    return ToolResultBlock(tool_use_id=tool_use_id, status="success", content=[JsonBlock(value=value)])


def function_tool(
    name: str | None = None,
    description: str | None = None,
    input_schema: dict[str, Any] | None = None,
) -> Callable[[FunctionToolCallback], FunctionTool]:
    """Decorator form of ``FunctionTool``; name and description default to the function's."""

    def decorator(fn: FunctionToolCallback) -> FunctionTool:
        return FunctionTool(
            name=name or fn.__name__,
            description=description or inspect.getdoc(fn) or "",
            callback=fn,
            input_schema=input_schema,
        )

    return decorator
