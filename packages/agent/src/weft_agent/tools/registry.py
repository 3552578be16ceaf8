"""
Name-keyed tool lookup.
"""
from __future__ import annotations

from typing import Any, Iterable, Iterator

from weft_ai.types import ToolSpec

from .tool import Tool


class ToolRegistry:
    """Insertion-ordered mapping of tool name to tool."""

    def __init__(self, tools: Iterable[Tool] | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        if tools is not None:
            self.register_all(tools)

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool with name '{tool.name}' already registered")
        self._tools[tool.name] = tool

    def register_all(self, tools: Iterable[Tool]) -> None:
        for tool in tools:
            self.register(tool)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def values(self) -> list[Tool]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def tool_specs(self) -> list[ToolSpec]:
        return [tool.tool_spec for tool in self._tools.values()]

    def copy(self) -> "ToolRegistry":
        return ToolRegistry(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[Tool]:
        return iter(list(self._tools.values()))


def flatten_tools(tools: Any) -> list[Tool]:
    """Flatten arbitrarily nested lists/tuples of tools."""
    if tools is None:
        return []
    if isinstance(tools, Tool):
        return [tools]
    if isinstance(tools, (list, tuple)):
        flat: list[Tool] = []
        for item in tools:
            flat.extend(flatten_tools(item))
        return flat
    raise TypeError(f"Expected a Tool or a list of tools, got {type(tools).__name__}")
