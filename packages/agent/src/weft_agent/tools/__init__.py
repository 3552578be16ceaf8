from .registry import ToolRegistry, flatten_tools
from .tool import FunctionTool, Tool, ToolContext, ToolStreamEvent, ToolStreamItem, function_tool
from .transfer_to_agent import create_transfer_to_agent_tool

__all__ = [
    "FunctionTool",
    "Tool",
    "ToolContext",
    "ToolRegistry",
    "ToolStreamEvent",
    "ToolStreamItem",
    "create_transfer_to_agent_tool",
    "flatten_tools",
    "function_tool",
]
