"""
Synthetic tool that hands the conversation to another agent in the tree.
"""
from __future__ import annotations

from typing import Any, Callable

from .. import config
from .tool import FunctionTool, ToolContext

TRANSFER_TOOL_DESCRIPTION = (
    "Transfer the conversation to another agent when that agent is better suited to answer the request."
)


def create_transfer_to_agent_tool(
    resolve_allowed_targets: Callable[[], list[str]],
    queue_transfer: Callable[[str], None],
) -> FunctionTool:
    """
    Build the ``transfer_to_agent`` tool.

    The tool only records the target; the agent loop performs the switch at
    the end of the current turn. Naming an agent outside
    ``resolve_allowed_targets()`` raises, which the loop reports back to the
    model as an error result.
    """

    def _transfer(tool_input: Any, context: ToolContext) -> dict[str, Any]:
        agent_name = tool_input.get("agentName") if isinstance(tool_input, dict) else None
        if agent_name not in resolve_allowed_targets():
            raise ValueError(f"Agent '{agent_name}' is not a valid transfer target")

        queue_transfer(agent_name)
        return {
            "success": True,
            "action": "transfer_to_agent",
            "targetAgentName": agent_name,
        }

    targets = resolve_allowed_targets()
    input_schema = {
        "type": "object",
        "properties": {
            "agentName": {
                "type": "string",
                "description": "The target agent name.",
                "enum": targets,
            },
        },
        "required": ["agentName"],
    }
    return FunctionTool(
        name=config.TRANSFER_TOOL_NAME,
        description=TRANSFER_TOOL_DESCRIPTION,
        callback=_transfer,
        input_schema=input_schema,
    )
