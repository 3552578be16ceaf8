"""
weft_agent: agent loop, hooks and conversation management.
"""

from .agent import Agent, AgentOptions
from .agent_loop import run_agent_loop
from .config import (
    DEFAULT_MAX_CONSECUTIVE_TRANSFERS,
    DEFAULT_WINDOW_SIZE,
    TOOL_RESULT_TOO_LARGE_MESSAGE,
    TRANSFER_TOOL_NAME,
)
from .conversation_manager import (
    ConversationManager,
    NullConversationManager,
    SlidingWindowConversationManager,
)
from .errors import AgentTreeError, ConcurrentInvocationError, TransferTargetNotFoundError
from .hooks import (
    AfterInvocationEvent,
    AfterModelCallEvent,
    AfterToolCallEvent,
    AfterToolsEvent,
    AfterTransferEvent,
    BeforeInvocationEvent,
    BeforeModelCallEvent,
    BeforeToolCallEvent,
    BeforeToolsEvent,
    BeforeTransferEvent,
    HookEvent,
    HookProvider,
    HookRegistry,
    MessageAddedEvent,
    ModelStreamHookEvent,
)
from .state import AgentState
from .tools import (
    FunctionTool,
    Tool,
    ToolContext,
    ToolRegistry,
    ToolStreamEvent,
    create_transfer_to_agent_tool,
    function_tool,
)
from .types import (
    AgentEventAfterInvocation,
    AgentEventAfterModel,
    AgentEventAfterTools,
    AgentEventAfterTransfer,
    AgentEventBeforeInvocation,
    AgentEventBeforeModel,
    AgentEventBeforeTools,
    AgentEventBeforeTransfer,
    AgentResult,
    AgentStreamEvent,
    InvokeArgs,
    TransferState,
)

__all__ = [
    # Agent class
    "Agent",
    "AgentOptions",
    "AgentState",
    # Loop
    "run_agent_loop",
    # Config
    "DEFAULT_MAX_CONSECUTIVE_TRANSFERS",
    "DEFAULT_WINDOW_SIZE",
    "TOOL_RESULT_TOO_LARGE_MESSAGE",
    "TRANSFER_TOOL_NAME",
    # Conversation management
    "ConversationManager",
    "NullConversationManager",
    "SlidingWindowConversationManager",
    # Errors
    "AgentTreeError",
    "ConcurrentInvocationError",
    "TransferTargetNotFoundError",
    # Hooks
    "AfterInvocationEvent",
    "AfterModelCallEvent",
    "AfterToolCallEvent",
    "AfterToolsEvent",
    "AfterTransferEvent",
    "BeforeInvocationEvent",
    "BeforeModelCallEvent",
    "BeforeToolCallEvent",
    "BeforeToolsEvent",
    "BeforeTransferEvent",
    "HookEvent",
    "HookProvider",
    "HookRegistry",
    "MessageAddedEvent",
    "ModelStreamHookEvent",
    # Tools
    "FunctionTool",
    "Tool",
    "ToolContext",
    "ToolRegistry",
    "ToolStreamEvent",
    "create_transfer_to_agent_tool",
    "function_tool",
    # Types
    "AgentEventAfterInvocation",
    "AgentEventAfterModel",
    "AgentEventAfterTools",
    "AgentEventAfterTransfer",
    "AgentEventBeforeInvocation",
    "AgentEventBeforeModel",
    "AgentEventBeforeTools",
    "AgentEventBeforeTransfer",
    "AgentResult",
    "AgentStreamEvent",
    "InvokeArgs",
    "TransferState",
]
