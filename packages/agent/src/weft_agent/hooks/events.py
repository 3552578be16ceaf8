"""
Hook event payloads.

One event object is created per dispatch. Fields marked as writable are set
by callbacks and read by the agent loop after every callback has run.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from weft_ai.types import Message, ModelStopData, ToolResultBlock, ToolUse

if TYPE_CHECKING:
    from ..agent import Agent
    from ..tools.tool import Tool


@dataclass
class HookEvent:
    agent: "Agent"


# ─── Invocation lifecycle ─────────────────────────────────────────────────────

@dataclass
class BeforeInvocationEvent(HookEvent):
    pass


@dataclass
class AfterInvocationEvent(HookEvent):
    """Dispatched once per invocation, also when the invocation raised."""


@dataclass
class MessageAddedEvent(HookEvent):
    message: Message = None  # type: ignore[assignment]


# ─── Model calls ──────────────────────────────────────────────────────────────

@dataclass
class BeforeModelCallEvent(HookEvent):
    pass


@dataclass
class AfterModelCallEvent(HookEvent):
    """
    Outcome of one model call: exactly one of ``stop_data`` and ``error`` is set.

    Callbacks set ``retry_model_call`` to have the loop issue the same model
    call again instead of raising ``error``.
    """
    stop_data: ModelStopData | None = None
    error: BaseException | None = None
    retry_model_call: bool = False


@dataclass
class ModelStreamHookEvent(HookEvent):
    event: Any = None


# ─── Tool calls ───────────────────────────────────────────────────────────────

@dataclass
class BeforeToolsEvent(HookEvent):
    message: Message = None  # type: ignore[assignment]


@dataclass
class AfterToolsEvent(HookEvent):
    message: Message = None  # type: ignore[assignment]


@dataclass
class BeforeToolCallEvent(HookEvent):
    tool_use: ToolUse = None  # type: ignore[assignment]
    tool: "Tool | None" = None


@dataclass
class AfterToolCallEvent(HookEvent):
    """
    Result of one tool call.

    Callbacks may replace ``result``; the loop records whatever is left on
    the event. Setting ``retry`` discards the result and runs the call again.
    """
    tool_use: ToolUse = None  # type: ignore[assignment]
    tool: "Tool | None" = None
    result: ToolResultBlock = None  # type: ignore[assignment]
    error: BaseException | None = None
    retry: bool = False


# ─── Multi-agent transfer ─────────────────────────────────────────────────────

@dataclass
class BeforeTransferEvent(HookEvent):
    from_agent: "Agent" = None  # type: ignore[assignment]
    to_agent: "Agent" = None  # type: ignore[assignment]


@dataclass
class AfterTransferEvent(HookEvent):
    from_agent: "Agent" = None  # type: ignore[assignment]
    to_agent: "Agent" = None  # type: ignore[assignment]


__all__ = [
    "HookEvent",
    "BeforeInvocationEvent",
    "AfterInvocationEvent",
    "MessageAddedEvent",
    "BeforeModelCallEvent",
    "AfterModelCallEvent",
    "ModelStreamHookEvent",
    "BeforeToolsEvent",
    "AfterToolsEvent",
    "BeforeToolCallEvent",
    "AfterToolCallEvent",
    "BeforeTransferEvent",
    "AfterTransferEvent",
]
