"""
Agent types: invocation results, lifecycle stream events and transfer state.
"""
from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, Field

from weft_ai.model import AggregatedEvent
from weft_ai.types import ContentBlock, Message, StopReason, TextBlock, ToolResultBlock

from .tools.tool import ToolStreamEvent

# ─── InvokeArgs ───────────────────────────────────────────────────────────────

# None continues the conversation without new input
InvokeArgs = Union[None, str, Message, list[Message], list[ContentBlock]]


# ─── AgentResult ──────────────────────────────────────────────────────────────

class AgentResult(BaseModel):
    """Final outcome of one invocation."""
    stop_reason: StopReason
    last_message: Message

    def __str__(self) -> str:
        return "\n".join(
            block.text for block in self.last_message.content if isinstance(block, TextBlock)
        )


# ─── Lifecycle events ─────────────────────────────────────────────────────────
#
# Agent names are used instead of agent objects so events stay plain data.

class AgentEventBeforeInvocation(BaseModel):
    type: Literal["before_invocation"] = "before_invocation"
    agent_name: str | None = None


class AgentEventAfterInvocation(BaseModel):
    type: Literal["after_invocation"] = "after_invocation"
    agent_name: str | None = None


class AgentEventBeforeModel(BaseModel):
    type: Literal["before_model"] = "before_model"
    agent_name: str | None = None
    messages: list[Message] = Field(default_factory=list)


class AgentEventAfterModel(BaseModel):
    type: Literal["after_model"] = "after_model"
    agent_name: str | None = None
    message: Message
    stop_reason: StopReason


class AgentEventBeforeTools(BaseModel):
    type: Literal["before_tools"] = "before_tools"
    agent_name: str | None = None
    message: Message


class AgentEventAfterTools(BaseModel):
    type: Literal["after_tools"] = "after_tools"
    agent_name: str | None = None
    message: Message


class AgentEventBeforeTransfer(BaseModel):
    type: Literal["before_transfer"] = "before_transfer"
    from_agent: str
    to_agent: str


class AgentEventAfterTransfer(BaseModel):
    type: Literal["after_transfer"] = "after_transfer"
    from_agent: str
    to_agent: str


AgentLifecycleEvent = Union[
    AgentEventBeforeInvocation,
    AgentEventAfterInvocation,
    AgentEventBeforeModel,
    AgentEventAfterModel,
    AgentEventBeforeTools,
    AgentEventAfterTools,
    AgentEventBeforeTransfer,
    AgentEventAfterTransfer,
]

AgentStreamEvent = Union[AgentLifecycleEvent, AggregatedEvent, ToolStreamEvent, ToolResultBlock]


# ─── TransferState ────────────────────────────────────────────────────────────

class TransferState(BaseModel):
    """
    Per-tree transfer bookkeeping, held by the root agent.

    ``pending_transfer`` is set by the transfer tool during a turn and
    consumed when the turn ends. ``consecutive_transfers`` counts back-to-back
    turns that ended in a transfer.
    """
    active_agent_name: str | None = None
    pending_transfer: str | None = None
    consecutive_transfers: int = 0

    model_config = {"validate_assignment": True}

