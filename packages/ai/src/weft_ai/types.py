"""
Core type definitions: messages, content blocks and model stream events.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

# ─── Scalars ──────────────────────────────────────────────────────────────────

JSONValue = Any  # anything json.dumps() accepts

Role = Literal["user", "assistant"]
ToolResultStatus = Literal["success", "error"]
StopReason = Literal[
    "end_turn",
    "tool_use",
    "max_tokens",
    "stop_sequence",
    "content_filtered",
    "guardrail_intervened",
]


# ─── Content blocks ───────────────────────────────────────────────────────────

class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str

    model_config = {"frozen": True}


class JsonBlock(BaseModel):
    """Structured tool-result content."""
    type: Literal["json"] = "json"
    value: JSONValue = None

    model_config = {"frozen": True}


class ToolUseBlock(BaseModel):
    type: Literal["tool_use"] = "tool_use"
    name: str
    tool_use_id: str
    input: JSONValue = Field(default_factory=dict)

    model_config = {"frozen": True}


ToolResultContent = Annotated[Union[TextBlock, JsonBlock], Field(discriminator="type")]


class ToolResultBlock(BaseModel):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    status: ToolResultStatus
    content: list[ToolResultContent] = Field(default_factory=list)
    # The exception that produced an error result; never serialized.
    error: Exception | None = Field(default=None, exclude=True, repr=False)

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


class ReasoningBlock(BaseModel):
    type: Literal["reasoning"] = "reasoning"
    text: str | None = None
    signature: str | None = None
    redacted_content: bytes | None = None

    model_config = {"frozen": True}


class CachePointBlock(BaseModel):
    type: Literal["cache_point"] = "cache_point"
    cache_type: Literal["default"] = "default"

    model_config = {"frozen": True}


ContentBlock = Annotated[
    Union[TextBlock, ToolUseBlock, ToolResultBlock, ReasoningBlock, CachePointBlock],
    Field(discriminator="type"),
]

SystemContentBlock = Annotated[Union[TextBlock, CachePointBlock], Field(discriminator="type")]
SystemPrompt = Union[str, list[SystemContentBlock]]


# ─── Messages ─────────────────────────────────────────────────────────────────

class Message(BaseModel):
    """
    A single conversation turn.

    Messages are immutable: history edits replace the list entry with a new
    Message (see ``model_copy(update=...)``), never patch one in place.
    """
    role: Role
    content: list[ContentBlock] = Field(default_factory=list)
    # Name of the agent that produced the message in a multi-agent tree
    author: str | None = None

    model_config = {"frozen": True}

    def has_block(self, block_type: str) -> bool:
        return any(block.type == block_type for block in self.content)

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content if isinstance(block, TextBlock))


# ─── Tool descriptors ─────────────────────────────────────────────────────────

class ToolSpec(BaseModel):
    name: str
    description: str
    input_schema: dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})


class ToolUse(BaseModel):
    name: str
    tool_use_id: str
    input: JSONValue = Field(default_factory=dict)


# ─── Usage / metrics ──────────────────────────────────────────────────────────

class Usage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cache_read_input_tokens: int | None = None
    cache_write_input_tokens: int | None = None


class Metrics(BaseModel):
    latency_ms: int = 0


# ─── Stream deltas ────────────────────────────────────────────────────────────

class ToolUseStart(BaseModel):
    type: Literal["tool_use_start"] = "tool_use_start"
    name: str
    tool_use_id: str


class TextDelta(BaseModel):
    type: Literal["text_delta"] = "text_delta"
    text: str


class ToolUseInputDelta(BaseModel):
    type: Literal["tool_use_input_delta"] = "tool_use_input_delta"
    input: str  # partial JSON


class ReasoningContentDelta(BaseModel):
    type: Literal["reasoning_content_delta"] = "reasoning_content_delta"
    text: str | None = None
    signature: str | None = None
    redacted_content: bytes | None = None


ContentBlockDelta = Annotated[
    Union[TextDelta, ToolUseInputDelta, ReasoningContentDelta],
    Field(discriminator="type"),
]


# ─── Model stream events ──────────────────────────────────────────────────────

class ModelMessageStartEvent(BaseModel):
    type: Literal["message_start"] = "message_start"
    role: Role = "assistant"


class ModelContentBlockStartEvent(BaseModel):
    type: Literal["content_block_start"] = "content_block_start"
    start: ToolUseStart | None = None  # only present for tool use blocks


class ModelContentBlockDeltaEvent(BaseModel):
    type: Literal["content_block_delta"] = "content_block_delta"
    delta: ContentBlockDelta
    content_block_index: int | None = None


class ModelContentBlockStopEvent(BaseModel):
    type: Literal["content_block_stop"] = "content_block_stop"


class ModelMessageStopEvent(BaseModel):
    type: Literal["message_stop"] = "message_stop"
    stop_reason: StopReason
    additional_model_response_fields: JSONValue = None


class ModelMetadataEvent(BaseModel):
    type: Literal["metadata"] = "metadata"
    usage: Usage | None = None
    metrics: Metrics | None = None
    trace: Any = None


ModelStreamEvent = Union[
    ModelMessageStartEvent,
    ModelContentBlockStartEvent,
    ModelContentBlockDeltaEvent,
    ModelContentBlockStopEvent,
    ModelMessageStopEvent,
    ModelMetadataEvent,
]


class ModelStopData(BaseModel):
    """Aggregated outcome of one model call."""
    message: Message
    stop_reason: StopReason
    usage: Usage | None = None
    metrics: Metrics | None = None
