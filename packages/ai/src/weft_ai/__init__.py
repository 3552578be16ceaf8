"""
weft_ai: message model and model-provider interface for weft agents.
"""

# Core types
from .types import (
    CachePointBlock,
    ContentBlock,
    JsonBlock,
    Message,
    Metrics,
    ModelContentBlockDeltaEvent,
    ModelContentBlockStartEvent,
    ModelContentBlockStopEvent,
    ModelMessageStartEvent,
    ModelMessageStopEvent,
    ModelMetadataEvent,
    ModelStopData,
    ModelStreamEvent,
    ReasoningBlock,
    ReasoningContentDelta,
    StopReason,
    SystemPrompt,
    TextBlock,
    TextDelta,
    ToolResultBlock,
    ToolSpec,
    ToolUse,
    ToolUseBlock,
    ToolUseInputDelta,
    ToolUseStart,
    Usage,
)

# Errors
from .errors import (
    ContextWindowOverflowError,
    MaxTokensError,
    is_context_overflow_error,
    normalize_error,
)

# Model base class
from .model import AggregatedEvent, Model, StreamOptions

# Utilities
from .utils.event_stream import EventStream

__all__ = [
    # Types
    "CachePointBlock",
    "ContentBlock",
    "JsonBlock",
    "Message",
    "Metrics",
    "ModelContentBlockDeltaEvent",
    "ModelContentBlockStartEvent",
    "ModelContentBlockStopEvent",
    "ModelMessageStartEvent",
    "ModelMessageStopEvent",
    "ModelMetadataEvent",
    "ModelStopData",
    "ModelStreamEvent",
    "ReasoningBlock",
    "ReasoningContentDelta",
    "StopReason",
    "SystemPrompt",
    "TextBlock",
    "TextDelta",
    "ToolResultBlock",
    "ToolSpec",
    "ToolUse",
    "ToolUseBlock",
    "ToolUseInputDelta",
    "ToolUseStart",
    "Usage",
    # Errors
    "ContextWindowOverflowError",
    "MaxTokensError",
    "is_context_overflow_error",
    "normalize_error",
    # Model
    "AggregatedEvent",
    "Model",
    "StreamOptions",
    # Utils
    "EventStream",
]
