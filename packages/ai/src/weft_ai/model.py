"""
Model provider base class and stream aggregation.

Provider adapters subclass ``Model`` and translate their wire format into
``ModelStreamEvent``s. ``Model.stream_aggregated`` turns that raw stream into
completed content blocks and a final ``ModelStopData``.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Union

from pydantic import BaseModel, Field

from .errors import MaxTokensError, normalize_error
from .types import (
    ContentBlock,
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
    ToolSpec,
    ToolUseBlock,
    ToolUseInputDelta,
    Usage,
)
from .utils.event_stream import EventStream
from .utils.json_parse import parse_tool_input

logger = logging.getLogger(__name__)

AggregatedEvent = Union[ModelStreamEvent, ContentBlock]

MAX_TOKENS_MESSAGE = (
    "Model reached maximum token limit. This is an unrecoverable state that requires intervention."
)


class StreamOptions(BaseModel):
    system_prompt: SystemPrompt | None = None
    tool_specs: list[ToolSpec] = Field(default_factory=list)


class Model(ABC):
    """Base class for model providers."""

    @abstractmethod
    def stream(
        self,
        messages: list[Message],
        options: StreamOptions | None = None,
    ) -> AsyncIterator[ModelStreamEvent]:
        """Stream raw events for one model call."""

    def stream_aggregated(
        self,
        messages: list[Message],
        options: StreamOptions | None = None,
    ) -> EventStream[AggregatedEvent, ModelStopData]:
        """
        Stream one model call, emitting raw events plus completed blocks.

        Each content block is pushed right after its ``content_block_stop``
        event. The stream result is the aggregated assistant message and its
        stop reason; provider errors are normalized before failing the stream.
        """
        ev_stream: EventStream[AggregatedEvent, ModelStopData] = EventStream()

        async def _run() -> None:
            try:
                stop_data = await _aggregate(self.stream(messages, options), ev_stream)
                ev_stream.end(stop_data)
            except Exception as exc:
                ev_stream.fail(normalize_error(exc))

        ev_stream.task = asyncio.ensure_future(_run())
        return ev_stream


class _BlockState:
    """Accumulates deltas for the content block currently being streamed."""

    def __init__(self) -> None:
        self.tool_use: dict[str, Any] | None = None
        self.tool_input = ""
        self.text = ""
        self.reasoning_text = ""
        self.signature: str | None = None
        self.redacted_content: bytes | None = None
        self.kind: str | None = None

    def start(self, event: ModelContentBlockStartEvent) -> None:
        if event.start is not None:
            self.kind = "tool_use"
            self.tool_use = {"name": event.start.name, "tool_use_id": event.start.tool_use_id}

    def add(self, event: ModelContentBlockDeltaEvent) -> None:
        delta = event.delta
        if isinstance(delta, ToolUseInputDelta):
            self.kind = self.kind or "tool_use"
            self.tool_input += delta.input
        elif isinstance(delta, TextDelta):
            self.kind = self.kind or "text"
            self.text += delta.text
        elif isinstance(delta, ReasoningContentDelta):
            self.kind = self.kind or "reasoning"
            if delta.text:
                self.reasoning_text += delta.text
            if delta.signature:
                self.signature = (self.signature or "") + delta.signature
            if delta.redacted_content:
                self.redacted_content = (self.redacted_content or b"") + delta.redacted_content

    def finish(self) -> ContentBlock | None:
        if self.kind == "tool_use" and self.tool_use is not None:
            return ToolUseBlock(
                name=self.tool_use["name"],
                tool_use_id=self.tool_use["tool_use_id"],
                input=parse_tool_input(self.tool_input),
            )
        if self.kind == "text":
            return TextBlock(text=self.text)
        if self.kind == "reasoning":
            return ReasoningBlock(
                text=self.reasoning_text or None,
                signature=self.signature,
                redacted_content=self.redacted_content,
            )
        return None


async def _aggregate(
    events: AsyncIterator[ModelStreamEvent],
    ev_stream: EventStream[AggregatedEvent, ModelStopData],
) -> ModelStopData:
    content: list[ContentBlock] = []
    block = _BlockState()
    stop_reason: StopReason | None = None
    usage: Usage | None = None
    metrics: Metrics | None = None

    async for event in events:
        ev_stream.push(event)

        if isinstance(event, ModelMessageStartEvent):
            content = []
        elif isinstance(event, ModelContentBlockStartEvent):
            block = _BlockState()
            block.start(event)
        elif isinstance(event, ModelContentBlockDeltaEvent):
            block.add(event)
        elif isinstance(event, ModelContentBlockStopEvent):
            finished = block.finish()
            if finished is not None:
                content.append(finished)
                ev_stream.push(finished)
            block = _BlockState()
        elif isinstance(event, ModelMessageStopEvent):
            stop_reason = event.stop_reason
        elif isinstance(event, ModelMetadataEvent):
            usage = event.usage or usage
            metrics = event.metrics or metrics

    if stop_reason is None:
        raise RuntimeError("Model stream ended without a stop reason")

    message = Message(role="assistant", content=content)
    if stop_reason == "max_tokens":
        raise MaxTokensError(MAX_TOKENS_MESSAGE, partial_message=message)

    logger.debug("model stream finished: stop_reason=%s blocks=%d", stop_reason, len(content))
    return ModelStopData(message=message, stop_reason=stop_reason, usage=usage, metrics=metrics)
