"""
Sliding-window conversation history management.

Keeps the newest messages within a fixed message count while never leaving
a tool result without its tool use, or a tool use without its result.
"""
from __future__ import annotations

import logging

from weft_ai.errors import ContextWindowOverflowError
from weft_ai.types import Message, TextBlock, ToolResultBlock

from .. import config
from .conversation_manager import ConversationManager

logger = logging.getLogger(__name__)


class SlidingWindowConversationManager(ConversationManager):
    """
    Trims the oldest messages once history grows past ``window_size``.

    Reduction runs in two phases. If ``should_truncate_results`` is set, the
    newest message holding tool results has them replaced by a short error
    placeholder, and nothing else happens. Once that message is already
    truncated (or there is none), the oldest messages are dropped up to the
    first position that starts a self-contained history.

    Args:
        window_size: Maximum number of messages to keep. Defaults to
            ``WEFT_WINDOW_SIZE`` or 40.
        should_truncate_results: Replace oversized tool results before
            dropping messages.
    """

    def __init__(
        self,
        window_size: int | None = None,
        should_truncate_results: bool = config.DEFAULT_SHOULD_TRUNCATE_RESULTS,
    ) -> None:
        if window_size is None:
            window_size = config.get_window_size()
        if window_size < 0:
            raise ValueError(f"window_size must not be negative, got {window_size}")
        self.window_size = window_size
        self.should_truncate_results = should_truncate_results

    def apply_management(self, messages: list[Message]) -> None:
        if len(messages) <= self.window_size:
            return
        self.reduce_context(messages)

    def reduce_context(self, messages: list[Message], error: BaseException | None = None) -> None:
        last_idx = self._find_last_message_with_tool_results(messages)
        if last_idx is not None and self.should_truncate_results:
            if self._truncate_tool_results(messages, last_idx):
                logger.debug("truncated tool results in message %d", last_idx)
                return

        # Within the window an overflow still drops at least the first two messages
        trim_index = 2 if len(messages) <= self.window_size else len(messages) - self.window_size

        while trim_index < len(messages):
            oldest = messages[trim_index]

            if oldest.has_block("tool_result"):
                trim_index += 1
                continue

            if oldest.has_block("tool_use"):
                following = messages[trim_index + 1] if trim_index + 1 < len(messages) else None
                if following is None or not following.has_block("tool_result"):
                    trim_index += 1
                    continue

            break

        if trim_index >= len(messages):
            raise ContextWindowOverflowError("Unable to trim conversation context!")

        logger.debug("trimming %d of %d messages", trim_index, len(messages))
        del messages[:trim_index]

    def _truncate_tool_results(self, messages: list[Message], msg_idx: int) -> bool:
        """
        Replace every tool result in ``messages[msg_idx]`` with the placeholder.

        Returns False without changing anything when the message has no tool
        results or its first tool result is already the placeholder.
        """
        if msg_idx < 0 or msg_idx >= len(messages):
            return False

        message = messages[msg_idx]
        first_result = next((b for b in message.content if isinstance(b, ToolResultBlock)), None)
        if first_result is None or _is_truncated(first_result):
            return False

        new_content = [
            ToolResultBlock(
                tool_use_id=block.tool_use_id,
                status="error",
                content=[TextBlock(text=config.TOOL_RESULT_TOO_LARGE_MESSAGE)],
            )
            if isinstance(block, ToolResultBlock)
            else block
            for block in message.content
        ]
        messages[msg_idx] = message.model_copy(update={"content": new_content})
        return True

    @staticmethod
    def _find_last_message_with_tool_results(messages: list[Message]) -> int | None:
        for idx in range(len(messages) - 1, -1, -1):
            if messages[idx].has_block("tool_result"):
                return idx
        return None


def _is_truncated(block: ToolResultBlock) -> bool:
    first = block.content[0] if block.content else None
    text = first.text if isinstance(first, TextBlock) else ""
    return block.status == "error" and text == config.TOOL_RESULT_TOO_LARGE_MESSAGE
