"""
A conversation manager that leaves history untouched.
"""
from __future__ import annotations

from weft_ai.errors import ContextWindowOverflowError
from weft_ai.types import Message

from ..hooks.registry import HookRegistry
from .conversation_manager import ConversationManager


class NullConversationManager(ConversationManager):
    """Never modifies history. Context overflows propagate to the caller."""

    def register_hooks(self, registry: HookRegistry) -> None:
        pass

    def apply_management(self, messages: list[Message]) -> None:
        pass

    def reduce_context(self, messages: list[Message], error: BaseException | None = None) -> None:
        if error is not None:
            raise error
        raise ContextWindowOverflowError("Context window overflowed!")
