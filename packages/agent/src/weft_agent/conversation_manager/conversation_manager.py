"""
Conversation manager base class.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from weft_ai.errors import ContextWindowOverflowError
from weft_ai.types import Message

from ..hooks.events import AfterInvocationEvent, AfterModelCallEvent
from ..hooks.registry import HookRegistry


class ConversationManager(ABC):
    """
    Keeps an agent's message history small enough for the model's context.

    Managers are hook providers. The default ``register_hooks`` applies
    management after every invocation and, when a model call fails with a
    context overflow, reduces the history and asks the loop to retry the call.
    Managers hold no per-call state; everything they need lives in the
    message list they are handed.
    """

    def register_hooks(self, registry: HookRegistry) -> None:
        registry.add_callback(AfterInvocationEvent, self._on_after_invocation)
        registry.add_callback(AfterModelCallEvent, self._on_after_model_call)

    def _on_after_invocation(self, event: AfterInvocationEvent) -> None:
        self.apply_management(event.agent.messages)

    def _on_after_model_call(self, event: AfterModelCallEvent) -> None:
        if isinstance(event.error, ContextWindowOverflowError):
            self.reduce_context(event.agent.messages, event.error)
            event.retry_model_call = True

    @abstractmethod
    def apply_management(self, messages: list[Message]) -> None:
        """Bring *messages* back under the limit, modifying the list in place."""

    @abstractmethod
    def reduce_context(self, messages: list[Message], error: BaseException | None = None) -> None:
        """
        Shrink *messages* in place after a context overflow.

        Raises ContextWindowOverflowError when nothing more can be removed.
        """
