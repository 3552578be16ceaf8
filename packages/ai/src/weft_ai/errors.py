"""
Model-layer errors.

Providers raise whatever their client library raises; ``normalize_error``
maps the ones the agent loop can recover from onto the types below.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from .utils.overflow import is_overflow_exception

if TYPE_CHECKING:
    from .types import Message


class ContextWindowOverflowError(Exception):
    """The request did not fit into the model's context window."""


class MaxTokensError(Exception):
    """The model stopped because it ran out of output tokens."""

    def __init__(self, message: str, partial_message: "Message | None" = None) -> None:
        super().__init__(message)
        self.partial_message = partial_message


def is_context_overflow_error(error: BaseException) -> bool:
    if isinstance(error, ContextWindowOverflowError):
        return True
    return is_overflow_exception(error)


def normalize_error(error: BaseException) -> BaseException:
    """
    Map a provider exception onto a recoverable error type where possible.

    Overflow-looking errors become ``ContextWindowOverflowError`` chained to
    the original. Everything else, including already-normalized errors, is
    returned unchanged.
    """
    if isinstance(error, (ContextWindowOverflowError, MaxTokensError)):
        return error
    if is_overflow_exception(error):
        normalized = ContextWindowOverflowError(str(error))
        normalized.__cause__ = error
        return normalized
    return error
