"""
Tests for provider context-overflow detection.
"""
from __future__ import annotations

import pytest

from weft_ai.utils.overflow import get_overflow_patterns, is_overflow_exception, is_overflow_text


class TestIsOverflowText:
    def test_returns_false_for_empty(self):
        assert is_overflow_text(None) is False
        assert is_overflow_text("") is False

    def test_returns_false_for_non_overflow_error(self):
        assert is_overflow_text("Internal server error") is False

    @pytest.mark.parametrize(
        "text",
        [
            "prompt is too long: 213462 tokens > 200000 maximum",
            "input is too long for requested model",
            "Input and output tokens exceed your context limit",
            "Your input exceeds the context window of this model",
            "The input token count (1196265) exceeds the maximum number of tokens allowed (1048575)",
            "This model's maximum prompt length is 131072 but the request contains 537812 tokens",
            "Please reduce the length of the messages or completion",
            "This endpoint's maximum context length is 4096 tokens. However, you requested about 8192 tokens",
            "prompt token count of 4321 exceeds the limit of 4096",
            "the request exceeds the available context size, try increasing it",
            "tokens to keep from the initial prompt is greater than the context length",
            "invalid params, context window exceeds limit",
            "Your request exceeded model token limit: 4096 (requested: 8192)",
            "context_length_exceeded",
            "too many tokens in request",
            "token limit exceeded",
        ],
    )
    def test_provider_overflow_messages(self, text):
        assert is_overflow_text(text) is True

    def test_cerebras_400_no_body(self):
        assert is_overflow_text("400 status code (no body)") is True

    def test_cerebras_413_no_body(self):
        assert is_overflow_text("413 (no body)") is True

    def test_429_not_overflow(self):
        """429 is rate limiting, NOT context overflow."""
        assert is_overflow_text("429 status code (no body)") is False


class TestIsOverflowException:
    def test_direct_message(self):
        assert is_overflow_exception(RuntimeError("prompt is too long")) is True

    def test_follows_cause_chain(self):
        inner = ValueError("context_length_exceeded")
        outer = RuntimeError("request failed")
        outer.__cause__ = inner
        assert is_overflow_exception(outer) is True

    def test_plain_error(self):
        assert is_overflow_exception(RuntimeError("connection reset")) is False

    def test_cycle_in_cause_chain_terminates(self):
        a = RuntimeError("a")
        b = RuntimeError("b")
        a.__cause__ = b
        b.__cause__ = a
        assert is_overflow_exception(a) is False


def test_get_overflow_patterns_returns_copy():
    patterns = get_overflow_patterns()
    assert len(patterns) >= 10
    assert all(hasattr(p, "search") for p in patterns)
    patterns.clear()
    assert len(get_overflow_patterns()) >= 10
