"""
Context overflow detection utilities.

Recognises the "context window exceeded" failures of the common model
providers from their error text, so provider-specific exceptions can be
normalised into a single recoverable error type.
"""

from __future__ import annotations

import re

# Regex patterns to detect context overflow errors from different providers.
OVERFLOW_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"prompt is too long", re.IGNORECASE),                         # Anthropic
    re.compile(r"input is too long for requested model", re.IGNORECASE),      # Amazon Bedrock
    re.compile(r"input and output tokens exceed your context limit", re.IGNORECASE),  # Amazon Bedrock
    re.compile(r"exceeds the context window", re.IGNORECASE),                  # OpenAI
    re.compile(r"input token count.*exceeds the maximum", re.IGNORECASE),     # Google (Gemini)
    re.compile(r"maximum prompt length is \d+", re.IGNORECASE),               # xAI (Grok)
    re.compile(r"reduce the length of the messages", re.IGNORECASE),          # Groq
    re.compile(r"maximum context length is \d+ tokens", re.IGNORECASE),       # OpenRouter
    re.compile(r"exceeds the limit of \d+", re.IGNORECASE),                   # GitHub Copilot
    re.compile(r"exceeds the available context size", re.IGNORECASE),         # llama.cpp server
    re.compile(r"greater than the context length", re.IGNORECASE),            # LM Studio
    re.compile(r"context window exceeds limit", re.IGNORECASE),               # MiniMax
    re.compile(r"exceeded model token limit", re.IGNORECASE),                 # Kimi For Coding
    re.compile(r"context[_ ]length[_ ]exceeded", re.IGNORECASE),              # Generic fallback
    re.compile(r"too many tokens", re.IGNORECASE),                            # Generic fallback
    re.compile(r"token limit exceeded", re.IGNORECASE),                       # Generic fallback
]

_STATUS_CODE_RE = re.compile(r"^4(00|13)\s*(status code)?\s*\(no body\)", re.IGNORECASE)


def is_overflow_text(text: str | None) -> bool:
    """Return True if *text* reads like a provider context-overflow error."""
    if not text:
        return False
    if any(p.search(text) for p in OVERFLOW_PATTERNS):
        return True
    # Cerebras and Mistral return 400/413 with no body
    return bool(_STATUS_CODE_RE.match(text))


def is_overflow_exception(error: BaseException) -> bool:
    """Check an exception (and its explicit cause chain) for overflow text."""
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if is_overflow_text(str(current)):
            return True
        current = current.__cause__
    return False


def get_overflow_patterns() -> list[re.Pattern[str]]:
    """Return the overflow patterns (for testing purposes)."""
    return list(OVERFLOW_PATTERNS)
