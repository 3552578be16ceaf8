"""
Configuration defaults and environment overrides.

Explicit constructor arguments always take precedence over the values
returned here.
"""
from __future__ import annotations

import os


APP_NAME: str = "weft"
ENV_PREFIX: str = f"{APP_NAME.upper()}_"

ENV_WINDOW_SIZE: str = f"{ENV_PREFIX}WINDOW_SIZE"
ENV_MAX_CONSECUTIVE_TRANSFERS: str = f"{ENV_PREFIX}MAX_CONSECUTIVE_TRANSFERS"


# ============================================================================
# Conversation management
# ============================================================================

DEFAULT_WINDOW_SIZE: int = 40
DEFAULT_SHOULD_TRUNCATE_RESULTS: bool = True
TOOL_RESULT_TOO_LARGE_MESSAGE: str = "The tool result was too large!"


# ============================================================================
# Multi-agent transfer
# ============================================================================

DEFAULT_MAX_CONSECUTIVE_TRANSFERS: int = 8
TRANSFER_TOOL_NAME: str = "transfer_to_agent"


def _get_non_negative_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


def get_window_size() -> int:
    """Get the sliding-window size (``WEFT_WINDOW_SIZE``, default 40)."""
    return _get_non_negative_int(ENV_WINDOW_SIZE, DEFAULT_WINDOW_SIZE)


def get_max_consecutive_transfers() -> int:
    """Get the transfer ceiling (``WEFT_MAX_CONSECUTIVE_TRANSFERS``, default 8)."""
    return _get_non_negative_int(ENV_MAX_CONSECUTIVE_TRANSFERS, DEFAULT_MAX_CONSECUTIVE_TRANSFERS)
