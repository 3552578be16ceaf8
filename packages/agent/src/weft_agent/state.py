"""
Agent state: a JSON-valued key/value store that is never sent to the model.
"""
from __future__ import annotations

import copy
import json
from typing import Any


class AgentState:
    """
    Key/value store for application state attached to an agent.

    Values must be JSON-serializable. They are deep-copied on the way in and
    on the way out, so callers never share mutable objects with the store.
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._state: dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str | None = None) -> Any:
        """Return the value for *key*, or a copy of the whole store if key is None."""
        if key is None:
            return copy.deepcopy(self._state)
        return copy.deepcopy(self._state.get(key))

    def set(self, key: str, value: Any) -> None:
        _validate_json(key, value)
        self._state[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._state.pop(key, None)

    def clear(self) -> None:
        self._state.clear()

    def keys(self) -> list[str]:
        return list(self._state.keys())

    def __contains__(self, key: object) -> bool:
        return key in self._state

    def __len__(self) -> int:
        return len(self._state)


def _validate_json(key: str, value: Any) -> None:
    if not isinstance(key, str) or not key:
        raise ValueError("State key must be a non-empty string")
    try:
        json.dumps(value, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Value for state key '{key}' is not JSON serializable: {exc}") from exc
