"""
Agent-layer errors.
"""
from __future__ import annotations


class ConcurrentInvocationError(RuntimeError):
    """Raised when an agent is invoked while a previous invocation is still running."""

    def __init__(self) -> None:
        super().__init__(
            "Agent is already processing an invocation. "
            "Wait for the current invocation to finish before invoking again."
        )


class TransferTargetNotFoundError(LookupError):
    """A queued transfer names an agent that does not exist in the tree."""

    def __init__(self, agent_name: str) -> None:
        super().__init__(f"Transfer target agent '{agent_name}' was not found")
        self.agent_name = agent_name


class AgentTreeError(ValueError):
    """Invalid parent/sub-agent wiring."""
