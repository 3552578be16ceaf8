"""
Agent class.

Owns the conversation, tools, hooks and, for multi-agent trees, the
parent/sub-agent links. Each invocation runs the agent loop in a background
task that feeds an EventStream.
"""
from __future__ import annotations

import asyncio
from typing import Any, Iterable

from weft_ai.model import Model
from weft_ai.types import Message, SystemPrompt, TextBlock
from weft_ai.utils.event_stream import EventStream

from . import config
from .agent_loop import run_agent_loop
from .conversation_manager import ConversationManager, SlidingWindowConversationManager
from .errors import AgentTreeError, ConcurrentInvocationError
from .hooks.registry import HookProvider, HookRegistry
from .state import AgentState
from .tools.registry import ToolRegistry, flatten_tools
from .tools.transfer_to_agent import create_transfer_to_agent_tool
from .types import AgentResult, AgentStreamEvent, InvokeArgs, TransferState


class AgentOptions:
    """Options for constructing an Agent."""

    def __init__(
        self,
        model: Model | None = None,
        messages: list[Message] | None = None,
        tools: Any = None,
        system_prompt: SystemPrompt | None = None,
        state: dict[str, Any] | None = None,
        conversation_manager: ConversationManager | None = None,
        hooks: Iterable[HookProvider] | None = None,
        name: str | None = None,
        description: str | None = None,
        sub_agents: list["Agent"] | None = None,
        disallow_transfer_to_parent: bool = False,
        disallow_transfer_to_peers: bool = False,
        max_consecutive_transfers: int | None = None,
    ):
        self.model = model
        self.messages = messages
        self.tools = tools
        self.system_prompt = system_prompt
        self.state = state
        self.conversation_manager = conversation_manager
        self.hooks = hooks
        self.name = name
        self.description = description
        self.sub_agents = sub_agents
        self.disallow_transfer_to_parent = disallow_transfer_to_parent
        self.disallow_transfer_to_peers = disallow_transfer_to_peers
        self.max_consecutive_transfers = max_consecutive_transfers


class Agent:
    """
    An agent: a model, its tools and a conversation.

    Agents may form a one-level tree: a root with named sub-agents. The
    tree shares one conversation, owned by the root, and one invocation lock.
    Control passes between agents through the ``transfer_to_agent`` tool.
    """

    def __init__(self, opts: AgentOptions | None = None) -> None:
        opts = opts or AgentOptions()
        if opts.model is None:
            raise ValueError("Agent requires a model")

        self.model: Model = opts.model
        self.system_prompt: SystemPrompt | None = opts.system_prompt
        self.name: str | None = opts.name
        self.description: str | None = opts.description
        self.disallow_transfer_to_parent = opts.disallow_transfer_to_parent
        self.disallow_transfer_to_peers = opts.disallow_transfer_to_peers

        if opts.max_consecutive_transfers is not None:
            if opts.max_consecutive_transfers < 0:
                raise ValueError("max_consecutive_transfers must not be negative")
            self.max_consecutive_transfers = opts.max_consecutive_transfers
        else:
            self.max_consecutive_transfers = config.get_max_consecutive_transfers()

        self._messages: list[Message] = list(opts.messages or [])
        self.state = AgentState(opts.state)
        self.tool_registry = ToolRegistry(flatten_tools(opts.tools))

        self.conversation_manager: ConversationManager = (
            opts.conversation_manager or SlidingWindowConversationManager()
        )
        self.hooks = HookRegistry()
        self.hooks.add_hook(self.conversation_manager)
        self.hooks.add_all_hooks(opts.hooks or [])

        self._parent: Agent | None = None
        self._sub_agents: list[Agent] = []
        self._transfer_state = TransferState()
        self._invoking = False
        self._running_task: asyncio.Task | None = None

        if opts.sub_agents:
            self._attach_sub_agents(opts.sub_agents)

    # ── Tree wiring ───────────────────────────────────────────────────────────

    def _attach_sub_agents(self, sub_agents: list["Agent"]) -> None:
        if not self.name:
            raise AgentTreeError("Agent name is required when using sub_agents or parent_agent")

        for agent in (self, *sub_agents):
            if config.TRANSFER_TOOL_NAME in agent.tool_registry:
                raise AgentTreeError(
                    f"Agent '{agent.name}' registers a tool named '{config.TRANSFER_TOOL_NAME}', "
                    "which is reserved for transfers between agents"
                )

        seen: set[str] = {self.name}
        for child in sub_agents:
            if not child.name:
                raise AgentTreeError("Agent name is required when using sub_agents or parent_agent")
            if child._sub_agents:
                raise AgentTreeError("Nested sub-agents are not supported")
            if child._parent is not None:
                raise AgentTreeError(f"Agent '{child.name}' already has a parent agent")
            if child.name in seen:
                raise AgentTreeError(f"Duplicate sub-agent name '{child.name}'")
            if child._messages:
                raise AgentTreeError(
                    f"Sub-agent '{child.name}' cannot have its own messages; "
                    "the conversation is owned by the root agent"
                )
            seen.add(child.name)

        for child in sub_agents:
            child._parent = self
            self._sub_agents.append(child)

    @property
    def parent_agent(self) -> "Agent | None":
        return self._parent

    @property
    def root_agent(self) -> "Agent":
        return self._parent.root_agent if self._parent is not None else self

    @property
    def sub_agents(self) -> list["Agent"]:
        return list(self._sub_agents)

    @property
    def is_multi_agent(self) -> bool:
        return bool(self.root_agent._sub_agents)

    def find_sub_agent(self, name: str) -> "Agent | None":
        return next((a for a in self._sub_agents if a.name == name), None)

    def find_agent(self, name: str) -> "Agent | None":
        """Find an agent by name anywhere in this agent's tree."""
        root = self.root_agent
        if root.name == name:
            return root
        return root.find_sub_agent(name)

    def transfer_targets(self) -> list[str]:
        """Names this agent may currently hand the conversation to."""
        targets = [a.name for a in self._sub_agents if a.name]
        parent = self._parent
        if parent is not None:
            if not self.disallow_transfer_to_parent and parent.name:
                targets.append(parent.name)
            if not self.disallow_transfer_to_peers:
                targets.extend(a.name for a in parent._sub_agents if a is not self and a.name)
        return targets

    def effective_tool_registry(self) -> ToolRegistry:
        """The agent's tools, plus the transfer tool when a transfer is possible."""
        if not self.transfer_targets():
            return self.tool_registry

        root = self.root_agent

        def _queue_transfer(agent_name: str) -> None:
            root._transfer_state.pending_transfer = agent_name

        registry = self.tool_registry.copy()
        registry.register(create_transfer_to_agent_tool(self.transfer_targets, _queue_transfer))
        return registry

    # ── Conversation ──────────────────────────────────────────────────────────

    @property
    def messages(self) -> list[Message]:
        """The tree's shared conversation. Only the agent loop appends to it."""
        return self.root_agent._messages

    @property
    def active_agent(self) -> "Agent":
        """The agent a root-level invocation would resume with."""
        root = self.root_agent
        name = root._transfer_state.active_agent_name
        if name is None:
            return root
        return root.find_agent(name) or root

    @property
    def is_invoking(self) -> bool:
        return self.root_agent._invoking

    # ── Invocation ────────────────────────────────────────────────────────────

    def stream(self, args: InvokeArgs = None) -> EventStream[AgentStreamEvent, AgentResult]:
        """
        Start an invocation and return its event stream.

        Raises ConcurrentInvocationError right away if any agent in the tree
        is already running. The lock is released by the background task, so
        it is freed even if the caller stops reading the stream.
        """
        root = self.root_agent
        if root._invoking:
            raise ConcurrentInvocationError()

        new_messages = normalize_input(args)
        root._invoking = True

        ev_stream: EventStream[AgentStreamEvent, AgentResult] = EventStream()

        async def _run() -> None:
            try:
                result = await run_agent_loop(self, new_messages, ev_stream)
            except BaseException as exc:
                root._invoking = False
                ev_stream.fail(exc)
                if not isinstance(exc, Exception):
                    raise
                return
            root._invoking = False
            ev_stream.end(result)

        ev_stream.task = root._running_task = asyncio.ensure_future(_run())
        return ev_stream

    async def invoke(self, args: InvokeArgs = None) -> AgentResult:
        """Run an invocation to completion and return its result."""
        ev_stream = self.stream(args)
        async for _ in ev_stream:
            pass
        return await ev_stream.result()

    async def wait_for_idle(self) -> None:
        """Wait until the tree's current invocation, if any, has finished."""
        task = self.root_agent._running_task
        if task is not None and not task.done():
            await asyncio.wait({task})

    def __repr__(self) -> str:
        return f"Agent(name={self.name!r})"


def normalize_input(args: InvokeArgs) -> list[Message]:
    """Turn invocation input into the messages to append before the first model call."""
    if args is None:
        return []
    if isinstance(args, str):
        return [Message(role="user", content=[TextBlock(text=args)])]
    if isinstance(args, Message):
        return [args]
    if isinstance(args, list):
        if not args:
            return []
        message_count = sum(isinstance(item, Message) for item in args)
        if message_count == len(args):
            return list(args)
        if message_count:
            raise TypeError("Invocation input cannot mix messages and content blocks")
        return [Message(role="user", content=list(args))]
    raise TypeError(f"Unsupported invocation input: {type(args).__name__}")
