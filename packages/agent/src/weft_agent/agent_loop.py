"""
Agent loop.

One invocation: call the model, run the tools it asks for, commit the
turn to history and, in multi-agent trees, follow transfers between agents
until the model stops for a reason other than tool use.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from weft_ai.errors import normalize_error
from weft_ai.model import StreamOptions
from weft_ai.types import Message, ModelStopData, TextBlock, ToolResultBlock, ToolUse, ToolUseBlock
from weft_ai.utils.event_stream import EventStream

from .errors import TransferTargetNotFoundError
from .hooks.events import (
    AfterInvocationEvent,
    AfterModelCallEvent,
    AfterToolCallEvent,
    AfterToolsEvent,
    AfterTransferEvent,
    BeforeInvocationEvent,
    BeforeModelCallEvent,
    BeforeToolCallEvent,
    BeforeToolsEvent,
    BeforeTransferEvent,
    MessageAddedEvent,
    ModelStreamHookEvent,
)
from .tools.registry import ToolRegistry
from .tools.tool import Tool, ToolContext
from .types import (
    AgentEventAfterInvocation,
    AgentEventAfterModel,
    AgentEventAfterTools,
    AgentEventAfterTransfer,
    AgentEventBeforeInvocation,
    AgentEventBeforeModel,
    AgentEventBeforeTools,
    AgentEventBeforeTransfer,
    AgentResult,
    AgentStreamEvent,
)

if TYPE_CHECKING:
    from .agent import Agent

logger = logging.getLogger(__name__)

AgentEventStream = EventStream[AgentStreamEvent, AgentResult]


async def run_agent_loop(
    entry: "Agent",
    new_messages: list[Message],
    ev_stream: AgentEventStream,
) -> AgentResult:
    """
    Drive one invocation to completion.

    ``entry`` is the agent the caller invoked. A call on the root resumes
    whichever agent of the tree answered last; a call on a sub-agent always
    starts with that sub-agent.
    """
    root = entry.root_agent
    active = entry.active_agent if entry is root else entry
    root._transfer_state.pending_transfer = None

    await root.hooks.invoke_callbacks(BeforeInvocationEvent(agent=active))
    ev_stream.push(AgentEventBeforeInvocation(agent_name=active.name))

    try:
        pending = list(new_messages)
        while True:
            registry = active.effective_tool_registry()
            stop_data = await _invoke_model(active, registry, pending, ev_stream)
            pending = []
            message = _tag_author(active, stop_data.message)

            if stop_data.stop_reason != "tool_use":
                await _append_message(active, message)
                root._transfer_state.active_agent_name = active.name
                root._transfer_state.consecutive_transfers = 0
                return AgentResult(stop_reason=stop_data.stop_reason, last_message=message)

            tool_result_message = await _execute_tools(active, registry, message, ev_stream)

            # The tool use and its results are committed together
            await _append_message(active, message)
            await _append_message(active, tool_result_message)

            active = await _check_transfer(active, ev_stream)
    finally:
        await root.hooks.invoke_callbacks(AfterInvocationEvent(agent=active))
        ev_stream.push(AgentEventAfterInvocation(agent_name=active.name))


async def _append_message(agent: "Agent", message: Message) -> None:
    agent.messages.append(message)
    await agent.hooks.invoke_callbacks(MessageAddedEvent(agent=agent, message=message))


def _tag_author(agent: "Agent", message: Message) -> Message:
    if agent.is_multi_agent and agent.name and message.author != agent.name:
        return message.model_copy(update={"author": agent.name})
    return message


# ─── Model calls ──────────────────────────────────────────────────────────────

async def _invoke_model(
    agent: "Agent",
    registry: ToolRegistry,
    pending: list[Message],
    ev_stream: AgentEventStream,
) -> ModelStopData:
    """
    Call the model until a hook stops asking for a retry.

    Pending input is appended on the first attempt only, after the
    before-model hook has run.
    """
    while True:
        await agent.hooks.invoke_callbacks(BeforeModelCallEvent(agent=agent))

        for message in pending:
            await _append_message(agent, message)
        pending = []

        ev_stream.push(AgentEventBeforeModel(agent_name=agent.name, messages=list(agent.messages)))

        try:
            stop_data = await _stream_model(agent, registry, ev_stream)
        except Exception as exc:
            error = normalize_error(exc)
            after = await agent.hooks.invoke_callbacks(AfterModelCallEvent(agent=agent, error=error))
            if after.retry_model_call:
                logger.debug("retrying model call after %s", type(error).__name__)
                continue
            raise error

        after = await agent.hooks.invoke_callbacks(AfterModelCallEvent(agent=agent, stop_data=stop_data))
        if after.retry_model_call:
            logger.debug("retrying model call on hook request")
            continue

        ev_stream.push(
            AgentEventAfterModel(
                agent_name=agent.name,
                message=stop_data.message,
                stop_reason=stop_data.stop_reason,
            )
        )
        return stop_data


async def _stream_model(
    agent: "Agent",
    registry: ToolRegistry,
    ev_stream: AgentEventStream,
) -> ModelStopData:
    options = StreamOptions(system_prompt=agent.system_prompt, tool_specs=registry.tool_specs())
    model_stream = agent.model.stream_aggregated(list(agent.messages), options)

    async for event in model_stream:
        await agent.hooks.invoke_callbacks(ModelStreamHookEvent(agent=agent, event=event))
        ev_stream.push(event)

    return await model_stream.result()


# ─── Tool execution ───────────────────────────────────────────────────────────

async def _execute_tools(
    agent: "Agent",
    registry: ToolRegistry,
    message: Message,
    ev_stream: AgentEventStream,
) -> Message:
    """Run every requested tool in order and build the tool-result message."""
    tool_uses = [block for block in message.content if isinstance(block, ToolUseBlock)]
    if not tool_uses:
        raise ValueError("Model stopped for tool use but the message contains no tool use blocks")

    await agent.hooks.invoke_callbacks(BeforeToolsEvent(agent=agent, message=message))
    ev_stream.push(AgentEventBeforeTools(agent_name=agent.name, message=message))

    results: list[ToolResultBlock] = []
    for block in tool_uses:
        tool_use = ToolUse(name=block.name, tool_use_id=block.tool_use_id, input=block.input)
        results.append(await _execute_tool(agent, registry, tool_use, ev_stream))

    result_message = Message(role="user", content=results)

    await agent.hooks.invoke_callbacks(AfterToolsEvent(agent=agent, message=result_message))
    ev_stream.push(AgentEventAfterTools(agent_name=agent.name, message=result_message))
    return result_message


async def _execute_tool(
    agent: "Agent",
    registry: ToolRegistry,
    tool_use: ToolUse,
    ev_stream: AgentEventStream,
) -> ToolResultBlock:
    """
    Run a single tool call. Never raises for tool failures.

    Unknown tools, tools that finish without a result and tools that raise
    all produce an error result for the model to see.
    """
    while True:
        tool = registry.get(tool_use.name)
        await agent.hooks.invoke_callbacks(BeforeToolCallEvent(agent=agent, tool_use=tool_use, tool=tool))

        error: BaseException | None = None
        if tool is None:
            logger.warning("tool '%s' not found in registry", tool_use.name)
            result = _error_result(tool_use, f"Tool '{tool_use.name}' not found in registry")
        else:
            try:
                result = await _run_tool(tool, ToolContext(tool_use, agent), ev_stream)
            except Exception as exc:
                error = normalize_error(exc)
                result = _error_result(tool_use, str(error), error)

        after = await agent.hooks.invoke_callbacks(
            AfterToolCallEvent(agent=agent, tool_use=tool_use, tool=tool, result=result, error=error)
        )
        if after.retry:
            logger.debug("retrying tool '%s' (%s)", tool_use.name, tool_use.tool_use_id)
            continue

        ev_stream.push(after.result)
        return after.result


async def _run_tool(tool: Tool, context: ToolContext, ev_stream: AgentEventStream) -> ToolResultBlock:
    result: ToolResultBlock | None = None
    async for item in tool.stream(context):
        if isinstance(item, ToolResultBlock):
            result = item
        else:
            ev_stream.push(item)

    if result is None:
        return _error_result(context.tool_use, f"Tool '{tool.name}' did not return a result")
    return result


def _error_result(tool_use: ToolUse, text: str, error: BaseException | None = None) -> ToolResultBlock:
    return ToolResultBlock(
        tool_use_id=tool_use.tool_use_id,
        status="error",
        content=[TextBlock(text=text)],
        error=error,
    )


# ─── Transfers ────────────────────────────────────────────────────────────────

async def _check_transfer(agent: "Agent", ev_stream: AgentEventStream) -> "Agent":
    """Apply a transfer queued during the turn and return the agent to continue with."""
    root = agent.root_agent
    state = root._transfer_state
    target_name = state.pending_transfer
    state.pending_transfer = None

    if target_name is None:
        state.consecutive_transfers = 0
        return agent

    target = root.find_agent(target_name)
    if target is None:
        raise TransferTargetNotFoundError(target_name)

    if state.consecutive_transfers >= root.max_consecutive_transfers:
        logger.warning(
            "suppressing transfer from '%s' to '%s' after %d consecutive transfers",
            agent.name,
            target_name,
            state.consecutive_transfers,
        )
        state.consecutive_transfers = 0
        return agent

    await root.hooks.invoke_callbacks(BeforeTransferEvent(agent=agent, from_agent=agent, to_agent=target))
    ev_stream.push(AgentEventBeforeTransfer(from_agent=agent.name, to_agent=target.name))

    state.active_agent_name = target.name
    state.consecutive_transfers += 1

    await root.hooks.invoke_callbacks(AfterTransferEvent(agent=target, from_agent=agent, to_agent=target))
    ev_stream.push(AgentEventAfterTransfer(from_agent=agent.name, to_agent=target.name))
    return target
