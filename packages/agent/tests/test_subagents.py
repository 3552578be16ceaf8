"""
Tests for multi-agent trees: wiring, transfers and the shared conversation.
"""
from __future__ import annotations

import pytest

from weft_agent import (
    Agent,
    AgentOptions,
    AgentTreeError,
    ConcurrentInvocationError,
    FunctionTool,
    TransferTargetNotFoundError,
    TRANSFER_TOOL_NAME,
)
from weft_agent.hooks import AfterTransferEvent, BeforeModelCallEvent, BeforeTransferEvent
from agent_fixtures import MockMessageModel, text, tool_use, user


def _transfer(target: str, tool_use_id: str = "tr"):
    return tool_use(TRANSFER_TOOL_NAME, tool_use_id, {"agentName": target})


def _tree(root_model=None, math_model=None, writer_model=None, **root_opts):
    math = Agent(AgentOptions(name="math", model=math_model or MockMessageModel(), description="Does math"))
    writer = Agent(AgentOptions(name="writer", model=writer_model or MockMessageModel()))
    root = Agent(
        AgentOptions(name="root", model=root_model or MockMessageModel(), sub_agents=[math, writer], **root_opts)
    )
    return root, math, writer


class _Recorder:
    def __init__(self, *event_types):
        self.event_types = event_types
        self.events: list = []

    def register_hooks(self, registry) -> None:
        for event_type in self.event_types:
            registry.add_callback(event_type, self.events.append)


# ─── Wiring ───────────────────────────────────────────────────────────────────

class TestWiring:
    def test_links_and_lookups(self):
        root, math, writer = _tree()

        assert root.sub_agents == [math, writer]
        assert math.parent_agent is root
        assert math.root_agent is root
        assert root.parent_agent is None
        assert root.find_sub_agent("math") is math
        assert root.find_sub_agent("nobody") is None
        assert writer.find_agent("root") is root
        assert writer.find_agent("math") is math
        assert root.is_multi_agent and math.is_multi_agent

    def test_single_agent_is_not_multi_agent(self):
        agent = Agent(AgentOptions(model=MockMessageModel()))
        assert not agent.is_multi_agent
        assert agent.transfer_targets() == []
        assert TRANSFER_TOOL_NAME not in agent.effective_tool_registry()

    def test_children_share_root_conversation(self):
        root, math, _ = _tree()
        assert math.messages is root.messages

    def test_root_requires_name(self):
        child = Agent(AgentOptions(name="child", model=MockMessageModel()))
        with pytest.raises(AgentTreeError, match="name is required"):
            Agent(AgentOptions(model=MockMessageModel(), sub_agents=[child]))

    def test_child_requires_name(self):
        child = Agent(AgentOptions(model=MockMessageModel()))
        with pytest.raises(AgentTreeError, match="name is required"):
            Agent(AgentOptions(name="root", model=MockMessageModel(), sub_agents=[child]))

    def test_duplicate_child_names(self):
        a = Agent(AgentOptions(name="dup", model=MockMessageModel()))
        b = Agent(AgentOptions(name="dup", model=MockMessageModel()))
        with pytest.raises(AgentTreeError, match="Duplicate sub-agent name 'dup'"):
            Agent(AgentOptions(name="root", model=MockMessageModel(), sub_agents=[a, b]))
        # Validation happens before any linking
        assert a.parent_agent is None and b.parent_agent is None

    def test_child_cannot_share_parent_name(self):
        child = Agent(AgentOptions(name="root", model=MockMessageModel()))
        with pytest.raises(AgentTreeError, match="Duplicate"):
            Agent(AgentOptions(name="root", model=MockMessageModel(), sub_agents=[child]))

    def test_nested_sub_agents_rejected(self):
        leaf = Agent(AgentOptions(name="leaf", model=MockMessageModel()))
        middle = Agent(AgentOptions(name="middle", model=MockMessageModel(), sub_agents=[leaf]))
        with pytest.raises(AgentTreeError, match="Nested sub-agents"):
            Agent(AgentOptions(name="root", model=MockMessageModel(), sub_agents=[middle]))

    def test_agent_cannot_have_two_parents(self):
        root, math, _ = _tree()
        with pytest.raises(AgentTreeError, match="already has a parent"):
            Agent(AgentOptions(name="other", model=MockMessageModel(), sub_agents=[math]))
        assert math.parent_agent is root

    def test_child_cannot_bring_messages(self):
        child = Agent(AgentOptions(name="child", model=MockMessageModel(), messages=[user("hi")]))
        with pytest.raises(AgentTreeError, match="cannot have its own messages"):
            Agent(AgentOptions(name="root", model=MockMessageModel(), sub_agents=[child]))


class TestTransferTargets:
    def test_default_targets(self):
        root, math, writer = _tree()
        assert root.transfer_targets() == ["math", "writer"]
        assert math.transfer_targets() == ["root", "writer"]
        assert writer.transfer_targets() == ["root", "math"]

    def test_disallow_flags(self):
        no_parent = Agent(AgentOptions(name="a", model=MockMessageModel(), disallow_transfer_to_parent=True))
        no_peers = Agent(AgentOptions(name="b", model=MockMessageModel(), disallow_transfer_to_peers=True))
        isolated = Agent(
            AgentOptions(
                name="c",
                model=MockMessageModel(),
                disallow_transfer_to_parent=True,
                disallow_transfer_to_peers=True,
            )
        )
        Agent(AgentOptions(name="root", model=MockMessageModel(), sub_agents=[no_parent, no_peers, isolated]))

        assert no_parent.transfer_targets() == ["b", "c"]
        assert no_peers.transfer_targets() == ["root"]
        assert isolated.transfer_targets() == []
        assert TRANSFER_TOOL_NAME not in isolated.effective_tool_registry()

    def test_transfer_tool_lists_targets(self):
        root, _, _ = _tree()
        registry = root.effective_tool_registry()
        spec = registry.get(TRANSFER_TOOL_NAME).tool_spec
        assert spec.input_schema["properties"]["agentName"]["enum"] == ["math", "writer"]
        # The agent's own registry is left untouched
        assert TRANSFER_TOOL_NAME not in root.tool_registry


# ─── Transfers ────────────────────────────────────────────────────────────────

class TestTransfers:
    @pytest.mark.asyncio
    async def test_transfer_hands_over_the_turn(self):
        root_model = MockMessageModel().add_turn(_transfer("math"))
        math_model = MockMessageModel().add_turn(text("4"))
        recorder = _Recorder(BeforeTransferEvent, AfterTransferEvent)
        root, math, _ = _tree(root_model, math_model, hooks=[recorder])

        events, result = await root.stream("what is 2+2?").collect()

        assert str(result) == "4"
        assert result.last_message.author == "math"
        assert root.active_agent is math
        # Math sees the whole conversation so far
        assert len(math_model.calls[0]) == 3

        authors = [(m.role, m.author) for m in root.messages]
        assert authors == [("user", None), ("assistant", "root"), ("user", None), ("assistant", "math")]
        transfer_result = root.messages[2].content[0]
        assert transfer_result.status == "success"
        assert transfer_result.content[0].value["targetAgentName"] == "math"

        before, after = recorder.events
        assert (before.agent, before.from_agent, before.to_agent) == (root, root, math)
        assert (after.agent, after.from_agent, after.to_agent) == (math, root, math)

        transfer_events = [e for e in events if e.type in ("before_transfer", "after_transfer")]
        assert [(e.type, e.from_agent, e.to_agent) for e in transfer_events] == [
            ("before_transfer", "root", "math"),
            ("after_transfer", "root", "math"),
        ]

    @pytest.mark.asyncio
    async def test_other_tools_run_alongside_transfer(self):
        echo = FunctionTool(name="echo", description="", callback=lambda i, c: "echoed")
        root_model = MockMessageModel().add_turn([tool_use("echo", "t1"), _transfer("writer", "t2")])
        writer_model = MockMessageModel().add_turn(text("a poem"))
        root, _, writer = _tree(root_model, writer_model=writer_model, tools=[echo])

        result = await root.invoke("echo then write")

        assert str(result) == "a poem"
        results = root.messages[2].content
        assert [r.tool_use_id for r in results] == ["t1", "t2"]
        assert all(r.status == "success" for r in results)
        assert root.active_agent is writer

    @pytest.mark.asyncio
    async def test_invalid_target_keeps_current_agent(self):
        root_model = MockMessageModel().add_turn(_transfer("nobody")).add_turn(text("I'll handle it"))
        root, _, _ = _tree(root_model)

        result = await root.invoke("hi")

        assert str(result) == "I'll handle it"
        transfer_result = root.messages[2].content[0]
        assert transfer_result.status == "error"
        assert "not a valid transfer target" in transfer_result.content[0].text
        assert root.active_agent is root

    @pytest.mark.asyncio
    async def test_next_invocation_resumes_last_active_agent(self):
        root_model = MockMessageModel().add_turn(_transfer("math"))
        math_model = MockMessageModel().add_turn(text("4")).add_turn(text("9"))
        root, _, _ = _tree(root_model, math_model)

        await root.invoke("2+2?")
        result = await root.invoke("3*3?")

        assert str(result) == "9"
        assert len(root_model.calls) == 1
        assert len(math_model.calls) == 2

    @pytest.mark.asyncio
    async def test_invoking_child_starts_with_child(self):
        root_model = MockMessageModel()
        math_model = MockMessageModel().add_turn(text("42"))
        root, math, _ = _tree(root_model, math_model)

        result = await math.invoke("answer?")

        assert str(result) == "42"
        assert root_model.calls == []
        assert [m.text for m in root.messages] == ["answer?", "42"]
        assert root.active_agent is math

    @pytest.mark.asyncio
    async def test_hooks_on_child_fire_for_child_turns(self):
        recorder = _Recorder(BeforeModelCallEvent)
        math = Agent(
            AgentOptions(name="math", model=MockMessageModel().add_turn(text("4")), hooks=[recorder])
        )
        root = Agent(
            AgentOptions(name="root", model=MockMessageModel().add_turn(_transfer("math")), sub_agents=[math])
        )

        await root.invoke("2+2?")

        assert [e.agent for e in recorder.events] == [math]

    @pytest.mark.asyncio
    async def test_transfer_back_to_parent(self):
        root_model = MockMessageModel().add_turn(_transfer("math")).add_turn(text("back at root"))
        math_model = MockMessageModel().add_turn(_transfer("root"))
        root, _, _ = _tree(root_model, math_model)

        result = await root.invoke("ping-pong")

        assert str(result) == "back at root"
        assert root.active_agent is root
        assert [m.author for m in root.messages if m.role == "assistant"] == ["root", "math", "root"]

    @pytest.mark.asyncio
    async def test_unknown_queued_target_raises(self):
        def sneaky(tool_input, context):
            context.agent.root_agent._transfer_state.pending_transfer = "ghost"
            return "queued"

        tool = FunctionTool(name="sneaky", description="", callback=sneaky)
        root_model = MockMessageModel().add_turn(tool_use("sneaky", "t1"))
        root, _, _ = _tree(root_model, tools=[tool])

        with pytest.raises(TransferTargetNotFoundError) as exc_info:
            await root.invoke("hi")

        assert exc_info.value.agent_name == "ghost"
        assert root.is_invoking is False


# ─── Transfer ceiling ─────────────────────────────────────────────────────────

class TestTransferCeiling:
    @pytest.mark.asyncio
    async def test_ninth_consecutive_transfer_is_suppressed(self):
        root_model = MockMessageModel()
        for i in range(5):
            root_model.add_turn(_transfer("math", f"r{i}"))
        root_model.add_turn(text("done"))
        math_model = MockMessageModel()
        for i in range(4):
            math_model.add_turn(_transfer("root", f"m{i}"))
        root, _, _ = _tree(root_model, math_model)

        events, result = await root.stream("bounce").collect()

        assert str(result) == "done"
        assert sum(e.type == "before_transfer" for e in events) == 8
        assert root.active_agent is root
        assert root._transfer_state.consecutive_transfers == 0
        assert root_model.remaining_turns == 0
        assert math_model.remaining_turns == 0

    @pytest.mark.asyncio
    async def test_custom_ceiling_from_options(self):
        root_model = MockMessageModel().add_turn(_transfer("math"))
        math_model = MockMessageModel().add_turn(_transfer("root")).add_turn(text("staying"))
        root, math, _ = _tree(root_model, math_model, max_consecutive_transfers=1)

        result = await root.invoke("go")

        assert str(result) == "staying"
        assert root.active_agent is math

    @pytest.mark.asyncio
    async def test_ceiling_from_environment(self, monkeypatch):
        monkeypatch.setenv("WEFT_MAX_CONSECUTIVE_TRANSFERS", "0")
        root_model = MockMessageModel().add_turn(_transfer("math")).add_turn(text("no transfers"))
        math_model = MockMessageModel()
        root, _, _ = _tree(root_model, math_model)

        result = await root.invoke("go")

        assert root.max_consecutive_transfers == 0
        assert str(result) == "no transfers"
        assert math_model.calls == []

    def test_negative_ceiling_rejected(self):
        with pytest.raises(ValueError):
            Agent(AgentOptions(model=MockMessageModel(), max_consecutive_transfers=-1))

    @pytest.mark.asyncio
    async def test_counter_resets_after_final_answer(self):
        root_model = MockMessageModel().add_turn(_transfer("math"))
        math_model = MockMessageModel().add_turn(text("4"))
        root, _, _ = _tree(root_model, math_model)

        await root.invoke("2+2?")

        assert root._transfer_state.consecutive_transfers == 0
        assert root._transfer_state.pending_transfer is None


# ─── Shared lock ──────────────────────────────────────────────────────────────

class TestSharedLock:
    @pytest.mark.asyncio
    async def test_child_blocked_while_root_runs(self):
        root_model = MockMessageModel().add_turn(text("root answer"))
        math_model = MockMessageModel().add_turn(text("math answer"))
        root, math, _ = _tree(root_model, math_model)

        stream = root.stream("first")
        assert math.is_invoking
        with pytest.raises(ConcurrentInvocationError):
            math.stream("second")

        await stream.collect()
        assert str(await math.invoke("second")) == "math answer"

    @pytest.mark.asyncio
    async def test_root_blocked_while_child_runs(self):
        math_model = MockMessageModel().add_turn(text("math answer"))
        root, math, _ = _tree(math_model=math_model)

        stream = math.stream("first")
        with pytest.raises(ConcurrentInvocationError):
            root.stream("second")
        await stream.collect()
        assert not root.is_invoking


class TestReservedToolName:
    def _impostor(self):
        return FunctionTool(name=TRANSFER_TOOL_NAME, description="", callback=lambda i, c: "no")

    def test_root_cannot_register_transfer_tool(self):
        child = Agent(AgentOptions(name="child", model=MockMessageModel()))
        with pytest.raises(AgentTreeError, match="reserved"):
            Agent(AgentOptions(name="root", model=MockMessageModel(), tools=[self._impostor()], sub_agents=[child]))
        assert child.parent_agent is None

    def test_child_cannot_register_transfer_tool(self):
        child = Agent(AgentOptions(name="child", model=MockMessageModel(), tools=[self._impostor()]))
        with pytest.raises(AgentTreeError, match="reserved"):
            Agent(AgentOptions(name="root", model=MockMessageModel(), sub_agents=[child]))

    @pytest.mark.asyncio
    async def test_single_agent_may_use_the_name(self):
        model = MockMessageModel().add_turn(tool_use(TRANSFER_TOOL_NAME, "t1")).add_turn(text("ok"))
        agent = Agent(AgentOptions(model=model, tools=[self._impostor()]))

        await agent.invoke("go")

        assert agent.messages[2].content[0].content[0].text == "no"
