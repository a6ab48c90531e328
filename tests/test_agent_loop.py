import asyncio
import json
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from devops_agent.llm_core import (
    Agent,
    ConversationStore,
    ExecutionContext,
    ITERATION_LIMIT_MESSAGE,
    MAX_ITERATIONS,
    Message,
    Role,
    SessionBusyError,
    ToolDescriptor,
    ToolInvocationRequest,
    ToolParameter,
)
from helpers import ScriptedAdapter, tool_call


def make_tool(name: str, func: Any, parameters: Optional[List[ToolParameter]] = None) -> ToolDescriptor:
    return ToolDescriptor(name=name, description=f"{name} tool", func=func, parameters=parameters or [])


def echo_tool() -> ToolDescriptor:
    def echo(args: Dict[str, Any], context: ExecutionContext) -> Dict[str, Any]:
        return {"echo": args.get("text"), "session": context.session_id}

    return make_tool(
        "echo", echo, [ToolParameter(name="text", type="string", description="Text to echo", required=True)]
    )


@pytest.mark.asyncio
async def test_plain_answer_is_returned_and_recorded(context: ExecutionContext) -> None:
    adapter = ScriptedAdapter([Message.assistant("Hello! How can I help?")])
    agent = Agent(adapter)

    response = await agent.process_message("Hello", context, session_id="s1")

    assert response.role == Role.ASSISTANT
    assert response.content == "Hello! How can I help?"
    history = agent.get_conversation("s1")
    assert history is not None
    assert [m.role for m in history.messages] == [Role.USER, Role.ASSISTANT]
    assert history.messages[0].content == "Hello"
    assert len(adapter.histories) == 1


@pytest.mark.asyncio
async def test_unknown_tool_becomes_error_result(context: ExecutionContext) -> None:
    adapter = ScriptedAdapter([tool_call("nonexistent_tool", "call_1"), Message.assistant("Sorry about that.")])
    agent = Agent(adapter)

    response = await agent.process_message("do it", context, session_id="s1")

    assert response.content == "Sorry about that."
    messages = agent.get_conversation("s1").messages
    assert [m.role for m in messages] == [Role.USER, Role.ASSISTANT, Role.TOOL, Role.ASSISTANT]
    tool_message = messages[2]
    assert tool_message.tool_call_id == "call_1"
    assert tool_message.tool_results[0].error == "Tool 'nonexistent_tool' not found"
    assert json.loads(tool_message.content) == {"error": "Tool 'nonexistent_tool' not found"}
    # the second model call saw the error result
    assert adapter.histories[1][-1].tool_call_id == "call_1"


@pytest.mark.asyncio
async def test_tool_result_is_fed_back_to_model(context: ExecutionContext) -> None:
    adapter = ScriptedAdapter([tool_call("echo", "call_1", {"text": "hi"}), Message.assistant("It said hi.")])
    agent = Agent(adapter)
    agent.register_tool(echo_tool())

    response = await agent.process_message("echo hi", context, session_id="s1")

    assert response.content == "It said hi."
    tool_message = adapter.histories[1][-1]
    assert tool_message.role == Role.TOOL
    assert tool_message.tool_results[0].ok
    assert tool_message.tool_results[0].result == {"echo": "hi", "session": "s1"}
    assert adapter.tool_sets[0] == ["echo"]


@pytest.mark.asyncio
async def test_iteration_ceiling_stops_the_loop(context: ExecutionContext) -> None:
    adapter = ScriptedAdapter([tool_call("echo", f"call_{i}", {"text": str(i)}) for i in range(10)])
    agent = Agent(adapter, max_iterations=3)
    agent.register_tool(echo_tool())

    response = await agent.process_message("loop forever", context, session_id="s1")

    assert response.content == ITERATION_LIMIT_MESSAGE
    assert len(adapter.histories) == 3
    messages = agent.get_conversation("s1").messages
    assert messages[-1].content == ITERATION_LIMIT_MESSAGE
    assert sum(1 for m in messages if m.role == Role.TOOL) == 3


@pytest.mark.asyncio
async def test_default_ceiling_is_twenty(context: ExecutionContext) -> None:
    adapter = ScriptedAdapter([tool_call("echo", f"call_{i}", {"text": str(i)}) for i in range(25)])
    agent = Agent(adapter)
    agent.register_tool(echo_tool())

    response = await agent.process_message("loop forever", context, session_id="s1")

    assert agent.max_iterations == MAX_ITERATIONS == 20
    assert response.content == ITERATION_LIMIT_MESSAGE
    assert len(adapter.histories) == 20
    assert len(adapter.replies) == 5


@pytest.mark.asyncio
async def test_failing_tool_does_not_abort_request(context: ExecutionContext) -> None:
    def explode(args: Dict[str, Any], context: ExecutionContext) -> None:
        raise RuntimeError("disk on fire")

    adapter = ScriptedAdapter([tool_call("explode", "call_1"), Message.assistant("The tool failed.")])
    agent = Agent(adapter)
    agent.register_tool(make_tool("explode", explode))

    response = await agent.process_message("go", context, session_id="s1")

    assert response.content == "The tool failed."
    result = agent.get_conversation("s1").messages[2].tool_results[0]
    assert not result.ok
    assert result.error == "disk on fire"


@pytest.mark.asyncio
async def test_undecodable_arguments_are_answered_without_running_tool(context: ExecutionContext) -> None:
    func = MagicMock(return_value="never")
    adapter = ScriptedAdapter(
        [tool_call("echo", "call_1", parse_error="Failed to parse arguments for tool 'echo'"), Message.assistant("ok")]
    )
    agent = Agent(adapter)
    agent.register_tool(make_tool("echo", func))

    await agent.process_message("go", context, session_id="s1")

    func.assert_not_called()
    result = agent.get_conversation("s1").messages[2].tool_results[0]
    assert result.call_id == "call_1"
    assert "Failed to parse arguments" in result.error


@pytest.mark.asyncio
async def test_invalid_arguments_are_rejected_before_execution(context: ExecutionContext) -> None:
    func = MagicMock(return_value="never")
    tool = make_tool(
        "scale", func, [ToolParameter(name="replicas", type="integer", description="Replica count", required=True)]
    )
    adapter = ScriptedAdapter([tool_call("scale", "call_1", {"replicas": "five"}), Message.assistant("ok")])
    agent = Agent(adapter)
    agent.register_tool(tool)

    await agent.process_message("scale it", context, session_id="s1")

    func.assert_not_called()
    result = agent.get_conversation("s1").messages[2].tool_results[0]
    assert result.error.startswith("Argument validation failed")


@pytest.mark.asyncio
async def test_batch_results_keep_request_order_and_ids(context: ExecutionContext) -> None:
    async def slow(args: Dict[str, Any], context: ExecutionContext) -> str:
        await asyncio.sleep(0.01)
        return "slow"

    def fast(args: Dict[str, Any], context: ExecutionContext) -> str:
        return "fast"

    batch = Message.assistant(
        "Working on it",
        tool_calls=[
            ToolInvocationRequest(id="a", name="slow"),
            ToolInvocationRequest(id="b", name="missing"),
            ToolInvocationRequest(id="c", name="fast"),
        ],
    )
    adapter = ScriptedAdapter([batch, Message.assistant("All done")])
    agent = Agent(adapter)
    agent.register_tools([make_tool("slow", slow), make_tool("fast", fast)])

    await agent.process_message("go", context, session_id="s1")

    tool_messages = [m for m in agent.get_conversation("s1").messages if m.role == Role.TOOL]
    assert [m.tool_call_id for m in tool_messages] == ["a", "b", "c"]
    assert [m.tool_results[0].result for m in tool_messages] == ["slow", None, "fast"]
    assert tool_messages[1].tool_results[0].error == "Tool 'missing' not found"


@pytest.mark.asyncio
async def test_throwing_tool_in_the_middle_of_a_batch(context: ExecutionContext) -> None:
    def first(args: Dict[str, Any], context: ExecutionContext) -> str:
        return "first ok"

    async def second(args: Dict[str, Any], context: ExecutionContext) -> str:
        raise ValueError("second exploded")

    third = MagicMock(return_value="third ok")

    batch = Message.assistant(
        "",
        tool_calls=[
            ToolInvocationRequest(id="a", name="first"),
            ToolInvocationRequest(id="b", name="second"),
            ToolInvocationRequest(id="c", name="third"),
        ],
    )
    adapter = ScriptedAdapter([batch, Message.assistant("Two of three worked")])
    agent = Agent(adapter)
    agent.register_tools([make_tool("first", first), make_tool("second", second), make_tool("third", third)])

    response = await agent.process_message("go", context, session_id="s1")

    assert response.content == "Two of three worked"
    third.assert_called_once()
    results = [m.tool_results[0] for m in agent.get_conversation("s1").messages if m.role == Role.TOOL]
    assert [r.call_id for r in results] == ["a", "b", "c"]
    assert [r.ok for r in results] == [True, False, True]
    assert [r.result for r in results] == ["first ok", None, "third ok"]
    assert results[1].error == "second exploded"
    assert len(adapter.histories) == 2


@pytest.mark.asyncio
async def test_status_callback_receives_progress(context: ExecutionContext) -> None:
    statuses: List[str] = []
    adapter = ScriptedAdapter([tool_call("echo", "call_1", {"text": "x"}), Message.assistant("ok")])
    agent = Agent(adapter)
    agent.register_tool(echo_tool())

    await agent.process_message("go", context, session_id="s1", on_status=statuses.append)

    assert statuses == ["🔧 Executing: echo tool..."]


@pytest.mark.asyncio
async def test_async_and_failing_status_callbacks(context: ExecutionContext) -> None:
    async_callback = AsyncMock()
    adapter = ScriptedAdapter(
        [tool_call("echo", "c1", {"text": "x"}), tool_call("echo", "c2", {"text": "y"}), Message.assistant("ok")]
    )
    agent = Agent(adapter)
    agent.register_tool(echo_tool())

    await agent.process_message("go", context, session_id="s1", on_status=async_callback)
    async_callback.assert_awaited()

    def broken(status: str) -> None:
        raise ValueError("ui went away")

    adapter.replies = [tool_call("echo", "c3", {"text": "z"}), Message.assistant("still fine")]
    response = await agent.process_message("again", context, session_id="s1", on_status=broken)
    assert response.content == "still fine"


@pytest.mark.asyncio
async def test_provider_error_propagates(context: ExecutionContext) -> None:
    adapter = ScriptedAdapter([PermissionError("invalid api key")])
    agent = Agent(adapter)

    with pytest.raises(PermissionError):
        await agent.process_message("hi", context, session_id="s1")

    assert [m.role for m in agent.get_conversation("s1").messages] == [Role.USER]


@pytest.mark.asyncio
async def test_sessions_are_isolated(context: ExecutionContext) -> None:
    adapter = ScriptedAdapter([Message.assistant("one"), Message.assistant("two")])
    agent = Agent(adapter)

    await agent.process_message("first", context, session_id="a")
    await agent.process_message("second", context, session_id="b")

    assert [m.content for m in adapter.histories[1]] == ["second"]
    assert len(agent.get_conversation("a")) == 2
    assert len(agent.get_conversation("b")) == 2


@pytest.mark.asyncio
async def test_session_id_resolution(workspace: Any) -> None:
    adapter = ScriptedAdapter()
    store = ConversationStore()
    agent = Agent(adapter, store=store)

    await agent.process_message("hi", ExecutionContext(workspace_root=str(workspace), session_id="from-context"))
    assert "from-context" in store

    await agent.process_message("hi", ExecutionContext(workspace_root=str(workspace)))
    assert len(store) == 2


@pytest.mark.asyncio
async def test_follow_up_sees_previous_turns(context: ExecutionContext) -> None:
    adapter = ScriptedAdapter([Message.assistant("first answer"), Message.assistant("second answer")])
    agent = Agent(adapter)

    await agent.process_message("first", context, session_id="s1")
    await agent.process_message("second", context, session_id="s1")

    assert [m.content for m in adapter.histories[1]] == ["first", "first answer", "second"]


@pytest.mark.asyncio
async def test_clear_conversation_starts_fresh(context: ExecutionContext) -> None:
    adapter = ScriptedAdapter([Message.assistant("one"), Message.assistant("two")])
    agent = Agent(adapter)

    await agent.process_message("first", context, session_id="s1")
    agent.clear_conversation("s1")
    assert agent.get_conversation("s1") is None

    await agent.process_message("again", context, session_id="s1")
    assert [m.content for m in adapter.histories[1]] == ["again"]

    agent.clear_all_conversations()
    assert agent.get_conversation("s1") is None


@pytest.mark.asyncio
async def test_same_session_requests_are_serialized(context: ExecutionContext) -> None:
    release = asyncio.Event()

    async def first_reply(history: List[Message]) -> Message:
        await release.wait()
        return Message.assistant("first done")

    adapter = ScriptedAdapter([first_reply, Message.assistant("second done")])
    agent = Agent(adapter)

    first = asyncio.create_task(agent.process_message("first", context, session_id="s1"))
    await asyncio.sleep(0)
    second = asyncio.create_task(agent.process_message("second", context, session_id="s1"))
    await asyncio.sleep(0.01)
    assert len(adapter.histories) == 1

    release.set()
    assert (await first).content == "first done"
    assert (await second).content == "second done"
    assert [m.content for m in agent.get_conversation("s1").messages] == [
        "first",
        "first done",
        "second",
        "second done",
    ]


@pytest.mark.asyncio
async def test_reject_concurrent_raises_when_busy(context: ExecutionContext) -> None:
    release = asyncio.Event()

    async def blocked(history: List[Message]) -> Message:
        await release.wait()
        return Message.assistant("done")

    agent = Agent(ScriptedAdapter([blocked]), reject_concurrent=True)
    first = asyncio.create_task(agent.process_message("first", context, session_id="s1"))
    await asyncio.sleep(0)

    with pytest.raises(SessionBusyError):
        await agent.process_message("second", context, session_id="s1")

    release.set()
    await first


@pytest.mark.asyncio
async def test_tool_timeout_becomes_error_result(context: ExecutionContext) -> None:
    async def hang(args: Dict[str, Any], context: ExecutionContext) -> None:
        await asyncio.sleep(10)

    adapter = ScriptedAdapter([tool_call("hang", "call_1"), Message.assistant("gave up")])
    agent = Agent(adapter, tool_timeout=0.01)
    agent.register_tool(make_tool("hang", hang))

    await agent.process_message("go", context, session_id="s1")

    result = agent.get_conversation("s1").messages[2].tool_results[0]
    assert "timed out" in result.error
