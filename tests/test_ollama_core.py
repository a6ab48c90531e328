from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from ollama import ChatResponse

from devops_agent.llm_core import Message, ToolDescriptor, ToolInvocationRequest, ToolResult
from devops_agent.llm_impl import OllamaModelAdapter


@pytest.fixture
def mock_ollama_client() -> Any:
    client = MagicMock()
    client.chat = AsyncMock()
    return client


@pytest.mark.asyncio
async def test_tool_calls_get_synthesized_ids(mock_ollama_client: Any) -> None:
    mock_ollama_client.chat.return_value = ChatResponse.model_validate(
        {
            "model": "llama3.1",
            "message": {
                "role": "assistant",
                "content": "",
                "tool_calls": [{"function": {"name": "list_files", "arguments": {"directory": "src"}}}],
            },
            "prompt_eval_count": 40,
            "eval_count": 8,
        }
    )
    recorder = MagicMock()
    recorder.record_usage.return_value = None
    tool = ToolDescriptor(name="list_files", description="List files", func=lambda args, ctx: None)
    adapter = OllamaModelAdapter(mock_ollama_client, "llama3.1", usage_recorder=recorder)

    reply = await adapter.generate_response([Message.user("what is in src?")], [tool])

    assert reply.tool_calls[0].id.startswith("call_")
    assert reply.tool_calls[0].arguments == {"directory": "src"}
    recorder.record_usage.assert_called_once_with("ollama", "llama3.1", 40, 8, "what is in src?")
    kwargs = mock_ollama_client.chat.call_args.kwargs
    assert kwargs["tools"][0]["function"]["name"] == "list_files"
    assert kwargs["options"] == {"temperature": 0.7, "num_predict": 2000}


def test_history_conversion() -> None:
    adapter = OllamaModelAdapter(MagicMock(), system_prompt="sys")
    call = ToolInvocationRequest(id="c1", name="list_files", arguments={"directory": "."})
    history = [
        Message.user("ls"),
        Message.assistant("", tool_calls=[call]),
        Message.from_tool_result(ToolResult(call_id="c1", name="list_files", result="a.txt")),
    ]

    messages = adapter._convert_history(history)

    assert messages == [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "ls"},
        {
            "role": "assistant",
            "content": "",
            "tool_calls": [{"function": {"name": "list_files", "arguments": {"directory": "."}}}],
        },
        {"role": "tool", "content": "a.txt", "tool_name": "list_files"},
    ]
