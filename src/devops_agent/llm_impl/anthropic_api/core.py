"""Anthropic Messages API adapter."""

from typing import Any, Dict, List

import anthropic
from anthropic import AsyncAnthropic
from anthropic.types import Message as AnthropicMessage

from ...llm_core import ModelAdapter, Message, Role, ToolDescriptor, get_logger

logger = get_logger(__name__)


class AnthropicModelAdapter(ModelAdapter):
    """
    Adapter for Anthropic's Messages API.

    The system prompt is sent in the top-level ``system`` field. Assistant tool
    calls become ``tool_use`` blocks, and each run of tool-role messages is merged
    into a single ``user`` message holding one ``tool_result`` block per result.
    """

    provider = "anthropic"

    def __init__(self, client: AsyncAnthropic, model: str = "claude-3-5-sonnet-20241022", **kwargs: Any):
        super().__init__(model, **kwargs)
        self.client: AsyncAnthropic = client

    async def _generate_impl(self, history: List[Message], tools: List[ToolDescriptor]) -> Message:
        request: Dict[str, Any] = {
            "model": self.model,
            "system": self.system_prompt,
            "messages": self._convert_history(history),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if tools:
            request["tools"] = self._convert_tools(tools)

        response: AnthropicMessage = await self.client.messages.create(**request)

        if response.usage is not None:
            self._report_usage(response.usage.input_tokens, response.usage.output_tokens, history)

        return self._parse_response(response)

    def _parse_response(self, response: AnthropicMessage) -> Message:
        text_parts: List[str] = []
        tool_calls = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(self._build_invocation(block.id, block.name, block.input))

        return Message.assistant("\n".join(text_parts), tool_calls=tool_calls, message_id=response.id)

    def _is_transient_error(self, error: Exception) -> bool:
        if isinstance(
            error,
            (anthropic.APIConnectionError, anthropic.RateLimitError, anthropic.InternalServerError),
        ):
            return True
        return super()._is_transient_error(error)

    @staticmethod
    def _convert_history(history: List[Message]) -> List[Dict[str, Any]]:
        """
        Converts the neutral history into Anthropic ``messages``.

        Args:
            history: List of Message objects.

        Returns:
            List of Anthropic message dictionaries.
        """
        messages: List[Dict[str, Any]] = []
        for msg in history:
            if msg.role == Role.USER:
                messages.append({"role": "user", "content": msg.content})
            elif msg.role == Role.ASSISTANT:
                blocks: List[Dict[str, Any]] = []
                if msg.content:
                    blocks.append({"type": "text", "text": msg.content})
                for tc in msg.tool_calls or []:
                    blocks.append({"type": "tool_use", "id": tc.id, "name": tc.name, "input": tc.arguments})
                if blocks:
                    messages.append({"role": "assistant", "content": blocks})
            elif msg.role == Role.TOOL:
                block: Dict[str, Any] = {
                    "type": "tool_result",
                    "tool_use_id": msg.tool_call_id,
                    "content": msg.content,
                }
                if msg.tool_results and not msg.tool_results[0].ok:
                    block["is_error"] = True

                previous = messages[-1] if messages else None
                if (
                    previous is not None
                    and previous["role"] == "user"
                    and isinstance(previous["content"], list)
                    and all(b.get("type") == "tool_result" for b in previous["content"])
                ):
                    previous["content"].append(block)
                else:
                    messages.append({"role": "user", "content": [block]})
        return messages

    def _convert_tools(self, tools: List[ToolDescriptor]) -> List[Dict[str, Any]]:
        return [
            {"name": s["name"], "description": s["description"], "input_schema": s["parameters"]}
            for s in self._tool_schemas(tools)
        ]
