"""OpenAI Chat Completions adapter (also the base for OpenAI-compatible endpoints)."""

import json
from typing import Any, Dict, Iterable, List, Optional, cast

import openai
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from ...llm_core import FALLBACK_APOLOGY, ModelAdapter, Message, Role, ToolDescriptor, get_logger

logger = get_logger(__name__)


class OpenAIModelAdapter(ModelAdapter):
    """
    Adapter for OpenAI's Chat Completions API.

    Tool calls travel as ``tool_calls`` with JSON-encoded arguments and tool
    results as ``role: tool`` messages carrying the ``tool_call_id``. When the
    endpoint rejects the model's tool call with ``tool_use_failed`` the request is
    repeated once without tools.
    """

    provider = "openai"

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o-mini", **kwargs: Any):
        """
        Initializes the adapter.

        Args:
            client: The initialized AsyncOpenAI client.
            model: The model identifier (e.g. 'gpt-4o-mini').
            **kwargs: Forwarded to ``ModelAdapter``.
        """
        super().__init__(model, **kwargs)
        self.client: AsyncOpenAI = client

    async def _generate_impl(self, history: List[Message], tools: List[ToolDescriptor]) -> Message:
        messages = self._convert_history(history)
        tool_params = self._convert_tools(tools)

        request: Dict[str, Any] = {
            "model": self.model,
            "messages": cast(Iterable[Any], messages),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if tool_params:
            request["tools"] = tool_params
            request["tool_choice"] = "auto"

        try:
            response: ChatCompletion = await self.client.chat.completions.create(**request)
        except openai.BadRequestError as e:
            if not tool_params or not self._is_tool_use_failure(e):
                raise
            return await self._generate_without_tools(request, history, e)

        self._record_response_usage(response, history)
        return self._parse_response(response)

    async def _generate_without_tools(
        self, request: Dict[str, Any], history: List[Message], error: openai.BadRequestError
    ) -> Message:
        """Repeat the request as text-only after the endpoint rejected a tool call."""
        logger.error(f"{self.provider} function calling failed, retrying without tools: {error}")
        request = {k: v for k, v in request.items() if k not in ("tools", "tool_choice")}
        response: ChatCompletion = await self.client.chat.completions.create(**request)
        self._record_response_usage(response, history)

        content = response.choices[0].message.content if response.choices else None
        return Message.assistant(content or FALLBACK_APOLOGY, message_id=response.id)

    @staticmethod
    def _is_tool_use_failure(error: openai.BadRequestError) -> bool:
        if getattr(error, "code", None) == "tool_use_failed":
            return True
        body = getattr(error, "body", None)
        if isinstance(body, dict):
            nested = body.get("error")
            if isinstance(nested, dict):
                return nested.get("code") == "tool_use_failed"
            return body.get("code") == "tool_use_failed"
        return False

    def _is_transient_error(self, error: Exception) -> bool:
        if isinstance(
            error,
            (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError),
        ):
            return True
        return super()._is_transient_error(error)

    def _record_response_usage(self, response: ChatCompletion, history: List[Message]) -> None:
        if response.usage is None:
            return
        self._report_usage(response.usage.prompt_tokens, response.usage.completion_tokens, history)

    def _parse_response(self, response: ChatCompletion) -> Message:
        if not response.choices:
            logger.warning(f"{self.provider} response has no choices.")
            return Message.assistant("", message_id=response.id)

        message = response.choices[0].message
        tool_calls = [
            self._build_invocation(tc.id, tc.function.name, tc.function.arguments)
            for tc in (message.tool_calls or [])
            if tc.type == "function"
        ]
        return Message.assistant(message.content or "", tool_calls=tool_calls, message_id=response.id)

    def _convert_history(self, history: List[Message]) -> List[Dict[str, Any]]:
        """
        Converts the neutral history into Chat Completions messages, system prompt first.

        Args:
            history: List of Message objects.

        Returns:
            List of OpenAI message dictionaries.
        """
        messages: List[Dict[str, Any]] = [{"role": "system", "content": self.system_prompt}]
        for msg in history:
            if msg.role == Role.USER:
                messages.append({"role": "user", "content": msg.content})
            elif msg.role == Role.ASSISTANT:
                entry: Dict[str, Any] = {"role": "assistant", "content": msg.content or None}
                if msg.tool_calls:
                    entry["tool_calls"] = [
                        {
                            "id": tc.id,
                            "type": "function",
                            "function": {"name": tc.name, "arguments": json.dumps(tc.arguments)},
                        }
                        for tc in msg.tool_calls
                    ]
                messages.append(entry)
            elif msg.role == Role.TOOL:
                messages.append({"role": "tool", "tool_call_id": msg.tool_call_id, "content": msg.content})
            # System messages in the history are skipped; the prompt is configured on the adapter.
        return messages

    def _convert_tools(self, tools: List[ToolDescriptor]) -> List[Dict[str, Any]]:
        return [{"type": "function", "function": schema} for schema in self._tool_schemas(tools)]
