"""Ollama adapter using the official ``ollama`` SDK."""

from typing import Any, Dict, List, Optional

import ollama

from ...llm_core import ModelAdapter, Message, Role, ToolDescriptor, get_logger

logger = get_logger(__name__)

DEFAULT_OLLAMA_URL = "http://localhost:11434"


class OllamaModelAdapter(ModelAdapter):
    """
    Adapter for a local Ollama server.

    Ollama returns tool arguments already decoded and does not assign call ids,
    so ids are synthesized when the reply is parsed.
    """

    provider = "ollama"

    def __init__(
        self,
        client: Optional[ollama.AsyncClient] = None,
        model: str = "llama3.1",
        base_url: str = DEFAULT_OLLAMA_URL,
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        if client is None:
            host = base_url.rstrip("/")
            logger.info(f"Initializing Ollama client for host: {host}, model: {model}")
            client = ollama.AsyncClient(host=host)
        self.client: ollama.AsyncClient = client

    async def _generate_impl(self, history: List[Message], tools: List[ToolDescriptor]) -> Message:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": self._convert_history(history),
            "options": {"temperature": self.temperature, "num_predict": self.max_tokens},
        }
        if tools:
            kwargs["tools"] = [{"type": "function", "function": s} for s in self._tool_schemas(tools)]

        response = await self.client.chat(**kwargs)

        self._report_usage(response.prompt_eval_count or 0, response.eval_count or 0, history)

        message = response.message
        tool_calls = [
            self._build_invocation(None, tc.function.name, tc.function.arguments) for tc in (message.tool_calls or [])
        ]
        return Message.assistant(message.content or "", tool_calls=tool_calls)

    def _is_transient_error(self, error: Exception) -> bool:
        if isinstance(error, ollama.ResponseError) and (error.status_code >= 500 or error.status_code == 429):
            return True
        return super()._is_transient_error(error)

    def _convert_history(self, history: List[Message]) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = [{"role": "system", "content": self.system_prompt}]
        for msg in history:
            if msg.role == Role.USER:
                messages.append({"role": "user", "content": msg.content})
            elif msg.role == Role.ASSISTANT:
                entry: Dict[str, Any] = {"role": "assistant", "content": msg.content}
                if msg.tool_calls:
                    entry["tool_calls"] = [
                        {"function": {"name": tc.name, "arguments": tc.arguments}} for tc in msg.tool_calls
                    ]
                messages.append(entry)
            elif msg.role == Role.TOOL:
                name = msg.tool_results[0].name if msg.tool_results else ""
                messages.append({"role": "tool", "content": msg.content, "tool_name": name})
        return messages
