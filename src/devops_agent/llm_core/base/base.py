"""Core abstraction for model provider adapters."""

import asyncio
import inspect
import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Coroutine, List, Mapping, Optional, Sequence, Set

from ..logger import get_logger
from ..messages import Message, ToolInvocationRequest, new_id
from ..prompts import DEFAULT_SYSTEM_PROMPT
from ..tools.models import ToolDescriptor
from ..usage import NullUsageRecorder, UsageRecorder

logger = get_logger(__name__)

FALLBACK_APOLOGY = (
    "I apologize, but I encountered an issue with function calling. "
    "Please try rephrasing your request or use a different command."
)


class ModelAdapter(ABC):
    """Abstract base class for model provider adapters.

    An adapter translates the provider-neutral conversation plus the current tool
    set into one provider request and translates the reply back into exactly one
    assistant ``Message``. The system prompt is prepended here; callers never put
    it into the history.

    Errors the variant classifies as transient are retried with exponential
    backoff; every other provider error propagates unchanged.
    """

    provider: str = "generic"

    def __init__(
        self,
        model: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        usage_recorder: Optional[UsageRecorder] = None,
        max_retries: int = 3,
        base_retry_delay: float = 1.0,
    ):
        """
        Args:
            model: Provider model identifier.
            system_prompt: System instruction. Defaults to the DevOps assistant prompt.
            temperature: Sampling temperature.
            max_tokens: Maximum number of output tokens.
            usage_recorder: Receives token counts after successful calls.
            max_retries: Retries for transient errors.
            base_retry_delay: Initial backoff delay in seconds.
        """
        self.model = model
        self.system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.usage_recorder: UsageRecorder = usage_recorder or NullUsageRecorder()
        self.max_retries = max_retries
        self.base_retry_delay = base_retry_delay
        self._pending_usage: Set["asyncio.Future[Any]"] = set()

    async def generate_response(self, history: Sequence[Message], tools: Sequence[ToolDescriptor]) -> Message:
        """
        Ask the model for the next assistant turn.

        Args:
            history: The full ordered conversation for the session.
            tools: Every tool the model may call on this turn.

        Returns:
            One assistant message, possibly carrying tool invocation requests.
        """
        return await self._execute_with_retry(self._generate_impl, list(history), list(tools))

    async def _execute_with_retry(
        self,
        func: Callable[..., Coroutine[Any, Any, Message]],
        *args: Any,
        **kwargs: Any,
    ) -> Message:
        """
        Executes a function with retry logic for transient errors.

        Raises:
            Exception: The first non-transient error, or the last transient one once retries run out.
        """
        delay = self.base_retry_delay
        attempt = 0
        while True:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if attempt >= self.max_retries or not self._is_transient_error(e):
                    if attempt:
                        logger.error(f"{self.provider} API call failed after {attempt} retries: {e}")
                    raise

                attempt += 1
                logger.warning(
                    f"{self.provider} API error (retry {attempt}/{self.max_retries}): {e}. Waiting {delay}s..."
                )
                await asyncio.sleep(delay)
                delay *= 2  # Exponential backoff

    def _is_transient_error(self, error: Exception) -> bool:
        """Whether ``error`` is worth retrying. Variants override this."""
        return isinstance(error, (ConnectionError, asyncio.TimeoutError))

    def _report_usage(self, input_tokens: int, output_tokens: int, history: Sequence[Message]) -> None:
        """Hand token counts to the usage recorder without waiting for it."""
        note = history[-1].content if history and history[-1].content else "API call"
        try:
            outcome = self.usage_recorder.record_usage(
                self.provider, self.model, int(input_tokens or 0), int(output_tokens or 0), note[:100]
            )
        except Exception:
            logger.warning("Usage recorder failed for %s/%s.", self.provider, self.model, exc_info=True)
            return

        if inspect.isawaitable(outcome):
            task = asyncio.ensure_future(outcome)
            self._pending_usage.add(task)
            task.add_done_callback(self._on_usage_done)

    def _on_usage_done(self, task: "asyncio.Future[Any]") -> None:
        self._pending_usage.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Usage recorder failed for %s/%s: %s", self.provider, self.model, exc)

    async def flush_usage(self) -> None:
        """Wait for outstanding usage reports (used on shutdown and in tests)."""
        if self._pending_usage:
            await asyncio.gather(*list(self._pending_usage), return_exceptions=True)

    @staticmethod
    def _build_invocation(call_id: Optional[str], name: str, raw_arguments: Any) -> ToolInvocationRequest:
        """Normalize a provider tool call into a ToolInvocationRequest.

        Accepts JSON strings, mappings or None. Undecodable arguments do not drop the
        call: the request is returned with ``parse_error`` set so the loop can answer it.
        """
        call_id = call_id or new_id("call_")
        if raw_arguments is None or raw_arguments == "":
            return ToolInvocationRequest(id=call_id, name=name, arguments={})

        if isinstance(raw_arguments, str):
            try:
                parsed = json.loads(raw_arguments)
            except json.JSONDecodeError as exc:
                logger.error("Failed to parse arguments for tool call '%s' (%s): %s", name, call_id, exc)
                return ToolInvocationRequest(
                    id=call_id, name=name, parse_error=f"Failed to parse arguments for tool '{name}': {exc}"
                )
            raw_arguments = parsed if parsed is not None else {}

        if not isinstance(raw_arguments, Mapping):
            msg = f"Failed to parse arguments for tool '{name}': arguments must decode to a JSON object."
            logger.error(msg)
            return ToolInvocationRequest(id=call_id, name=name, parse_error=msg)

        return ToolInvocationRequest(id=call_id, name=name, arguments=dict(raw_arguments))

    @staticmethod
    def _tool_schemas(tools: Sequence[ToolDescriptor]) -> List[dict]:
        """Provider-neutral ``(name, description, parameters)`` dicts, in order."""
        return [{"name": t.name, "description": t.description, "parameters": t.json_schema()} for t in tools]

    @abstractmethod
    async def _generate_impl(self, history: List[Message], tools: List[ToolDescriptor]) -> Message:
        pass
