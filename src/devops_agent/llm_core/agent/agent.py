"""The agent loop: model turns, tool dispatch and iteration bounding."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from ..base import ModelAdapter
from ..conversation import ConversationHistory, ConversationStore
from ..exceptions import SessionBusyError, ToolExecutionError, ToolValidationError
from ..logger import get_logger
from ..messages import Message, ToolInvocationRequest, ToolResult, new_id
from ..tools import ExecutionContext, ToolDescriptor, ToolRegistry

logger = get_logger(__name__)

MAX_ITERATIONS = 20
ITERATION_LIMIT_MESSAGE = (
    "I apologize, but I reached the maximum number of processing steps. Please try rephrasing your request."
)

StatusCallback = Callable[[str], Union[None, Awaitable[Any]]]


class Agent:
    """
    Drives a conversation between the user, the model and the registered tools.

    Each ``process_message`` call appends the user text to the session history and
    then alternates model turns and tool batches until the model answers without
    requesting tools, or ``max_iterations`` model turns have been used.

    Tool failures of any kind (unknown tool, undecodable or invalid arguments,
    exceptions raised by the tool) become error results the model can read. Only
    provider errors raised by the adapter leave ``process_message``.
    """

    def __init__(
        self,
        adapter: ModelAdapter,
        registry: Optional[ToolRegistry] = None,
        store: Optional[ConversationStore] = None,
        *,
        max_iterations: int = MAX_ITERATIONS,
        reject_concurrent: bool = False,
        tool_timeout: Optional[float] = None,
    ) -> None:
        """Initialize the agent.

        Args:
            adapter: Model adapter for the configured provider.
            registry: Tools offered to the model. A new empty registry by default.
            store: Conversation store. A new in-memory store by default.
            max_iterations: Ceiling on model turns per ``process_message`` call.
            reject_concurrent: Raise ``SessionBusyError`` instead of queuing when a
                session already has a request in flight.
            tool_timeout: Optional per-tool timeout in seconds. No timeout by default.
        """
        self.adapter = adapter
        self.registry = registry if registry is not None else ToolRegistry()
        self.store = store if store is not None else ConversationStore()
        self.max_iterations = max_iterations
        self.reject_concurrent = reject_concurrent
        self.tool_timeout = tool_timeout

    def register_tool(self, tool: ToolDescriptor) -> None:
        self.registry.register(tool)

    def register_tools(self, tools: Iterable[ToolDescriptor]) -> None:
        self.registry.register_many(tools)

    async def process_message(
        self,
        user_message: str,
        context: ExecutionContext,
        session_id: Optional[str] = None,
        on_status: Optional[StatusCallback] = None,
    ) -> Message:
        """
        Process one user message and return the final assistant message.

        Args:
            user_message: The user's text.
            context: Execution context passed to every tool call.
            session_id: Session to continue. Falls back to ``context.session_id``,
                then to a newly generated id.
            on_status: Optional callback receiving progress text before each tool runs.

        Returns:
            The model's final answer, or a fixed explanatory message when the
            iteration ceiling is reached.

        Raises:
            SessionBusyError: If ``reject_concurrent`` is set and the session is busy.
            Exception: Provider errors from the model adapter.
        """
        sid = session_id or context.session_id or new_id()
        if context.session_id != sid:
            context = context.model_copy(update={"session_id": sid})

        if self.reject_concurrent and self.store.is_busy(sid):
            raise SessionBusyError(f"Session {sid} already has a request in progress.")

        async with self.store.session(sid):
            history = self.store.get_or_create(sid, context.user_id)
            return await self._run(history, user_message, context, on_status)

    async def _run(
        self,
        history: ConversationHistory,
        user_message: str,
        context: ExecutionContext,
        on_status: Optional[StatusCallback],
    ) -> Message:
        history.append(Message.user(user_message))

        for iteration in range(1, self.max_iterations + 1):
            response = await self.adapter.generate_response(history.messages, self.registry.all())
            history.append(response)
            self.store.touch(history.session_id)

            if not response.tool_calls:
                return response

            logger.info(
                f"Iteration {iteration}/{self.max_iterations}: agent requesting {len(response.tool_calls)} tool call(s)"
            )

            results: List[ToolResult] = []
            for tool_call in response.tool_calls:
                results.append(await self._execute_tool(tool_call, context, on_status))

            for result in results:
                history.append(Message.from_tool_result(result))

        logger.warning(f"Max iterations ({self.max_iterations}) reached for session {history.session_id}")
        fallback = Message.assistant(ITERATION_LIMIT_MESSAGE)
        history.append(fallback)
        return fallback

    async def _execute_tool(
        self,
        tool_call: ToolInvocationRequest,
        context: ExecutionContext,
        on_status: Optional[StatusCallback],
    ) -> ToolResult:
        """Handle a single tool invocation request. Never raises."""
        logger.debug(f"Handling tool call: {tool_call.name} (ID: {tool_call.id})")

        tool = self.registry.get(tool_call.name)
        if tool is None:
            msg = f"Tool '{tool_call.name}' not found"
            logger.error(msg)
            return ToolResult(call_id=tool_call.id, name=tool_call.name, error=msg)

        if tool_call.parse_error:
            logger.warning(f"Skipping '{tool_call.name}': {tool_call.parse_error}")
            return ToolResult(call_id=tool_call.id, name=tool_call.name, error=tool_call.parse_error)

        try:
            arguments = tool.validate_arguments(tool_call.arguments)
        except ToolValidationError as exc:
            return ToolResult(call_id=tool_call.id, name=tool_call.name, error=str(exc))

        await self._notify(on_status, f"🔧 Executing: {tool.description or tool.name}...")

        try:
            logger.info(f"Executing tool '{tool_call.name}'", extra={"arguments": arguments})
            result = await self._invoke(tool, arguments, context)
        except Exception as exc:
            msg = str(exc) or type(exc).__name__
            logger.error(f"Tool execution failed: {tool_call.name}: {msg}", exc_info=True)
            return ToolResult(call_id=tool_call.id, name=tool_call.name, error=msg)

        logger.info(f"Tool '{tool_call.name}' executed successfully.")
        return ToolResult(call_id=tool_call.id, name=tool_call.name, result=result)

    async def _invoke(self, tool: ToolDescriptor, arguments: Dict[str, Any], context: ExecutionContext) -> Any:
        if self.tool_timeout is None:
            return await tool.execute(arguments, context)
        try:
            return await asyncio.wait_for(tool.execute(arguments, context), timeout=self.tool_timeout)
        except asyncio.TimeoutError as exc:
            raise ToolExecutionError(f"Tool execution timed out after {self.tool_timeout} seconds.") from exc

    @staticmethod
    async def _notify(on_status: Optional[StatusCallback], status: str) -> None:
        if on_status is None:
            return
        try:
            outcome = on_status(status)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.warning("Status callback failed.", exc_info=True)

    def get_conversation(self, session_id: str) -> Optional[ConversationHistory]:
        return self.store.get(session_id)

    def clear_conversation(self, session_id: str) -> None:
        self.store.clear(session_id)

    def clear_all_conversations(self) -> None:
        self.store.clear_all()
