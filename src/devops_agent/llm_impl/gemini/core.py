"""Google Gemini adapter built on the ``google-genai`` async client."""

import json
from typing import Any, Dict, List, Optional

from google.genai import errors, types
from google.genai.client import AsyncClient
from google.genai.types import GenerateContentResponse

from ...llm_core import ModelAdapter, Message, Role, ToolDescriptor, ToolResult, get_logger

logger = get_logger(__name__)


class GeminiModelAdapter(ModelAdapter):
    """
    Adapter for Google's Gemini models.

    Assistant turns use the ``model`` role, tool calls are ``function_call`` parts
    and results are ``function_response`` parts grouped into one ``user`` turn per
    tool batch. Gemini may omit call ids; missing ones are synthesized.
    """

    provider = "gemini"

    def __init__(self, aclient: AsyncClient, model: str = "gemini-2.0-flash", **kwargs: Any):
        """
        Initializes the adapter.

        Args:
            aclient: The async Google GenAI client (``genai.Client(...).aio``).
            model: The Gemini model identifier.
            **kwargs: Forwarded to ``ModelAdapter``.
        """
        super().__init__(model, **kwargs)
        self.client: AsyncClient = aclient

    async def _generate_impl(self, history: List[Message], tools: List[ToolDescriptor]) -> Message:
        config = types.GenerateContentConfig(
            system_instruction=self.system_prompt,
            temperature=self.temperature,
            max_output_tokens=self.max_tokens,
            tools=self._convert_tools(tools),
        )

        logger.debug(f"Sending {len(history)} messages to Gemini model '{self.model}'.")
        response: GenerateContentResponse = await self.client.models.generate_content(
            model=self.model,
            contents=self._convert_history(history),  # type: ignore[arg-type]
            config=config,
        )

        usage = response.usage_metadata
        if usage is not None:
            self._report_usage(usage.prompt_token_count or 0, usage.candidates_token_count or 0, history)

        return self._parse_response(response)

    def _parse_response(self, response: GenerateContentResponse) -> Message:
        parts: List[types.Part] = []
        if response.candidates and response.candidates[0].content:
            parts = response.candidates[0].content.parts or []

        text_parts: List[str] = []
        tool_calls = []
        for part in parts:
            if part.function_call:
                fc = part.function_call
                tool_calls.append(self._build_invocation(fc.id, fc.name or "", fc.args))
            elif part.text:
                text_parts.append(part.text)

        return Message.assistant("".join(text_parts), tool_calls=tool_calls, message_id=response.response_id)

    def _is_transient_error(self, error: Exception) -> bool:
        if isinstance(error, errors.ServerError):
            return True
        if isinstance(error, errors.ClientError) and error.code == 429:
            return True
        return super()._is_transient_error(error)

    @staticmethod
    def _function_response_payload(result: Optional[ToolResult], fallback: str) -> Dict[str, Any]:
        if result is None:
            return {"output": fallback}
        if not result.ok:
            return {"error": result.error}
        # Round-trip through JSON so the payload only holds plain JSON values.
        return {"output": json.loads(json.dumps(result.result, default=str))}

    def _convert_history(self, history: List[Message]) -> List[types.Content]:
        """
        Converts the neutral history into Gemini ``Content`` turns.

        Args:
            history: List of Message objects.

        Returns:
            List of Gemini Content objects.
        """
        contents: List[types.Content] = []
        pending_responses: List[types.Part] = []

        def flush_responses() -> None:
            if pending_responses:
                contents.append(types.Content(role="user", parts=list(pending_responses)))
                pending_responses.clear()

        for msg in history:
            if msg.role == Role.TOOL:
                result = msg.tool_results[0] if msg.tool_results else None
                name = result.name if result else ""
                pending_responses.append(
                    types.Part(
                        function_response=types.FunctionResponse(
                            id=msg.tool_call_id,
                            name=name,
                            response=self._function_response_payload(result, msg.content),
                        )
                    )
                )
                continue

            flush_responses()
            if msg.role == Role.USER:
                contents.append(types.Content(role="user", parts=[types.Part(text=msg.content)]))
            elif msg.role == Role.ASSISTANT:
                parts: List[types.Part] = []
                if msg.content:
                    parts.append(types.Part(text=msg.content))
                for tc in msg.tool_calls or []:
                    parts.append(
                        types.Part(function_call=types.FunctionCall(id=tc.id, name=tc.name, args=tc.arguments))
                    )
                if parts:
                    contents.append(types.Content(role="model", parts=parts))

        flush_responses()
        return contents

    def _convert_tools(self, tools: List[ToolDescriptor]) -> Optional[List[types.Tool]]:
        if not tools:
            return None

        declarations = []
        for schema in self._tool_schemas(tools):
            if schema["parameters"]["properties"]:
                declarations.append(
                    types.FunctionDeclaration(
                        name=schema["name"], description=schema["description"], parameters=schema["parameters"]
                    )
                )
            else:
                declarations.append(types.FunctionDeclaration(name=schema["name"], description=schema["description"]))

        return [types.Tool(function_declarations=declarations)]
