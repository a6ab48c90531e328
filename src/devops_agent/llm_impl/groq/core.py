"""Groq adapter over Groq's OpenAI-compatible endpoint."""

from typing import Any, Optional

from openai import AsyncOpenAI

from ..openai_api import OpenAIModelAdapter

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


class GroqModelAdapter(OpenAIModelAdapter):
    """
    Adapter for Groq-hosted models.

    Groq speaks the Chat Completions protocol, so the OpenAI SDK is pointed at
    its base URL. Groq models occasionally emit malformed tool calls which the
    endpoint rejects with ``tool_use_failed``; the inherited fallback answers
    those turns without tools.
    """

    provider = "groq"

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: str = "llama-3.3-70b-versatile",
        api_key: Optional[str] = None,
        **kwargs: Any,
    ):
        if client is None:
            client = AsyncOpenAI(api_key=api_key, base_url=GROQ_BASE_URL)
        super().__init__(client, model, **kwargs)
