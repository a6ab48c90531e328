"""Build the configured model adapter."""

from typing import Optional

from anthropic import AsyncAnthropic
from google import genai
from openai import AsyncOpenAI

from ..config import DEFAULT_MODELS, AgentSettings
from ..llm_core import ModelAdapter, ProviderConfigurationError, get_logger
from ..llm_core.usage import UsageRecorder
from .anthropic_api import AnthropicModelAdapter
from .gemini import GeminiModelAdapter
from .groq import GroqModelAdapter
from .ollama_api import OllamaModelAdapter
from .openai_api import OpenAIModelAdapter

logger = get_logger(__name__)


def create_adapter(settings: AgentSettings, usage_recorder: Optional[UsageRecorder] = None) -> ModelAdapter:
    """
    Instantiate the adapter for ``settings.provider``.

    Raises:
        ProviderConfigurationError: If the provider is unknown or its API key is missing.
    """
    provider = settings.provider
    common = {
        "system_prompt": settings.system_prompt,
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
        "usage_recorder": usage_recorder,
    }

    if provider not in DEFAULT_MODELS:
        raise ProviderConfigurationError(f"Unknown AI provider: {provider}")
    if provider != "ollama" and not settings.api_key:
        raise ProviderConfigurationError(f"No API key configured for provider '{provider}'.")

    logger.info(f"Initializing {provider} adapter with model '{settings.model}'")

    if provider == "openai":
        return OpenAIModelAdapter(AsyncOpenAI(api_key=settings.api_key), settings.model, **common)
    if provider == "groq":
        return GroqModelAdapter(model=settings.model, api_key=settings.api_key, **common)
    if provider == "anthropic":
        return AnthropicModelAdapter(AsyncAnthropic(api_key=settings.api_key), settings.model, **common)
    if provider == "gemini":
        return GeminiModelAdapter(genai.Client(api_key=settings.api_key).aio, settings.model, **common)
    if provider == "ollama":
        return OllamaModelAdapter(model=settings.model, base_url=settings.ollama_base_url, **common)

    raise ProviderConfigurationError(f"Unknown AI provider: {provider}")
