"""Environment-driven configuration for the DevOps agent."""

import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "groq": "llama-3.3-70b-versatile",
    "anthropic": "claude-3-5-sonnet-20241022",
    "gemini": "gemini-2.0-flash",
    "ollama": "llama3.1",
}


class AgentSettings(BaseModel):
    """
    Runtime settings for the agent, its model adapter and its toolbox.

    Attributes:
        provider: Which model provider to talk to.
        model: Provider model identifier.
        api_key: API key for the provider (unused for Ollama).
        ollama_base_url: Base URL of the Ollama server.
        temperature: Sampling temperature.
        max_tokens: Maximum number of output tokens per model call.
        system_prompt: Overrides the default system prompt when set.
        max_iterations: Ceiling on model turns per user message.
        session_ttl_seconds: Idle time after which a session is evicted. None disables eviction.
        cost_log_path: Where API usage is persisted. None keeps it in memory only.
        workspace_root: Root directory the file and git tools operate in.
        log_level: Logging level name.
    """

    provider: str = "openai"
    model: str = DEFAULT_MODELS["openai"]
    api_key: Optional[str] = None
    ollama_base_url: str = "http://localhost:11434"
    temperature: float = 0.7
    max_tokens: int = Field(default=2000, gt=0)
    system_prompt: Optional[str] = None
    max_iterations: int = Field(default=20, gt=0)
    session_ttl_seconds: Optional[float] = 3600.0
    cost_log_path: Optional[Path] = Path("logs/devops-agent-costs.json")
    workspace_root: Path = Field(default_factory=Path.cwd)
    log_level: str = "INFO"


_API_KEY_VARS = {
    "openai": ("OPENAI_API_KEY",),
    "groq": ("GROQ_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
    "gemini": ("GOOGLE_API_KEY", "GEMINI_API_KEY"),
    "ollama": (),
}


def _optional_number(raw: Optional[str]) -> Optional[str]:
    if raw is None or raw.strip().lower() in ("", "none", "off"):
        return None
    return raw


def load_settings(env: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> AgentSettings:
    """
    Build settings from environment variables.

    Args:
        env: Variables to read instead of ``os.environ`` (used in tests).
        dotenv: Load a ``.env`` file into the process environment first.

    Returns:
        Validated AgentSettings.
    """
    if env is None:
        if dotenv:
            load_dotenv()
        env = os.environ

    provider = env.get("AI_PROVIDER", "openai").strip().lower()
    values = {
        "provider": provider,
        "model": env.get(f"{provider.upper()}_MODEL") or DEFAULT_MODELS.get(provider, DEFAULT_MODELS["openai"]),
        "api_key": next((env[var] for var in _API_KEY_VARS.get(provider, ()) if env.get(var)), None),
        "ollama_base_url": env.get("OLLAMA_BASE_URL", "http://localhost:11434"),
        "temperature": env.get("AGENT_TEMPERATURE", "0.7"),
        "max_tokens": env.get("AGENT_MAX_TOKENS", "2000"),
        "system_prompt": env.get("AGENT_SYSTEM_PROMPT") or None,
        "max_iterations": env.get("AGENT_MAX_ITERATIONS", "20"),
        "session_ttl_seconds": _optional_number(env.get("AGENT_SESSION_TTL", "3600")),
        "cost_log_path": env.get("AGENT_COST_LOG", "logs/devops-agent-costs.json") or None,
        "log_level": env.get("LOG_LEVEL", "INFO").upper(),
    }
    if env.get("AGENT_WORKSPACE"):
        values["workspace_root"] = env["AGENT_WORKSPACE"]

    return AgentSettings.model_validate(values)
