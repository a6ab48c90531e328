"""
API cost bookkeeping.

``CostTracker`` prices token usage per model and keeps an append-only log,
optionally persisted as a JSON file. It is injected into model adapters as their
``UsageRecorder``; nothing in the agent core refers to a global instance.
"""

from __future__ import annotations

import asyncio
import time
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, TypeAdapter

from ..logger import get_logger

logger = get_logger(__name__)

# USD per 1M tokens: (input, output)
MODEL_COSTS: Dict[str, Tuple[float, float]] = {
    # OpenAI
    "gpt-4-turbo-preview": (10.0, 30.0),
    "gpt-4": (30.0, 60.0),
    "gpt-3.5-turbo": (0.50, 1.50),
    "gpt-4o": (5.0, 15.0),
    "gpt-4o-mini": (0.15, 0.60),
    "gpt-4.1-mini": (0.40, 1.60),
    # Anthropic
    "claude-3-opus-20240229": (15.0, 75.0),
    "claude-3-sonnet-20240229": (3.0, 15.0),
    "claude-3-5-sonnet-20241022": (3.0, 15.0),
    "claude-3-haiku-20240307": (0.25, 1.25),
    # Gemini
    "gemini-1.5-flash": (0.075, 0.30),
    "gemini-1.5-pro": (1.25, 5.0),
    "gemini-2.0-flash": (0.10, 0.40),
    # Groq (free tier, rate limited)
    "llama-3.1-70b-versatile": (0.0, 0.0),
    "llama-3.3-70b-versatile": (0.0, 0.0),
    "llama-3.1-8b-instant": (0.0, 0.0),
    "llama3-70b-8192": (0.0, 0.0),
    "mixtral-8x7b-32768": (0.0, 0.0),
    # Ollama (local)
    "llama2": (0.0, 0.0),
    "llama3.1": (0.0, 0.0),
}

_DAY = 24 * 60 * 60


class CostEntry(BaseModel):
    """One priced model call."""

    timestamp: float = Field(default_factory=time.time)
    provider: str
    model: str
    input_tokens: int
    output_tokens: int
    cost: float
    request: str


class CostSummary(BaseModel):
    """Aggregated view over the cost log."""

    total_cost: float = 0.0
    total_requests: int = 0
    total_tokens: int = 0
    cost_by_provider: Dict[str, float] = Field(default_factory=dict)
    cost_by_model: Dict[str, float] = Field(default_factory=dict)
    today_cost: float = 0.0
    week_cost: float = 0.0
    month_cost: float = 0.0


_ENTRIES = TypeAdapter(List[CostEntry])


class CostTracker:
    """Prices and records model usage.

    Args:
        path: Optional JSON file the log is loaded from and saved to. ``None`` keeps it in memory.
        prices: Price table override, USD per 1M tokens ``(input, output)``.
    """

    def __init__(self, path: Optional[str | Path] = None, prices: Optional[Dict[str, Tuple[float, float]]] = None):
        self.path = Path(path) if path else None
        self.prices = prices if prices is not None else dict(MODEL_COSTS)
        self._entries: List[CostEntry] = []
        self._loaded = False
        self._save_lock = asyncio.Lock()

    def price(self, model: str, input_tokens: int, output_tokens: int) -> float:
        """Cost in USD; unknown models are free."""
        costs = self.prices.get(model)
        if not costs:
            return 0.0
        return (input_tokens / 1_000_000) * costs[0] + (output_tokens / 1_000_000) * costs[1]

    async def record_usage(self, provider: str, model: str, input_tokens: int, output_tokens: int, note: str) -> float:
        """Price a call, append it to the log and persist the log.

        Returns:
            The cost of the call in USD.
        """
        self._ensure_loaded()
        cost = self.price(model, input_tokens, output_tokens)
        self._entries.append(
            CostEntry(
                provider=provider,
                model=model,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                cost=cost,
                request=note[:100],
            )
        )
        await self.save()
        logger.info("API cost: $%.4f (%s/%s)", cost, provider, model)
        return cost

    @property
    def entries(self) -> List[CostEntry]:
        self._ensure_loaded()
        return list(self._entries)

    def summary(self, now: Optional[float] = None) -> CostSummary:
        self._ensure_loaded()
        now = now if now is not None else time.time()
        summary = CostSummary(total_requests=len(self._entries))
        by_provider: Dict[str, float] = defaultdict(float)
        by_model: Dict[str, float] = defaultdict(float)

        for entry in self._entries:
            summary.total_cost += entry.cost
            summary.total_tokens += entry.input_tokens + entry.output_tokens
            by_provider[entry.provider] += entry.cost
            by_model[entry.model] += entry.cost

            age = now - entry.timestamp
            if age <= _DAY:
                summary.today_cost += entry.cost
            if age <= 7 * _DAY:
                summary.week_cost += entry.cost
            if age <= 30 * _DAY:
                summary.month_cost += entry.cost

        summary.cost_by_provider = dict(by_provider)
        summary.cost_by_model = dict(by_model)
        return summary

    def recent(self, limit: int = 10) -> List[CostEntry]:
        self._ensure_loaded()
        if limit <= 0:
            return []
        return self._entries[-limit:]

    async def reset(self) -> None:
        self._entries = []
        self._loaded = True
        await self.save()
        logger.info("Cost tracking data reset")

    async def save(self) -> None:
        """Persist the log to ``path``. Concurrent saves run one at a time."""
        if self.path is None:
            return
        async with self._save_lock:
            payload = _ENTRIES.dump_json(self._entries, indent=2)
            await asyncio.to_thread(self._write, self.path, payload)

    @staticmethod
    def _write(path: Path, payload: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if self.path is None or not self.path.exists():
            return
        try:
            self._entries = _ENTRIES.validate_json(self.path.read_bytes())
        except (OSError, ValueError) as exc:
            logger.warning("Failed to load cost log from %s, starting fresh: %s", self.path, exc)
            self._entries = []
