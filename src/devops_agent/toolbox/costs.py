"""Tools exposing a CostTracker to the model."""

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import Field

from ..llm_core import ToolDescriptor, get_logger
from ..llm_core.usage import CostTracker

logger = get_logger(__name__)


def format_cost_report(tracker: CostTracker, detailed: bool = True, recent: int = 10) -> str:
    """Render the tracker's summary as a plain-text report."""
    summary = tracker.summary()
    lines: List[str] = [
        "💰 API Cost Analysis",
        "=" * 60,
        "",
        "📊 Overall Statistics:",
        f"   Total Cost: ${summary.total_cost:.4f}",
        f"   Total Requests: {summary.total_requests}",
        f"   Total Tokens: {summary.total_tokens:,}",
        "",
        "📅 Time-based Costs:",
        f"   Today: ${summary.today_cost:.4f}",
        f"   This Week: ${summary.week_cost:.4f}",
        f"   This Month: ${summary.month_cost:.4f}",
        "",
    ]

    if detailed:
        lines.append("🔧 Cost by Provider:")
        lines.extend(f"   {provider}: ${cost:.4f}" for provider, cost in summary.cost_by_provider.items())
        lines.append("")
        lines.append("🤖 Cost by Model:")
        lines.extend(f"   {model}: ${cost:.4f}" for model, cost in summary.cost_by_model.items())
        lines.append("")

    if recent > 0:
        entries = tracker.recent(recent)
        lines.append(f"📝 Recent Requests (last {len(entries)}):")
        for entry in entries:
            when = datetime.fromtimestamp(entry.timestamp).strftime("%Y-%m-%d %H:%M:%S")
            lines.append(f"   {when} | {entry.provider}/{entry.model} | ${entry.cost:.4f}")
        lines.append("")

    lines.append("💡 Recommendations:")
    if summary.total_cost > 1.0:
        lines.append("   ⚠️  Consider using Groq (free) for development")
    if summary.today_cost > 0.5:
        lines.append("   ⚠️  High usage today - monitor your budget")
    if summary.cost_by_provider.get("openai", 0.0) > 2.0:
        lines.append("   💡 Switch to GPT-4o-mini for 90% cost reduction")
    if summary.total_cost == 0:
        lines.append("   ✅ Using free providers - no costs incurred!")

    return "\n".join(lines)


def cost_tools(tracker: CostTracker) -> List[ToolDescriptor]:
    """Build the ``view_api_costs`` and ``reset_api_costs`` tools bound to ``tracker``."""

    def view_api_costs(
        detailed: Annotated[
            Optional[bool], Field(description="Show detailed cost breakdown by provider and model")
        ] = True,
        recent: Annotated[Optional[int], Field(description="Number of recent requests to show (default: 10)")] = 10,
    ) -> str:
        """View API cost tracking and analytics for OpenAI, Anthropic, Gemini, Groq, and Ollama usage"""
        return format_cost_report(tracker, detailed=detailed is not False, recent=10 if recent is None else recent)

    async def reset_api_costs() -> str:
        """Reset API cost tracking data"""
        await tracker.reset()
        return "✅ Cost tracking data has been reset"

    return [ToolDescriptor.from_function(view_api_costs), ToolDescriptor.from_function(reset_api_costs)]
