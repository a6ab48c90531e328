"""Usage accounting: recorder protocol and the JSON-backed cost tracker."""

from .recorder import UsageRecorder, NullUsageRecorder
from .cost_tracker import CostTracker, CostEntry, CostSummary, MODEL_COSTS

__all__ = ["UsageRecorder", "NullUsageRecorder", "CostTracker", "CostEntry", "CostSummary", "MODEL_COSTS"]
