"""The agent orchestration loop."""

from .agent import Agent, MAX_ITERATIONS, ITERATION_LIMIT_MESSAGE, StatusCallback

__all__ = ["Agent", "MAX_ITERATIONS", "ITERATION_LIMIT_MESSAGE", "StatusCallback"]
