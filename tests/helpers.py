"""Shared test doubles."""

import asyncio
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from devops_agent.llm_core import Message, ModelAdapter, ToolDescriptor, ToolInvocationRequest


class ScriptedAdapter(ModelAdapter):
    """Model adapter that replays scripted replies and records what it was sent."""

    provider = "scripted"

    def __init__(self, replies: Optional[Sequence[Any]] = None, **kwargs: Any) -> None:
        super().__init__("scripted-model", **kwargs)
        self.replies: List[Any] = list(replies or [])
        self.histories: List[List[Message]] = []
        self.tool_sets: List[List[str]] = []

    async def _generate_impl(self, history: List[Message], tools: List[ToolDescriptor]) -> Message:
        self.histories.append(list(history))
        self.tool_sets.append([t.name for t in tools])
        if not self.replies:
            return Message.assistant("done")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            reply = reply(history)
            if asyncio.iscoroutine(reply):
                reply = await reply
        return reply


def tool_call(name: str, call_id: str, arguments: Optional[Dict[str, Any]] = None, **kwargs: Any) -> Message:
    """Assistant message requesting a single tool call."""
    request = ToolInvocationRequest(id=call_id, name=name, arguments=arguments or {}, **kwargs)
    return Message.assistant("", tool_calls=[request])


def process_alive(pid: int) -> bool:
    """True while ``pid`` runs; zombies awaiting a reaper count as finished."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    try:
        with open(f"/proc/{pid}/stat") as stat:
            return stat.read().rsplit(")", 1)[1].split()[0] != "Z"
    except OSError:
        return True


async def wait_for_pid_file(path: Path, timeout: float = 10.0) -> int:
    """Poll until a pid has been written to ``path``."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if path.exists() and path.read_text().strip():
            return int(path.read_text().split()[0])
        await asyncio.sleep(0.05)
    raise AssertionError(f"no pid written to {path}")


async def wait_until_dead(pid: int, timeout: float = 5.0) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if not process_alive(pid):
            return True
        await asyncio.sleep(0.05)
    return False
