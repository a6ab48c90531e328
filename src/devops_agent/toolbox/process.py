"""Subprocess helper shared by the tools that shell out."""

import asyncio
import os
import signal
from pathlib import Path
from typing import List, Optional, Tuple

from ..llm_core import ToolExecutionError, get_logger

logger = get_logger(__name__)


def check_option_safe(value: str, what: str) -> str:
    """Reject a model-supplied positional argument that a command would parse as an option.

    Raises:
        ToolExecutionError: If ``value`` starts with ``-``.
    """
    if value.startswith("-"):
        raise ToolExecutionError(f"Invalid {what} '{value}': must not start with '-'")
    return value


def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill the process together with everything it spawned."""
    try:
        if os.name == "posix":
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()
    except ProcessLookupError:
        pass


async def run_command(
    program: str,
    args: List[str],
    cwd: Path,
    timeout: float,
    check: bool = True,
    label: Optional[str] = None,
) -> Tuple[int, str]:
    """
    Run ``program`` with ``args`` in ``cwd`` and return ``(returncode, combined output)``.

    The process runs in its own process group. If the call times out or the awaiting
    task is cancelled, the whole group is killed and reaped before control returns.

    Args:
        program: Executable to run.
        args: Command-line arguments.
        cwd: Working directory.
        timeout: Seconds to wait before the process is killed.
        check: Raise on a non-zero exit status.
        label: Name used in error messages. Defaults to the program and its first argument.

    Raises:
        ToolExecutionError: If the program is missing, times out, or (with ``check``)
            exits with a non-zero status.
    """
    label = label or " ".join([program, *args[:1]])
    logger.debug(f"Running {program} {' '.join(args)} in {cwd}")
    try:
        process = await asyncio.create_subprocess_exec(
            program,
            *args,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            start_new_session=os.name == "posix",
        )
    except FileNotFoundError as exc:
        raise ToolExecutionError(f"{program} executable not found on PATH") from exc

    try:
        stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise ToolExecutionError(f"{label} timed out after {timeout} seconds") from exc
    finally:
        if process.returncode is None:
            logger.warning(f"Killing unfinished process: {label} (pid {process.pid})")
            _kill(process)
            await process.wait()

    output = stdout.decode("utf-8", errors="replace").strip()
    if check and process.returncode != 0:
        raise ToolExecutionError(f"{label} failed: {output}")
    return process.returncode, output
