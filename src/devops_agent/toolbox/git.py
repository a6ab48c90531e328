"""Git tools. Every command runs ``git`` as a subprocess inside the workspace."""

from pathlib import Path
from typing import Annotated, List, Optional, Tuple

from pydantic import Field

from ..llm_core import ExecutionContext, ToolExecutionError, get_logger
from .process import check_option_safe, run_command

logger = get_logger(__name__)

GIT_TIMEOUT = 120.0


async def run_git(args: List[str], cwd: Path, check: bool = True) -> Tuple[int, str]:
    """
    Run ``git`` with ``args`` in ``cwd`` and return ``(returncode, combined output)``.

    Raises:
        ToolExecutionError: If git is not installed, times out, or (with ``check``)
            exits with a non-zero status.
    """
    return await run_command("git", args, cwd, timeout=GIT_TIMEOUT, check=check)


def _remote_args(remote: Optional[str], branch: Optional[str] = None) -> List[str]:
    args = [check_option_safe(remote or "origin", "remote")]
    if branch:
        args.append(check_option_safe(branch, "branch name"))
    return args


async def git_status(context: ExecutionContext) -> str:
    """Check the status of the Git repository"""
    _, output = await run_git(["status"], context.root)
    return f"Git Status:\n\n{output}"


async def git_init(
    context: ExecutionContext,
    directory: Annotated[Optional[str], Field(description="Directory to initialize (default is workspace root)")] = None,
) -> str:
    """Initialize a Git repository in the workspace"""
    target = context.resolve_path(directory or ".")
    target.mkdir(parents=True, exist_ok=True)
    await run_git(["init"], target)
    logger.info(f"Initialized Git repository in {target}")
    return f"✅ Initialized Git repository in {directory or '.'}"


async def git_commit(
    message: Annotated[str, Field(description="Commit message")],
    context: ExecutionContext,
    files: Annotated[Optional[str], Field(description='Files to stage (default: all changes with ".")')] = None,
) -> str:
    """Stage and commit changes in the Git repository"""
    paths = (files or ".").split()
    await run_git(["add", "--", *paths], context.root)

    code, output = await run_git(["commit", "-m", message], context.root, check=False)
    if code != 0:
        if "nothing to commit" in output:
            return "ℹ️ Nothing to commit, working tree clean"
        raise ToolExecutionError(f"git commit failed: {output}")

    logger.info(f"Committed changes: {message}")
    return f"✅ Committed changes:\n{output}"


async def git_branch(
    name: Annotated[str, Field(description="Branch name")],
    context: ExecutionContext,
    create: Annotated[Optional[bool], Field(description="Create new branch (default: true if not exists)")] = True,
) -> str:
    """Create or switch to a branch"""
    check_option_safe(name, "branch name")
    exists, _ = await run_git(["show-ref", "--verify", "--quiet", f"refs/heads/{name}"], context.root, check=False)
    if exists == 0:
        await run_git(["checkout", name], context.root)
        return f"✅ Switched to branch: {name}"

    if create is False:
        raise ToolExecutionError(f"Branch '{name}' does not exist")

    await run_git(["checkout", "-b", name], context.root)
    return f"✅ Created and switched to branch: {name}"


async def git_push(
    context: ExecutionContext,
    remote: Annotated[Optional[str], Field(description="Remote name (default: origin)")] = None,
    branch: Annotated[Optional[str], Field(description="Branch name (default: current branch)")] = None,
    set_upstream: Annotated[Optional[bool], Field(description="Set upstream tracking (use -u flag)")] = False,
) -> str:
    """Push commits to remote repository"""
    args = ["push"]
    if set_upstream:
        args.append("-u")
    args.extend(_remote_args(remote, branch))

    _, output = await run_git(args, context.root)
    return f"✅ Pushed to {remote or 'origin'}{f'/{branch}' if branch else ''}\n\n{output}"


async def git_pull(
    context: ExecutionContext,
    remote: Annotated[Optional[str], Field(description="Remote name (default: origin)")] = None,
    branch: Annotated[Optional[str], Field(description="Branch name (default: current branch)")] = None,
) -> str:
    """Pull changes from remote repository"""
    _, output = await run_git(["pull", *_remote_args(remote, branch)], context.root)
    return f"✅ Pulled from {remote or 'origin'}\n\n{output}"


async def git_fetch(
    context: ExecutionContext,
    remote: Annotated[Optional[str], Field(description="Remote name (default: origin)")] = None,
) -> str:
    """Fetch updates from a remote repository without merging"""
    _, output = await run_git(["fetch", *_remote_args(remote)], context.root)
    return f"✅ Fetched from {remote or 'origin'}\n\n{output or 'Already up to date.'}"
