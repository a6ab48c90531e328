import shutil
import sys
from typing import Any

import pytest

from devops_agent.llm_core import Agent, ExecutionContext, Message, ToolDescriptor
from devops_agent.llm_core.exceptions import ToolExecutionError
from devops_agent.toolbox import git_branch, git_commit, git_fetch, git_init, git_pull, git_push, git_status, run_git
from helpers import ScriptedAdapter, tool_call, wait_for_pid_file, wait_until_dead

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


async def _configure_identity(workspace: Any) -> None:
    await run_git(["config", "user.email", "dev@example.com"], workspace)
    await run_git(["config", "user.name", "Dev"], workspace)


@requires_git
@pytest.mark.asyncio
async def test_init_commit_and_branch(context: ExecutionContext, workspace: Any) -> None:
    assert "Initialized Git repository" in await git_init(context=context)
    await _configure_identity(workspace)

    (workspace / "app.py").write_text("print('hi')\n")
    assert "app.py" in await git_status(context=context)

    committed = await git_commit("Initial commit", context=context)
    assert committed.startswith("✅ Committed changes")
    assert await git_commit("Nothing new", context=context) == "ℹ️ Nothing to commit, working tree clean"

    assert await git_branch("feature/x", context=context) == "✅ Created and switched to branch: feature/x"
    _, current = await run_git(["rev-parse", "--abbrev-ref", "HEAD"], workspace)
    assert current == "feature/x"

    with pytest.raises(ToolExecutionError, match="does not exist"):
        await git_branch("other", context=context, create=False)


@requires_git
@pytest.mark.asyncio
async def test_status_outside_repository_fails(tmp_path: Any) -> None:
    context = ExecutionContext(workspace_root=str(tmp_path))
    with pytest.raises(ToolExecutionError, match="git status failed"):
        await git_status(context=context)


@pytest.mark.asyncio
async def test_option_like_remote_and_branch_names_are_rejected(context: ExecutionContext, workspace: Any) -> None:
    marker = workspace / "pwned"
    remote = f"--upload-pack=touch {marker}; git-upload-pack"

    with pytest.raises(ToolExecutionError, match="Invalid remote"):
        await git_fetch(context=context, remote=remote)
    with pytest.raises(ToolExecutionError, match="Invalid remote"):
        await git_pull(context=context, remote=remote)
    with pytest.raises(ToolExecutionError, match="Invalid branch name"):
        await git_push(context=context, branch="--receive-pack=evil")
    with pytest.raises(ToolExecutionError, match="Invalid branch name"):
        await git_pull(context=context, branch="-f")
    with pytest.raises(ToolExecutionError, match="Invalid branch name"):
        await git_branch("--orphan=x", context=context)

    assert not marker.exists()


@requires_git
@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="inspects /proc")
@pytest.mark.asyncio
async def test_timed_out_fetch_leaves_no_processes_behind(
    context: ExecutionContext, workspace: Any, tmp_path: Any
) -> None:
    upstream = tmp_path / "upstream"
    upstream.mkdir()
    await run_git(["init"], upstream)
    await git_init(context=context)

    pid_file = tmp_path / "upload-pack.pid"
    await run_git(["remote", "add", "origin", str(upstream)], workspace)
    await run_git(["config", "remote.origin.uploadpack", f"echo $$ > {pid_file}; sleep 30; true"], workspace)

    adapter = ScriptedAdapter([tool_call("git_fetch", "call_1"), Message.assistant("gave up")])
    agent = Agent(adapter, tool_timeout=2.0)
    agent.register_tool(ToolDescriptor.from_function(git_fetch))

    await agent.process_message("fetch", context, session_id="s1")

    result = agent.get_conversation("s1").messages[2].tool_results[0]
    assert result.error == "Tool execution timed out after 2.0 seconds."
    shell = await wait_for_pid_file(pid_file, timeout=1.0)
    assert await wait_until_dead(shell)
