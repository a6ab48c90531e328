from typing import Any

import pytest

from devops_agent.llm_core import ExecutionContext, ToolDescriptor
from devops_agent.llm_core.exceptions import ToolExecutionError, WorkspaceAccessError
from devops_agent.toolbox import default_tools, list_files, read_file, search_files, write_file


def test_write_then_read(context: ExecutionContext, workspace: Any) -> None:
    message = write_file("config/app.yaml", "replicas: 3\n", context=context)

    assert message == "✅ Successfully wrote to file: config/app.yaml"
    assert (workspace / "config" / "app.yaml").read_text() == "replicas: 3\n"
    assert read_file("config/app.yaml", context=context) == "File: config/app.yaml\n\nContent:\nreplicas: 3\n"


def test_read_missing_file(context: ExecutionContext) -> None:
    with pytest.raises(ToolExecutionError, match="File not found"):
        read_file("nope.txt", context=context)


def test_paths_outside_workspace_are_denied(context: ExecutionContext) -> None:
    with pytest.raises(WorkspaceAccessError):
        read_file("../secret.txt", context=context)
    with pytest.raises(WorkspaceAccessError):
        write_file("../../evil.sh", "rm -rf /", context=context)
    with pytest.raises(WorkspaceAccessError):
        list_files(context=context, directory="..")


def test_list_files(context: ExecutionContext, workspace: Any) -> None:
    (workspace / "src").mkdir()
    (workspace / "README.md").write_text("hi")

    listing = list_files(context=context)

    assert "Directories (1):\nsrc/" in listing
    assert "Files (1):\nREADME.md" in listing


def test_list_empty_directory(context: ExecutionContext) -> None:
    assert "Directories (0):\nNone" in list_files(context=context, directory=".")


def test_search_files_skips_hidden_and_node_modules(context: ExecutionContext, workspace: Any) -> None:
    (workspace / "src").mkdir()
    (workspace / "src" / "App.JS").write_text("")
    (workspace / "index.js").write_text("")
    (workspace / "node_modules").mkdir()
    (workspace / "node_modules" / "dep.js").write_text("")
    (workspace / ".git").mkdir()
    (workspace / ".git" / "hook.js").write_text("")

    result = search_files("*.js", context=context)

    assert result.startswith('Found 2 file(s) matching "*.js"')
    assert "index.js" in result
    assert "src/App.JS" in result
    assert "dep.js" not in result
    assert "hook.js" not in result


def test_search_files_no_match(context: ExecutionContext) -> None:
    assert search_files("*.tf", context=context) == "No files found matching pattern: *.tf"


@pytest.mark.asyncio
async def test_default_tools_are_executable(context: ExecutionContext, workspace: Any) -> None:
    tools = {t.name: t for t in default_tools()}

    assert {"read_file", "write_file", "list_files", "search_files", "analyze_logs", "git_status", "run_tests"} <= set(tools)
    assert "pre_push_validate" in tools
    assert "view_api_costs" not in tools
    assert tools["read_file"].required_parameters == ["file_path"]

    write: ToolDescriptor = tools["write_file"]
    args = write.validate_arguments({"file_path": "a.txt", "content": "x"})
    await write.execute(args, context)
    assert (workspace / "a.txt").read_text() == "x"

    listing = await tools["list_files"].execute(tools["list_files"].validate_arguments({}), context)
    assert "a.txt" in listing
