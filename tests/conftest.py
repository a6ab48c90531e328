from typing import Any

import pytest

from devops_agent.llm_core import ExecutionContext
from helpers import ScriptedAdapter


@pytest.fixture
def scripted_adapter() -> ScriptedAdapter:
    return ScriptedAdapter()


@pytest.fixture
def workspace(tmp_path: Any) -> Any:
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def context(workspace: Any) -> ExecutionContext:
    return ExecutionContext(workspace_root=str(workspace))
