"""DevOps tools offered to the model."""

from typing import List, Optional

from ..llm_core import ToolDescriptor
from ..llm_core.usage import CostTracker
from .costs import cost_tools, format_cost_report
from .filesystem import list_files, read_file, search_files, write_file
from .git import git_branch, git_commit, git_fetch, git_init, git_pull, git_push, git_status, run_git
from .log_analysis import analyze_log_text, analyze_logs
from .process import check_option_safe, run_command
from .testing import detect_test_framework, parse_test_output, pre_push_validate, run_tests

FILESYSTEM_TOOLS = [read_file, write_file, list_files, search_files]
GIT_TOOLS = [git_status, git_init, git_commit, git_branch, git_push, git_pull, git_fetch]
TEST_TOOLS = [run_tests, pre_push_validate]


def default_tools(cost_tracker: Optional[CostTracker] = None) -> List[ToolDescriptor]:
    """Descriptors for every built-in tool, cost tools included when a tracker is given."""
    tools = [ToolDescriptor.from_function(f) for f in [*FILESYSTEM_TOOLS, *GIT_TOOLS, *TEST_TOOLS, analyze_logs]]
    if cost_tracker is not None:
        tools.extend(cost_tools(cost_tracker))
    return tools


__all__ = [
    "FILESYSTEM_TOOLS",
    "GIT_TOOLS",
    "TEST_TOOLS",
    "default_tools",
    "cost_tools",
    "format_cost_report",
    "read_file",
    "write_file",
    "list_files",
    "search_files",
    "git_status",
    "git_init",
    "git_commit",
    "git_branch",
    "git_push",
    "git_pull",
    "git_fetch",
    "run_git",
    "run_command",
    "check_option_safe",
    "run_tests",
    "pre_push_validate",
    "detect_test_framework",
    "parse_test_output",
    "analyze_logs",
    "analyze_log_text",
]
