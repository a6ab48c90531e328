"""Test execution tools: run the project's test suite and gate a push on it."""

import json
import re
import sys
from pathlib import Path
from typing import Annotated, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..llm_core import ExecutionContext, ToolExecutionError, get_logger
from .git import run_git
from .process import run_command

logger = get_logger(__name__)

TEST_TIMEOUT = 600.0
FAILURE_OUTPUT_LINES = 40

SENSITIVE_PATTERNS = ["API_KEY", "SECRET", "PASSWORD", "TOKEN", "PRIVATE_KEY"]

_PYTEST_CONFIGS = ("pytest.ini", "conftest.py")


class SuiteResult(BaseModel):
    """Counts scraped from a test runner's output."""

    passed: int = 0
    failed: int = 0
    skipped: int = 0
    total: int = 0
    duration: Optional[str] = None
    coverage: Optional[float] = None


def detect_test_framework(root: Path) -> Optional[str]:
    """Guess the project's test runner from its manifest files.

    Returns:
        ``"jest"``, ``"vitest"``, ``"mocha"``, ``"pytest"`` or None.
    """
    package_json = root / "package.json"
    if package_json.is_file():
        try:
            manifest = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            manifest = {}
        deps = {**manifest.get("dependencies", {}), **manifest.get("devDependencies", {})}
        if "jest" in deps or "@types/jest" in deps:
            return "jest"
        if "vitest" in deps:
            return "vitest"
        if "mocha" in deps:
            return "mocha"

    if any((root / name).is_file() for name in _PYTEST_CONFIGS):
        return "pytest"
    for name, marker in (("pyproject.toml", "[tool.pytest"), ("setup.cfg", "[tool:pytest]")):
        config = root / name
        if config.is_file() and marker in config.read_text(encoding="utf-8", errors="replace"):
            return "pytest"
    if (root / "tests").is_dir() and any((root / "tests").glob("test_*.py")):
        return "pytest"
    return None


def build_test_command(framework: str, path: Optional[str] = None, coverage: bool = False) -> Tuple[str, List[str]]:
    """Program and arguments that run ``framework`` on ``path`` (everything when None)."""
    targets = [path] if path else []
    if framework == "pytest":
        return sys.executable, ["-m", "pytest", *targets, *(["--cov"] if coverage else [])]
    if framework == "jest":
        return "npx", ["jest", *targets, *(["--coverage"] if coverage else [])]
    if framework == "vitest":
        return "npx", ["vitest", "run", *targets, *(["--coverage"] if coverage else [])]
    if framework == "mocha":
        return "npx", [*(["nyc"] if coverage else []), "mocha", *targets]
    raise ToolExecutionError(f"Unsupported test framework: {framework}")


def _last(pattern: str, output: str, flags: int = re.IGNORECASE) -> Optional[str]:
    # Runners print their final summary last (jest prints suites before tests).
    matches = re.findall(pattern, output, flags)
    return matches[-1] if matches else None


def _count(pattern: str, output: str) -> int:
    return int(_last(pattern, output) or 0)


def parse_test_output(output: str) -> SuiteResult:
    """Extract pass/fail counts, duration and coverage from runner output."""
    result = SuiteResult(
        passed=_count(r"(\d+) passed", output),
        failed=_count(r"(\d+) failed", output) + _count(r"(\d+) errors?\b", output),
        skipped=_count(r"(\d+) skipped", output),
    )
    total = _last(r"(\d+) total", output)
    result.total = int(total) if total else result.passed + result.failed + result.skipped
    result.duration = _last(r"Time:\s*([\d.]+\s*m?s)", output) or _last(r"\bin ([\d.]+s)\b", output)

    coverage = _last(r"^TOTAL\s.*?(\d+(?:\.\d+)?)%\s*$", output, re.MULTILINE)
    coverage = coverage or _last(r"All files\s*\|\s*([\d.]+)", output)
    if coverage:
        result.coverage = float(coverage)
    return result


def format_test_results(result: SuiteResult, framework: str, failed: bool = False) -> str:
    lines = ["❌ Test Results (FAILED)" if failed else "✅ Test Results", "=" * 60, ""]
    lines.append(f"Framework: {framework}")
    lines.append(f"Duration: {result.duration or 'unknown'}")
    lines += ["", "📊 Summary:", f"   ✅ Passed: {result.passed}"]
    if result.failed:
        lines.append(f"   ❌ Failed: {result.failed}")
    if result.skipped:
        lines.append(f"   ⏭️  Skipped: {result.skipped}")
    lines.append(f"   📝 Total: {result.total}")
    if result.coverage is not None:
        lines.append(f"\n📈 Coverage: {result.coverage}%")
    return "\n".join(lines)


async def _run_suite(
    root: Path, framework: str, path: Optional[str] = None, coverage: bool = False
) -> Tuple[int, str, SuiteResult]:
    program, args = build_test_command(framework, path, coverage)
    logger.info(f"Running tests with {framework}{' (with coverage)' if coverage else ''}")
    code, output = await run_command(program, args, root, timeout=TEST_TIMEOUT, check=False, label=f"{framework} run")
    return code, output, parse_test_output(output)


async def run_tests(
    context: ExecutionContext,
    path: Annotated[Optional[str], Field(description="Path to test file or directory (default: all tests)")] = None,
    coverage: Annotated[Optional[bool], Field(description="Run tests with coverage report")] = False,
) -> str:
    """Execute tests in the project. Detects pytest, Jest, Vitest or Mocha automatically."""
    root = context.root
    framework = detect_test_framework(root)
    if framework is None:
        raise ToolExecutionError("No test framework detected. Install pytest, Jest, Vitest or Mocha.")

    target = None
    if path:
        relative = context.resolve_path(path).relative_to(root).as_posix()
        target = relative if not relative.startswith("-") else f"./{relative}"

    code, output, result = await _run_suite(root, framework, target, bool(coverage))
    if code == 0:
        return format_test_results(result, framework)
    if result.failed:
        tail = "\n".join(output.splitlines()[-FAILURE_OUTPUT_LINES:])
        return f"{format_test_results(result, framework, failed=True)}\n\n⚠️  Some tests failed. Output:\n{tail}"
    raise ToolExecutionError(f"Test execution failed:\n{output}")


def _added_lines(diff: str) -> List[str]:
    return [line for line in diff.splitlines() if line.startswith("+") and not line.startswith("+++")]


async def pre_push_validate(
    context: ExecutionContext,
    skip_tests: Annotated[Optional[bool], Field(description="Skip test execution")] = False,
) -> str:
    """Run pre-push validation: check git status, run the tests and scan staged changes for secrets"""
    root = context.root
    checks: List[Tuple[str, str, str]] = []

    code, status = await run_git(["status", "--short"], root, check=False)
    if code != 0:
        checks.append(("❌", "Git Status", status or "git status failed"))
    elif not status:
        checks.append(("⚠️ ", "Git Status", "No changes to commit"))
    else:
        checks.append(("✅", "Git Status", f"{len(status.splitlines())} file(s) changed"))

    if skip_tests:
        checks.append(("⏭️ ", "Tests", "Skipped"))
    else:
        framework = detect_test_framework(root)
        if framework is None:
            checks.append(("⚠️ ", "Tests", "No test framework detected"))
        else:
            code, _, result = await _run_suite(root, framework)
            if code == 0:
                checks.append(("✅", "Tests", f"All tests passed ({result.passed})"))
            else:
                checks.append(("❌", "Tests", f"{result.failed} test(s) failed" if result.failed else "Test run failed"))

    code, diff = await run_git(["diff", "--cached"], root, check=False)
    added = _added_lines(diff) if code == 0 else []
    if not added:
        checks.append(("⏭️ ", "Security", "No staged changes"))
    else:
        found = [p for p in SENSITIVE_PATTERNS if any(p in line for line in added)]
        if found:
            checks.append(("⚠️ ", "Security", f"Possible sensitive data detected: {', '.join(found)}"))
        else:
            checks.append(("✅", "Security", "No sensitive data detected"))

    lines = ["🔍 Pre-Push Validation Report", "=" * 60, ""]
    lines += [f"{status_icon} {name}: {details}" for status_icon, name, details in checks]
    lines.append("")
    if any(c[0] == "❌" for c in checks):
        lines += ["❌ VALIDATION FAILED - DO NOT PUSH", "Please fix the errors above before pushing."]
    elif any(c[0] == "⚠️ " for c in checks):
        lines += ["⚠️  VALIDATION PASSED WITH WARNINGS", "Review warnings before pushing."]
    else:
        lines += ["✅ VALIDATION PASSED - SAFE TO PUSH", "All checks passed successfully!"]
    return "\n".join(lines)
