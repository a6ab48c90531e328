"""Log file analysis: error/warning extraction, recurring patterns and recommendations."""

import json
import re
from collections import Counter
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ..llm_core import ExecutionContext, ToolExecutionError, get_logger

logger = get_logger(__name__)

MAX_ENTRIES = 50
TOP_PATTERNS = 10

_BRACKETED = re.compile(r"^\[([^\]]+)\]\s*\[?([A-Za-z]+)\]?:?\s*(.*)$")
_LEVEL = re.compile(r"\b(ERROR|WARN(?:ING)?|INFO|DEBUG|FATAL|CRITICAL)\b", re.IGNORECASE)
_ERROR_CLASS = re.compile(r"(\w+(?:Error|Exception)):")

_NORMALIZERS = [
    (re.compile(r"\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:\.\d+)?"), "<TIMESTAMP>"),
    (re.compile(r"\b[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\b", re.IGNORECASE), "<UUID>"),
    (re.compile(r"\b0x[0-9a-f]+\b", re.IGNORECASE), "<HEX>"),
    (re.compile(r"\b\d+\b"), "<NUM>"),
]


class LogEntry(BaseModel):
    timestamp: Optional[str] = None
    level: str = "info"
    message: str
    context: Optional[Dict[str, Any]] = None


class LogPattern(BaseModel):
    pattern: str
    occurrences: int
    severity: Literal["high", "medium", "low"]
    description: str


class LogAnalysisResult(BaseModel):
    summary: str
    errors: List[LogEntry]
    warnings: List[LogEntry]
    patterns: List[LogPattern]
    recommendations: List[str]


def parse_log_line(line: str) -> LogEntry:
    """Parse a JSON, ``[timestamp] [LEVEL] message`` or free-text log line."""
    stripped = line.strip()
    if stripped.startswith("{"):
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict):
            timestamp = data.get("timestamp") or data.get("time") or data.get("date")
            return LogEntry(
                timestamp=str(timestamp) if timestamp is not None else None,
                level=str(data.get("level") or data.get("severity") or "info"),
                message=str(data.get("message") or data.get("msg") or stripped),
                context=data,
            )

    match = _BRACKETED.match(stripped)
    if match:
        return LogEntry(timestamp=match.group(1), level=match.group(2), message=match.group(3))

    level = _LEVEL.search(stripped)
    return LogEntry(level=level.group(1) if level else "info", message=stripped)


def extract_error_type(message: str) -> str:
    match = _ERROR_CLASS.search(message)
    if match:
        return match.group(1)

    lowered = message.lower()
    for keyword, error_type in (
        ("connection", "ConnectionError"),
        ("timeout", "TimeoutError"),
        ("authentication", "AuthenticationError"),
        ("not found", "NotFoundError"),
        ("permission", "PermissionError"),
    ):
        if keyword in lowered:
            return error_type
    return "GenericError"


def extract_pattern(message: str) -> Optional[str]:
    """Replace variable parts of ``message``. Returns None if nothing was variable."""
    pattern = message
    for regex, placeholder in _NORMALIZERS:
        pattern = regex.sub(placeholder, pattern)
    return pattern if pattern != message else None


def _severity(occurrences: int) -> Literal["high", "medium", "low"]:
    if occurrences > 100:
        return "high"
    if occurrences > 10:
        return "medium"
    return "low"


def _is_error(level: str) -> bool:
    level = level.lower()
    return "err" in level or level in ("fatal", "critical")


def _matches_severity(level: str, severity: str) -> bool:
    if severity.lower() == "error":
        return _is_error(level)
    return level.startswith(severity.lower()[:4])


def _recommendations(errors: List[LogEntry], warnings: List[LogEntry]) -> List[str]:
    recommendations: List[str] = []

    if errors:
        recommendations.append(f"Found {len(errors)} error(s). Review and fix critical errors first.")
        messages = [e.message.lower() for e in errors]
        if any("connection" in m or "econnrefused" in m for m in messages):
            recommendations.append(
                "Multiple connection errors detected. Check service availability and network configuration."
            )
        if any("timeout" in m or "timed out" in m for m in messages):
            recommendations.append(
                "Timeout errors detected. Consider increasing timeout values or optimizing slow operations."
            )
        if any("authentication" in m or "unauthorized" in m or "forbidden" in m for m in messages):
            recommendations.append("Authentication/authorization errors found. Verify credentials and permissions.")

    if warnings:
        recommendations.append(f"{len(warnings)} warning(s) detected. Address warnings to prevent future issues.")

    if len(errors[-10:]) >= 5:
        recommendations.append("Recent error spike detected. This may indicate an ongoing incident.")

    if not recommendations:
        recommendations.append("No critical issues found. Logs appear healthy.")
    return recommendations


def analyze_log_text(text: str, severity: Optional[str] = None) -> LogAnalysisResult:
    """Analyze log ``text``, optionally keeping only lines of one severity."""
    lines = [line for line in text.splitlines() if line.strip()]
    errors: List[LogEntry] = []
    warnings: List[LogEntry] = []
    patterns: Counter = Counter()

    for line in lines:
        entry = parse_log_line(line)
        level = entry.level.lower()
        if severity and not _matches_severity(level, severity):
            continue

        if _is_error(level):
            errors.append(entry)
            patterns[extract_error_type(entry.message)] += 1
        elif "warn" in level:
            warnings.append(entry)

        pattern = extract_pattern(entry.message)
        if pattern:
            patterns[pattern] += 1

    top = [
        LogPattern(
            pattern=pattern,
            occurrences=count,
            severity=_severity(count),
            description=f"Pattern occurs {count} time(s) in the log file",
        )
        for pattern, count in patterns.most_common(TOP_PATTERNS)
    ]

    return LogAnalysisResult(
        summary=(
            f"Analyzed {len(lines)} log lines. Found {len(errors)} errors, {len(warnings)} warnings. "
            f"Identified {len(top)} significant patterns."
        ),
        errors=errors[:MAX_ENTRIES],
        warnings=warnings[:MAX_ENTRIES],
        patterns=top,
        recommendations=_recommendations(errors, warnings),
    )


def analyze_logs(
    log_file_path: Annotated[str, Field(description="Path to the log file to analyze")],
    context: ExecutionContext,
    severity: Annotated[
        Optional[Literal["error", "warning", "info", "debug"]],
        Field(description="Filter by severity level: error, warning, info, debug"),
    ] = None,
) -> Dict[str, Any]:
    """Analyze application logs to identify errors, warnings, patterns, and anomalies. Provides insights and recommendations for debugging."""
    path = context.resolve_path(log_file_path)
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise ToolExecutionError(f"Failed to analyze logs: {exc}") from exc

    result = analyze_log_text(text, severity)
    logger.info(
        f"Log analysis completed for {log_file_path}: {len(result.errors)} errors, {len(result.warnings)} warnings"
    )
    return result.model_dump(exclude_none=True)
