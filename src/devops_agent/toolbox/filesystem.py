"""Workspace file tools: read, write, list and search."""

import fnmatch
import os
from pathlib import Path
from typing import Annotated, List, Optional

from pydantic import Field

from ..llm_core import ExecutionContext, ToolExecutionError, get_logger

logger = get_logger(__name__)

SKIPPED_DIRECTORIES = frozenset({"node_modules", "__pycache__"})


def read_file(
    file_path: Annotated[str, Field(description="The path to the file to read (relative to workspace root)")],
    context: ExecutionContext,
) -> str:
    """Read the contents of a file from the workspace"""
    path = context.resolve_path(file_path)
    if not path.exists():
        raise ToolExecutionError(f"File not found: {file_path}")
    if not path.is_file():
        raise ToolExecutionError(f"{file_path} is not a file")

    content = path.read_text(encoding="utf-8")
    return f"File: {file_path}\n\nContent:\n{content}"


def write_file(
    file_path: Annotated[str, Field(description="The path to the file to write (relative to workspace root)")],
    content: Annotated[str, Field(description="The content to write to the file")],
    context: ExecutionContext,
) -> str:
    """Write content to a file in the workspace. Overwrites existing content."""
    path = context.resolve_path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info(f"Wrote {len(content)} characters to {path}")
    return f"✅ Successfully wrote to file: {file_path}"


def list_files(
    context: ExecutionContext,
    directory: Annotated[
        Optional[str], Field(description="The directory path to list (relative to workspace root, default is root)")
    ] = None,
) -> str:
    """List files and directories in a workspace directory"""
    directory = directory or "."
    path = context.resolve_path(directory)
    if not path.exists():
        raise ToolExecutionError(f"Directory not found: {directory}")
    if not path.is_dir():
        raise ToolExecutionError(f"{directory} is not a directory")

    dirs: List[str] = []
    files: List[str] = []
    for entry in sorted(path.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            dirs.append(entry.name + "/")
        else:
            files.append(entry.name)

    return (
        f"Directory: {directory}\n\n"
        f"Directories ({len(dirs)}):\n{chr(10).join(dirs) or 'None'}\n\n"
        f"Files ({len(files)}):\n{chr(10).join(files) or 'None'}"
    )


def _search(start: Path, pattern: str, root: Path) -> List[str]:
    pattern = pattern.lower()
    matches: List[str] = []
    for current, dirnames, filenames in os.walk(start):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in SKIPPED_DIRECTORIES)
        for filename in sorted(filenames):
            if fnmatch.fnmatchcase(filename.lower(), pattern):
                matches.append(str((Path(current) / filename).relative_to(root)))
    return matches


def search_files(
    pattern: Annotated[str, Field(description='File name pattern to search for (e.g., "*.js", "package.json")')],
    context: ExecutionContext,
    directory: Annotated[Optional[str], Field(description="Directory to search in (default is workspace root)")] = None,
) -> str:
    """Search for files by name pattern in the workspace"""
    start = context.resolve_path(directory or ".")
    if not start.is_dir():
        raise ToolExecutionError(f"Directory not found: {directory}")

    results = _search(start, pattern, context.root)
    if not results:
        return f"No files found matching pattern: {pattern}"
    return f'Found {len(results)} file(s) matching "{pattern}":\n\n' + "\n".join(results)
