from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from ...exceptions import WorkspaceAccessError


class ExecutionContext(BaseModel):
    """Per-request values handed to every tool invocation. Never persisted.

    Attributes:
        workspace_root: Root directory tools operate in. Falls back to the working directory.
        current_file: File currently open in the client, if any.
        user_id: Optional user identifier.
        session_id: Conversation session the request belongs to.
    """

    workspace_root: Optional[str] = None
    current_file: Optional[str] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None

    @property
    def root(self) -> Path:
        return Path(self.workspace_root or Path.cwd()).resolve()

    def resolve_path(self, path: str = ".") -> Path:
        """Resolve a tool argument path and check it stays inside the workspace.

        Relative paths are taken relative to the workspace root.

        Raises:
            WorkspaceAccessError: If the resolved path escapes the workspace root.
        """
        root = self.root
        candidate = Path(path)
        target = (candidate if candidate.is_absolute() else root / candidate).resolve()
        try:
            target.relative_to(root)
        except ValueError:
            raise WorkspaceAccessError(f"Access denied. Path must be within workspace: {root}") from None
        return target
