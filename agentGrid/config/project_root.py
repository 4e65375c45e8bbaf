"""Project root path detection - works regardless of working directory."""

from __future__ import annotations

from pathlib import Path
from functools import lru_cache


@lru_cache(maxsize=1)
def get_project_root() -> Path:
    """Get absolute path to the directory containing the agentGrid package.

    Returns:
        Path: Absolute path to project root

    Example:
        >>> root = get_project_root()
        >>> agents_file = root / "agentGrid" / "config" / "agents.yaml"
    """
    # project_root.py -> config/ -> agentGrid/ -> project_root/
    project_root = Path(__file__).resolve().parent.parent.parent

    if not (project_root / "agentGrid").exists():
        raise RuntimeError(
            f"Could not locate project root. Expected 'agentGrid' directory at {project_root}"
        )

    return project_root


def resolve_project_path(relative_path: str | Path) -> Path:
    """Resolve a path relative to project root.

    Absolute paths are returned unchanged.

    Example:
        >>> resolve_project_path("agentGrid/config/mcp_servers.yaml")
    """
    path = Path(relative_path)
    if path.is_absolute():
        return path
    return get_project_root() / path


__all__ = ["get_project_root", "resolve_project_path"]
