"""
Path Utils
==========
Display helpers for analyzer-reported paths.
"""
import os


def short_path(file_path: str) -> str:
    """Return the last path component, used for compact terminal display."""
    normalized = file_path.replace("\\", "/")
    return normalized.rsplit("/", 1)[-1] or normalized


def resolve_target(project_root: str, target: str) -> str:
    """Resolve a CLI target path against the project root."""
    return os.path.abspath(os.path.join(project_root, target))
