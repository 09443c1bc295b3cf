"""Git-related services for git-worktree-sync."""

from .query import WorktreeQuery
from .repository import canonicalize, repository_root, resolve_admin_dir

__all__ = [
    "WorktreeQuery",
    "canonicalize",
    "repository_root",
    "resolve_admin_dir",
]
