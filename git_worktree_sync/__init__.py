"""
git-worktree-sync - A live model of a git repository's worktrees
"""

from .__version__ import __version__
from .core import RepoRegistry, RepoWatcher
from .models.worktree import WorktreeRecord, WorktreeSnapshot

__all__ = ["RepoRegistry", "RepoWatcher", "WorktreeRecord", "WorktreeSnapshot", "__version__"]
