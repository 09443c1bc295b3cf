"""Data models for git-worktree-sync."""

from .worktree import WorktreeRecord, WorktreeSnapshot, normalize_path

__all__ = ["WorktreeRecord", "WorktreeSnapshot", "normalize_path"]
