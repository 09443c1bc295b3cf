"""Worktree synchronization engine."""

from .repo_watcher import RepoWatcher, WatcherState
from .registry import RepoRegistry

__all__ = ["RepoRegistry", "RepoWatcher", "WatcherState"]
