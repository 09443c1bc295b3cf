"""Services for git-worktree-sync.

This package provides the building blocks the watcher is assembled from:
- parser: porcelain worktree list parsing
- git: the git query and repository identity helpers
- watch: filesystem watch over an admin dir
- notifier: change broadcast channel
"""
