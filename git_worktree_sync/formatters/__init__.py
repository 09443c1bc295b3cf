"""Formatting utilities for git-worktree-sync."""

from .worktree import (
    format_worktree_name,
    format_branch,
    format_head,
    format_flags,
    get_worktree_style_type,
)

__all__ = [
    "format_worktree_name",
    "format_branch",
    "format_head",
    "format_flags",
    "get_worktree_style_type",
]
