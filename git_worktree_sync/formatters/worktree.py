"""Worktree row formatting utilities."""

from typing import Optional

from git_worktree_sync.constants import (
    LABEL_DETACHED,
    SHORT_SHA_LENGTH,
    SYMBOL_PRIMARY,
    WorktreeStyleType,
)
from git_worktree_sync.models.worktree import WorktreeRecord


def format_worktree_name(record: WorktreeRecord) -> str:
    """
    Format worktree name with the primary worktree marker.

    Args:
        record: Worktree record

    Returns:
        Directory name, followed by a marker for the primary worktree
    """
    if record.is_primary:
        return f"{record.name} {SYMBOL_PRIMARY}"
    return f"  └─ {record.name}"


def format_branch(record: WorktreeRecord) -> str:
    """
    Format the checked out branch.

    Args:
        record: Worktree record

    Returns:
        Short branch name, or a detached label
    """
    return record.branch_name or LABEL_DETACHED


def format_head(head_commit: Optional[str]) -> str:
    """Abbreviate a commit id for display."""
    if not head_commit:
        return ""
    return head_commit[:SHORT_SHA_LENGTH]


def _flag(label: str, reason: Optional[str]) -> str:
    return f"{label}: {reason}" if reason else label


def format_flags(record: WorktreeRecord) -> str:
    """
    Format locked/prunable state.

    Args:
        record: Worktree record

    Returns:
        Comma separated flags, with reasons when git gave one

    Example:
        "locked: on usb drive, prunable"
    """
    flags = []
    if record.is_locked:
        flags.append(_flag("locked", record.locked))
    if record.is_prunable:
        flags.append(_flag("prunable", record.prunable))
    return ", ".join(flags)


def get_worktree_style_type(record: WorktreeRecord) -> str:
    """Pick the row style; prunable wins over locked, which wins over primary."""
    if record.is_prunable:
        return WorktreeStyleType.PRUNABLE
    if record.is_locked:
        return WorktreeStyleType.LOCKED
    if record.is_primary:
        return WorktreeStyleType.PRIMARY
    return WorktreeStyleType.NORMAL
