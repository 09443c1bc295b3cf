"""Shared constants for git-worktree-sync."""

from dataclasses import dataclass
from typing import List


# git worktree list output framing (-z)
RECORD_SEPARATOR = "\0\0"
FIELD_SEPARATOR = "\0"

WORKTREE_LIST_ARGS = ("list", "--porcelain", "-z")

# Porcelain keywords
FIELD_WORKTREE = "worktree"
FIELD_HEAD = "head"
FIELD_BRANCH = "branch"
FIELD_BARE = "bare"
FIELD_LOCKED = "locked"
FIELD_PRUNABLE = "prunable"

BRANCH_REF_PREFIX = "refs/heads/"

# Name of the linked-worktree metadata container inside the admin dir
WORKTREES_DIR = "worktrees"

# gitignore-style patterns relative to the admin dir whose changes can alter
# the worktree list. Each match also covers everything below it, so the
# negation keeps per-worktree files other than the listed ones out of scope.
WATCH_PATTERNS: List[str] = [
    "/HEAD",
    "/packed-refs",
    "/refs/heads/**",
    f"/{WORKTREES_DIR}",
    f"!/{WORKTREES_DIR}/*/*",
    f"/{WORKTREES_DIR}/*/HEAD",
    f"/{WORKTREES_DIR}/*/gitdir",
    f"/{WORKTREES_DIR}/*/locked",
    f"/{WORKTREES_DIR}/*/prunable",
]


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("name", "Worktree", 20),
    ColumnDefinition("branch", "Branch", 24),
    ColumnDefinition("head", "HEAD", 10),
    ColumnDefinition("flags", "Flags", 16),
    ColumnDefinition("path", "Path", 0),
]

SHORT_SHA_LENGTH = 8

SYMBOL_PRIMARY = "*"
LABEL_DETACHED = "(detached)"


# Color/style constants for CLI rows
class WorktreeStyleType:
    """Style types for worktree rows."""

    PRIMARY = "primary"
    LOCKED = "locked"
    PRUNABLE = "prunable"
    NORMAL = "normal"


CLI_COLORS = {
    WorktreeStyleType.PRIMARY: "cyan",
    WorktreeStyleType.LOCKED: "yellow",
    WorktreeStyleType.PRUNABLE: "red",
    WorktreeStyleType.NORMAL: None,
}
