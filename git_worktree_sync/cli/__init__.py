"""Command-line interface for git-worktree-sync."""

from .args import parse_args
from .main import main

__all__ = ["main", "parse_args"]
