"""Command-line argument parsing for git-worktree-sync."""

import argparse
from pathlib import Path
from typing import Optional, Sequence

from git_worktree_sync.__version__ import __version__


def _add_paths(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "paths",
        nargs="*",
        metavar="PATH",
        help="Repository, worktree or admin dir (default: current directory)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-worktree-sync",
        description="Show the worktrees of git repositories and follow changes made by other tools",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument("--version", action="version", version=f"git-worktree-sync {__version__}")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument(
        "--debounce",
        dest="debounce_seconds",
        type=float,
        default=0.05,
        metavar="SECONDS",
        help="Wait this long after a change before asking git (default: 0.05)",
    )
    parser.add_argument(
        "--timeout",
        dest="query_timeout",
        type=float,
        default=30.0,
        metavar="SECONDS",
        help="Kill git if listing worktrees takes longer than this (default: 30)",
    )
    parser.add_argument(
        "--git",
        dest="git_executable",
        metavar="PATH",
        help="git executable to run (default: the one on PATH)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        metavar="PATH",
        help="Where --debug writes its log (default: ~/.git-worktree-sync/git-worktree-sync.log)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    list_parser = subparsers.add_parser("list", help="Print the worktrees of each repository and exit")
    _add_paths(list_parser)

    watch_parser = subparsers.add_parser(
        "watch", help="Print the worktrees and reprint them whenever they change"
    )
    _add_paths(watch_parser)

    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
