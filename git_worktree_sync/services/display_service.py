"""Display service for worktree snapshots"""
from typing import Optional

from rich.console import Console
from rich.table import Table

from git_worktree_sync.constants import CLI_COLORS, COLUMNS
from git_worktree_sync.formatters import (
    format_branch,
    format_flags,
    format_head,
    format_worktree_name,
    get_worktree_style_type,
)
from git_worktree_sync.logging_config import get_logger
from git_worktree_sync.models.worktree import WorktreeSnapshot

console = Console()
logger = get_logger(__name__)


class DisplayService:
    def __init__(self, verbose: bool = False, debug: bool = False):
        self.verbose = verbose
        self.debug_mode = debug

    def display_snapshot(self, snapshot: WorktreeSnapshot, title: Optional[str] = None) -> None:
        """Display a table of the worktrees in a snapshot."""
        logger.debug(f"Displaying {len(snapshot)} worktree(s) for {snapshot.admin_dir}")
        table = Table(title=title or snapshot.admin_dir)

        for col in COLUMNS:
            table.add_column(col.label, min_width=col.width or None)

        # Mapping iteration follows tool order, bare entries excluded
        for record in snapshot.values():
            style_type = get_worktree_style_type(record)
            table.add_row(
                format_worktree_name(record),
                format_branch(record),
                format_head(record.head_commit),
                format_flags(record),
                record.path,
                style=CLI_COLORS.get(style_type),
            )

        console.print(table)

        if self.verbose:
            hidden = len(snapshot.records) - len(snapshot)
            console.print(f"Worktrees: {len(snapshot)} ({len(snapshot.linked)} linked)")
            if hidden:
                console.print(f"[dim]{hidden} bare entr{'y' if hidden == 1 else 'ies'} not shown[/dim]")

    def display_sync_failure(self, admin_dir: str, error: Exception) -> None:
        """Report a failed re-synchronization without dropping the previous view."""
        console.print(f"[yellow]Could not refresh {admin_dir}: {error}[/yellow]")
        console.print("[dim]Keeping the last known worktree list[/dim]")
