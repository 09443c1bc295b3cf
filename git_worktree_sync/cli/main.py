"""Command-line interface for git-worktree-sync"""

import asyncio
import os
import sys
from typing import List, Optional, Sequence

from rich.console import Console

from git_worktree_sync.cli.args import parse_args
from git_worktree_sync.config import Config
from git_worktree_sync.core import RepoRegistry, RepoWatcher
from git_worktree_sync.logging_config import setup_logging
from git_worktree_sync.services.display_service import DisplayService

console = Console()


async def track_paths(registry: RepoRegistry, paths: Sequence[str]) -> List[RepoWatcher]:
    """Track the repository behind every path; duplicates collapse to one watcher."""
    watchers: List[RepoWatcher] = []
    for path in paths:
        watcher = await registry.track_worktree(path)
        if watcher not in watchers:
            watchers.append(watcher)
    return watchers


async def run_list(registry: RepoRegistry, paths: Sequence[str], display: DisplayService) -> None:
    for watcher in await track_paths(registry, paths):
        display.display_snapshot(watcher.snapshot)


async def run_watch(
    registry: RepoRegistry,
    paths: Sequence[str],
    display: DisplayService,
    stop: Optional[asyncio.Event] = None,
) -> None:
    """Print every snapshot, then reprint a repository whenever it changes."""
    def on_changed(admin_dir: str) -> None:
        watcher = registry.get(admin_dir)
        if watcher is not None:
            display.display_snapshot(watcher.snapshot)

    registry.snapshot_changed.subscribe(on_changed)
    registry.sync_failed.subscribe(display.display_sync_failure)

    for watcher in await track_paths(registry, paths):
        display.display_snapshot(watcher.snapshot)

    console.print("[dim]Watching for worktree changes, press Ctrl-C to stop[/dim]")
    await (stop or asyncio.Event()).wait()


async def _run(args, config: Config, display: DisplayService) -> None:
    paths = args.paths or [os.getcwd()]
    async with RepoRegistry(config) as registry:
        if args.command == "watch":
            await run_watch(registry, paths, display)
        else:
            await run_list(registry, paths, display)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = None
    try:
        parsed_args = parse_args(argv)

        setup_logging(
            verbose=parsed_args.verbose, debug=parsed_args.debug, log_file=parsed_args.log_file
        )

        # Option dests are named after Config fields; the rest is filtered out
        config = Config.from_dict(vars(parsed_args))

        if parsed_args.debug:
            console.print("[yellow]Debug mode enabled[/yellow]")
            console.print("[yellow]Configuration:[/yellow]")
            for key, value in config.to_dict().items():
                console.print(f"  {key}: {value}")

        display = DisplayService(verbose=parsed_args.verbose, debug=parsed_args.debug)
        asyncio.run(_run(parsed_args, config, display))
        return 0
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/yellow]")
        return 1
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if parsed_args is not None and parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
