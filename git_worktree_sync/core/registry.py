"""Registry of tracked repositories."""

import asyncio
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from git_worktree_sync.config import Config
from git_worktree_sync.core.repo_watcher import RepoWatcher
from git_worktree_sync.exceptions import InvalidPathError
from git_worktree_sync.logging_config import get_logger
from git_worktree_sync.services.git.repository import canonicalize, resolve_admin_dir
from git_worktree_sync.services.notifier import ChangeNotifier
from git_worktree_sync.services.watch import WatchFactory

logger = get_logger(__name__)

PathArg = Union[str, Path]


class RepoRegistry:
    """Owns the set of RepoWatcher instances, at most one per admin dir.

    Every watcher shares the registry's ``snapshot_changed`` and
    ``sync_failed`` notifiers, so a consumer subscribes once and is told
    which repository changed.

    Usage:
        async with RepoRegistry(config) as registry:
            watcher = await registry.track("/path/to/repo/.git")
            registry.snapshot_changed.subscribe(on_change)
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        query_factory: Optional[Callable[[str], object]] = None,
        watch_factory: Optional[WatchFactory] = None,
    ):
        """Initialize the registry.

        Args:
            config: Configuration handed to every watcher
            query_factory: Builds the query for an admin dir (default: WorktreeQuery)
            watch_factory: Establishes filesystem watches (default: watchdog)
        """
        self.config = config or Config()
        self.snapshot_changed = ChangeNotifier("snapshot_changed")
        self.sync_failed = ChangeNotifier("sync_failed")
        self._query_factory = query_factory
        self._watch_factory = watch_factory
        self._watchers: Dict[str, RepoWatcher] = {}
        self._starting: Dict[str, asyncio.Task] = {}

    async def __aenter__(self) -> "RepoRegistry":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def watchers(self) -> List[RepoWatcher]:
        """Tracked watchers in the order they were added."""
        return list(self._watchers.values())

    def __len__(self) -> int:
        return len(self._watchers)

    def __contains__(self, admin_dir: PathArg) -> bool:
        return str(canonicalize(admin_dir)) in self._watchers

    def get(self, admin_dir: PathArg) -> Optional[RepoWatcher]:
        return self._watchers.get(str(canonicalize(admin_dir)))

    async def track(self, admin_dir: PathArg) -> RepoWatcher:
        """Start tracking a repository if it is not already tracked.

        Concurrent calls for the same admin dir share one construction.

        Args:
            admin_dir: Repository admin dir, in any spelling that canonicalizes the same

        Returns:
            The (new or existing) RepoWatcher

        Raises:
            WatchRegistrationError, ExternalToolError, MalformedRecordError:
                If a new watcher could not be constructed
        """
        key = str(canonicalize(admin_dir))

        existing = self._watchers.get(key)
        if existing is not None:
            logger.debug(f"Skipping duplicate: {key}")
            return existing

        task = self._starting.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._start_watcher(key))
            self._starting[key] = task
        else:
            logger.debug(f"Joining in-progress tracking of {key}")

        # Shielded so one cancelled caller does not abort the shared construction
        return await asyncio.shield(task)

    async def _start_watcher(self, key: str) -> RepoWatcher:
        try:
            watcher = await RepoWatcher.create(
                key,
                self.config,
                snapshot_changed=self.snapshot_changed,
                sync_failed=self.sync_failed,
                query=self._query_factory(key) if self._query_factory else None,
                watch_factory=self._watch_factory,
            )
        except Exception as e:
            logger.error(f"Could not track {key}: {e}")
            raise
        finally:
            self._starting.pop(key, None)

        self._watchers[key] = watcher
        logger.info(f"Tracking {len(self._watchers)} repository(ies)")
        return watcher

    async def track_worktree(self, path: PathArg) -> RepoWatcher:
        """Track the repository that contains ``path`` (any checkout or admin dir).

        Raises:
            RepositoryNotFoundError: If ``path`` is not inside a git repository
        """
        loop = asyncio.get_running_loop()
        admin_dir = await loop.run_in_executor(None, resolve_admin_dir, path)
        return await self.track(admin_dir)

    async def untrack(self, admin_dir: PathArg) -> bool:
        """Dispose and forget a repository. Returns False if it was not tracked."""
        key = str(canonicalize(admin_dir))

        task = self._starting.get(key)
        if task is not None:
            # Let the construction settle so it cannot re-add itself afterwards
            await asyncio.gather(asyncio.shield(task), return_exceptions=True)

        watcher = self._watchers.pop(key, None)
        if watcher is None:
            return False
        await watcher.aclose()
        return True

    def find_by_path(self, path: PathArg) -> Optional[RepoWatcher]:
        """Find the watcher owning ``path``: an admin dir, a root, or any listed worktree.

        Returns None when no tracked repository owns the path.
        """
        key = str(canonicalize(path))
        watcher = self._watchers.get(key)
        if watcher is not None:
            return watcher
        for watcher in self._watchers.values():
            if watcher.owns(path):
                return watcher
        return None

    def lookup(self, path: PathArg) -> RepoWatcher:
        """Like ``find_by_path`` but raises InvalidPathError when nothing matches."""
        watcher = self.find_by_path(path)
        if watcher is None:
            raise InvalidPathError(str(path))
        return watcher

    async def close(self) -> None:
        """Dispose every watcher, including ones still being constructed."""
        starting = list(self._starting.values())
        if starting:
            await asyncio.gather(*(asyncio.shield(t) for t in starting), return_exceptions=True)

        watchers = list(self._watchers.values())
        self._watchers.clear()
        for watcher in watchers:
            await watcher.aclose()
        if watchers:
            logger.info(f"Stopped tracking {len(watchers)} repository(ies)")
