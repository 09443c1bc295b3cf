"""Per-repository worktree synchronization."""

import asyncio
from enum import Enum
from functools import partial
from pathlib import Path
from threading import Lock
from typing import Optional, Union

from git_worktree_sync.config import Config
from git_worktree_sync.constants import WORKTREES_DIR
from git_worktree_sync.exceptions import ExternalToolError, MalformedRecordError
from git_worktree_sync.logging_config import get_logger
from git_worktree_sync.models.worktree import WorktreeSnapshot
from git_worktree_sync.services.git.query import WorktreeQuery
from git_worktree_sync.services.git.repository import canonicalize, repository_root
from git_worktree_sync.services.notifier import ChangeNotifier
from git_worktree_sync.services.parser import parse_worktree_list
from git_worktree_sync.services.watch import (
    MetadataEvent,
    MetadataWatch,
    WatchFactory,
    start_metadata_watch,
)

logger = get_logger(__name__)


class WatcherState(Enum):
    """Lifecycle of a RepoWatcher."""
    INITIALIZING = "initializing"
    WATCHING = "watching"
    RESYNCING = "resyncing"
    DISPOSED = "disposed"


class RepoWatcher:
    """Keeps one repository's worktree snapshot in line with its metadata.

    Every relevant filesystem event triggers a re-synchronization: git is
    asked for the full worktree list, the output is parsed into a new
    snapshot and the snapshot is swapped in whole. Re-synchronizations are
    serialized through a single task. Events arriving while a query runs
    only set a pending flag, which is cleared when the next query starts,
    so any burst costs at most one follow-up query.

    Use ``await RepoWatcher.create(...)``; a watcher only exists once its
    first snapshot has been loaded.
    """

    def __init__(
        self,
        admin_dir: Union[str, Path],
        config: Optional[Config] = None,
        query=None,
        watch_factory: Optional[WatchFactory] = None,
        snapshot_changed: Optional[ChangeNotifier] = None,
        sync_failed: Optional[ChangeNotifier] = None,
    ):
        """Initialize the watcher without starting it.

        Args:
            admin_dir: Repository admin dir (canonicalized here)
            config: Configuration (defaults to Config())
            query: Object whose ``run()`` returns raw worktree list output
            watch_factory: Callable establishing the filesystem watch
            snapshot_changed: Notifier fired with the admin dir on change
            sync_failed: Notifier fired with (admin dir, error) on failure
        """
        self.config = config or Config()
        self.admin_dir = str(canonicalize(admin_dir))
        self.root_dir = str(repository_root(self.admin_dir))
        self.query = query or WorktreeQuery(
            self.admin_dir,
            git_executable=self.config.git_executable,
            timeout=self.config.query_timeout,
        )
        self._watch_factory = watch_factory or partial(
            start_metadata_watch, stop_timeout=self.config.stop_timeout
        )
        self.snapshot_changed = snapshot_changed or ChangeNotifier("snapshot_changed")
        self.sync_failed = sync_failed or ChangeNotifier("sync_failed")

        self._state = WatcherState.INITIALIZING
        self._snapshot: Optional[WorktreeSnapshot] = None
        self._watch: Optional[MetadataWatch] = None
        self._watch_lock = Lock()  # Orders watch registration against disposal
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._resync_task: Optional[asyncio.Task] = None
        self._pending = False

        self.last_error: Optional[Exception] = None
        self.sync_count = 0  # Queries issued, including failed ones

    @classmethod
    async def create(cls, admin_dir: Union[str, Path], config: Optional[Config] = None, **kwargs) -> "RepoWatcher":
        """Construct a watcher, register its watch and load the first snapshot.

        Raises:
            WatchRegistrationError: If the admin dir cannot be watched
            ExternalToolError: If the initial git query fails
            MalformedRecordError: If the initial output cannot be parsed
        """
        watcher = cls(admin_dir, config, **kwargs)
        await watcher._start()
        return watcher

    # -- state -----------------------------------------------------------

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def is_disposed(self) -> bool:
        return self._state is WatcherState.DISPOSED

    @property
    def snapshot(self) -> WorktreeSnapshot:
        """The current snapshot. Replaced on change, never mutated."""
        if self._snapshot is None:
            return WorktreeSnapshot.empty(self.admin_dir)
        return self._snapshot

    def owns(self, path: Union[str, Path]) -> bool:
        """Whether ``path`` is this repository's admin dir, root, or one of its worktrees."""
        canonical = str(canonicalize(path))
        if canonical in (self.admin_dir, self.root_dir):
            return True
        snapshot = self.snapshot
        return snapshot.find(str(path)) is not None or snapshot.find(canonical) is not None

    @property
    def is_busy(self) -> bool:
        """True while a re-synchronization is running or queued."""
        return self._pending or self._resync_running()

    def _resync_running(self) -> bool:
        return self._resync_task is not None and not self._resync_task.done()

    # -- lifecycle -------------------------------------------------------

    async def _start(self) -> None:
        self._loop = asyncio.get_running_loop()
        try:
            # Watch first so changes made during the initial query are not lost
            await self._loop.run_in_executor(None, self._register_watch)
            snapshot = await self._load_snapshot()
        except BaseException:
            # Also reached on cancellation while the executor is still registering;
            # _register_watch then sees DISPOSED and stops the watch itself
            watch = self._detach_watch()
            if watch is not None:
                watch.stop()
            raise

        self._snapshot = snapshot
        self._state = WatcherState.WATCHING
        logger.info(f"Now tracking {self.admin_dir} ({len(snapshot)} worktree(s))")

        if self._pending:
            self.request_resync()

    def _register_watch(self) -> None:
        """Runs in the executor; hands the watch over unless construction was abandoned."""
        watch = self._watch_factory(
            Path(self.admin_dir), self._on_metadata_event, list(self.config.watch_patterns)
        )
        with self._watch_lock:
            if not self.is_disposed:
                self._watch = watch
                return
        logger.debug(f"Construction of {self.admin_dir} abandoned, releasing its watch")
        watch.stop()

    def _detach_watch(self) -> Optional[MetadataWatch]:
        """Mark the watcher disposed and take its watch; the caller stops it."""
        with self._watch_lock:
            self._state = WatcherState.DISPOSED
            watch, self._watch = self._watch, None
        return watch

    def _shutdown(self) -> Optional[MetadataWatch]:
        if self.is_disposed:
            return None
        watch = self._detach_watch()
        self._pending = False
        if self._resync_running():
            self._resync_task.cancel()
        logger.info(f"Stopped tracking {self.admin_dir}")
        return watch

    def dispose(self) -> None:
        """Stop watching. Pending follow-ups are cancelled and in-flight results dropped.

        Blocks while the observer thread is joined; prefer ``aclose()`` on the loop.
        """
        watch = self._shutdown()
        if watch is not None:
            watch.stop()

    async def aclose(self) -> None:
        """Dispose without blocking the loop, then wait for the resync task to unwind."""
        task = self._resync_task
        watch = self._shutdown()
        if watch is not None:
            await asyncio.get_running_loop().run_in_executor(None, watch.stop)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    # -- events ----------------------------------------------------------

    def _on_metadata_event(self, event: MetadataEvent) -> None:
        """Called on the observer thread; hops onto the event loop."""
        if self.is_disposed or self._loop is None:
            return
        try:
            self._loop.call_soon_threadsafe(self._handle_event, event)
        except RuntimeError:
            # Loop already closed; the watch is about to be released
            logger.debug(f"Dropped {event.kind} {event.path}: event loop closed")

    def _handle_event(self, event: MetadataEvent) -> None:
        if self.is_disposed:
            return
        if event.kind == "deleted" and event.path == WORKTREES_DIR:
            self._apply_worktrees_removed()
        self.request_resync()

    def _apply_worktrees_removed(self) -> None:
        """All linked worktree metadata is gone; drop linked entries right away.

        The follow-up re-synchronization still runs and confirms the result.
        Skipped while a query is in flight, whose result would be older.
        """
        if self._snapshot is None or self._resync_running():
            return
        logger.info(f"All linked worktrees removed for {self.admin_dir}")
        self._swap(self._snapshot.without_linked())

    # -- re-synchronization ---------------------------------------------

    def request_resync(self) -> None:
        """Schedule a re-synchronization, coalescing with one already running."""
        if self.is_disposed:
            return
        self._pending = True
        if self._state is WatcherState.INITIALIZING or self._resync_running():
            return
        self._resync_task = self._loop.create_task(self._resync_loop())

    async def resync_now(self) -> WorktreeSnapshot:
        """Request a re-synchronization and wait until it has finished."""
        self.request_resync()
        task = self._resync_task
        if task is not None:
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not self.is_disposed:
                    raise
        return self.snapshot

    async def _resync_loop(self) -> None:
        while self._pending and not self.is_disposed:
            if self.config.debounce_seconds:
                await asyncio.sleep(self.config.debounce_seconds)
            # Everything that arrived up to here is covered by this query
            self._pending = False
            await self._resync_once()

    async def _resync_once(self) -> None:
        self._state = WatcherState.RESYNCING
        try:
            snapshot = await self._load_snapshot()
        except (ExternalToolError, MalformedRecordError) as e:
            logger.warning(f"Re-synchronization of {self.admin_dir} failed, keeping previous snapshot: {e}")
            self._sync_failed(e)
            return
        except Exception as e:
            logger.exception(f"Unexpected error re-synchronizing {self.admin_dir}")
            self._sync_failed(e)
            return

        if self.is_disposed:
            logger.debug(f"Discarding result for disposed watcher {self.admin_dir}")
            return
        self.last_error = None
        self._state = WatcherState.WATCHING
        self._swap(snapshot)

    def _sync_failed(self, error: Exception) -> None:
        if self.is_disposed:
            return
        self.last_error = error
        self._state = WatcherState.WATCHING
        self.sync_failed.fire(self.admin_dir, error)

    async def _load_snapshot(self) -> WorktreeSnapshot:
        self.sync_count += 1
        raw = await self._loop.run_in_executor(None, self.query.run)
        records = parse_worktree_list(raw)
        return WorktreeSnapshot(admin_dir=self.admin_dir, records=tuple(records))

    def _swap(self, snapshot: WorktreeSnapshot) -> None:
        previous = self._snapshot
        if snapshot == previous:
            logger.debug(f"Worktrees unchanged for {self.admin_dir}")
            return
        self._snapshot = snapshot
        logger.info(
            f"Worktrees changed for {self.admin_dir}: "
            f"{len(previous) if previous is not None else 0} -> {len(snapshot)}"
        )
        self.snapshot_changed.fire(self.admin_dir)

    def __repr__(self) -> str:
        return f"RepoWatcher({self.admin_dir!r}, state={self._state.value})"
