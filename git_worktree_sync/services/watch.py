"""Filesystem watch over a repository's admin dir."""

from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Callable, List, Optional, Sequence

import pathspec
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from git_worktree_sync.exceptions import WatchRegistrationError
from git_worktree_sync.logging_config import get_logger

logger = get_logger(__name__)

LOCK_SUFFIX = ".lock"


@dataclass(frozen=True)
class MetadataEvent:
    """A change to a watched path, relative to the admin dir."""

    kind: str  # created, modified, deleted or moved
    path: str  # POSIX-style, relative to the admin dir
    is_directory: bool = False


MetadataCallback = Callable[[MetadataEvent], None]


def compile_patterns(patterns: Sequence[str]) -> pathspec.PathSpec:
    """Compile gitignore-style watch patterns, relative to the admin dir.

    Later patterns win, so a ``!`` entry can carve paths back out of an
    earlier directory match.
    """
    return pathspec.PathSpec.from_lines("gitwildmatch", patterns)


def _to_path(src_path) -> Path:
    """Convert watchdog src_path to Path, handling bytes case."""
    if isinstance(src_path, bytes):
        return Path(src_path.decode())
    return Path(src_path)


class MetadataEventHandler(FileSystemEventHandler):
    """Filters watchdog events down to the watch scope and forwards them."""

    def __init__(self, root: Path, patterns: Sequence[str], callback: MetadataCallback):
        self.root = root
        self.spec = compile_patterns(patterns)
        self.callback = callback

    def _relative(self, src_path) -> Optional[str]:
        try:
            return _to_path(src_path).relative_to(self.root).as_posix()
        except ValueError:
            return None

    def _in_scope(self, relative: Optional[str]) -> bool:
        if not relative or relative == ".":
            return False
        # git writes <name>.lock and renames it; only the rename is interesting
        if relative.endswith(LOCK_SUFFIX):
            return False
        return self.spec.match_file(relative)

    def _forward(self, kind: str, relative: str, is_directory: bool) -> None:
        logger.debug(f"Metadata {kind}: {relative}")
        self.callback(MetadataEvent(kind=kind, path=relative, is_directory=is_directory))

    def on_created(self, event: FileSystemEvent) -> None:
        relative = self._relative(event.src_path)
        if self._in_scope(relative):
            self._forward("created", relative, event.is_directory)

    def on_modified(self, event: FileSystemEvent) -> None:
        relative = self._relative(event.src_path)
        if self._in_scope(relative):
            self._forward("modified", relative, event.is_directory)

    def on_deleted(self, event: FileSystemEvent) -> None:
        relative = self._relative(event.src_path)
        if self._in_scope(relative):
            self._forward("deleted", relative, event.is_directory)

    def on_moved(self, event: FileSystemEvent) -> None:
        # A rename counts if either end is in scope (HEAD.lock -> HEAD)
        dest = self._relative(event.dest_path)
        if self._in_scope(dest):
            self._forward("moved", dest, event.is_directory)
            return
        src = self._relative(event.src_path)
        if self._in_scope(src):
            self._forward("deleted", src, event.is_directory)


class MetadataWatch:
    """A live watch registration; call ``stop()`` to release it."""

    def __init__(self, observer: BaseObserver, root: Path, stop_timeout: float = 5.0):
        self.observer = observer
        self.root = root
        self.stop_timeout = stop_timeout
        self._stopped = False
        self._lock = Lock()

    @property
    def is_active(self) -> bool:
        return not self._stopped

    def stop(self) -> None:
        """Release the watch. Safe to call more than once."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
        self.observer.stop()
        self.observer.join(self.stop_timeout)
        logger.debug(f"Stopped watching {self.root}")


WatchFactory = Callable[[Path, MetadataCallback, List[str]], MetadataWatch]


def start_metadata_watch(
    admin_dir: Path,
    callback: MetadataCallback,
    patterns: List[str],
    stop_timeout: float = 5.0,
) -> MetadataWatch:
    """Start watching ``admin_dir`` for changes matching ``patterns``.

    The admin dir is watched recursively, so paths that do not exist yet
    (a new ``worktrees/<name>`` directory) are reported once they appear.

    Args:
        admin_dir: Repository admin dir (must exist)
        callback: Called on the observer thread for every in-scope change
        patterns: Glob patterns relative to ``admin_dir``
        stop_timeout: Seconds to wait for the observer thread on ``stop()``

    Returns:
        The running MetadataWatch

    Raises:
        WatchRegistrationError: If the watch cannot be established
    """
    root = Path(admin_dir)
    if not root.is_dir():
        raise WatchRegistrationError(str(root), "admin dir does not exist")

    observer = Observer()
    handler = MetadataEventHandler(root, patterns, callback)
    try:
        observer.schedule(handler, str(root), recursive=True)
        observer.start()
    except OSError as e:
        # Permissions, inotify watch limits, path vanished meanwhile
        raise WatchRegistrationError(str(root), str(e)) from e

    logger.debug(f"Watching {root} for {len(patterns)} pattern(s)")
    return MetadataWatch(observer, root, stop_timeout=stop_timeout)
