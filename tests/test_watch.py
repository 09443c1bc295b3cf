"""Tests for the admin dir filesystem watch"""
import threading

import pytest
from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from git_worktree_sync.constants import WATCH_PATTERNS
from git_worktree_sync.exceptions import WatchRegistrationError
from git_worktree_sync.services.watch import (
    MetadataEventHandler,
    compile_patterns,
    start_metadata_watch,
)


class TestPatternMatching:
    """Test gitignore-style matching of the watch scope."""

    @pytest.fixture(scope="class")
    def spec(self):
        return compile_patterns(WATCH_PATTERNS)

    @pytest.mark.parametrize("path", [
        "HEAD",
        "packed-refs",
        "refs/heads/main",
        "refs/heads/feat/login",
        "worktrees",
        "worktrees/feature",
        "worktrees/feature/HEAD",
        "worktrees/feature/gitdir",
        "worktrees/feature/locked",
        "worktrees/feature/prunable",
    ])
    def test_in_scope(self, spec, path):
        assert spec.match_file(path)

    @pytest.mark.parametrize("path", [
        "index",
        "objects/ab/cdef",
        "logs/HEAD",
        "logs/refs/heads/main",
        "refs/tags/v1",
        "refs/remotes/origin/main",
        "worktrees/feature/index",
        "worktrees/feature/ORIG_HEAD",
        "worktrees/feature/logs/HEAD",
    ])
    def test_out_of_scope(self, spec, path):
        assert not spec.match_file(path)

    def test_custom_patterns(self):
        spec = compile_patterns(["/config", "/hooks/**", "!/hooks/*.sample"])
        assert spec.match_file("config")
        assert spec.match_file("hooks/pre-commit")
        assert not spec.match_file("hooks/pre-commit.sample")
        assert not spec.match_file("worktrees/feature/config")


class TestMetadataEventHandler:
    """Test translation of watchdog events."""

    @pytest.fixture
    def received(self):
        return []

    @pytest.fixture
    def handler(self, temp_dir, received):
        return MetadataEventHandler(temp_dir, WATCH_PATTERNS, received.append)

    def test_modified_in_scope(self, handler, received, temp_dir):
        handler.on_modified(FileModifiedEvent(str(temp_dir / "HEAD")))
        assert [(e.kind, e.path) for e in received] == [("modified", "HEAD")]

    def test_out_of_scope_dropped(self, handler, received, temp_dir):
        handler.on_modified(FileModifiedEvent(str(temp_dir / "index")))
        handler.on_created(FileCreatedEvent(str(temp_dir / "objects" / "ab" / "cd")))
        assert received == []

    def test_lock_files_dropped(self, handler, received, temp_dir):
        handler.on_created(FileCreatedEvent(str(temp_dir / "refs" / "heads" / "main.lock")))
        assert received == []

    def test_rename_onto_watched_path(self, handler, received, temp_dir):
        """Test git's write-lock-then-rename is seen as a change to the target."""
        handler.on_moved(FileMovedEvent(str(temp_dir / "HEAD.lock"), str(temp_dir / "HEAD")))
        assert [(e.kind, e.path) for e in received] == [("moved", "HEAD")]

    def test_rename_away_counts_as_delete(self, handler, received, temp_dir):
        handler.on_moved(FileMovedEvent(
            str(temp_dir / "worktrees" / "old"), str(temp_dir / "trash" / "old")
        ))
        assert [(e.kind, e.path) for e in received] == [("deleted", "worktrees/old")]

    def test_directory_events(self, handler, received, temp_dir):
        handler.on_created(DirCreatedEvent(str(temp_dir / "worktrees" / "feature")))
        handler.on_deleted(DirDeletedEvent(str(temp_dir / "worktrees")))
        assert [(e.kind, e.path, e.is_directory) for e in received] == [
            ("created", "worktrees/feature", True),
            ("deleted", "worktrees", True),
        ]

    def test_bytes_paths(self, handler, received, temp_dir):
        handler.on_modified(FileModifiedEvent(str(temp_dir / "packed-refs").encode()))
        assert [e.path for e in received] == ["packed-refs"]

    def test_outside_root_ignored(self, handler, received, temp_dir):
        handler.on_modified(FileModifiedEvent("/somewhere/else/HEAD"))
        assert received == []


class TestStartMetadataWatch:
    """Test watch registration on the real filesystem."""

    def test_missing_admin_dir(self, temp_dir):
        with pytest.raises(WatchRegistrationError):
            start_metadata_watch(temp_dir / "missing", lambda event: None, WATCH_PATTERNS)

    def test_reports_directory_created_later(self, temp_dir):
        """Test a worktrees dir that does not exist at subscribe time is still watched."""
        seen = threading.Event()
        paths = []

        def callback(event):
            paths.append(event.path)
            if event.path == "worktrees/feature/gitdir":
                seen.set()

        watch = start_metadata_watch(temp_dir, callback, WATCH_PATTERNS)
        try:
            gitdir = temp_dir / "worktrees" / "feature" / "gitdir"
            gitdir.parent.mkdir(parents=True)
            gitdir.write_text("/elsewhere/feature/.git\n")
            assert seen.wait(10), f"no event for gitdir, saw {paths}"
        finally:
            watch.stop()

        assert not watch.is_active
        watch.stop()
