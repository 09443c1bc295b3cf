"""Tests for RepoRegistry"""
import asyncio
import threading

import pytest

from git_worktree_sync.core.registry import RepoRegistry
from git_worktree_sync.exceptions import ExternalToolError, InvalidPathError, WatchRegistrationError

from tests.fakes import PRIMARY_ONLY, WITH_FEATURE, FakeQuery, wait_idle, wait_until


class QueryBook:
    """Hands out one FakeQuery per admin dir and remembers them."""

    def __init__(self, output: str = PRIMARY_ONLY):
        self.output = output
        self.queries = {}

    def __call__(self, admin_dir: str) -> FakeQuery:
        query = self.queries.get(admin_dir)
        if query is None:
            query = self.queries[admin_dir] = FakeQuery(self.output)
        return query


@pytest.fixture
def queries():
    return QueryBook(WITH_FEATURE)


@pytest.fixture
def registry(fast_config, queries, watch_factory):
    return RepoRegistry(fast_config, query_factory=queries, watch_factory=watch_factory)


class TestTracking:
    """Test adding repositories."""

    def test_track_returns_ready_watcher(self, registry, admin_dir, watch_factory):
        async def scenario():
            watcher = await registry.track(admin_dir)
            assert list(watcher.snapshot) == ["/repo", "/repo-feature"]
            assert registry.get(admin_dir) is watcher
            assert admin_dir in registry
            assert len(registry) == 1
            await registry.close()

        asyncio.run(scenario())

    def test_alternate_spellings_deduplicated(self, registry, admin_dir, queries, watch_factory):
        """Test one watcher and one query per canonical admin dir."""
        async def scenario():
            first = await registry.track(admin_dir)
            second = await registry.track(str(admin_dir) + "/")
            third = await registry.track(admin_dir.parent / ".." / "repo" / ".git")
            assert first is second is third
            assert len(registry) == 1
            assert len(watch_factory.watches) == 1
            assert queries.queries[str(admin_dir)].calls == 1
            await registry.close()

        asyncio.run(scenario())

    def test_concurrent_track_shares_construction(self, registry, admin_dir, queries, watch_factory):
        async def scenario():
            query = queries(str(admin_dir))
            query.gate = threading.Event()

            first = asyncio.ensure_future(registry.track(admin_dir))
            await wait_until(query.started.is_set)
            second = asyncio.ensure_future(registry.track(admin_dir))
            await asyncio.sleep(0.02)
            query.gate.set()

            a, b = await asyncio.gather(first, second)
            assert a is b
            assert len(watch_factory.watches) == 1
            assert query.calls == 1
            await registry.close()

        asyncio.run(scenario())

    def test_failed_track_leaves_nothing_behind(self, registry, admin_dir, queries, watch_factory):
        async def scenario():
            queries(str(admin_dir)).error = ExternalToolError("worktree list", "fatal: not a git repository")
            with pytest.raises(ExternalToolError):
                await registry.track(admin_dir)
            assert admin_dir not in registry
            assert watch_factory.watches[0].stopped

            # A later attempt starts from scratch
            queries(str(admin_dir)).error = None
            watcher = await registry.track(admin_dir)
            assert len(watcher.snapshot) == 2
            await registry.close()

        asyncio.run(scenario())

    def test_watch_failure_propagates(self, registry, admin_dir, watch_factory):
        async def scenario():
            watch_factory.error = WatchRegistrationError(str(admin_dir), "no such directory")
            with pytest.raises(WatchRegistrationError):
                await registry.track(admin_dir)
            assert len(registry) == 0

        asyncio.run(scenario())


class TestLookup:
    """Test resolving paths to watchers."""

    def test_find_by_admin_root_and_worktree(self, registry, admin_dir):
        async def scenario():
            watcher = await registry.track(admin_dir)
            assert registry.find_by_path(admin_dir) is watcher
            assert registry.find_by_path(admin_dir.parent) is watcher
            assert registry.find_by_path("/repo-feature") is watcher
            assert registry.find_by_path("/repo-feature/") is watcher
            assert registry.find_by_path("/unrelated") is None
            await registry.close()

        asyncio.run(scenario())

    def test_lookup_raises_for_unknown_path(self, registry, admin_dir):
        async def scenario():
            await registry.track(admin_dir)
            with pytest.raises(InvalidPathError) as exc_info:
                registry.lookup("/unrelated")
            assert exc_info.value.path == "/unrelated"
            await registry.close()

        asyncio.run(scenario())

    def test_find_picks_the_right_repository(self, registry, temp_dir, queries):
        async def scenario():
            one = temp_dir / "one" / ".git"
            two = temp_dir / "two" / ".git"
            queries(str(two)).output = (
                "worktree /two\0HEAD " + "c" * 40 + "\0detached\0\0"
                "worktree /two-hotfix\0HEAD " + "d" * 40 + "\0branch refs/heads/hotfix\0\0"
            )
            first = await registry.track(one)
            second = await registry.track(two)
            assert registry.find_by_path("/two-hotfix") is second
            assert registry.find_by_path("/repo-feature") is first
            assert registry.watchers == [first, second]
            await registry.close()

        asyncio.run(scenario())


class TestUntrackAndClose:
    """Test removal and shutdown."""

    def test_untrack(self, registry, admin_dir, watch_factory):
        async def scenario():
            watcher = await registry.track(admin_dir)
            assert await registry.untrack(admin_dir) is True
            assert watcher.is_disposed
            assert watch_factory.watches[0].stopped
            assert admin_dir not in registry
            assert await registry.untrack(admin_dir) is False

        asyncio.run(scenario())

    def test_close_disposes_everything(self, registry, temp_dir, watch_factory):
        async def scenario():
            async with registry:
                await registry.track(temp_dir / "one" / ".git")
                await registry.track(temp_dir / "two" / ".git")
            assert len(registry) == 0
            assert all(watch.stopped for watch in watch_factory.watches)

        asyncio.run(scenario())


class TestNotifications:
    """Test shared notifiers and per-repository failure isolation."""

    def test_change_reports_admin_dir(self, registry, admin_dir, queries, watch_factory):
        async def scenario():
            changes = []
            registry.snapshot_changed.subscribe(changes.append)
            watcher = await registry.track(admin_dir)

            queries(str(admin_dir)).output = PRIMARY_ONLY
            watch_factory.watches[0].emit("deleted", "worktrees/feature", is_directory=True)
            await wait_idle(watcher)

            assert changes == [str(admin_dir)]
            await registry.close()

        asyncio.run(scenario())

    def test_failure_isolated_to_one_repository(self, registry, temp_dir, queries, watch_factory):
        """Test one repository failing leaves the other's snapshot and events alone."""
        async def scenario():
            one = temp_dir / "one" / ".git"
            two = temp_dir / "two" / ".git"
            failures = []
            changes = []
            registry.sync_failed.subscribe(lambda admin, error: failures.append(admin))
            registry.snapshot_changed.subscribe(changes.append)

            first = await registry.track(one)
            second = await registry.track(two)

            queries(str(one)).error = ExternalToolError("worktree list", "fatal: not a git repository", status=128)
            queries(str(two)).output = PRIMARY_ONLY
            for watch in watch_factory.watches:
                watch.emit("modified", "HEAD")
            await wait_idle(first)
            await wait_idle(second)

            assert failures == [str(one)]
            assert changes == [str(two)]
            assert len(first.snapshot) == 2
            assert len(second.snapshot) == 1
            assert isinstance(first.last_error, ExternalToolError)
            await registry.close()

        asyncio.run(scenario())
