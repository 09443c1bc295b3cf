"""Pytest fixtures for git-worktree-sync tests"""
import tempfile
from pathlib import Path

import git
import pytest

from git_worktree_sync.config import Config
from tests.fakes import FakeQuery, FakeWatchFactory


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def admin_dir(temp_dir):
    """Admin dir path for tests with fake collaborators (nothing on disk)."""
    return temp_dir / "repo" / ".git"


@pytest.fixture
def fast_config():
    """Configuration without debounce so tests control timing."""
    return Config(debounce_seconds=0, query_timeout=10)


@pytest.fixture
def fake_query():
    return FakeQuery()


@pytest.fixture
def watch_factory():
    return FakeWatchFactory()


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository for testing."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    # Initialize repository
    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    # Create initial commit on main branch
    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Rename master to main if needed
    try:
        repo.git.branch('-M', 'main')
    except Exception:
        pass

    yield repo

    # Cleanup
    repo.close()


@pytest.fixture
def git_repo_with_worktree(git_repo, temp_dir):
    """Real repository with one linked worktree on branch `feature`."""
    worktree_path = temp_dir / "test_repo-feature"
    git_repo.git.worktree("add", "-b", "feature", str(worktree_path))
    yield git_repo, worktree_path
