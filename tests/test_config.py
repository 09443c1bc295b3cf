"""Tests for Config validation"""
import pytest

from git_worktree_sync.config import Config
from git_worktree_sync.constants import WATCH_PATTERNS


class TestConfig:
    """Test configuration defaults and validation."""

    def test_defaults(self):
        config = Config()
        assert config.debounce_seconds == 0.05
        assert config.query_timeout == 30.0
        assert config.git_executable is None
        assert config.watch_patterns == list(WATCH_PATTERNS)

    def test_watch_patterns_not_shared(self):
        config = Config()
        config.watch_patterns.append("index")
        assert "index" not in Config().watch_patterns

    def test_negative_debounce(self):
        with pytest.raises(ValueError, match="debounce_seconds"):
            Config(debounce_seconds=-1)

    def test_zero_timeout(self):
        with pytest.raises(ValueError, match="query_timeout"):
            Config(query_timeout=0)

    def test_no_timeout_allowed(self):
        assert Config(query_timeout=None).query_timeout is None

    def test_empty_patterns(self):
        with pytest.raises(ValueError, match="watch_patterns"):
            Config(watch_patterns=[])

    def test_blank_git_executable_normalized(self):
        assert Config(git_executable="  ").git_executable is None

    def test_from_dict_ignores_unknown_keys(self):
        config = Config.from_dict({"debounce_seconds": 0.5, "theme": "dark"})
        assert config.debounce_seconds == 0.5
        assert not hasattr(config, "theme")

    def test_to_dict_round_trip(self):
        config = Config(debounce_seconds=0.2, git_executable="/usr/bin/git", verbose=True)
        assert Config.from_dict(config.to_dict()) == config
