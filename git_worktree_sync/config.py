"""Configuration handling for git-worktree-sync"""

from dataclasses import dataclass, field
from typing import Optional, List

from git_worktree_sync.constants import WATCH_PATTERNS


@dataclass
class Config:
    """Configuration for git-worktree-sync with validation."""

    # Re-synchronization
    debounce_seconds: float = 0.05  # Delay before each query to collapse event bursts
    query_timeout: Optional[float] = 30.0  # None = wait forever for git
    git_executable: Optional[str] = None  # None = let GitPython locate git

    # Filesystem watch
    watch_patterns: List[str] = field(default_factory=lambda: list(WATCH_PATTERNS))
    stop_timeout: float = 5.0  # Seconds to wait for the observer thread on release

    # Output
    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_debounce()
        self._validate_query_timeout()
        self._validate_git_executable()
        self._validate_watch_patterns()
        self._validate_stop_timeout()

    def _validate_debounce(self):
        """Validate debounce_seconds is not negative."""
        if self.debounce_seconds < 0:
            raise ValueError(f"debounce_seconds must not be negative, got {self.debounce_seconds}")

    def _validate_query_timeout(self):
        """Validate query_timeout is positive when set."""
        if self.query_timeout is not None and self.query_timeout <= 0:
            raise ValueError(f"query_timeout must be positive, got {self.query_timeout}")

    def _validate_git_executable(self):
        """Normalize an empty git_executable to None."""
        if self.git_executable is not None and not self.git_executable.strip():
            self.git_executable = None

    def _validate_watch_patterns(self):
        """Validate watch_patterns is a non-empty list."""
        if not isinstance(self.watch_patterns, list):
            raise ValueError("watch_patterns must be a list")
        if not self.watch_patterns:
            raise ValueError("watch_patterns cannot be empty")

    def _validate_stop_timeout(self):
        """Validate stop_timeout is positive."""
        if self.stop_timeout <= 0:
            raise ValueError(f"stop_timeout must be positive, got {self.stop_timeout}")

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "debounce_seconds": self.debounce_seconds,
            "query_timeout": self.query_timeout,
            "git_executable": self.git_executable,
            "watch_patterns": self.watch_patterns,
            "stop_timeout": self.stop_timeout,
            "verbose": self.verbose,
            "debug": self.debug,
        }

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary."""
        # Extract only known fields
        known_fields = {
            "debounce_seconds",
            "query_timeout",
            "git_executable",
            "watch_patterns",
            "stop_timeout",
            "verbose",
            "debug",
        }

        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)
