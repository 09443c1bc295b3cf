"""Custom exceptions for git-worktree-sync"""

from typing import Optional


class WorktreeSyncError(Exception):
    """Base exception for all git-worktree-sync errors."""
    pass


class ExternalToolError(WorktreeSyncError):
    """Exception raised when the external git invocation fails.

    Covers both a non-zero exit status and a failure to spawn the process at all.
    """

    def __init__(
        self,
        operation: str,
        message: Optional[str] = None,
        status: Optional[int] = None,
        stderr: Optional[str] = None,
    ):
        self.operation = operation
        self.message = message
        self.status = status
        self.stderr = stderr

        error_msg = f"Git operation '{operation}' failed"
        if status is not None:
            error_msg += f" (exit {status})"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class MalformedRecordError(WorktreeSyncError):
    """Exception raised when worktree list output cannot be parsed."""

    def __init__(self, chunk: str, reason: str):
        self.chunk = chunk
        self.reason = reason
        # Null bytes make log lines unreadable
        printable = chunk.replace("\0", "\\0")
        super().__init__(f"Malformed worktree record ({reason}): {printable!r}")


class WatchRegistrationError(WorktreeSyncError):
    """Exception raised when a filesystem watch cannot be established."""

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        self.message = message

        error_msg = f"Could not watch '{path}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class InvalidPathError(WorktreeSyncError):
    """Exception raised when a path is not owned by any tracked repository."""

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        self.message = message or "Path is not owned by any tracked repository"
        super().__init__(f"{self.message}: {path}")


class RepositoryNotFoundError(InvalidPathError):
    """Exception raised when a path is not inside a git repository."""

    def __init__(self, path: str):
        super().__init__(path, "Not a git repository")
