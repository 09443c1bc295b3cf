"""Worktree listing query: runs git worktree list for one repository."""

from typing import Optional

import git

from git_worktree_sync.constants import WORKTREE_LIST_ARGS
from git_worktree_sync.exceptions import ExternalToolError
from git_worktree_sync.logging_config import get_logger
from git_worktree_sync.services.git.repository import repository_root

logger = get_logger(__name__)

OPERATION = "worktree list"


def _clean_stderr(stderr: Optional[str]) -> str:
    """Strip GitPython's ``stderr: '...'`` decoration from an error message."""
    text = (stderr or "").strip()
    if text.startswith("stderr:"):
        text = text[len("stderr:"):].strip()
    if len(text) >= 2 and text[0] == text[-1] == "'":
        text = text[1:-1]
    return text.strip()


class WorktreeQuery:
    """Runs ``git worktree list --porcelain -z`` for one repository."""

    def __init__(
        self,
        admin_dir: str,
        git_executable: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the query.

        Args:
            admin_dir: Canonical admin dir of the repository
            git_executable: git binary to run (None = GitPython's default)
            timeout: Seconds before git is killed (None = no limit)
        """
        self.admin_dir = admin_dir
        self.working_dir = str(repository_root(admin_dir))
        self.git_executable = git_executable
        self.timeout = timeout

    def _get_git(self) -> git.Git:
        """Get a fresh command wrapper bound to the repository root.

        A new wrapper per call keeps concurrent queries from sharing state.
        """
        return git.Git(self.working_dir)

    def _command(self) -> list[str]:
        executable = self.git_executable or git.Git.GIT_PYTHON_GIT_EXECUTABLE or "git"
        return [executable, "worktree", *WORKTREE_LIST_ARGS]

    def run(self) -> str:
        """Run the query once and return its raw output.

        Returns:
            Null-delimited porcelain text

        Raises:
            ExternalToolError: If git exits non-zero or cannot be started
        """
        command = self._command()
        logger.debug(f"[EXECUTE] {' '.join(command)} (cwd={self.working_dir})")
        try:
            output = self._get_git().execute(command, kill_after_timeout=self.timeout)
        except git.exc.GitCommandNotFound as e:
            logger.warning(f"Could not start git for {self.admin_dir}: {e}")
            raise ExternalToolError(OPERATION, f"could not run git: {e}") from e
        except git.exc.GitCommandError as e:
            stderr = _clean_stderr(e.stderr if hasattr(e, "stderr") else str(e))
            status = e.status if isinstance(e.status, int) else None
            logger.warning(f"[RESULT] git {OPERATION} failed in {self.working_dir}: {stderr or e}")
            raise ExternalToolError(OPERATION, stderr or None, status=status, stderr=stderr) from e

        logger.debug(f"[RESULT] {len(output)} characters from git {OPERATION}")
        return output

    def __repr__(self) -> str:
        return f"WorktreeQuery({self.admin_dir!r})"
