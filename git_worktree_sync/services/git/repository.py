"""Repository identity helpers: admin dir resolution and canonical paths."""

import os
from pathlib import Path
from typing import Union

import git

from git_worktree_sync.exceptions import RepositoryNotFoundError
from git_worktree_sync.logging_config import get_logger

logger = get_logger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def canonicalize(path: PathLike) -> Path:
    """Canonical form of a path: user expanded, absolute, symlinks resolved."""
    return Path(path).expanduser().resolve()


def repository_root(admin_dir: PathLike) -> Path:
    """Directory git should run in for a given admin dir.

    For a normal repository the admin dir is ``<root>/.git`` and the root is
    its parent. A bare repository has no checkout, so git runs in the admin
    dir itself.
    """
    admin_path = Path(admin_dir)
    if admin_path.name == ".git":
        return admin_path.parent
    return admin_path


def resolve_admin_dir(path: PathLike) -> Path:
    """Find the shared admin dir of the repository that contains ``path``.

    Works from the primary checkout (``.git`` directory), from a linked
    worktree (``.git`` file pointing into ``<admin>/worktrees/<name>``), from
    any subdirectory of either, and from a bare repository.

    Args:
        path: Any path inside a repository

    Returns:
        Canonical path of the common admin dir

    Raises:
        RepositoryNotFoundError: If ``path`` is not inside a git repository
    """
    try:
        repo = git.Repo(os.fspath(path), search_parent_directories=True)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
        logger.debug(f"No repository at {path}: {e}")
        raise RepositoryNotFoundError(os.fspath(path)) from e

    try:
        # common_dir follows the commondir file of linked worktrees
        admin_dir = canonicalize(repo.common_dir)
    finally:
        repo.close()

    logger.debug(f"Resolved {path} to admin dir {admin_dir}")
    return admin_dir
