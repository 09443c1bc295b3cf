"""Worktree data models."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Optional, Tuple

from git_worktree_sync.constants import BRANCH_REF_PREFIX


def normalize_path(path: str) -> str:
    """Lexically normalize a worktree path so lookups tolerate trailing slashes."""
    return os.path.normpath(os.fspath(path))


@dataclass(frozen=True)
class WorktreeRecord:
    """One entry of `git worktree list`."""

    path: str
    order: int  # Position in the tool output, the primary worktree is 0
    head_commit: Optional[str] = None
    is_bare: bool = False
    branch_ref: Optional[str] = None  # None = detached HEAD
    locked: Optional[str] = None  # "" = locked without a reason
    prunable: Optional[str] = None  # "" = prunable without a reason

    @property
    def is_primary(self) -> bool:
        return self.order == 0

    @property
    def is_detached(self) -> bool:
        return not self.is_bare and self.branch_ref is None

    @property
    def is_locked(self) -> bool:
        return self.locked is not None

    @property
    def is_prunable(self) -> bool:
        return self.prunable is not None

    @property
    def branch_name(self) -> Optional[str]:
        """Short branch name, e.g. ``main`` for ``refs/heads/main``."""
        if self.branch_ref is None:
            return None
        if self.branch_ref.startswith(BRANCH_REF_PREFIX):
            return self.branch_ref[len(BRANCH_REF_PREFIX):]
        return self.branch_ref

    @property
    def name(self) -> str:
        return os.path.basename(normalize_path(self.path))

    def __str__(self) -> str:
        """String representation of worktree."""
        if self.is_bare:
            return f"(bare) @ {self.path}"
        branch = self.branch_name or "(detached)"
        main_marker = " (main)" if self.is_primary else ""
        return f"{branch} @ {self.path}{main_marker}"


@dataclass(frozen=True)
class WorktreeSnapshot(Mapping):
    """Immutable view of every worktree of one repository.

    ``records`` keeps every parsed entry in tool order, bare ones included,
    so ``order`` numbering stays contiguous. The mapping interface only
    exposes entries that can be opened (bare entries are filtered out).
    """

    admin_dir: str
    records: Tuple[WorktreeRecord, ...] = ()
    _visible: Mapping = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        visible = {}
        for record in self.records:
            if record.path in visible:
                raise ValueError(f"Duplicate worktree path in snapshot: {record.path}")
            if not record.is_bare:
                visible[record.path] = record
        object.__setattr__(self, "records", tuple(self.records))
        object.__setattr__(self, "_visible", MappingProxyType(visible))

    @classmethod
    def empty(cls, admin_dir: str) -> "WorktreeSnapshot":
        return cls(admin_dir=admin_dir)

    def __getitem__(self, path: str) -> WorktreeRecord:
        return self._visible[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._visible)

    def __len__(self) -> int:
        return len(self._visible)

    def find(self, path: str) -> Optional[WorktreeRecord]:
        """Look up a visible worktree, tolerating non-normalized path spellings."""
        record = self._visible.get(path)
        if record is not None:
            return record
        wanted = normalize_path(path)
        for candidate in self._visible.values():
            if normalize_path(candidate.path) == wanted:
                return candidate
        return None

    @property
    def primary(self) -> Optional[WorktreeRecord]:
        """The primary worktree, or None when it is bare or the snapshot is empty."""
        if self.records and not self.records[0].is_bare:
            return self.records[0]
        return None

    @property
    def linked(self) -> Tuple[WorktreeRecord, ...]:
        return tuple(r for r in self._visible.values() if r.order > 0)

    def without_linked(self) -> "WorktreeSnapshot":
        """Snapshot as it looks once every linked worktree is gone."""
        return WorktreeSnapshot(
            admin_dir=self.admin_dir,
            records=tuple(r for r in self.records if r.order == 0),
        )

    def __str__(self) -> str:
        return f"{self.admin_dir}: {len(self)} worktree(s)"
