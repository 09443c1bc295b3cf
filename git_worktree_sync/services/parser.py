"""Parser for `git worktree list --porcelain -z` output."""

from typing import Dict, List, Optional

from git_worktree_sync.constants import (
    FIELD_BARE,
    FIELD_BRANCH,
    FIELD_HEAD,
    FIELD_LOCKED,
    FIELD_PRUNABLE,
    FIELD_SEPARATOR,
    FIELD_WORKTREE,
    RECORD_SEPARATOR,
)
from git_worktree_sync.exceptions import MalformedRecordError
from git_worktree_sync.models.worktree import WorktreeRecord


def _split_field(field: str) -> tuple[str, Optional[str]]:
    """Split ``keyword value`` on the first space; a bare keyword has no value."""
    key, sep, value = field.partition(" ")
    return key.lower(), (value if sep else None)


def _parse_record(chunk: str, order: int) -> WorktreeRecord:
    """Build one record from the fields of a single chunk.

    Args:
        chunk: Null-separated fields of one worktree
        order: Position of the chunk in the whole output

    Returns:
        The parsed WorktreeRecord

    Raises:
        MalformedRecordError: If the record has no path, or neither a HEAD nor a bare marker
    """
    fields: Dict[str, Optional[str]] = {}
    for raw_field in chunk.split(FIELD_SEPARATOR):
        raw_field = raw_field.strip("\n")
        if not raw_field:
            continue
        key, value = _split_field(raw_field)
        # First occurrence wins; git never repeats a keyword inside a record
        fields.setdefault(key, value)

    path = fields.get(FIELD_WORKTREE)
    if not path:
        raise MalformedRecordError(chunk, "missing worktree path")

    is_bare = FIELD_BARE in fields
    head_commit = fields.get(FIELD_HEAD)
    if not head_commit and not is_bare:
        raise MalformedRecordError(chunk, "record has neither HEAD nor bare")

    locked = (fields[FIELD_LOCKED] or "") if FIELD_LOCKED in fields else None
    prunable = (fields[FIELD_PRUNABLE] or "") if FIELD_PRUNABLE in fields else None

    return WorktreeRecord(
        path=path,
        order=order,
        head_commit=head_commit or None,
        is_bare=is_bare,
        branch_ref=fields.get(FIELD_BRANCH) or None,
        locked=locked,
        prunable=prunable,
    )


def parse_worktree_list(raw: str) -> List[WorktreeRecord]:
    """Parse porcelain worktree output into records, in tool order.

    The output is a sequence of records separated by a double null byte.
    Each record is a sequence of null-separated fields, each either a bare
    keyword (``bare``, ``detached``, ``locked``) or ``keyword value``.
    Unknown keywords are ignored. ``order`` counts every record, bare ones
    included, so filtering bare entries later never renumbers the rest.

    Args:
        raw: Text printed by ``git worktree list --porcelain -z``

    Returns:
        List of WorktreeRecord objects, primary worktree first

    Raises:
        MalformedRecordError: If a record is invalid or a path appears twice
    """
    records: List[WorktreeRecord] = []
    seen_paths = set()

    for chunk in raw.split(RECORD_SEPARATOR):
        # Stray separators and the trailing terminator leave empty chunks
        if not chunk.strip("\0\n"):
            continue
        record = _parse_record(chunk, len(records))
        if record.path in seen_paths:
            raise MalformedRecordError(chunk, f"duplicate worktree path {record.path}")
        seen_paths.add(record.path)
        records.append(record)

    return records
