"""
Traversal engine: walks base paths and builds the flat inventory.

Each base path is walked depth-first, pre-order, with children visited in
lexical order. Excluded directories are recorded but never descended into,
so their subtrees never appear in the inventory.
"""

from __future__ import annotations

import logging
import os
import stat
from typing import Iterable

from .errors import TraversalError
from .exclusions import ExclusionEngine
from .models import FileRecord


def _entry_name(path: str) -> str:
    return os.path.basename(os.path.normpath(path))


def _list_children(path: str) -> list[str]:
    try:
        with os.scandir(path) as entries:
            names = sorted(entry.name for entry in entries)
    except OSError as exc:
        raise TraversalError(f"Unable to list directory {path}: {exc}") from exc
    return [os.path.join(path, name) for name in names]


def _walk_base_path(base_path: str, engine: ExclusionEngine, inventory: list[FileRecord]) -> None:
    """Walk a single base path, appending a record for every visited entry."""
    pending = [base_path]
    while pending:
        path = pending.pop()
        try:
            info = os.lstat(path)
        except OSError as exc:
            raise TraversalError(f"Unable to stat {path}: {exc}") from exc

        is_dir = stat.S_ISDIR(info.st_mode)
        record = FileRecord(path=path, size=info.st_size, excluded=True)

        # The exclusion check has to run before the dir/file split: an
        # excluded directory prunes its subtree, an excluded file only skips
        # itself.
        if engine.should_exclude(path, is_dir, _entry_name(path)):
            inventory.append(record)
            continue

        if is_dir:
            inventory.append(record)
            pending.extend(reversed(_list_children(path)))
            continue

        record.excluded = False
        inventory.append(record)


def build_inventory(base_paths: Iterable[str], engine: ExclusionEngine) -> list[FileRecord]:
    """
    Build the inventory of every entry under the given base paths.

    Args:
        base_paths: Ordered base paths to walk
        engine: Exclusion engine consulted for every entry

    Returns:
        Records in walk order (base paths in the order given)

    Raises:
        TraversalError: If any entry cannot be examined. The whole traversal
            is aborted rather than returning a partial inventory.
    """
    inventory: list[FileRecord] = []
    for base_path in base_paths:
        base_path = os.path.abspath(base_path)
        logging.info("Beginning examination of top level path %s", base_path)
        _walk_base_path(base_path, engine, inventory)
    logging.info("Traversal complete: %d entries found", len(inventory))
    return inventory


__all__ = ["build_inventory"]
