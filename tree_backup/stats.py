"""Run statistics reported between and after the pipeline phases."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from .format_utils import format_bytes
from .models import FileRecord


@dataclass(frozen=True)
class InventoryStats:
    """Counts and byte totals of included and excluded records."""

    total: int
    included_count: int
    included_bytes: int
    excluded_count: int
    excluded_bytes: int


def summarize_inventory(records: Sequence[FileRecord]) -> InventoryStats:
    """Log how much would be stored and how much was excluded."""
    included = [record for record in records if not record.excluded]
    excluded = [record for record in records if record.excluded]
    stats = InventoryStats(
        total=len(records),
        included_count=len(included),
        included_bytes=sum(record.size for record in included),
        excluded_count=len(excluded),
        excluded_bytes=sum(record.size for record in excluded),
    )
    logging.info("Total number of objects to potentially store: %d", stats.total)
    logging.info(
        "Objects to be saved: %d (%s)", stats.included_count, format_bytes(stats.included_bytes)
    )
    logging.info(
        "Objects to be excluded: %d (%s)",
        stats.excluded_count,
        format_bytes(stats.excluded_bytes),
    )
    return stats


def eligible_records(records: Sequence[FileRecord]) -> list[FileRecord]:
    """Return the included records in inventory order."""
    return [record for record in records if not record.excluded]


def count_failed_digests(records: Sequence[FileRecord]) -> int:
    """Count included records whose hash could not be computed."""
    failed = sum(1 for record in records if not record.excluded and not record.digest_ok)
    logging.info("Failed hash count: %d", failed)
    return failed


def storage_report(records: Sequence[FileRecord]) -> tuple[int, list[str]]:
    """
    Log storage success/failure counts.

    Returns:
        (stored count, paths of included records that were not stored)
    """
    stored = 0
    failed_paths = []
    for record in records:
        if record.excluded:
            continue
        if record.transfer_ok:
            stored += 1
        else:
            failed_paths.append(record.path)
    logging.info("Number of objects successfully stored: %d", stored)
    logging.info("Number of storage failures: %d", len(failed_paths))
    return stored, failed_paths


def format_failed_listing(failed_paths: Sequence[str]) -> str:
    """Render the end-of-run listing of files that were not stored."""
    lines = ["", "Failed Files Listing", "--------------------"]
    lines.extend(failed_paths)
    lines.append("")
    return "\n".join(lines)
