"""Dry-run checks: configuration dump, S3 connectivity and a file sample."""

from __future__ import annotations

import logging
from typing import Sequence

from .config import BackupConfig
from .errors import DryRunError, StoreError
from .models import FileRecord

DRYRUN_SAMPLE_LENGTH = 25


def run_dry_run(store, config: BackupConfig, records: Sequence[FileRecord]) -> str:
    """
    Verify S3 access without creating buckets or uploading anything.

    Args:
        store: Object store exposing list_containers()
        config: Run configuration (dumped into the report)
        records: Eligible records; the first few are sampled into the report

    Returns:
        The report that was printed

    Raises:
        DryRunError: If buckets cannot be listed or the dryrun bucket is missing
    """
    logging.info("Beginning AWS dryrun...")
    lines = ["", "Current Configuration", "---------------------", config.describe()]

    try:
        bucket_names = store.list_containers()
    except StoreError as exc:
        raise DryRunError(f"Dryrun error: unable to list AWS buckets: {exc}") from exc

    lines.extend(["AWS Bucket Listing", "---------------------"])
    lines.extend(f"  {name}" for name in bucket_names)
    found = config.dryrun_bucket in bucket_names
    lines.append(f"Successfully located dryrun bucket: {str(found).lower()}")
    if not found:
        raise DryRunError(f"Dryrun error: unable to locate dryrun bucket: {config.dryrun_bucket}")

    sample = records[:DRYRUN_SAMPLE_LENGTH]
    lines.extend(
        [
            "",
            f"Sample File List [{len(sample)} of {len(records)} total files]",
            "---------------------------------------",
        ]
    )
    lines.extend(f"  {record.path}" for record in sample)

    report = "\n".join(lines) + "\n"
    print(report)
    logging.info("AWS dryrun complete")
    return report
