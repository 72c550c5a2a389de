"""
Transfer pipeline: uploads digested files to the bucket with retries.

Failed uploads are retried with an exponential backoff of 2^n seconds, where n
is the number of failures so far for that file. Every exception raised by the
store counts as a failed attempt. There is no cap and no jitter, so large
attempt counts can stall a worker for minutes.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Callable, Sequence

from .format_utils import format_duration
from .models import FileRecord
from .worker_pool import drain_queue, run_pool


def to_storage_key(path: str) -> str:
    """Turn a local path (e.g. E:\\foo\\bar) into an S3 key (E:/foo/bar)."""
    return path.replace("\\", "/")


def calc_backoff(failure_count: int) -> int:
    """Return the delay in seconds before the next attempt (2^failure_count)."""
    if failure_count < 0:
        raise ValueError(f"unsupported failure count: {failure_count}")
    return 2**failure_count


class Uploader:  # pylint: disable=too-few-public-methods
    """Uploads a single record, retrying failed attempts with backoff."""

    def __init__(
        self,
        store,
        bucket: str,
        max_attempts: int,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.bucket = bucket
        self.max_attempts = max(max_attempts, 1)
        self.sleep = sleep

    def upload(self, record: FileRecord) -> bool:
        """Upload record and set transfer_ok. Returns the final outcome."""
        key = to_storage_key(record.path)
        try:
            with open(record.path, "rb") as body:
                record.transfer_ok = self._put_with_retries(record, key, body)
        except OSError as exc:
            logging.error("Failed to open %s for storage: %s", record.path, exc)
            record.transfer_ok = False
        return record.transfer_ok

    def _put_with_retries(self, record: FileRecord, key: str, body) -> bool:
        failure_count = 0
        while True:
            try:
                body.seek(0)
                self.store.put_object(self.bucket, key, body, record.digest)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                failure_count += 1
                logging.debug(
                    "put_object attempt failed for %s (failures=%d): %s",
                    record.path,
                    failure_count,
                    exc,
                )
                if failure_count >= self.max_attempts:
                    logging.error(
                        "Failed to store %s after %d attempt(s): %s",
                        record.path,
                        failure_count,
                        exc,
                    )
                    return False
                self.sleep(calc_backoff(failure_count))
                continue
            return True


def select_transferable(records: Sequence[FileRecord]) -> list[FileRecord]:
    """Return the records eligible for upload (included and hashed)."""
    selected = []
    for record in records:
        if record.excluded:
            continue
        if not record.digest_ok:
            logging.info("Skipping un-hashed file %s", record.path)
            continue
        selected.append(record)
    return selected


def transfer_all(  # pylint: disable=too-many-arguments,too-many-positional-arguments
    records: Sequence[FileRecord],
    pool_size: int,
    error_budget: int,
    max_attempts: int,
    store,
    bucket: str,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """
    Upload every included, successfully hashed record.

    Records that were never hashed keep transfer_ok False, so they show up in
    the failure manifest next to real upload failures.

    Args:
        records: Inventory to upload in place
        pool_size: Number of upload workers
        error_budget: Failures a single worker tolerates before it stops
        max_attempts: Total attempts per file (values below 1 mean 1)
        store: Object store exposing put_object(container, key, body, digest)
        bucket: Destination bucket name
        sleep: Backoff sleep function
    """
    transferable = select_transferable(records)
    logging.info(
        "Preparing to store %d objects with %d workers", len(transferable), pool_size
    )
    start = time.time()
    uploader = Uploader(store, bucket, max_attempts, sleep=sleep)
    consume = functools.partial(
        drain_queue, process=uploader.upload, error_budget=error_budget, label="storage"
    )
    worker_errors = run_pool(transferable, pool_size, consume)
    logging.info(
        "Storing is complete in %s (%d worker error(s))",
        format_duration(time.time() - start),
        sum(worker_errors),
    )


__all__ = ["Uploader", "calc_backoff", "select_transferable", "to_storage_key", "transfer_all"]
