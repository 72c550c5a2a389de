"""
Digest pipeline: computes the Content-MD5 of every eligible file.

Results are stored on the records themselves; nothing is raised for a file
that cannot be read.
"""

from __future__ import annotations

import base64
import functools
import hashlib
import logging
import os
import stat
import time
from typing import Sequence

from .format_utils import format_duration
from .models import FileRecord
from .worker_pool import drain_queue, run_pool

CHUNK_SIZE = 8 * 1024 * 1024


def hash_file_in_chunks(file_path, hash_obj, chunk_size: int = CHUNK_SIZE):
    """Read file in chunks and update hash object

    Args:
        file_path: Path to file to hash
        hash_obj: Hash object (e.g., hashlib.md5() or hashlib.sha256())
        chunk_size: Size of chunks to read (default: 8MB)
    """
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            hash_obj.update(chunk)


def compute_content_md5(file_path) -> str:
    """Return the base64-encoded MD5 of a file, as S3 expects in Content-MD5."""
    md5_hash = hashlib.md5(usedforsecurity=False)
    hash_file_in_chunks(file_path, md5_hash)
    return base64.b64encode(md5_hash.digest()).decode("ascii")


def digest_record(record: FileRecord) -> bool:
    """
    Hash one record in place. Excluded records are left untouched.

    Only regular files (or symlinks resolving to one) are read. Anything else,
    such as a FIFO or device node, is recorded as a hash failure: opening it
    can block forever.
    """
    if record.excluded:
        return True
    try:
        info = os.stat(record.path)
        if not stat.S_ISREG(info.st_mode):
            raise OSError(f"not a regular file (mode {stat.filemode(info.st_mode)})")
        record.digest = compute_content_md5(record.path)
    except OSError as exc:
        logging.error("Failed to hash %s: %s", record.path, exc)
        record.digest = ""
        record.digest_ok = False
        return False
    record.digest_ok = True
    return True


def digest_all(records: Sequence[FileRecord], pool_size: int, error_budget: int) -> None:
    """
    Hash every non-excluded record using a bounded pool of workers.

    Every record (excluded or not) is queued; workers skip excluded ones.

    Args:
        records: Inventory to hash in place
        pool_size: Number of hashing workers
        error_budget: Failures a single worker tolerates before it stops
    """
    logging.info("Preparing to hash %d objects with %d workers", len(records), pool_size)
    start = time.time()
    consume = functools.partial(
        drain_queue, process=digest_record, error_budget=error_budget, label="hash"
    )
    worker_errors = run_pool(records, pool_size, consume)
    logging.info(
        "Hashing is complete in %s (%d worker error(s))",
        format_duration(time.time() - start),
        sum(worker_errors),
    )


__all__ = ["compute_content_md5", "digest_all", "digest_record", "hash_file_in_chunks"]
