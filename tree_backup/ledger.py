"""
Failure ledger: writes the failure manifest after a run and rebuilds a work
list from it when reprocessing.

Manifest file layout::

    {
      "bucket": "my-backup",
      "hasFailures": true,
      "dateCreated": "2026-10-19T12:00:00+00:00",
      "failedPaths": [{"fullName": "/data/a.txt", "size": 12, ...}]
    }
"""

from __future__ import annotations

import enum
import json
import logging
import os
from tempfile import NamedTemporaryFile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

from .errors import ManifestError
from .format_utils import get_utc_now
from .models import FailedEntry, FailureManifest, FileRecord


class ConfirmChoice(enum.Enum):
    """Outcome of the reprocessing confirmation menu."""

    PROCEED = "proceed"
    LIST = "list"
    CANCEL = "cancel"


@dataclass(frozen=True)
class ManifestSummary:
    """What the confirmation prompt is shown about a manifest."""

    bucket: str
    created_at: str
    failed_count: int


Confirmer = Callable[[ManifestSummary], ConfirmChoice]


def build_manifest(
    records: Iterable[FileRecord], bucket: str, created_at: Optional[str] = None
) -> FailureManifest:
    """Collect every included record that was not stored into a manifest."""
    failed = tuple(
        FailedEntry(path=record.path, size=record.size)
        for record in records
        if not record.excluded and not record.transfer_ok
    )
    return FailureManifest(
        bucket=bucket,
        created_at=created_at or get_utc_now(),
        has_failures=bool(failed),
        failed=failed,
    )


def manifest_to_dict(manifest: FailureManifest) -> dict:
    """Serialise a manifest into its JSON document shape."""
    return {
        "bucket": manifest.bucket,
        "hasFailures": manifest.has_failures,
        "dateCreated": manifest.created_at,
        "failedPaths": [
            {
                "fullName": entry.path,
                "size": entry.size,
                "excluded": False,
                "hash": "",
                "hashSuccess": False,
                "storageSuccess": False,
            }
            for entry in manifest.failed
        ],
    }


def manifest_from_dict(payload: dict) -> FailureManifest:
    """Parse a manifest JSON document. Raises ManifestError on a bad shape."""
    if not isinstance(payload, dict):
        raise ManifestError("Failure manifest must be a JSON object")
    try:
        failed = tuple(
            FailedEntry(path=str(item["fullName"]), size=int(item.get("size", 0)))
            for item in payload.get("failedPaths") or []
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ManifestError(f"Malformed failedPaths entry in failure manifest: {exc}") from exc
    has_failures = payload.get("hasFailures", False)
    if not isinstance(has_failures, bool):
        raise ManifestError(f"hasFailures must be a JSON boolean, got {has_failures!r}")
    return FailureManifest(
        bucket=str(payload.get("bucket", "")),
        created_at=str(payload.get("dateCreated", "")),
        has_failures=has_failures,
        failed=failed,
    )


def write_manifest(manifest: FailureManifest, path) -> Path:
    """
    Write the manifest as JSON and return the path written.

    The JSON goes to a temporary file in the same directory which then
    replaces the target, so an interrupted write leaves the previous manifest
    intact.

    Raises:
        ManifestError: If the file cannot be written
    """
    manifest_path = Path(path)
    tmp_path = None
    try:
        with NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=manifest_path.parent,
            prefix=f".{manifest_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_path = Path(f.name)
            json.dump(manifest_to_dict(manifest), f, indent=2)
        os.replace(tmp_path, manifest_path)
        tmp_path = None
    except OSError as exc:
        raise ManifestError(f"Unable to write failure manifest {manifest_path}: {exc}") from exc
    finally:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
    logging.info(
        "Wrote failure manifest %s (%d failed file(s))", manifest_path, len(manifest.failed)
    )
    return manifest_path


def read_manifest(path) -> FailureManifest:
    """Read and parse a manifest file."""
    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
    except OSError as exc:
        raise ManifestError(f"Unable to read failure manifest {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Unable to parse failure manifest {path}: {exc}") from exc
    return manifest_from_dict(payload)


def _print_entries(manifest: FailureManifest) -> None:
    print()
    for entry in manifest.failed:
        print(entry.path)
    print()


def _confirmed(manifest: FailureManifest, confirmer: Confirmer) -> bool:
    summary = ManifestSummary(
        bucket=manifest.bucket,
        created_at=manifest.created_at,
        failed_count=len(manifest.failed),
    )
    while True:
        choice = confirmer(summary)
        if choice is ConfirmChoice.LIST:
            _print_entries(manifest)
            continue
        return choice is ConfirmChoice.PROCEED


def records_from_manifest(manifest: FailureManifest) -> list[FileRecord]:
    """Build fresh records for each manifest entry, re-reading current sizes."""
    records = []
    for entry in manifest.failed:
        try:
            size = os.stat(entry.path).st_size
        except OSError as exc:
            raise ManifestError(f"Unable to stat {entry.path}: {exc}") from exc
        records.append(FileRecord(path=entry.path, size=size, excluded=False))
    return records


def load_manifest(
    path,
    confirmer: Optional[Confirmer] = None,
    no_confirm: bool = False,
    bucket: Optional[str] = None,
) -> list[FileRecord]:
    """
    Rebuild a work list from a previous run's failure manifest.

    Args:
        path: Manifest file to read
        confirmer: Capability asked whether to proceed (required unless no_confirm)
        no_confirm: Skip the confirmation prompt
        bucket: Bucket this run uploads to; must match the manifest's bucket

    Returns:
        Fresh records to reprocess; empty when there is nothing to do or the
        user cancelled

    Raises:
        ManifestError: If the manifest is unreadable, targets another bucket,
            or a listed file cannot be stat'ed
    """
    manifest = read_manifest(path)
    if not manifest.has_failures:
        logging.info("Failure manifest %s has no failures; nothing to reprocess", path)
        return []

    if bucket and manifest.bucket and manifest.bucket != bucket:
        raise ManifestError(
            f"Failure manifest {path} was written for bucket {manifest.bucket!r}, "
            f"but this run targets {bucket!r}"
        )

    if not no_confirm:
        if confirmer is None:
            raise ManifestError("Reprocessing requires confirmation but no prompt is available")
        if not _confirmed(manifest, confirmer):
            logging.info("Reprocessing cancelled")
            return []

    records = records_from_manifest(manifest)
    logging.info("Loaded %d file(s) to reprocess from %s", len(records), path)
    return records


__all__ = [
    "ConfirmChoice",
    "Confirmer",
    "ManifestSummary",
    "build_manifest",
    "load_manifest",
    "manifest_from_dict",
    "manifest_to_dict",
    "read_manifest",
    "records_from_manifest",
    "write_manifest",
]
