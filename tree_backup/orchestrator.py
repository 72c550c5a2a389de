"""
Run orchestrator: sequences traversal, hashing, uploading and the failure
manifest for a single backup run.

Phases:
1. Build the work list (walk base paths, or reload a failure manifest)
2. Hash every eligible file, aborting if too many hashes failed
3. Make sure the destination bucket exists
4. Upload every hashed file with retries
5. Write the failure manifest for the next run
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .config import BackupConfig
from .digest import digest_all
from .dryrun import run_dry_run
from .errors import ContainerCreationError, HashFailureThresholdError, StoreError
from .exclusions import ExclusionEngine
from .format_utils import format_duration
from .ledger import Confirmer, build_manifest, load_manifest, write_manifest
from .models import FailureManifest, FileRecord
from .stats import (
    count_failed_digests,
    eligible_records,
    format_failed_listing,
    storage_report,
    summarize_inventory,
)
from .transfer import transfer_all
from .traversal import build_inventory


@dataclass(frozen=True)
class RunComponents:
    """Collaborators a BackupRunner needs besides its configuration."""

    store: object
    confirmer: Optional[Confirmer] = None
    sleep: Callable[[float], None] = time.sleep


@dataclass
class RunOutcome:
    """What a completed run did."""

    records: list[FileRecord] = field(default_factory=list)
    manifest: Optional[FailureManifest] = None
    failed_paths: list[str] = field(default_factory=list)
    dry_run_report: str = ""


class BackupRunner:
    """Main orchestrator for a local-tree-to-S3 backup run"""

    def __init__(self, config: BackupConfig, components: RunComponents):
        self.config = config
        self.store = components.store
        self.confirmer = components.confirmer
        self.sleep = components.sleep

    def build_work_list(self) -> list[FileRecord]:
        """Walk the base paths, or reload the previous run's failures."""
        if self.config.reprocess:
            return load_manifest(
                self.config.failures_file,
                confirmer=self.confirmer,
                no_confirm=self.config.no_confirm,
                bucket=self.config.bucket,
            )
        engine = ExclusionEngine(self.config.exclusions)
        return build_inventory(self.config.base_paths, engine)

    def hash_files(self, records: list[FileRecord]) -> None:
        """Hash every eligible record and enforce the hash failure limit."""
        digest_all(records, self.config.hash_workers, self.config.max_hash_worker_errors)
        failed = count_failed_digests(records)
        if failed >= self.config.max_hash_failures:
            raise HashFailureThresholdError(failed, self.config.max_hash_failures)

    def ensure_bucket(self) -> None:
        """Create the destination bucket (an existing owned bucket is fine)."""
        try:
            self.store.create_container(self.config.bucket, self.config.region)
        except StoreError as exc:
            raise ContainerCreationError(str(exc)) from exc

    def store_files(self, records: list[FileRecord]) -> None:
        """Upload every hashed record."""
        transfer_all(
            records,
            self.config.storage_workers,
            self.config.max_storage_worker_errors,
            self.config.max_storage_attempts,
            self.store,
            self.config.bucket,
            sleep=self.sleep,
        )

    def run(self) -> RunOutcome:
        """
        Execute one backup run.

        Raises:
            BackupError: Any fatal condition (traversal, manifest, hash
                threshold, bucket creation, dry-run checks)
        """
        start = time.time()
        records = self.build_work_list()
        outcome = RunOutcome(records=records)
        if self.config.reprocess and not records:
            logging.info("No files to reprocess")
            return outcome

        summarize_inventory(records)

        if self.config.dryrun:
            logging.info("Skipping file hashing because of dryrun")
            outcome.dry_run_report = run_dry_run(
                self.store, self.config, eligible_records(records)
            )
            logging.info("Total execution time: %s", format_duration(time.time() - start))
            return outcome

        self.hash_files(records)
        self.ensure_bucket()
        self.store_files(records)

        outcome.manifest = build_manifest(records, self.config.bucket)
        write_manifest(outcome.manifest, self.config.failures_file)
        _, outcome.failed_paths = storage_report(records)

        logging.info("Total execution time: %s", format_duration(time.time() - start))
        if outcome.failed_paths:
            print(format_failed_listing(outcome.failed_paths))
        return outcome


__all__ = ["BackupRunner", "RunComponents", "RunOutcome"]
