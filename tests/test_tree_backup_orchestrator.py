"""Tests for tree_backup/orchestrator.py."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tests.assertions import assert_equal, assert_paths
from tests.store_test_utils import FakeStore
from tree_backup.digest import compute_content_md5 as real_md5
from tree_backup.errors import (
    ContainerCreationError,
    DryRunError,
    HashFailureThresholdError,
    ManifestError,
    StoreError,
    TraversalError,
)
from tree_backup.orchestrator import BackupRunner, RunComponents
from tree_backup.transfer import to_storage_key

ALWAYS_FAIL = 10_000


def _runner(config, store, sleep_recorder, confirmer=None):
    return BackupRunner(config, RunComponents(store=store, confirmer=confirmer, sleep=sleep_recorder))


def _eligible_keys(sample_tree):
    return {
        to_storage_key(str(sample_tree / "notes.txt")),
        to_storage_key(str(sample_tree / "docs" / "reports" / "q1.md")),
        to_storage_key(str(sample_tree / "docs" / "summary.md")),
    }


def test_full_run_uploads_eligible_files(sample_tree, make_config, fake_store, sleep_recorder, mock_print):
    """A clean run creates the bucket, uploads eligible files and writes an empty manifest."""
    del mock_print
    config = make_config(base_paths=(str(sample_tree),))
    outcome = _runner(config, fake_store, sleep_recorder).run()

    assert_equal(fake_store.created, [("test-backup", "us-east-1")])
    assert_equal(set(fake_store.objects), _eligible_keys(sample_tree))
    assert outcome.manifest.has_failures is False
    assert_equal(outcome.failed_paths, [])
    payload = json.loads(Path(config.failures_file).read_text(encoding="utf-8"))
    assert payload["hasFailures"] is False
    assert_equal(payload["failedPaths"], [])


def test_failed_upload_recorded_then_reprocessed(sample_tree, make_config, sleep_recorder, mock_print):
    """Upload failures land in the manifest and a reprocessing run finishes them."""
    notes = str(sample_tree / "notes.txt")
    failing_store = FakeStore(failures={to_storage_key(notes): ALWAYS_FAIL})
    config = make_config(base_paths=(str(sample_tree),), max_storage_attempts=2)

    outcome = _runner(config, failing_store, sleep_recorder).run()

    assert_equal(outcome.failed_paths, [notes])
    assert_paths(outcome.manifest.failed, [notes])
    assert_equal(sleep_recorder.delays, [2])
    printed = " ".join(str(call.args[0]) for call in mock_print.call_args_list if call.args)
    assert "Failed Files Listing" in printed

    retry_store = FakeStore()
    retry_config = make_config(reprocess=True, no_confirm=True)
    retry_outcome = _runner(retry_config, retry_store, sleep_recorder).run()

    assert_paths(retry_outcome.records, [notes])
    assert retry_outcome.records[0].transfer_ok is True
    assert_equal(set(retry_store.objects), {to_storage_key(notes)})
    assert retry_outcome.manifest.has_failures is False


def test_hash_failures_over_threshold_abort_before_transfer(tmp_path, make_config, fake_store, sleep_recorder, monkeypatch):
    """30 hash failures against a maximum of 25 abort before any bucket is created."""
    root = tmp_path / "tree"
    root.mkdir()
    for index in range(30):
        (root / f"file_{index:02d}.txt").write_text(str(index))

    def failing_md5(_path):
        raise OSError("disk on fire")

    monkeypatch.setattr("tree_backup.digest.compute_content_md5", failing_md5)
    config = make_config(base_paths=(str(root),), max_hash_failures=25)

    with pytest.raises(HashFailureThresholdError) as exc_info:
        _runner(config, fake_store, sleep_recorder).run()

    assert_equal(exc_info.value.failed_count, 30)
    assert_equal(fake_store.created, [])
    assert_equal(dict(fake_store.attempts), {})
    assert not Path(config.failures_file).exists()


def test_hash_failures_below_threshold_continue(sample_tree, make_config, fake_store, sleep_recorder, monkeypatch, mock_print):
    """Unhashed files are not uploaded but show up as failures."""
    del mock_print
    notes = str(sample_tree / "notes.txt")

    def flaky_md5(path):
        if str(path) == notes:
            raise OSError("unreadable")
        return real_md5(path)

    monkeypatch.setattr("tree_backup.digest.compute_content_md5", flaky_md5)
    config = make_config(base_paths=(str(sample_tree),), max_hash_failures=2)
    outcome = _runner(config, fake_store, sleep_recorder).run()

    assert to_storage_key(notes) not in fake_store.attempts
    assert_paths(outcome.manifest.failed, [notes])


def test_bucket_creation_failure_is_fatal(sample_tree, make_config, sleep_recorder):
    """Bucket creation errors abort before any upload."""
    store = FakeStore(create_error=StoreError("no region"))
    config = make_config(base_paths=(str(sample_tree),))
    with pytest.raises(ContainerCreationError):
        _runner(config, store, sleep_recorder).run()
    assert_equal(dict(store.attempts), {})
    assert not Path(config.failures_file).exists()


def test_traversal_error_propagates(tmp_path, make_config, fake_store, sleep_recorder):
    """A missing base path aborts the run."""
    config = make_config(base_paths=(str(tmp_path / "missing"),))
    with pytest.raises(TraversalError):
        _runner(config, fake_store, sleep_recorder).run()


def test_dry_run_skips_hashing_and_uploads(sample_tree, make_config, sleep_recorder, mock_print):
    """Dry run checks S3 access and touches no record state."""
    del mock_print
    store = FakeStore(buckets=["test-backup", "other"])
    config = make_config(base_paths=(str(sample_tree),), dryrun=True, dryrun_bucket="test-backup")

    outcome = _runner(config, store, sleep_recorder).run()

    assert_equal(store.created, [])
    assert_equal(dict(store.attempts), {})
    assert not Path(config.failures_file).exists()
    assert outcome.manifest is None
    assert all(not record.digest_ok and not record.transfer_ok for record in outcome.records)
    assert str(sample_tree / "notes.txt") in outcome.dry_run_report


def test_dry_run_missing_sentinel_bucket(sample_tree, make_config, sleep_recorder, mock_print):
    """Dry run fails when the sentinel bucket is not listed."""
    del mock_print
    store = FakeStore(buckets=["other"])
    config = make_config(base_paths=(str(sample_tree),), dryrun=True, dryrun_bucket="test-backup")
    with pytest.raises(DryRunError):
        _runner(config, store, sleep_recorder).run()


def test_reprocess_without_failures_does_nothing(tmp_path, make_config, fake_store, sleep_recorder):
    """An empty manifest ends the run cleanly with no S3 calls."""
    failures_file = tmp_path / "failures.json"
    failures_file.write_text(
        json.dumps({"bucket": "test-backup", "hasFailures": False, "failedPaths": []}),
        encoding="utf-8",
    )
    config = make_config(reprocess=True, failures_file=str(failures_file))

    outcome = _runner(config, fake_store, sleep_recorder).run()

    assert_equal(outcome.records, [])
    assert outcome.manifest is None
    assert_equal(fake_store.created, [])


def test_reprocess_into_other_bucket_refused(sample_tree, make_config, sleep_recorder, mock_print):
    """Retries never go to a bucket other than the one the failures came from."""
    del mock_print
    notes = str(sample_tree / "notes.txt")
    config = make_config(base_paths=(str(sample_tree),), max_storage_attempts=1)
    _runner(config, FakeStore(failures={to_storage_key(notes): ALWAYS_FAIL}), sleep_recorder).run()

    retry_store = FakeStore()
    retry_config = make_config(bucket="another-bucket", reprocess=True, no_confirm=True)
    with pytest.raises(ManifestError):
        _runner(retry_config, retry_store, sleep_recorder).run()
    assert_equal(dict(retry_store.attempts), {})
    assert_equal(retry_store.created, [])
