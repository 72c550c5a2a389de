"""Shared pytest fixtures for tree_backup tests."""

from __future__ import annotations

import pytest

from tests.store_test_utils import FakeStore, SleepRecorder
from tree_backup.config import BackupConfig
from tree_backup.models import ExclusionRule


@pytest.fixture(name="fake_store")
def fixture_fake_store():
    """Return an empty FakeStore."""
    return FakeStore()


@pytest.fixture(name="sleep_recorder")
def fixture_sleep_recorder():
    """Return a SleepRecorder."""
    return SleepRecorder()


@pytest.fixture(name="sample_tree")
def fixture_sample_tree(tmp_path):
    """Create a small tree with a dot-directory, a temp file and nested docs."""
    root = tmp_path / "data"
    (root / ".git").mkdir(parents=True)
    (root / ".git" / "config").write_text("[core]\n")
    (root / "notes.txt").write_text("some notes\n")
    (root / "cache.tmp").write_text("scratch")
    (root / "docs" / "reports").mkdir(parents=True)
    (root / "docs" / "reports" / "q1.md").write_text("# Q1\n")
    (root / "docs" / "summary.md").write_text("# Summary\n")
    return root


@pytest.fixture(name="make_config")
def fixture_make_config(tmp_path):
    """Factory building a BackupConfig with test-friendly defaults."""

    def _make(**overrides):
        values = {
            "bucket": "test-backup",
            "base_paths": (),
            "exclusions": (ExclusionRule.compile(1, r"\.tmp$"),),
            "hash_workers": 2,
            "storage_workers": 2,
            "failures_file": str(tmp_path / "failures.json"),
        }
        values.update(overrides)
        return BackupConfig(**values)

    return _make
