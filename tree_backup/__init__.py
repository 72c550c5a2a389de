"""
tree_backup package.

Back up local directory trees to an S3 bucket, with a failure manifest that a
later run can reprocess.
"""

from .errors import BackupError
from .exclusions import ExclusionEngine
from .ledger import ConfirmChoice, build_manifest, load_manifest
from .models import ExclusionRule, FailedEntry, FailureManifest, FileRecord
from .orchestrator import BackupRunner, RunComponents
from .transfer import to_storage_key
from .traversal import build_inventory

__all__ = [
    "BackupError",
    "BackupRunner",
    "ConfirmChoice",
    "ExclusionEngine",
    "ExclusionRule",
    "FailedEntry",
    "FailureManifest",
    "FileRecord",
    "RunComponents",
    "build_inventory",
    "build_manifest",
    "load_manifest",
    "to_storage_key",
]
