#!/usr/bin/env python3
"""
Back up local directory trees to an S3 bucket.

Usage:
    python tree_backup_cli.py --bucket my-backup           # Walk, hash and upload
    python tree_backup_cli.py --dryrun                     # Check config and S3 access
    python tree_backup_cli.py --reprocess                  # Retry last run's failures

This is a thin wrapper around the tree_backup package.
"""
from __future__ import annotations

from tree_backup.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
