"""
Argument parsing for the tree_backup CLI.
"""

from __future__ import annotations

import argparse

from .config import (
    DEFAULT_BASE_PATHS_FILE,
    DEFAULT_EXCLUSIONS_FILE,
    DEFAULT_FAILURES_FILE,
)


def add_mode_arguments(parser: argparse.ArgumentParser) -> None:
    """Add run-mode flags."""
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument(
        "--dryrun",
        action="store_true",
        help="Check configuration and S3 connectivity without hashing or uploading.",
    )
    parser.add_argument(
        "--reprocess",
        action="store_true",
        help="Retry the files listed in the failures file from a previous run.",
    )
    parser.add_argument(
        "--no-confirm",
        action="store_true",
        help="Skip the reprocessing confirmation menu.",
    )


def add_path_arguments(parser: argparse.ArgumentParser) -> None:
    """Add file location arguments."""
    parser.add_argument(
        "--exclusions-file",
        default=DEFAULT_EXCLUSIONS_FILE,
        help=f"Regex exclusion rules, one per line (default: {DEFAULT_EXCLUSIONS_FILE}).",
    )
    parser.add_argument(
        "--base-paths-file",
        default=DEFAULT_BASE_PATHS_FILE,
        help=f"Directories to back up, one per line (default: {DEFAULT_BASE_PATHS_FILE}).",
    )
    parser.add_argument(
        "--failures-file",
        default=DEFAULT_FAILURES_FILE,
        help=f"Failure manifest written after each run (default: {DEFAULT_FAILURES_FILE}).",
    )
    parser.add_argument(
        "--env-file",
        help="Optional .env file with TREE_BACKUP_* settings (default: ./.env).",
    )
    parser.add_argument(
        "--aws-env-file",
        help="Optional .env file with AWS credentials (default: $AWS_ENV_FILE or ~/.env).",
    )


def add_bucket_arguments(parser: argparse.ArgumentParser) -> None:
    """Add destination bucket arguments."""
    parser.add_argument("--bucket", help="Destination bucket (default: $TREE_BACKUP_BUCKET).")
    parser.add_argument("--region", help="Bucket region (default: $TREE_BACKUP_REGION or us-east-1).")
    parser.add_argument(
        "--dryrun-bucket",
        help="Bucket that must exist for a dry run to pass (default: the destination bucket).",
    )


def create_parser() -> argparse.ArgumentParser:
    """Build the tree_backup argument parser."""
    parser = argparse.ArgumentParser(
        description="Back up local directory trees to an S3 bucket.",
    )
    add_mode_arguments(parser)
    add_path_arguments(parser)
    add_bucket_arguments(parser)
    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse and validate command-line arguments."""
    parser = create_parser()
    args = parser.parse_args(argv)
    if args.no_confirm and not args.reprocess:
        parser.error("--no-confirm only applies together with --reprocess.")
    if args.dryrun and args.reprocess:
        parser.error("--dryrun and --reprocess cannot be combined.")
    return args
