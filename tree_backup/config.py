"""
Configuration for tree_backup.

Defaults live in this module. They can be overridden by environment
variables (optionally loaded from a .env file) and then by command-line flags.
The result is a frozen BackupConfig passed to every component.

Performance notes:
- Hashing and uploading each run in their own bounded thread pool
- Each worker tolerates a limited number of failures before it stops
- Too many hash failures abort the run before anything is uploaded
"""

from __future__ import annotations

import argparse
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .models import ExclusionRule

# Flat files read at startup
DEFAULT_EXCLUSIONS_FILE: str = "exclusions.txt"
DEFAULT_BASE_PATHS_FILE: str = "base_paths.txt"
DEFAULT_FAILURES_FILE: str = "failures.json"
DEFAULT_ENV_FILE: str = ".env"

# Worker pools
DEFAULT_HASH_WORKERS: int = 10
DEFAULT_STORAGE_WORKERS: int = 10
DEFAULT_MAX_HASH_WORKER_ERRORS: int = 50  # Per worker, before it stops pulling work
DEFAULT_MAX_STORAGE_WORKER_ERRORS: int = 50

# Run-wide limits
DEFAULT_MAX_HASH_FAILURES: int = 25  # Abort before uploading at or above this
DEFAULT_MAX_STORAGE_ATTEMPTS: int = 5  # Backoff is 2^n seconds between attempts

DEFAULT_REGION: str = "us-east-1"

ENV_PREFIX = "TREE_BACKUP_"


@dataclass(frozen=True)
class BackupConfig:  # pylint: disable=too-many-instance-attributes
    """Immutable settings for a single backup run."""

    bucket: str
    base_paths: tuple[str, ...] = ()
    exclusions: tuple[ExclusionRule, ...] = ()
    region: str = DEFAULT_REGION
    dryrun_bucket: str = ""
    hash_workers: int = DEFAULT_HASH_WORKERS
    storage_workers: int = DEFAULT_STORAGE_WORKERS
    max_hash_worker_errors: int = DEFAULT_MAX_HASH_WORKER_ERRORS
    max_storage_worker_errors: int = DEFAULT_MAX_STORAGE_WORKER_ERRORS
    max_hash_failures: int = DEFAULT_MAX_HASH_FAILURES
    max_storage_attempts: int = DEFAULT_MAX_STORAGE_ATTEMPTS
    dryrun: bool = False
    reprocess: bool = False
    no_confirm: bool = False
    failures_file: str = DEFAULT_FAILURES_FILE
    env_file: Optional[str] = field(default=None, compare=False)

    def describe(self) -> str:
        """Return a printable dump of the configuration."""
        lines = [
            f"  Bucket: {self.bucket}",
            f"  Region: {self.region}",
            f"  Dryrun bucket: {self.dryrun_bucket}",
            f"  Base paths: {', '.join(self.base_paths) or '(none)'}",
            f"  Exclusion rules: {len(self.exclusions)}",
        ]
        lines.extend(f"    [{rule.rule_id}] {rule.pattern}" for rule in self.exclusions)
        lines.extend(
            [
                f"  Hash workers: {self.hash_workers} (max errors each: {self.max_hash_worker_errors})",
                f"  Storage workers: {self.storage_workers} "
                f"(max errors each: {self.max_storage_worker_errors})",
                f"  Max hash failures: {self.max_hash_failures}",
                f"  Max storage attempts: {self.max_storage_attempts}",
                f"  Failures file: {self.failures_file}",
                f"  Reprocess: {self.reprocess}  No confirm: {self.no_confirm}",
            ]
        )
        return "\n".join(lines) + "\n"


def _meaningful_lines(path) -> list[str]:
    """Return stripped lines, skipping blanks and # comments."""
    try:
        with open(path, encoding="utf-8") as f:
            raw_lines = f.read().splitlines()
    except OSError as exc:
        raise ConfigurationError(f"Unable to open {path}: {exc}") from exc
    return [line.strip() for line in raw_lines if line.strip() and not line.strip().startswith("#")]


def read_exclusions(path) -> tuple[ExclusionRule, ...]:
    """
    Read exclusion rules from a flat file, one regex per line.

    Rule ids follow line order starting at 1.

    Raises:
        ConfigurationError: If the file cannot be read or a pattern is invalid
    """
    rules = []
    for rule_id, pattern in enumerate(_meaningful_lines(path), start=1):
        try:
            rules.append(ExclusionRule.compile(rule_id, pattern))
        except re.error as exc:
            raise ConfigurationError(f"Failed to compile exclusion '{pattern}': {exc}") from exc
    return tuple(rules)


def read_base_paths(path) -> tuple[str, ...]:
    """Read base paths from a flat file, returning them as absolute paths."""
    base_paths = tuple(os.path.abspath(os.path.expanduser(line)) for line in _meaningful_lines(path))
    if not base_paths:
        raise ConfigurationError(f"No base paths defined in {path}")
    return base_paths


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc


def load_environment(env_file: Optional[str] = None) -> Mapping[str, str]:
    """Load the .env file (if present) into os.environ and return it."""
    resolved = env_file or os.environ.get(ENV_PREFIX + "ENV_FILE") or DEFAULT_ENV_FILE
    if Path(resolved).exists():
        load_dotenv(resolved)
    return os.environ


def _validate(config: BackupConfig) -> None:
    if not config.bucket:
        raise ConfigurationError(
            "No bucket configured. Pass --bucket or set TREE_BACKUP_BUCKET."
        )
    if config.hash_workers <= 0 or config.storage_workers <= 0:
        raise ConfigurationError("Worker counts must be positive")
    if config.max_hash_failures <= 0:
        raise ConfigurationError("Max hash failures must be positive")


def build_config(
    args: argparse.Namespace, environ: Optional[Mapping[str, str]] = None
) -> BackupConfig:
    """
    Combine defaults, environment and parsed CLI flags into a BackupConfig.

    Args:
        args: Namespace produced by args_parser.parse_args
        environ: Environment mapping (defaults to os.environ after loading .env)

    Raises:
        ConfigurationError: If required settings are missing or invalid
    """
    if environ is None:
        environ = load_environment(args.env_file)

    bucket = args.bucket or environ.get(ENV_PREFIX + "BUCKET", "")
    exclusions: tuple[ExclusionRule, ...] = ()
    base_paths: tuple[str, ...] = ()
    if not args.reprocess:
        exclusions = read_exclusions(args.exclusions_file)
        base_paths = read_base_paths(args.base_paths_file)

    config = BackupConfig(
        bucket=bucket,
        base_paths=base_paths,
        exclusions=exclusions,
        region=args.region or environ.get(ENV_PREFIX + "REGION") or DEFAULT_REGION,
        dryrun_bucket=args.dryrun_bucket or environ.get(ENV_PREFIX + "DRYRUN_BUCKET") or bucket,
        hash_workers=_env_int(environ, "HASH_WORKERS", DEFAULT_HASH_WORKERS),
        storage_workers=_env_int(environ, "STORAGE_WORKERS", DEFAULT_STORAGE_WORKERS),
        max_hash_worker_errors=_env_int(
            environ, "MAX_HASH_WORKER_ERRORS", DEFAULT_MAX_HASH_WORKER_ERRORS
        ),
        max_storage_worker_errors=_env_int(
            environ, "MAX_STORAGE_WORKER_ERRORS", DEFAULT_MAX_STORAGE_WORKER_ERRORS
        ),
        max_hash_failures=_env_int(environ, "MAX_HASH_FAILURES", DEFAULT_MAX_HASH_FAILURES),
        max_storage_attempts=_env_int(
            environ, "MAX_STORAGE_ATTEMPTS", DEFAULT_MAX_STORAGE_ATTEMPTS
        ),
        dryrun=args.dryrun,
        reprocess=args.reprocess,
        no_confirm=args.no_confirm,
        failures_file=args.failures_file,
        env_file=args.aws_env_file,
    )
    _validate(config)
    return config


__all__ = [
    "BackupConfig",
    "build_config",
    "load_environment",
    "read_base_paths",
    "read_exclusions",
]
