"""
Command-line interface and main entry point for tree_backup.

Handles logging setup, configuration loading and fatal error reporting.
"""

from __future__ import annotations

import logging
import sys

from .args_parser import parse_args
from .config import BackupConfig, build_config
from .errors import BackupError, ConfigurationError
from .orchestrator import BackupRunner, RunComponents
from .prompts import console_confirm
from .store import S3ObjectStore, create_s3_client

EXIT_INTERRUPTED = 130


def create_runner(config: BackupConfig) -> BackupRunner:
    """Factory function to create a BackupRunner with all dependencies"""
    try:
        client = create_s3_client(config.region, config.env_file)
    except ValueError as exc:
        raise ConfigurationError(f"AWS configuration failed: {exc}") from exc
    components = RunComponents(store=S3ObjectStore(client), confirmer=console_confirm)
    return BackupRunner(config, components)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the tree_backup CLI."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(levelname)s %(message)s",
    )

    try:
        config = build_config(args)
        runner = create_runner(config)
        runner.run()
    except BackupError as exc:
        logging.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        print("\nBackup interrupted. The previous failures file was left unchanged.")
        return EXIT_INTERRUPTED
    return 0
