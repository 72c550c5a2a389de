"""Fatal error types that abort a backup run."""


class BackupError(RuntimeError):
    """Base class for errors that stop the whole run."""


class ConfigurationError(BackupError):
    """Raised when required configuration is missing or invalid."""


class TraversalError(BackupError):
    """Raised when the filesystem walk of a base path fails."""


class HashFailureThresholdError(BackupError):
    """Raised when too many files failed to hash to safely continue."""

    def __init__(self, failed_count: int, maximum: int):
        super().__init__(
            f"{failed_count} file(s) failed to hash; configured maximum is {maximum}. Aborting"
        )
        self.failed_count = failed_count
        self.maximum = maximum


class ContainerCreationError(BackupError):
    """Raised when the destination bucket cannot be created."""


class DryRunError(BackupError):
    """Raised when the dry-run connectivity checks fail."""


class ManifestError(BackupError):
    """Raised when a failure manifest cannot be read or reprocessed."""


class StoreError(RuntimeError):
    """Raised by the object store wrapper for any failed S3 call."""


__all__ = [
    "BackupError",
    "ConfigurationError",
    "ContainerCreationError",
    "DryRunError",
    "HashFailureThresholdError",
    "ManifestError",
    "StoreError",
    "TraversalError",
]
