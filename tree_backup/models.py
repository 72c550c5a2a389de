"""
Data model for tree_backup.

FileRecord instances are created by traversal (or rebuilt from a failure
manifest) and mutated in place by the digest and transfer pipelines.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass
class FileRecord:
    """One filesystem entry (file or directory) visited during a run."""

    path: str
    size: int = 0
    excluded: bool = True
    digest: str = ""
    digest_ok: bool = False
    transfer_ok: bool = False


@dataclass(frozen=True)
class ExclusionRule:
    """A regex exclusion rule tested against full paths."""

    rule_id: int
    pattern: str
    regex: re.Pattern = field(compare=False, repr=False)

    @classmethod
    def compile(cls, rule_id: int, pattern: str) -> ExclusionRule:
        """Compile a raw pattern into a rule (raises re.error on bad patterns)."""
        return cls(rule_id=rule_id, pattern=pattern, regex=re.compile(pattern))

    def matches(self, path: str) -> bool:
        """Return True when the pattern matches anywhere in path."""
        return self.regex.search(path) is not None


@dataclass(frozen=True)
class FailedEntry:
    """Snapshot of a file that was not stored during a run."""

    path: str
    size: int


@dataclass(frozen=True)
class FailureManifest:
    """Durable record of everything that did not make it to the bucket."""

    bucket: str
    created_at: str
    has_failures: bool
    failed: tuple[FailedEntry, ...] = ()


__all__ = ["ExclusionRule", "FailedEntry", "FailureManifest", "FileRecord"]
