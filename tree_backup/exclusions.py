"""
Exclusion rules for the traversal engine.

A directory whose name begins with "." is always excluded. After that, each
configured regex rule is tried against the full path in rule-id order and the
first match wins.
"""

from __future__ import annotations

import logging
from typing import Iterable

from .models import ExclusionRule


class ExclusionEngine:  # pylint: disable=too-few-public-methods
    """Pure predicate deciding whether a path is excluded from the backup."""

    def __init__(self, rules: Iterable[ExclusionRule] = ()):
        self.rules = tuple(sorted(rules, key=lambda rule: rule.rule_id))

    def should_exclude(self, path: str, is_dir: bool, name: str) -> bool:
        """Return True when the entry at path must not be backed up."""
        if is_dir and name.startswith("."):
            logging.debug("Hardcoded exclusion (directory begins with dot): %s", path)
            return True

        for rule in self.rules:
            if rule.matches(path):
                logging.debug("Rule %d excluded %s (is_dir=%s)", rule.rule_id, path, is_dir)
                return True

        return False
