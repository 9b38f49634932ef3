"""Storage Manager Module for gfsretain.

This module provides the StorageManager class that runs one retention pass:
pick the backup folder, catalog its files, decide what to keep and delete
the rest.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Set

from ..core.config import RetentionSettings
from ..error_handling import ErrorManager
from .backup_catalog import Catalog, build_catalog
from .retention_policy import (
    RetentionDecision,
    RetentionPolicy,
    RetentionRule,
    RuleOrder,
    deletion_set
)
from .storage_location import DeletionReport, StorageLocation, find_folder_to_process

logger = logging.getLogger("gfsretain.manager")


@dataclass
class RunResult:
    """Everything computed during a retention pass."""
    location: StorageLocation
    catalog: Catalog
    decisions: Dict[str, List[RetentionDecision]]
    files_to_delete: Set[str]
    report: Optional[DeletionReport] = None


class StorageManager:
    """Class orchestrating a retention pass over a backup folder."""

    def __init__(self, settings: Optional[RetentionSettings] = None,
                 error_manager: Optional[ErrorManager] = None):
        """Initialize the storage manager.

        Args:
            settings: Run configuration (defaults to RetentionSettings())
            error_manager: Manager recording recoverable errors
        """
        self.settings = settings or RetentionSettings()
        self.error_manager = error_manager or ErrorManager()
        self.policy = RetentionPolicy(self._build_rule())

    def _build_rule(self) -> RetentionRule:
        return RetentionRule(
            recent_days=self.settings.recent_days,
            daily_days=self.settings.daily_days,
            max_age_days=self.settings.max_age_days,
            rule_order=RuleOrder.KEEP_FIRST if self.settings.keep_first else RuleOrder.DELETE_FIRST
        )

    def plan(self, now: Optional[datetime] = None) -> RunResult:
        """Decide which backups to delete without touching the folder.

        Args:
            now: Reference time (defaults to the current time)

        Returns:
            RunResult without a deletion report

        Raises:
            MissingDirectoryError: If no candidate folder exists
            UnreadableDirectoryError: If the folder cannot be listed
        """
        location = find_folder_to_process(self.settings.candidate_folders)
        catalog = build_catalog(
            location.scan(),
            ignored_names=self.settings.ignored_names,
            delimiter=self.settings.delimiter,
            error_manager=self.error_manager
        )
        decisions = self.policy.decide(catalog, now)
        return RunResult(
            location=location,
            catalog=catalog,
            decisions=decisions,
            files_to_delete=deletion_set(decisions)
        )

    def run(self, now: Optional[datetime] = None, dry_run: Optional[bool] = None) -> RunResult:
        """Run a full retention pass.

        Args:
            now: Reference time (defaults to the current time)
            dry_run: Override the dry_run setting

        Returns:
            RunResult including the deletion report

        Raises:
            MissingDirectoryError: If no candidate folder exists
            UnreadableDirectoryError: If the folder cannot be listed
        """
        if dry_run is None:
            dry_run = self.settings.dry_run

        result = self.plan(now)
        result.report = result.location.delete_backups(
            result.catalog,
            result.files_to_delete,
            dry_run=dry_run,
            error_manager=self.error_manager
        )

        total = sum(len(records) for records in result.catalog.values())
        action = "Would delete" if dry_run else "Deleted"
        done = len(result.files_to_delete) if dry_run else len(result.report.deleted)
        logger.info(f"{action} {done} of {total} backups in '{result.location.path}'")
        return result
