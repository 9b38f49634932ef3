"""Storage Management Module for gfsretain.

This module catalogs the backup files of a folder, applies the tiered
retention policy to them and removes the backups that are no longer needed.
"""

from .backup_catalog import BackupRecord, build_catalog, parse_backup_filename
from .retention_policy import (
    RetentionPolicy,
    RetentionRule,
    RuleOrder,
    RetentionAction,
    RetentionReason,
    RetentionDecision,
    HostRetentionState
)
from .storage_location import StorageLocation, DeletionReport, find_folder_to_process
from .storage_manager import StorageManager, RunResult

__all__ = [
    'BackupRecord', 'build_catalog', 'parse_backup_filename',
    'RetentionPolicy', 'RetentionRule', 'RuleOrder', 'RetentionAction',
    'RetentionReason', 'RetentionDecision', 'HostRetentionState',
    'StorageLocation', 'DeletionReport', 'find_folder_to_process',
    'StorageManager', 'RunResult'
]
