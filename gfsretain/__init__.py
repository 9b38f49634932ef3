"""gfsretain - Tiered retention for per-host backup folders.

Keeps recent backups, then the first backup of each day, then the first
backup of each month, and removes everything past the maximum age.
"""

from .storage_management import (
    BackupRecord,
    RetentionPolicy,
    RetentionRule,
    RuleOrder,
    StorageLocation,
    StorageManager,
    build_catalog
)
from .core import RetentionSettings, load_settings
from .error_handling import ErrorManager, RetentionError

__version__ = '1.0.0'

__all__ = [
    'BackupRecord', 'RetentionPolicy', 'RetentionRule', 'RuleOrder',
    'StorageLocation', 'StorageManager', 'build_catalog',
    'RetentionSettings', 'load_settings',
    'ErrorManager', 'RetentionError'
]
