"""Storage Location Module for gfsretain.

This module defines the StorageLocation class that wraps the local folder
holding the backup files: listing its entries, picking the folder to use
from a list of candidates, and deleting the backups chosen for removal.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

from ..error_handling import (
    ErrorManager,
    ErrorCategory,
    ErrorSeverity,
    MissingDirectoryError,
    UnreadableDirectoryError,
    DeletionFailureError
)
from ..utils.logging_config import log_audit_event
from .backup_catalog import Catalog

logger = logging.getLogger("gfsretain.storage")


@dataclass
class DeletionReport:
    """Outcome of applying a deletion set to a folder."""
    dry_run: bool
    deleted: List[Path] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class StorageLocation:
    """Class for a local folder of backup files."""

    def __init__(self, path: Union[str, Path]):
        """Initialize a storage location.

        Args:
            path: Folder containing the backup files; "~" is expanded
        """
        self.path = Path(path).expanduser()

    def exists(self) -> bool:
        return self.path.is_dir()

    def scan(self) -> List[str]:
        """List the entries of the folder, sorted by name.

        Returns:
            Entry names, without the "." and ".." pseudo-entries

        Raises:
            MissingDirectoryError: If the folder does not exist
            UnreadableDirectoryError: If the folder cannot be listed
        """
        if not self.exists():
            logger.error(f"Directory '{self.path}' does not exist!")
            raise MissingDirectoryError(f"Directory '{self.path}' does not exist", str(self.path))
        try:
            names = os.listdir(self.path)
        except OSError as e:
            raise UnreadableDirectoryError(str(self.path), e) from e
        return sorted(name for name in names if name not in (".", ".."))

    def delete_backups(
        self,
        catalog: Catalog,
        files_to_delete: Set[str],
        dry_run: bool = True,
        error_manager: Optional[ErrorManager] = None
    ) -> DeletionReport:
        """Delete the catalogued backups named in files_to_delete.

        A failure to delete one file is logged and recorded, and the
        remaining files are still processed.

        Args:
            catalog: Catalog the deletion set was computed from
            files_to_delete: Filenames chosen for removal
            dry_run: Only report what would be deleted
            error_manager: Optional manager recording failed deletions

        Returns:
            DeletionReport listing deleted and failed files
        """
        report = DeletionReport(dry_run=dry_run)

        for records in catalog.values():
            for record in records:
                if record.filename not in files_to_delete:
                    continue

                target = self.path / record.filename
                if dry_run:
                    logger.info(f"Deleting {record.filename} ... (dry run)")
                    continue

                logger.info(f"Deleting {record.filename} ...")
                try:
                    target.unlink()
                except OSError as e:
                    failure = DeletionFailureError(record.filename, e)
                    logger.error(str(failure))
                    if error_manager:
                        error_manager.handle_error(
                            ErrorCategory.DELETION,
                            ErrorSeverity.MEDIUM,
                            str(failure),
                            {"filename": record.filename, "path": str(target)},
                            failure
                        )
                    report.failed.append(record.filename)
                    continue

                report.deleted.append(target)
                log_audit_event("delete_backup", {
                    "filename": record.filename,
                    "hostname": record.hostname,
                    "timestamp": record.timestamp.isoformat(),
                    "folder": str(self.path)
                })

        return report


def find_folder_to_process(candidates: Iterable[Union[str, Path]]) -> StorageLocation:
    """Pick the first candidate folder that exists.

    Args:
        candidates: Folders to try, in order of preference

    Returns:
        StorageLocation for the first existing folder

    Raises:
        MissingDirectoryError: If none of the candidates exist
    """
    for candidate in candidates:
        location = StorageLocation(candidate)
        if location.exists():
            logger.info(f"Using '{location.path}' for processing ...")
            return location
        logger.debug(f"Candidate folder '{location.path}' not found")

    raise MissingDirectoryError("Couldn't find folder to process")
