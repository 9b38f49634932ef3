"""Backup Catalog Module for gfsretain.

This module turns a directory listing of backup files named
``HOSTNAME-YYYY-MM-DD-HHMMSS<suffix>`` into a catalog mapping each host to
its backup records, in filename order.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..error_handling import (
    ErrorManager,
    ErrorCategory,
    ErrorSeverity,
    UnparseableFilenameError
)

logger = logging.getLogger("gfsretain.catalog")

Catalog = Dict[str, List["BackupRecord"]]

DEFAULT_IGNORED_NAMES = (".DS_Store",)


@dataclass(frozen=True)
class BackupRecord:
    """One discovered backup file."""
    filename: str
    hostname: str
    timestamp: datetime


def _number(filename: str, field: str, label: str) -> int:
    if not field.isascii() or not field.isdigit():
        raise UnparseableFilenameError(filename, f"{label} '{field}' is not numeric")
    return int(field)


def parse_backup_filename(filename: str, delimiter: str = "-") -> BackupRecord:
    """Extract hostname and timestamp from a backup filename.

    Args:
        filename: Name of the backup file
        delimiter: Field delimiter used in the filename

    Returns:
        BackupRecord for the file

    Raises:
        UnparseableFilenameError: If a field is missing, not numeric or out of range
    """
    fields = filename.split(delimiter)
    if len(fields) < 5:
        raise UnparseableFilenameError(filename, f"expected 5 fields, found {len(fields)}")

    hostname = fields[0]
    if not hostname:
        raise UnparseableFilenameError(filename, "empty hostname")

    year = _number(filename, fields[1], "year")
    month = _number(filename, fields[2], "month")
    day = _number(filename, fields[3], "day")

    # Anything after HHMMSS is the suffix (extension, compression, ...)
    clock = fields[4][:6]
    if len(clock) != 6:
        raise UnparseableFilenameError(filename, f"time '{fields[4]}' is shorter than HHMMSS")
    hour = _number(filename, clock[0:2], "hour")
    minute = _number(filename, clock[2:4], "minute")
    second = _number(filename, clock[4:6], "second")

    try:
        timestamp = datetime(year, month, day, hour, minute, second)
    except ValueError as e:
        raise UnparseableFilenameError(filename, str(e)) from e

    return BackupRecord(filename=filename, hostname=hostname, timestamp=timestamp)


def build_catalog(
    listing: Iterable[str],
    ignored_names: Iterable[str] = DEFAULT_IGNORED_NAMES,
    delimiter: str = "-",
    error_manager: Optional[ErrorManager] = None
) -> Catalog:
    """Build the host -> records catalog from a directory listing.

    Entries are sorted by name before parsing, so records of a host come out
    in filename order. Unparseable entries are skipped with a warning.

    Args:
        listing: Entry names of the backup folder
        ignored_names: Names that are never backups (OS metadata files)
        delimiter: Field delimiter used in the filenames
        error_manager: Optional manager recording skipped entries

    Returns:
        Mapping of hostname to its backup records
    """
    skip = {".", ".."} | set(ignored_names)
    catalog: Catalog = {}

    for filename in sorted(name for name in listing if name not in skip):
        try:
            record = parse_backup_filename(filename, delimiter)
        except UnparseableFilenameError as e:
            logger.warning(f"Failed to retrieve timestamp for '{filename}', ignoring ...")
            if error_manager:
                error_manager.handle_error(
                    ErrorCategory.PARSING,
                    ErrorSeverity.LOW,
                    str(e),
                    {"filename": filename, "reason": e.reason},
                    e
                )
            continue
        catalog.setdefault(record.hostname, []).append(record)

    return catalog
