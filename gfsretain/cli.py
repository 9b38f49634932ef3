"""Command line interface for gfsretain.

Prunes a folder of per-host backup files, keeping recent backups, one per
day, one per month, and nothing past the maximum age. Runs as a dry run
unless --execute is given.
"""

import sys
import json
import argparse
import logging
from typing import List, Optional

from .core.config import load_settings, apply_overrides
from .error_handling import (
    ErrorManager,
    ErrorCategory,
    RetentionError,
    MissingDirectoryError,
    UnreadableDirectoryError
)
from .storage_management import StorageManager
from .utils.logging_config import configure_logging

logger = logging.getLogger("gfsretain.cli")


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="gfsretain",
        description="Delete old per-host backups following a grandfather-father-son schedule"
    )

    parser.add_argument(
        "folders",
        nargs="*",
        help="Backup folders to try, first existing one wins (default: from settings)"
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to a JSON settings file"
    )

    parser.add_argument(
        "--execute",
        action="store_true",
        help="Actually delete the files. Default is dry run."
    )

    order = parser.add_mutually_exclusive_group()
    order.add_argument(
        "--keep-first",
        dest="keep_first",
        action="store_const",
        const=True,
        help="Always keep the oldest backup of each host, even past the maximum age"
    )
    order.add_argument(
        "--delete-first",
        dest="keep_first",
        action="store_const",
        const=False,
        help="Delete backups past the maximum age, oldest one included (overrides keep_first)"
    )

    parser.add_argument("--recent-days", type=int, default=None,
                        help="Keep every backup younger than this (default: 7)")
    parser.add_argument("--daily-days", type=int, default=None,
                        help="Keep one backup per day younger than this (default: 90)")
    parser.add_argument("--max-age-days", type=int, default=None,
                        help="Delete backups older than this (default: 365)")

    parser.add_argument(
        "--show-decisions",
        action="store_true",
        help="Print the decision taken for every backup"
    )

    parser.add_argument(
        "--show-policy",
        action="store_true",
        help="Print the effective retention policy as JSON and exit"
    )

    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        default=None,
        help="Console logging level (default: info)"
    )

    parser.add_argument(
        "--log-dir",
        default=None,
        help="Directory for the rotating log and audit files"
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Run a retention pass and return the process exit status."""
    args = parse_args(argv)

    try:
        settings = apply_overrides(
            load_settings(args.config),
            candidate_folders=args.folders or None,
            recent_days=args.recent_days,
            daily_days=args.daily_days,
            max_age_days=args.max_age_days,
            keep_first=args.keep_first,
            dry_run=False if args.execute else None,
            log_level=args.log_level,
            log_dir=args.log_dir
        )
    except RetentionError as e:
        configure_logging({"log_dir": None}, force=True)
        logger.error(str(e))
        return 1

    configure_logging(settings.logging_settings(), force=True)

    error_manager = ErrorManager()
    manager = StorageManager(settings, error_manager)

    if args.show_policy:
        print(json.dumps(manager.policy.to_dict(), indent=2))
        return 0

    try:
        result = manager.run()
    except (MissingDirectoryError, UnreadableDirectoryError) as e:
        logger.error(f"{e}. Exiting ...")
        return 1

    if args.show_decisions:
        for host, decisions in result.decisions.items():
            for decision in decisions:
                print(f"{host}\t{decision.record.filename}\t{decision.action.value}\t{decision.reason.value}")

    error_manager.log_summary()
    return 1 if error_manager.has_errors(ErrorCategory.DELETION) else 0


if __name__ == "__main__":
    sys.exit(main())
