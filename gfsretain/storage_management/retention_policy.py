"""Retention Policy Module for gfsretain.

This module defines the RetentionPolicy class that decides, host by host,
which backups to keep and which to delete under a grandfather-father-son
scheme:

* backups younger than ``recent_days`` are always kept;
* backups at least ``max_age_days`` old are deleted;
* the oldest remaining backup of a host is kept as its anchor;
* between ``daily_days`` and ``max_age_days`` the first backup of each
  calendar month is kept;
* between ``recent_days`` and ``daily_days`` the first backup of each
  calendar day is kept.

"First" is judged against the last backup kept by one of the last three
rules, so only the earliest backup of each day or month survives.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .backup_catalog import BackupRecord, Catalog

logger = logging.getLogger("gfsretain.retention")


class RuleOrder(Enum):
    """Order in which the age cutoff and the first-backup rule are applied."""
    DELETE_FIRST = "delete_first"  # Backups past max age are deleted even if first
    KEEP_FIRST = "keep_first"  # The first backup of a host survives any age


class RetentionAction(Enum):
    """Outcome for a single backup."""
    KEEP = "keep"
    DELETE = "delete"


class RetentionReason(Enum):
    """Rule that produced a decision."""
    RECENT = "recent"
    EXPIRED = "expired"
    FIRST_KEPT = "first_kept"
    FIRST_OF_MONTH = "first_of_month"
    SAME_MONTH = "same_month"
    FIRST_OF_DAY = "first_of_day"
    SAME_DAY = "same_day"


@dataclass
class RetentionRule:
    """Configuration for the retention windows, in days."""
    recent_days: int = 7
    daily_days: int = 90
    max_age_days: int = 365
    rule_order: RuleOrder = RuleOrder.DELETE_FIRST


@dataclass(frozen=True)
class HostRetentionState:
    """Per-host state carried from one backup to the next."""
    last_kept: Optional[datetime] = None


@dataclass(frozen=True)
class RetentionDecision:
    """Decision taken for one backup."""
    record: BackupRecord
    action: RetentionAction
    reason: RetentionReason

    @property
    def keep(self) -> bool:
        return self.action == RetentionAction.KEEP


def _same_month(a: datetime, b: datetime) -> bool:
    return (a.year, a.month) == (b.year, b.month)


def _same_day(a: datetime, b: datetime) -> bool:
    return a.date() == b.date()


class RetentionPolicy:
    """Class applying the tiered retention rules to a backup catalog."""

    def __init__(self, rule: Optional[RetentionRule] = None, name: str = "gfs"):
        """Initialize a retention policy.

        Args:
            rule: Retention windows and rule order (defaults to 7/90/365 days)
            name: Identifier for the policy
        """
        self.name = name
        self.rule = rule or RetentionRule()
        self._validate_rule()
        self.recent = timedelta(days=self.rule.recent_days)
        self.daily = timedelta(days=self.rule.daily_days)
        self.max_age = timedelta(days=self.rule.max_age_days)

    def _validate_rule(self) -> None:
        """Validate the retention rule configuration.

        Raises:
            ValueError: If the rule configuration is invalid
        """
        for field in ("recent_days", "daily_days", "max_age_days"):
            if getattr(self.rule, field) <= 0:
                raise ValueError(f"{field} must be positive")

        if not self.rule.recent_days < self.rule.daily_days < self.rule.max_age_days:
            raise ValueError("Retention windows must satisfy recent_days < daily_days < max_age_days")

    def apply_rules(
        self,
        record: BackupRecord,
        state: HostRetentionState,
        now: datetime
    ) -> Tuple[RetentionDecision, HostRetentionState]:
        """Decide the fate of one backup.

        Args:
            record: Backup being evaluated
            state: State left by the previous backup of the same host
            now: Reference time used to compute the backup's age

        Returns:
            The decision and the state to pass to the next backup
        """
        age = now - record.timestamp

        if age < self.recent:
            return self._keep(record, RetentionReason.RECENT), state

        if self.rule.rule_order == RuleOrder.KEEP_FIRST and state.last_kept is None:
            return self._keep(record, RetentionReason.FIRST_KEPT), HostRetentionState(record.timestamp)

        if age >= self.max_age:
            return self._delete(record, RetentionReason.EXPIRED), state

        if state.last_kept is None:
            return self._keep(record, RetentionReason.FIRST_KEPT), HostRetentionState(record.timestamp)

        if age >= self.daily:
            if _same_month(record.timestamp, state.last_kept):
                return self._delete(record, RetentionReason.SAME_MONTH), state
            return self._keep(record, RetentionReason.FIRST_OF_MONTH), HostRetentionState(record.timestamp)

        if _same_day(record.timestamp, state.last_kept):
            return self._delete(record, RetentionReason.SAME_DAY), state
        return self._keep(record, RetentionReason.FIRST_OF_DAY), HostRetentionState(record.timestamp)

    @staticmethod
    def _keep(record: BackupRecord, reason: RetentionReason) -> RetentionDecision:
        return RetentionDecision(record, RetentionAction.KEEP, reason)

    @staticmethod
    def _delete(record: BackupRecord, reason: RetentionReason) -> RetentionDecision:
        return RetentionDecision(record, RetentionAction.DELETE, reason)

    def evaluate_host(self, records: Sequence[BackupRecord], now: datetime) -> List[RetentionDecision]:
        """Walk one host's backups oldest first and decide each of them.

        Args:
            records: Backups of a single host
            now: Reference time used to compute ages

        Returns:
            One decision per backup, in chronological order
        """
        state = HostRetentionState()
        decisions = []
        # Stable sort: equal timestamps keep their filename order
        for record in sorted(records, key=lambda r: r.timestamp):
            decision, state = self.apply_rules(record, state, now)
            logger.debug(f"{record.filename}: {decision.action.value} ({decision.reason.value})")
            decisions.append(decision)
        return decisions

    def decide(self, catalog: Catalog, now: Optional[datetime] = None) -> Dict[str, List[RetentionDecision]]:
        """Decide every backup of the catalog, reporting the backup count per host.

        Args:
            catalog: Mapping of hostname to its backups
            now: Reference time (defaults to the current time)

        Returns:
            Mapping of hostname to its decisions
        """
        now = now or datetime.now()
        decisions = {}
        for host, records in catalog.items():
            logger.info(f"{host}: {len(records)}")
            decisions[host] = self.evaluate_host(records, now)
        return decisions

    def evaluate(self, catalog: Catalog, now: Optional[datetime] = None) -> Set[str]:
        """Determine which backup files should be deleted.

        Args:
            catalog: Mapping of hostname to its backups
            now: Reference time (defaults to the current time)

        Returns:
            Set of filenames to delete
        """
        return deletion_set(self.decide(catalog, now))

    def to_dict(self) -> dict:
        """Convert retention policy to dictionary representation.

        Returns:
            Dictionary containing retention policy configuration
        """
        return {
            "name": self.name,
            "recent_days": self.rule.recent_days,
            "daily_days": self.rule.daily_days,
            "max_age_days": self.rule.max_age_days,
            "rule_order": self.rule.rule_order.value
        }


def deletion_set(decisions: Dict[str, List[RetentionDecision]]) -> Set[str]:
    """Collect the filenames of all DELETE decisions."""
    return {
        decision.record.filename
        for host_decisions in decisions.values()
        for decision in host_decisions
        if not decision.keep
    }
