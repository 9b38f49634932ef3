"""Unit tests for the tiered retention policy."""

import logging
from datetime import datetime, timedelta

import pytest

from gfsretain.storage_management.backup_catalog import BackupRecord, build_catalog
from gfsretain.storage_management.retention_policy import (
    HostRetentionState,
    RetentionAction,
    RetentionPolicy,
    RetentionReason,
    RetentionRule,
    RuleOrder
)

from conftest import NOW, backup_name


def record(timestamp: datetime, host: str = "A") -> BackupRecord:
    return BackupRecord(filename=backup_name(host, timestamp), hostname=host, timestamp=timestamp)


def outcomes(decisions):
    return [(d.record.timestamp, d.action, d.reason) for d in decisions]


@pytest.fixture
def policy():
    return RetentionPolicy()


@pytest.fixture
def keep_first_policy():
    return RetentionPolicy(RetentionRule(rule_order=RuleOrder.KEEP_FIRST))


KEEP = RetentionAction.KEEP
DELETE = RetentionAction.DELETE


def test_recent_backup_kept_without_updating_state(policy):
    anchor = HostRetentionState(last_kept=NOW - timedelta(days=3))
    for state in (HostRetentionState(), anchor):
        decision, new_state = policy.apply_rules(record(NOW - timedelta(days=2)), state, NOW)
        assert decision.action == KEEP
        assert decision.reason == RetentionReason.RECENT
        assert new_state == state


def test_recent_window_boundary(policy):
    decision, state = policy.apply_rules(record(NOW - timedelta(days=7)), HostRetentionState(), NOW)
    # Exactly 7 days old is no longer recent: it becomes the first kept backup
    assert decision.reason == RetentionReason.FIRST_KEPT
    assert state.last_kept == NOW - timedelta(days=7)

    decision, _ = policy.apply_rules(record(NOW - timedelta(days=7) + timedelta(seconds=1)),
                                     HostRetentionState(), NOW)
    assert decision.reason == RetentionReason.RECENT


def test_expired_backup_deleted_even_when_first(policy):
    old = record(NOW - timedelta(days=365))
    decision, state = policy.apply_rules(old, HostRetentionState(), NOW)
    assert decision.action == DELETE
    assert decision.reason == RetentionReason.EXPIRED
    assert state.last_kept is None


def test_keep_first_order_keeps_expired_first_backup(keep_first_policy):
    old = record(datetime(2022, 1, 1))
    decision, state = keep_first_policy.apply_rules(old, HostRetentionState(), NOW)
    assert decision.action == KEEP
    assert decision.reason == RetentionReason.FIRST_KEPT
    assert state.last_kept == datetime(2022, 1, 1)

    # Only the first one: later expired backups are still deleted
    decision, _ = keep_first_policy.apply_rules(record(datetime(2022, 2, 1)), state, NOW)
    assert decision.action == DELETE
    assert decision.reason == RetentionReason.EXPIRED


def test_first_backup_becomes_anchor(policy):
    first = record(datetime(2024, 1, 10, 8, 0, 0))
    decision, state = policy.apply_rules(first, HostRetentionState(), NOW)
    assert decision.action == KEEP
    assert decision.reason == RetentionReason.FIRST_KEPT
    assert state == HostRetentionState(last_kept=first.timestamp)


def test_monthly_bucket_keeps_earliest(policy):
    records = [
        record(datetime(2024, 1, 1, 0, 0, 0)),
        record(datetime(2024, 1, 1, 8, 0, 0)),
        record(datetime(2024, 1, 20, 0, 0, 0)),
        record(datetime(2024, 2, 1, 0, 0, 0)),
        record(datetime(2024, 2, 14, 0, 0, 0)),
    ]
    assert outcomes(policy.evaluate_host(records, NOW)) == [
        (datetime(2024, 1, 1, 0, 0, 0), KEEP, RetentionReason.FIRST_KEPT),
        (datetime(2024, 1, 1, 8, 0, 0), DELETE, RetentionReason.SAME_MONTH),
        (datetime(2024, 1, 20, 0, 0, 0), DELETE, RetentionReason.SAME_MONTH),
        (datetime(2024, 2, 1, 0, 0, 0), KEEP, RetentionReason.FIRST_OF_MONTH),
        (datetime(2024, 2, 14, 0, 0, 0), DELETE, RetentionReason.SAME_MONTH),
    ]


def test_monthly_bucket_compares_year(policy):
    records = [
        record(datetime(2023, 8, 1)),
        record(datetime(2023, 9, 1)),
        record(datetime(2023, 12, 31, 23, 59, 59)),
        record(datetime(2024, 1, 1, 0, 0, 0)),
    ]
    assert [d.action for d in policy.evaluate_host(records, NOW)] == [KEEP, KEEP, KEEP, KEEP]


def test_daily_bucket_keeps_earliest(policy):
    records = [
        record(datetime(2024, 5, 1, 0, 0, 0)),
        record(datetime(2024, 5, 1, 8, 0, 0)),
        record(datetime(2024, 5, 1, 23, 59, 59)),
        record(datetime(2024, 5, 2, 0, 0, 0)),
    ]
    assert outcomes(policy.evaluate_host(records, NOW)) == [
        (datetime(2024, 5, 1, 0, 0, 0), KEEP, RetentionReason.FIRST_KEPT),
        (datetime(2024, 5, 1, 8, 0, 0), DELETE, RetentionReason.SAME_DAY),
        (datetime(2024, 5, 1, 23, 59, 59), DELETE, RetentionReason.SAME_DAY),
        (datetime(2024, 5, 2, 0, 0, 0), KEEP, RetentionReason.FIRST_OF_DAY),
    ]


def test_state_carries_from_monthly_into_daily_tier(policy):
    records = [
        record(datetime(2024, 3, 1, 6, 0, 0)),   # 106 days old, monthly tier
        record(datetime(2024, 3, 1, 7, 0, 0)),   # same month as anchor
        record(datetime(2024, 3, 20, 6, 0, 0)),  # 87 days old, daily tier
        record(datetime(2024, 3, 20, 7, 0, 0)),
    ]
    assert [(d.action, d.reason) for d in policy.evaluate_host(records, NOW)] == [
        (KEEP, RetentionReason.FIRST_KEPT),
        (DELETE, RetentionReason.SAME_MONTH),
        (KEEP, RetentionReason.FIRST_OF_DAY),
        (DELETE, RetentionReason.SAME_DAY),
    ]


def test_deleted_backup_does_not_move_anchor(policy):
    kept = record(datetime(2024, 4, 1, 0, 0, 0))
    _, state = policy.apply_rules(kept, HostRetentionState(), NOW)
    _, state = policy.apply_rules(record(datetime(2024, 4, 1, 1, 0, 0)), state, NOW)
    assert state.last_kept == kept.timestamp


def test_records_walked_in_chronological_order(policy):
    records = [
        record(datetime(2024, 5, 2)),
        record(datetime(2024, 5, 1, 8, 0, 0)),
        record(datetime(2024, 5, 1)),
    ]
    decisions = policy.evaluate_host(records, NOW)
    assert [d.record.timestamp for d in decisions] == [
        datetime(2024, 5, 1),
        datetime(2024, 5, 1, 8, 0, 0),
        datetime(2024, 5, 2),
    ]
    assert [d.action for d in decisions] == [KEEP, DELETE, KEEP]


def test_hosts_are_evaluated_independently(policy):
    catalog = {
        "A": [record(datetime(2024, 1, 1), "A"), record(datetime(2024, 1, 5), "A")],
        "B": [record(datetime(2024, 1, 3), "B")],
    }
    decisions = policy.decide(catalog, NOW)
    assert [d.action for d in decisions["A"]] == [KEEP, DELETE]
    assert [(d.action, d.reason) for d in decisions["B"]] == [(KEEP, RetentionReason.FIRST_KEPT)]


# Host A with backups aged 400, 95, 95, 40, 10, 10 and 2 days.
END_TO_END = [
    datetime(2023, 5, 12, 12, 0, 0),   # 400 days
    datetime(2024, 3, 12, 12, 0, 0),   # 95 days
    datetime(2024, 3, 12, 13, 0, 0),   # 95 days, same month
    datetime(2024, 5, 6, 12, 0, 0),    # 40 days
    datetime(2024, 6, 5, 0, 0, 0),     # 10 days
    datetime(2024, 6, 5, 8, 0, 0),     # 10 days, same day
    datetime(2024, 6, 13, 12, 0, 0),   # 2 days
]


def test_end_to_end_delete_first(policy):
    catalog = build_catalog([backup_name("A", ts) for ts in END_TO_END])
    decisions = policy.decide(catalog, NOW)["A"]

    assert [(d.action, d.reason) for d in decisions] == [
        (DELETE, RetentionReason.EXPIRED),
        (KEEP, RetentionReason.FIRST_KEPT),
        (DELETE, RetentionReason.SAME_MONTH),
        (KEEP, RetentionReason.FIRST_OF_DAY),
        (KEEP, RetentionReason.FIRST_OF_DAY),
        (DELETE, RetentionReason.SAME_DAY),
        (KEEP, RetentionReason.RECENT),
    ]
    assert policy.evaluate(catalog, NOW) == {
        "A-2023-05-12-120000.tar.gz",
        "A-2024-03-12-130000.tar.gz",
        "A-2024-06-05-080000.tar.gz",
    }


def test_end_to_end_keep_first(keep_first_policy):
    catalog = build_catalog([backup_name("A", ts) for ts in END_TO_END])
    decisions = keep_first_policy.decide(catalog, NOW)["A"]

    assert [(d.action, d.reason) for d in decisions][:3] == [
        (KEEP, RetentionReason.FIRST_KEPT),
        (KEEP, RetentionReason.FIRST_OF_MONTH),
        (DELETE, RetentionReason.SAME_MONTH),
    ]
    assert keep_first_policy.evaluate(catalog, NOW) == {
        "A-2024-03-12-130000.tar.gz",
        "A-2024-06-05-080000.tar.gz",
    }


def test_first_kept_backup_never_deleted(policy):
    catalog = build_catalog([backup_name("A", ts) for ts in END_TO_END])
    decisions = policy.decide(catalog, NOW)["A"]
    anchors = [d.record.filename for d in decisions if d.reason == RetentionReason.FIRST_KEPT]
    assert anchors == ["A-2024-03-12-120000.tar.gz"]
    assert not set(anchors) & policy.evaluate(catalog, NOW)


def test_malformed_entries_never_deleted(policy):
    catalog = build_catalog(["A-notadate-x", "A-2022-01-01-000000.tar.gz"])
    assert policy.evaluate(catalog, NOW) == {"A-2022-01-01-000000.tar.gz"}


def test_deletion_set_only_contains_catalogued_files(policy):
    catalog = build_catalog([backup_name("A", ts) for ts in END_TO_END] +
                            [backup_name("B", ts) for ts in END_TO_END])
    catalogued = {r.filename for records in catalog.values() for r in records}
    assert policy.evaluate(catalog, NOW) <= catalogued


def test_evaluate_reports_count_per_host(policy, caplog):
    caplog.set_level(logging.INFO, logger="gfsretain")
    catalog = build_catalog([backup_name("A", ts) for ts in END_TO_END] +
                            [backup_name("B", datetime(2024, 6, 1))])
    policy.evaluate(catalog, NOW)
    assert "A: 7" in caplog.messages
    assert "B: 1" in caplog.messages


def test_evaluate_defaults_to_current_time(policy):
    fresh = datetime.now() - timedelta(days=1)
    catalog = {"A": [record(fresh)]}
    assert policy.evaluate(catalog) == set()


def test_custom_windows():
    policy = RetentionPolicy(RetentionRule(recent_days=1, daily_days=30, max_age_days=60))
    records = [
        record(NOW - timedelta(days=61)),
        record(NOW - timedelta(days=40)),
        record(NOW - timedelta(days=2)),
    ]
    assert [(d.action, d.reason) for d in policy.evaluate_host(records, NOW)] == [
        (DELETE, RetentionReason.EXPIRED),
        (KEEP, RetentionReason.FIRST_KEPT),
        (KEEP, RetentionReason.FIRST_OF_DAY),
    ]


@pytest.mark.parametrize("rule", [
    RetentionRule(recent_days=0),
    RetentionRule(daily_days=-1),
    RetentionRule(recent_days=90, daily_days=7),
    RetentionRule(daily_days=365, max_age_days=365),
])
def test_invalid_rule_rejected(rule):
    with pytest.raises(ValueError):
        RetentionPolicy(rule)


def test_policy_to_dict(keep_first_policy):
    assert keep_first_policy.to_dict() == {
        "name": "gfs",
        "recent_days": 7,
        "daily_days": 90,
        "max_age_days": 365,
        "rule_order": "keep_first",
    }
