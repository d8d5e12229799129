"""Tests for usage ledger counting and period derivation."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from loyalty_ai.features.usage.ledger import InMemoryUsageLedger, RedisUsageLedger, current_period
from loyalty_ai.models.feature import Feature
from loyalty_ai.tests.mocks import FakeClock


def test_period_is_utc_year_month():
    assert current_period(datetime(2026, 1, 1, 0, 0, tzinfo=timezone.utc)) == "2026-01"
    assert current_period(datetime(2026, 1, 31, 23, 59, 59, tzinfo=timezone.utc)) == "2026-01"
    assert current_period(datetime(2026, 12, 5, tzinfo=timezone.utc)) == "2026-12"


def test_period_converts_aware_times_to_utc():
    # 20:00 on Jan 31 in UTC-5 is already February in UTC
    eastern = timezone(timedelta(hours=-5))
    assert current_period(datetime(2026, 1, 31, 20, 0, tzinfo=eastern)) == "2026-02"


def test_period_treats_naive_times_as_utc():
    assert current_period(datetime(2026, 3, 31, 23, 30)) == "2026-03"


def test_unseen_key_reads_zero():
    ledger = InMemoryUsageLedger(now_fn=FakeClock())
    assert ledger.current_count("nobody", Feature.CHAT) == 0


def test_increment_counts_per_user_and_feature():
    ledger = InMemoryUsageLedger(now_fn=FakeClock())
    assert ledger.increment("u1", Feature.CHAT) == 1
    assert ledger.increment("u1", Feature.CHAT) == 2
    ledger.increment("u1", Feature.RED_FLAG)
    ledger.increment("u2", Feature.CHAT)

    assert ledger.current_count("u1", Feature.CHAT) == 2
    assert ledger.current_count("u1", Feature.RED_FLAG) == 1
    assert ledger.current_count("u1", Feature.LOYALTY_TEST) == 0
    assert ledger.current_count("u2", Feature.CHAT) == 1


def test_same_month_resolves_to_same_count():
    clock = FakeClock(datetime(2026, 1, 1, 0, 0, tzinfo=timezone.utc))
    ledger = InMemoryUsageLedger(now_fn=clock)
    ledger.increment("u1", Feature.CHAT)
    clock.advance(days=30, hours=23)
    assert ledger.current_count("u1", Feature.CHAT) == 1


def test_periods_are_independent():
    clock = FakeClock(datetime(2026, 1, 20, tzinfo=timezone.utc))
    ledger = InMemoryUsageLedger(now_fn=clock)
    for _ in range(3):
        ledger.increment("u1", Feature.CHAT)

    clock.advance(days=15)  # February
    assert ledger.current_count("u1", Feature.CHAT) == 0
    ledger.increment("u1", Feature.CHAT)

    january = datetime(2026, 1, 5, tzinfo=timezone.utc)
    assert ledger.current_count("u1", Feature.CHAT, now=january) == 3
    assert ledger.current_count("u1", Feature.CHAT) == 1


def test_threaded_increments_are_not_lost():
    ledger = InMemoryUsageLedger(now_fn=FakeClock())

    def work(_):
        for _ in range(500):
            ledger.increment("u1", Feature.CHAT)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(work, range(8)))

    assert ledger.current_count("u1", Feature.CHAT) == 4000


def test_prune_before_drops_only_older_periods():
    clock = FakeClock(datetime(2025, 11, 3, tzinfo=timezone.utc))
    ledger = InMemoryUsageLedger(now_fn=clock)
    ledger.increment("u1", Feature.CHAT)
    clock.current = datetime(2025, 12, 3, tzinfo=timezone.utc)
    ledger.increment("u1", Feature.CHAT)
    clock.current = datetime(2026, 1, 3, tzinfo=timezone.utc)
    ledger.increment("u1", Feature.CHAT)

    removed = ledger.prune_before("2025-12")

    assert removed == 1
    assert sorted(key[2] for key in ledger.snapshot()) == ["2025-12", "2026-01"]
    assert ledger.current_count("u1", Feature.CHAT) == 1


def test_redis_ledger_uses_three_part_key_and_incr():
    client = MagicMock()
    pipe = client.pipeline.return_value
    pipe.execute.return_value = [7, True]
    ledger = RedisUsageLedger(client, ttl_days=1, now_fn=FakeClock())

    assert ledger.increment("u1", Feature.RED_FLAG) == 7

    pipe.incr.assert_called_once_with("usage:u1:redFlag:2026-01")
    pipe.expire.assert_called_once_with("usage:u1:redFlag:2026-01", 86400)


def test_redis_ledger_missing_key_reads_zero():
    client = MagicMock()
    client.get.side_effect = lambda key: "4" if key == "usage:u1:chat:2026-01" else None
    ledger = RedisUsageLedger(client, now_fn=FakeClock())

    assert ledger.current_count("u1", Feature.CHAT) == 4
    assert ledger.current_count("u2", Feature.CHAT) == 0
