"""
loyalty_ai/features/usage/ledger.py

Usage ledger.

Handles:
- Billing period derivation (UTC calendar month)
- Per (user, feature, period) counting
- In-memory default store and a Redis-backed durable store

Counts are only ever incremented; an unseen key reads as zero.
"""

import threading
from datetime import datetime, timezone, timedelta
from typing import Callable, Dict, Optional, Protocol, Tuple

from loyalty_ai.models.feature import Feature


UsageKey = Tuple[str, str, str]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def current_period(now: Optional[datetime] = None) -> str:
    """
    Billing period for an instant, as "YYYY-MM" in UTC.

    Naive datetimes are treated as UTC; aware ones are converted first.
    """
    if now is None:
        now = _utcnow()
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)
    return f"{now.year:04d}-{now.month:02d}"


def _feature_key(feature) -> str:
    return feature.value if isinstance(feature, Feature) else str(feature)


class UsageLedger(Protocol):
    """Counter store keyed by (user_id, feature, period)."""

    def current_count(self, user_id: str, feature: Feature, now: Optional[datetime] = None) -> int:
        ...

    def increment(self, user_id: str, feature: Feature, now: Optional[datetime] = None) -> int:
        """Add one use in the current period and return the new count."""
        ...


class InMemoryUsageLedger:
    """Process-local ledger. Counts are lost on restart."""

    def __init__(self, now_fn: Callable[[], datetime] = _utcnow):
        self.now_fn = now_fn
        self._counts: Dict[UsageKey, int] = {}
        self._lock = threading.Lock()

    def _key(self, user_id: str, feature, now: Optional[datetime]) -> UsageKey:
        return (user_id, _feature_key(feature), current_period(now or self.now_fn()))

    def current_count(self, user_id: str, feature: Feature, now: Optional[datetime] = None) -> int:
        key = self._key(user_id, feature, now)
        with self._lock:
            return self._counts.get(key, 0)

    def increment(self, user_id: str, feature: Feature, now: Optional[datetime] = None) -> int:
        key = self._key(user_id, feature, now)
        with self._lock:
            value = self._counts.get(key, 0) + 1
            self._counts[key] = value
        return value

    def snapshot(self) -> Dict[UsageKey, int]:
        with self._lock:
            return dict(self._counts)

    def prune_before(self, period: str) -> int:
        """Drop keys of periods strictly older than `period`. Returns the number removed."""
        with self._lock:
            stale = [key for key in self._counts if key[2] < period]
            for key in stale:
                del self._counts[key]
        return len(stale)


class RedisUsageLedger:
    """Durable ledger on Redis. INCR keeps increments atomic across processes."""

    def __init__(
        self,
        client,
        *,
        prefix: str = "usage",
        ttl_days: int = 400,
        now_fn: Callable[[], datetime] = _utcnow,
    ):
        self.client = client
        self.prefix = prefix
        self.ttl_seconds = int(timedelta(days=ttl_days).total_seconds()) if ttl_days > 0 else None
        self.now_fn = now_fn

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisUsageLedger":
        from redis import Redis

        return cls(Redis.from_url(url, decode_responses=True), **kwargs)

    def _key(self, user_id: str, feature, now: Optional[datetime]) -> str:
        period = current_period(now or self.now_fn())
        return f"{self.prefix}:{user_id}:{_feature_key(feature)}:{period}"

    def current_count(self, user_id: str, feature: Feature, now: Optional[datetime] = None) -> int:
        raw = self.client.get(self._key(user_id, feature, now))
        return int(raw) if raw is not None else 0

    def increment(self, user_id: str, feature: Feature, now: Optional[datetime] = None) -> int:
        key = self._key(user_id, feature, now)
        pipe = self.client.pipeline()
        pipe.incr(key)
        if self.ttl_seconds:
            pipe.expire(key, self.ttl_seconds)
        results = pipe.execute()
        return int(results[0])
