"""
loyalty_ai/features/entitlements/service.py

Entitlement verification service.

Handles:
- Subscription verification against the billing provider
- Fail-closed mapping of every lookup failure to "not entitled"
- Structured logs only
"""

from datetime import datetime, timezone
from typing import Callable, Iterable
import logging

from loyalty_ai.features.entitlements.provider import EntitlementProvider, EntitlementRecord


logger = logging.getLogger("loyalty_ai")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_now(now: datetime) -> datetime:
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def has_active_entitlement(records: Iterable[EntitlementRecord], now: datetime) -> bool:
    """True if any record expires strictly after `now`. Records without an expiry never count."""
    normalized_now = _normalize_now(now)
    return any(
        record.expires_at is not None and _normalize_now(record.expires_at) > normalized_now
        for record in records
    )


class EntitlementClient:
    """Answers "does this user currently hold any entitlement?" with a single lookup."""

    def __init__(self, provider: EntitlementProvider, *, now_fn: Callable[[], datetime] = _utcnow):
        self.provider = provider
        self.now_fn = now_fn

    async def verify(self, user_id: str) -> bool:
        """
        Verify the user's subscription.

        Never raises: any provider failure is logged and reported as False.

        Args:
            user_id: Non-empty user identifier

        Returns:
            True if at least one entitlement expires after the time of evaluation
        """
        try:
            records = await self.provider.fetch_entitlements(user_id)
        except Exception as e:
            logger.warning(
                "[entitlements] lookup failed, denying access",
                extra={
                    "user_id": user_id,
                    "error_code": e.__class__.__name__,
                    "reason": str(e),
                },
            )
            return False

        # Evaluate against the clock after the lookup returned
        now = self.now_fn()
        active = has_active_entitlement(records, now)
        logger.info(
            "[entitlements] ACTIVE" if active else "[entitlements] INACTIVE",
            extra={
                "user_id": user_id,
                "entitlements": [record.identifier for record in records],
            },
        )
        return active

    async def aclose(self) -> None:
        await self.provider.aclose()
