"""
loyalty_ai/features/gate/service.py

Admission gate shared by every feature endpoint.

Composes the entitlement check, the usage ledger and the quota policy into
one decision. Usage is never recorded here; callers record it only after the
downstream call has succeeded.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
import logging

from loyalty_ai.core.errors import MissingUserError, QuotaExceededError, SubscriptionRequiredError
from loyalty_ai.features.entitlements.service import EntitlementClient
from loyalty_ai.features.quota.policy import QuotaPolicy
from loyalty_ai.features.usage.ledger import UsageLedger
from loyalty_ai.models.feature import Feature


logger = logging.getLogger("loyalty_ai")


class AdmissionResult(str, Enum):
    """Outcome of an admission decision."""
    ADMITTED = "ADMITTED"
    MISSING_USER = "MISSING_USER"
    UNSUBSCRIBED = "UNSUBSCRIBED"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"


@dataclass(frozen=True)
class AdmissionDecision:
    result: AdmissionResult
    user_id: Optional[str]
    feature: Feature
    count: Optional[int] = None
    limit: Optional[int] = None

    @property
    def admitted(self) -> bool:
        return self.result is AdmissionResult.ADMITTED

    def raise_for_status(self) -> None:
        """Raise the matching AppError for a rejected decision."""
        if self.result is AdmissionResult.MISSING_USER:
            raise MissingUserError("userId is required")
        if self.result is AdmissionResult.UNSUBSCRIBED:
            raise SubscriptionRequiredError("An active subscription is required")
        if self.result is AdmissionResult.QUOTA_EXCEEDED:
            raise QuotaExceededError(
                f"Monthly limit of {self.limit} reached for {self.feature.value}"
            )


class RequestGate:
    def __init__(self, entitlements: EntitlementClient, ledger: UsageLedger, policy: QuotaPolicy):
        self.entitlements = entitlements
        self.ledger = ledger
        self.policy = policy

    async def admit(self, user_id: Optional[str], feature: Feature, now: Optional[datetime] = None) -> AdmissionDecision:
        """
        Decide whether a request may reach the generative provider.

        Order: user present, then entitlement, then quota.
        """
        feature = Feature(feature)

        user_id = str(user_id).strip() if user_id is not None else ""
        if not user_id:
            logger.warning("[gate] MISSING_USER", extra={"feature": feature.value})
            return AdmissionDecision(AdmissionResult.MISSING_USER, None, feature)

        if not await self.entitlements.verify(user_id):
            logger.warning("[gate] UNSUBSCRIBED", extra={"user_id": user_id, "feature": feature.value})
            return AdmissionDecision(AdmissionResult.UNSUBSCRIBED, user_id, feature)

        limit = self.policy.limit_for(feature)
        count = self.ledger.current_count(user_id, feature, now)
        if not self.policy.admit(count, limit):
            logger.warning(
                "[gate] QUOTA_EXCEEDED",
                extra={"user_id": user_id, "feature": feature.value, "count": count, "limit": limit},
            )
            return AdmissionDecision(AdmissionResult.QUOTA_EXCEEDED, user_id, feature, count, limit)

        logger.info(
            "[gate] ADMITTED",
            extra={"user_id": user_id, "feature": feature.value, "count": count, "limit": limit},
        )
        return AdmissionDecision(AdmissionResult.ADMITTED, user_id, feature, count, limit)
