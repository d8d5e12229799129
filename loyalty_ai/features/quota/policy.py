"""Monthly quota policy: static per-feature limits, strict less-than admission."""

from typing import Dict

from loyalty_ai.core.errors import ValidationError
from loyalty_ai.models.feature import Feature


class QuotaPolicy:
    def __init__(self, limits: Dict[Feature, int]):
        self._limits = {Feature(key): int(value) for key, value in limits.items()}

    def limit_for(self, feature) -> int:
        try:
            return self._limits[Feature(feature)]
        except (KeyError, ValueError):
            raise ValidationError(f"No quota configured for feature: {feature}")

    @staticmethod
    def admit(count: int, limit: int) -> bool:
        # A user who has used exactly `limit` this period is denied
        return count < limit

    @staticmethod
    def remaining(count: int, limit: int) -> int:
        return max(0, limit - count)
