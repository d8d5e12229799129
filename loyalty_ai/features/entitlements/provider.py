"""
Entitlement provider protocol.

Defines the interface for billing providers that report a user's
entitlements. This allows swapping providers without changing the gate.
"""
from typing import List, Optional, Protocol
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class EntitlementRecord:
    """One named entitlement as reported by the billing provider."""
    identifier: str
    expires_at: Optional[datetime]  # tz-aware UTC; None when the provider gives no expiry


class EntitlementProvider(Protocol):
    """
    Protocol for entitlement lookups.

    Implementations must:
    - Issue a single lookup per call (no retries)
    - Return every entitlement record, active or not
    - Raise EntitlementLookupError on any failure instead of guessing
    """

    async def fetch_entitlements(self, user_id: str) -> List[EntitlementRecord]:
        """
        Fetch the entitlement records for a user.

        Args:
            user_id: Caller-supplied user identifier

        Returns:
            All entitlement records known for the user (possibly empty)

        Raises:
            EntitlementLookupError: If the lookup fails or the payload is malformed
        """
        ...

    async def aclose(self) -> None:
        """Release any pooled connections."""
        ...


class EntitlementProviderError(Exception):
    """Base exception for entitlement provider errors."""
    pass


class EntitlementLookupError(EntitlementProviderError):
    """Exception for failed or malformed entitlement lookups."""
    pass
