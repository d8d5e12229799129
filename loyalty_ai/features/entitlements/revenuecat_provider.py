"""
RevenueCat entitlement provider implementation.

Implements EntitlementProvider using the RevenueCat REST API.
Parses subscriber entitlements; never decides whether access is granted.
"""
import os
from datetime import datetime, timezone
from typing import Any, List, Optional
from urllib.parse import quote

import httpx

from loyalty_ai.features.entitlements.provider import (
    EntitlementLookupError,
    EntitlementProviderError,
    EntitlementRecord,
)


DEFAULT_BASE_URL = "https://api.revenuecat.com/v1"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware UTC datetime."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise EntitlementLookupError(f"Invalid expiry timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise EntitlementLookupError(f"Invalid expiry timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class RevenueCatProvider:
    """RevenueCat implementation of EntitlementProvider protocol."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize RevenueCat provider.

        Args:
            api_key: RevenueCat secret API key (defaults to REVENUECAT_API_KEY env var)
            base_url: API base URL (defaults to the public v1 API)
            timeout: Per-lookup timeout in seconds
            client: Pre-built httpx client (tests inject a MockTransport-backed one)
        """
        self.api_key = api_key or os.getenv("REVENUECAT_API_KEY")
        if not self.api_key:
            raise EntitlementProviderError("REVENUECAT_API_KEY not configured")

        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def fetch_entitlements(self, user_id: str) -> List[EntitlementRecord]:
        """Fetch all entitlement records for a subscriber."""
        url = f"{self.base_url}/subscribers/{quote(user_id, safe='')}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        try:
            response = await self._client.get(url, headers=headers)
        except httpx.HTTPError as e:
            raise EntitlementLookupError(f"RevenueCat request failed: {e.__class__.__name__}") from e

        if response.status_code == 404:
            return []
        if response.status_code >= 300:
            raise EntitlementLookupError(f"RevenueCat lookup failed: HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise EntitlementLookupError("RevenueCat returned invalid JSON") from e

        return self._parse_entitlements(payload)

    def _parse_entitlements(self, payload: Any) -> List[EntitlementRecord]:
        """Parse a subscriber payload into EntitlementRecords."""
        if not isinstance(payload, dict):
            raise EntitlementLookupError("RevenueCat payload is not an object")
        subscriber = payload.get("subscriber")
        if not isinstance(subscriber, dict):
            raise EntitlementLookupError("RevenueCat payload missing 'subscriber'")
        entitlements = subscriber.get("entitlements")
        if not isinstance(entitlements, dict):
            raise EntitlementLookupError("RevenueCat payload missing 'subscriber.entitlements'")

        records: List[EntitlementRecord] = []
        for identifier, data in entitlements.items():
            if not isinstance(data, dict) or "expires_date" not in data:
                raise EntitlementLookupError(f"Entitlement {identifier!r} missing 'expires_date'")
            records.append(
                EntitlementRecord(
                    identifier=identifier,
                    expires_at=parse_timestamp(data.get("expires_date")),
                )
            )
        return records

    async def aclose(self) -> None:
        await self._client.aclose()
