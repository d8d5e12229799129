"""
Environment validation utilities.

Ensures the relay fails fast on misconfiguration while
remaining bypassable for tests via SKIP_ENV_VALIDATION.
"""

import os
from typing import Optional, Iterable
from urllib.parse import urlparse

from loyalty_ai.core.config import settings


class EnvValidationError(RuntimeError):
    """Raised when environment validation fails."""


LEDGER_BACKENDS = {"memory", "redis"}


def _is_valid_redis_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in {"redis", "rediss", "unix"} and bool(parsed.netloc or parsed.path)


def _require(vars_required: Iterable[str], source: object) -> None:
    for var in vars_required:
        if not getattr(source, var, None):
            raise EnvValidationError(f"{var} is required in production")


def _require_positive(vars_required: Iterable[str], source: object) -> None:
    for var in vars_required:
        value = getattr(source, var, None)
        if value is None or value <= 0:
            raise EnvValidationError(f"{var} must be a positive number")


def validate_env(env: Optional[str] = None, settings_obj=None) -> bool:
    """Validate environment configuration.

    Args:
        env: Override environment name (defaults to settings.ENV)
        settings_obj: Override settings object (defaults to loyalty_ai.core.config.settings)

    Returns:
        True if validation passes.

    Raises:
        EnvValidationError when a rule is violated.
    """
    if os.getenv("SKIP_ENV_VALIDATION") == "1":
        return True

    cfg = settings_obj or settings
    mode = (env or getattr(cfg, "ENV", "development") or "development").lower()

    port = getattr(cfg, "PORT", None)
    if not isinstance(port, int) or not 0 < port < 65536:
        raise EnvValidationError("PORT must be an integer between 1 and 65535")

    _require_positive(
        [
            "CHAT_MONTHLY_LIMIT",
            "LOYALTY_TEST_MONTHLY_LIMIT",
            "RED_FLAG_MONTHLY_LIMIT",
            "GENERATION_TIMEOUT_SECONDS",
            "ENTITLEMENT_TIMEOUT_SECONDS",
        ],
        cfg,
    )

    backend = (getattr(cfg, "USAGE_LEDGER_BACKEND", "memory") or "memory").lower()
    if backend not in LEDGER_BACKENDS:
        raise EnvValidationError(
            f"USAGE_LEDGER_BACKEND must be one of: {', '.join(sorted(LEDGER_BACKENDS))}"
        )
    if backend == "redis":
        redis_url = getattr(cfg, "REDIS_URL", None)
        if not redis_url:
            raise EnvValidationError("REDIS_URL is required when USAGE_LEDGER_BACKEND=redis")
        if not _is_valid_redis_url(redis_url):
            raise EnvValidationError("REDIS_URL must be a valid URL (e.g. redis://localhost:6379/0)")

    # Provider credentials are mandatory in production
    if mode == "production":
        _require(["GROQ_API_KEY", "REVENUECAT_API_KEY"], cfg)

    return True
