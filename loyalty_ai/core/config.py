import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ALLOW_ORIGINS: str = "*"  # comma-separated

    # Generative provider (Groq)
    GROQ_API_KEY: Optional[str] = None
    GENERATION_MODEL: str = "meta-llama/llama-4-scout-17b-16e-instruct"
    GENERATION_TEMPERATURE: float = 0.7
    GENERATION_MAX_TOKENS: int = 1024
    GENERATION_TIMEOUT_SECONDS: float = 60.0

    # Entitlements (RevenueCat)
    REVENUECAT_API_KEY: Optional[str] = None
    REVENUECAT_BASE_URL: str = "https://api.revenuecat.com/v1"
    ENTITLEMENT_TIMEOUT_SECONDS: float = 10.0

    # Monthly quotas per feature
    CHAT_MONTHLY_LIMIT: int = 100
    LOYALTY_TEST_MONTHLY_LIMIT: int = 100
    RED_FLAG_MONTHLY_LIMIT: int = 50
    CHARGE_FALLBACK_ANALYSIS: bool = True

    # Usage ledger
    USAGE_LEDGER_BACKEND: str = "memory"  # memory | redis
    REDIS_URL: Optional[str] = None
    USAGE_KEY_TTL_DAYS: int = 400

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ALLOW_ORIGINS.split(",") if origin.strip()]

settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate required configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    Secrets are not logged, only missing keys.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("loyalty_ai")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    required_keys = [
        "GROQ_API_KEY",
        "REVENUECAT_API_KEY",
    ]

    missing = [key for key in required_keys if not getattr(cfg, key, None)]
    if missing:
        message = f"Missing required configuration: {', '.join(missing)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
