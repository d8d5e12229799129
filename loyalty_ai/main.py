import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load env from the working directory .env (skipped under pytest)
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv()

from loyalty_ai import __version__
from loyalty_ai.api import features, health, usage
from loyalty_ai.core.config import Settings, settings, validate_config
from loyalty_ai.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    request_validation_error_handler,
    unhandled_exception_handler,
)
from loyalty_ai.core.logging import LOGGER_NAME, configure_logging
from loyalty_ai.core.middleware.request_id import RequestIdMiddleware
from loyalty_ai.core.validation import validate_env
from loyalty_ai.features.catalog.service import build_catalog
from loyalty_ai.features.entitlements.revenuecat_provider import RevenueCatProvider
from loyalty_ai.features.entitlements.service import EntitlementClient
from loyalty_ai.features.gate.service import RequestGate
from loyalty_ai.features.generation.provider import GroqProvider
from loyalty_ai.features.pipeline.service import FeaturePipeline
from loyalty_ai.features.quota.policy import QuotaPolicy
from loyalty_ai.features.usage.ledger import InMemoryUsageLedger, RedisUsageLedger


def build_ledger(cfg: Settings):
    if cfg.USAGE_LEDGER_BACKEND.lower() == "redis":
        return RedisUsageLedger.from_url(cfg.REDIS_URL, ttl_days=cfg.USAGE_KEY_TTL_DAYS)
    return InMemoryUsageLedger()


def build_pipeline(cfg: Settings) -> FeaturePipeline:
    """Wire providers, ledger, policy and gate from settings."""
    catalog = build_catalog(cfg)
    ledger = build_ledger(cfg)
    entitlements = EntitlementClient(
        RevenueCatProvider(
            cfg.REVENUECAT_API_KEY,
            base_url=cfg.REVENUECAT_BASE_URL,
            timeout=cfg.ENTITLEMENT_TIMEOUT_SECONDS,
        )
    )
    gate = RequestGate(entitlements, ledger, QuotaPolicy(catalog.limits()))
    provider = GroqProvider(
        cfg.GROQ_API_KEY,
        model=cfg.GENERATION_MODEL,
        temperature=cfg.GENERATION_TEMPERATURE,
        max_tokens=cfg.GENERATION_MAX_TOKENS,
        timeout=cfg.GENERATION_TIMEOUT_SECONDS,
    )
    return FeaturePipeline(
        catalog=catalog,
        gate=gate,
        provider=provider,
        ledger=ledger,
        timeout_seconds=cfg.GENERATION_TIMEOUT_SECONDS,
        charge_fallback=cfg.CHARGE_FALLBACK_ANALYSIS,
    )


def create_app(cfg: Optional[Settings] = None, pipeline: Optional[FeaturePipeline] = None) -> FastAPI:
    cfg = cfg or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger = logging.getLogger(LOGGER_NAME)
        logger.info("Starting Loyalty AI backend...")
        owned = None
        if getattr(app.state, "pipeline", None) is None:
            owned = build_pipeline(cfg)
            app.state.pipeline = owned
        try:
            yield
        finally:
            if owned is not None:
                await owned.gate.entitlements.aclose()
                await owned.provider.aclose()
                app.state.pipeline = None
            logger.info("Stopping Loyalty AI backend...")

    app = FastAPI(title="Loyalty AI Backend", version=__version__, lifespan=lifespan)
    app.state.pipeline = pipeline

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(features.router)
    app.include_router(usage.router)
    return app


configure_logging(settings.ENV)
validate_env()
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))

app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run("loyalty_ai.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
