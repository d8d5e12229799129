"""Tests for environment and configuration validation."""

import logging
from types import SimpleNamespace

import pytest

from loyalty_ai.core.config import validate_config
from loyalty_ai.core.validation import validate_env, EnvValidationError


@pytest.fixture(autouse=True)
def no_skip(monkeypatch):
    monkeypatch.delenv("SKIP_ENV_VALIDATION", raising=False)


def make_settings(**overrides):
    defaults = dict(
        ENV="development",
        PORT=3000,
        GROQ_API_KEY=None,
        REVENUECAT_API_KEY=None,
        CHAT_MONTHLY_LIMIT=100,
        LOYALTY_TEST_MONTHLY_LIMIT=100,
        RED_FLAG_MONTHLY_LIMIT=50,
        GENERATION_TIMEOUT_SECONDS=60.0,
        ENTITLEMENT_TIMEOUT_SECONDS=10.0,
        USAGE_LEDGER_BACKEND="memory",
        REDIS_URL=None,
    )
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def test_development_without_credentials_passes():
    assert validate_env(settings_obj=make_settings()) is True


def test_valid_production_config_passes():
    settings = make_settings(ENV="production", GROQ_API_KEY="gsk_test", REVENUECAT_API_KEY="rc_test")
    assert validate_env(settings_obj=settings) is True


@pytest.mark.parametrize("missing", ["GROQ_API_KEY", "REVENUECAT_API_KEY"])
def test_missing_credentials_in_production_fail(missing):
    values = {"GROQ_API_KEY": "gsk_test", "REVENUECAT_API_KEY": "rc_test"}
    values[missing] = None
    with pytest.raises(EnvValidationError) as exc_info:
        validate_env(settings_obj=make_settings(ENV="production", **values))
    assert missing in str(exc_info.value)


@pytest.mark.parametrize("port", [0, 70000, -1])
def test_bad_port_fails(port):
    with pytest.raises(EnvValidationError):
        validate_env(settings_obj=make_settings(PORT=port))


@pytest.mark.parametrize(
    "field", ["CHAT_MONTHLY_LIMIT", "RED_FLAG_MONTHLY_LIMIT", "GENERATION_TIMEOUT_SECONDS"]
)
def test_non_positive_values_fail(field):
    with pytest.raises(EnvValidationError):
        validate_env(settings_obj=make_settings(**{field: 0}))


def test_unknown_ledger_backend_fails():
    with pytest.raises(EnvValidationError):
        validate_env(settings_obj=make_settings(USAGE_LEDGER_BACKEND="postgres"))


def test_redis_backend_requires_url():
    with pytest.raises(EnvValidationError):
        validate_env(settings_obj=make_settings(USAGE_LEDGER_BACKEND="redis"))
    with pytest.raises(EnvValidationError):
        validate_env(settings_obj=make_settings(USAGE_LEDGER_BACKEND="redis", REDIS_URL="localhost"))
    assert validate_env(
        settings_obj=make_settings(USAGE_LEDGER_BACKEND="redis", REDIS_URL="redis://localhost:6379/0")
    )


def test_skip_flag_bypasses_validation(monkeypatch):
    monkeypatch.setenv("SKIP_ENV_VALIDATION", "1")
    assert validate_env(settings_obj=make_settings(PORT=0)) is True


def test_validate_config_warns_in_lenient_mode(caplog):
    with caplog.at_level(logging.WARNING):
        validate_config(strict=False, settings_obj=make_settings(), logger=logging.getLogger("test.config"))
    assert "GROQ_API_KEY" in caplog.text
    assert "REVENUECAT_API_KEY" in caplog.text


def test_validate_config_raises_in_strict_mode():
    with pytest.raises(RuntimeError):
        validate_config(strict=True, settings_obj=make_settings(GROQ_API_KEY="gsk_test"))
