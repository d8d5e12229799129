import pytest

from loyalty_ai.core.errors import ValidationError
from loyalty_ai.core.config import Settings
from loyalty_ai.features.catalog.service import build_catalog
from loyalty_ai.features.quota.policy import QuotaPolicy
from loyalty_ai.models.feature import Feature, OutputKind


def test_default_limits():
    policy = QuotaPolicy(build_catalog(Settings()).limits())
    assert policy.limit_for(Feature.CHAT) == 100
    assert policy.limit_for(Feature.LOYALTY_TEST) == 100
    assert policy.limit_for(Feature.RED_FLAG) == 50


def test_limit_lookup_accepts_wire_values():
    policy = QuotaPolicy({Feature.RED_FLAG: 50})
    assert policy.limit_for("redFlag") == 50


@pytest.mark.parametrize("count,expected", [(0, True), (99, True), (100, False), (101, False)])
def test_admit_is_strict_less_than(count, expected):
    assert QuotaPolicy.admit(count, 100) is expected


def test_remaining_never_negative():
    assert QuotaPolicy.remaining(30, 50) == 20
    assert QuotaPolicy.remaining(60, 50) == 0


def test_unknown_feature_rejected():
    policy = QuotaPolicy({Feature.CHAT: 1})
    with pytest.raises(ValidationError):
        policy.limit_for(Feature.RED_FLAG)
    with pytest.raises(ValidationError):
        policy.limit_for("horoscope")


def test_limits_follow_settings(monkeypatch):
    monkeypatch.setenv("RED_FLAG_MONTHLY_LIMIT", "5")
    catalog = build_catalog(Settings())
    assert catalog.get(Feature.RED_FLAG).monthly_limit == 5
    assert catalog.get(Feature.CHAT).monthly_limit == 100


def test_explicit_limits_take_precedence():
    catalog = build_catalog(Settings(), limits={Feature.CHAT: 3})
    assert catalog.limits()[Feature.CHAT] == 3


def test_catalog_describes_every_feature():
    catalog = build_catalog(Settings())
    assert len(catalog) == 3
    assert catalog.get("chat").path == "/chat"
    assert catalog.get(Feature.LOYALTY_TEST).user_instruction
    assert catalog.get(Feature.RED_FLAG).output is OutputKind.ANALYSIS
    assert catalog.get(Feature.CHAT).output is OutputKind.TEXT
    with pytest.raises(ValidationError):
        catalog.get("unknown")
