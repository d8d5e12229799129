# loyalty_ai/conftest.py
import os
import sys
from pathlib import Path

import pytest

# Add repository root to PYTHONPATH
REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

os.environ.setdefault("ENV", "test")

from loyalty_ai.features.catalog.service import build_catalog
from loyalty_ai.features.entitlements.service import EntitlementClient
from loyalty_ai.features.gate.service import RequestGate
from loyalty_ai.features.pipeline.service import FeaturePipeline
from loyalty_ai.features.quota.policy import QuotaPolicy
from loyalty_ai.features.usage.ledger import InMemoryUsageLedger
from loyalty_ai.tests.mocks import FakeClock, FakeEntitlementProvider, FakeGenerativeProvider


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def entitlement_provider(clock):
    return FakeEntitlementProvider(clock)


@pytest.fixture
def generator():
    return FakeGenerativeProvider()


@pytest.fixture
def ledger(clock):
    return InMemoryUsageLedger(now_fn=clock)


@pytest.fixture
def catalog():
    return build_catalog()


@pytest.fixture
def gate(entitlement_provider, ledger, catalog, clock):
    return RequestGate(
        EntitlementClient(entitlement_provider, now_fn=clock),
        ledger,
        QuotaPolicy(catalog.limits()),
    )


@pytest.fixture
def pipeline(catalog, gate, generator, ledger):
    return FeaturePipeline(
        catalog=catalog,
        gate=gate,
        provider=generator,
        ledger=ledger,
        timeout_seconds=1.0,
        charge_fallback=True,
    )


@pytest.fixture
def client(pipeline):
    """TestClient over a fresh app wired to the fake pipeline."""
    from fastapi.testclient import TestClient
    from loyalty_ai.main import create_app

    with TestClient(create_app(pipeline=pipeline)) as test_client:
        yield test_client
