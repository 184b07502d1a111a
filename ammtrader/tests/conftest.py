"""Shared fixtures for the trading client tests."""

import pytest

from ammtrader.tests.fakes import FakeLedger, FakeTime, make_market


@pytest.fixture
def ledger() -> FakeLedger:
    """Ledger with one open market and no allowance."""
    fake = FakeLedger()
    fake.add_market(make_market(0))
    return fake


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()
