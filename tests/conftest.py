"""Shared fixtures for the copilot tests."""

import pytest

from agents import build_default_registry
from tests.fakes import FakeFetcher, make_series


@pytest.fixture
def week_series():
    """Seven daily bars, steadily rising."""
    return make_series([100, 101, 102, 103, 104, 105, 106])


@pytest.fixture
def long_series():
    """Sixty daily bars with a wave on top of an uptrend."""
    closes = [100 + i * 0.5 + (3 if i % 4 < 2 else -3) for i in range(60)]
    return make_series(closes)


@pytest.fixture
def fetcher(week_series):
    return FakeFetcher(series=week_series)


@pytest.fixture
def registry(fetcher):
    return build_default_registry(fetcher=fetcher)
