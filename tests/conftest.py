"""Shared test fixtures for the BTCDOM2 strategy core."""

import pytest

from btcdom.config import (
    AppSettings,
    ProviderSettings,
    SelectionSettings,
    TemperatureSettings,
)
from btcdom.models import AllocationStrategy, StrategyParams


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (local backend, short timeouts)."""
    return AppSettings(
        log_level="DEBUG",
        provider=ProviderSettings(base_url="http://backend.test", timeout_seconds=1.0),
        selection=SelectionSettings(),
        temperature=TemperatureSettings(fetch_timeout_seconds=1.0, max_entries=8),
    )


@pytest.fixture
def price_only_params() -> StrategyParams:
    """All weight on price change, two short slots."""
    return StrategyParams(
        price_change_weight=1.0,
        volume_weight=0.0,
        volatility_weight=0.0,
        funding_rate_weight=0.0,
        max_short_positions=2,
        allocation_strategy=AllocationStrategy.BY_VOLUME,
    )


@pytest.fixture
def default_params() -> StrategyParams:
    """Default weight mix from SelectionSettings."""
    return StrategyParams.from_settings(SelectionSettings())
