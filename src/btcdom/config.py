"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderSettings(BaseSettings):
    """Market data provider (backend service) connection settings."""

    model_config = SettingsConfigDict(env_prefix="PROVIDER_")

    base_url: str = "http://localhost:4001"
    temperature_path: str = "/v1/btcdom/temperature-periods"
    ranking_path: str = "/v1/btcdom2/rankings"
    timeout_seconds: float = 30.0


class SelectionSettings(BaseSettings):
    """Short-candidate selection defaults.

    Weights are expected to sum to 1.0; validate_strategy_params enforces
    this at the caller boundary, the scoring engine does not re-normalize.
    All fields configurable via SELECTION_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="SELECTION_")

    benchmark_symbol: str = "BTCUSDT"

    # Composite weights
    price_change_weight: float = 0.15
    volume_weight: float = 0.35
    volatility_weight: float = 0.15
    funding_rate_weight: float = 0.35

    max_short_positions: int = 5

    # Position allocation
    allocation_strategy: Literal[
        "BY_VOLUME", "BY_COMPOSITE_SCORE", "EQUAL_ALLOCATION"
    ] = "BY_VOLUME"
    max_single_position_ratio: float = 0.25  # cap per alt under BY_COMPOSITE_SCORE

    weight_sum_tolerance: float = 0.001


class TemperatureSettings(BaseSettings):
    """Temperature series cache configuration.

    All fields configurable via TEMPERATURE_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="TEMPERATURE_")

    default_symbol: str = "OTHERS"
    default_timeframe: str = "1D"
    default_start_date: str = "2020-01-01T00:00:00.000Z"
    incremental_step_days: int = 1  # incremental fetch starts this far past the cached tail
    fetch_timeout_seconds: float = 30.0
    max_entries: int = 64  # LRU bound on cached keys, 0 = unbounded
    threshold: float = 65.0  # alt shorts suppressed above this temperature


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    provider: ProviderSettings = ProviderSettings()
    selection: SelectionSettings = SelectionSettings()
    temperature: TemperatureSettings = TemperatureSettings()
