"""Temperature series layer -- incremental cache, merge/filter helpers, hot periods."""

from btcdom.temperature.cache import TemperatureCache, cache_key
from btcdom.temperature.models import CacheEntryStatus, CacheStatus, TemperatureQueryResult
from btcdom.temperature.series import (
    TemperaturePeriod,
    filter_by_date_range,
    find_hot_periods,
    is_hot_at,
    merge_temperature_data,
)

__all__ = [
    "CacheEntryStatus",
    "CacheStatus",
    "TemperatureCache",
    "TemperaturePeriod",
    "TemperatureQueryResult",
    "cache_key",
    "filter_by_date_range",
    "find_hot_periods",
    "is_hot_at",
    "merge_temperature_data",
]
