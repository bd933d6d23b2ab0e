"""Temperature cache query results and status snapshots."""

from dataclasses import dataclass, field

from btcdom.models import TemperatureDataPoint


@dataclass(frozen=True)
class TemperatureQueryResult:
    """Filtered series returned by TemperatureCache.get().

    stale is True when an incremental refresh failed and the cached data
    was served as-is; last_updated tells how old it is.
    """

    symbol: str
    timeframe: str
    data: list[TemperatureDataPoint]
    start_date: str
    end_date: str
    last_updated: str
    stale: bool = False

    @property
    def total_data_points(self) -> int:
        return len(self.data)

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "data": [point.to_dict() for point in self.data],
            "totalDataPoints": self.total_data_points,
            "dateRange": {"start": self.start_date, "end": self.end_date},
            "lastUpdated": self.last_updated,
            "stale": self.stale,
        }


@dataclass(frozen=True)
class CacheEntryStatus:
    cache_key: str
    symbol: str
    timeframe: str
    data_points: int
    first_timestamp: str | None
    last_timestamp: str | None
    last_updated: str
    memory_size_kb: int


@dataclass(frozen=True)
class CacheStatus:
    """Cache-wide introspection snapshot. Entries sorted by data_points descending."""

    total_entries: int
    total_data_points: int
    total_memory_kb: int
    entries: list[CacheEntryStatus] = field(default_factory=list)
    checked_at: str = ""

    @property
    def total_memory_mb(self) -> float:
        return round(self.total_memory_kb / 1024, 2)

    def to_dict(self) -> dict:
        return {
            "cacheStatus": "active",
            "totalEntries": self.total_entries,
            "totalDataPoints": self.total_data_points,
            "totalMemoryKB": self.total_memory_kb,
            "totalMemoryMB": self.total_memory_mb,
            "entries": [
                {
                    "cacheKey": e.cache_key,
                    "symbol": e.symbol,
                    "timeframe": e.timeframe,
                    "dataPoints": e.data_points,
                    "dateRange": (
                        {"start": e.first_timestamp, "end": e.last_timestamp}
                        if e.data_points
                        else None
                    ),
                    "lastUpdated": e.last_updated,
                    "memorySizeKB": e.memory_size_kb,
                }
                for e in self.entries
            ],
            "lastChecked": self.checked_at,
        }
