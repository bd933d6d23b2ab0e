"""In-memory temperature series cache with incremental extension.

Serves a (symbol, timeframe) series for a date window, fetching from the
market data provider only what the cache does not already cover:
- no entry: full fetch of [start, end]; failures propagate
- entry ending before end: incremental fetch from the day after the cached
  tail, merged in; failures are logged and the cached data is served stale
- entry covering end: served directly

Updates for one key are serialized with a per-key asyncio.Lock, so
concurrent callers for the same key wait for the in-flight fetch and
then read the refreshed entry instead of fetching again. A key's lock is
discarded as soon as no caller holds or awaits it, so the lock table only
tracks in-flight keys. Entries are bounded by an LRU on key count.
"""

import asyncio
import json
from collections import OrderedDict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from btcdom.config import TemperatureSettings
from btcdom.exceptions import UpstreamError, UpstreamUnavailable
from btcdom.logging import get_logger
from btcdom.market_data.provider import MarketDataProvider
from btcdom.models import CachedTemperatureSeries, TemperatureDataPoint
from btcdom.temperature.models import (
    CacheEntryStatus,
    CacheStatus,
    TemperatureQueryResult,
)
from btcdom.temperature.series import filter_by_date_range, merge_temperature_data
from btcdom.timeutils import add_days, to_epoch_ms, utc_now_iso
from btcdom.validation import validate_date_range

logger = get_logger(__name__)


def cache_key(symbol: str, timeframe: str) -> str:
    return f"{symbol}_{timeframe}"


class TemperatureCache:
    """Process-lifetime cache of temperature series keyed by symbol_timeframe.

    Create one per process and pass it to whatever needs it.

    Args:
        provider: Source for full and incremental fetches.
        settings: Defaults, fetch timeout, incremental step, and LRU bound.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        settings: TemperatureSettings,
    ) -> None:
        self._provider = provider
        self._settings = settings
        self._entries: OrderedDict[str, CachedTemperatureSeries] = OrderedDict()
        # Locks exist only while some caller holds or awaits them
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def peek(self, symbol: str, timeframe: str) -> CachedTemperatureSeries | None:
        """Return the cached entry without fetching or touching LRU order."""
        return self._entries.get(cache_key(symbol, timeframe))

    # ──────────────────────────────────────────────
    # Query
    # ──────────────────────────────────────────────

    async def get(
        self,
        symbol: str,
        timeframe: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> TemperatureQueryResult:
        """Return the series for [start_date, end_date], fetching as needed.

        start_date defaults to settings.default_start_date, end_date to now.

        Raises:
            InvalidParameter: If either date is unparseable or start > end.
            UpstreamUnavailable, UpstreamDataError: Only when there is no
                cached entry to fall back to.
        """
        start_date = start_date or self._settings.default_start_date
        end_date = end_date or utc_now_iso()
        start_ms, end_ms = validate_date_range(start_date, end_date)

        key = cache_key(symbol, timeframe)

        async with self._key_lock(key):
            entry = self._entries.get(key)
            stale = False

            if entry is None:
                logger.info("temperature_cache_miss", cache_key=key)
                entry = await self._full_fetch(symbol, timeframe, start_date, end_date)
            else:
                logger.debug(
                    "temperature_cache_hit", cache_key=key, data_points=len(entry.data)
                )
                stale = not await self._extend(entry, start_date, end_date, end_ms)
                self._entries.move_to_end(key)

            final_data = list(entry.data)
            last_updated = entry.last_updated

        filtered = filter_by_date_range(final_data, start_ms, end_ms)
        logger.debug(
            "temperature_series_served",
            cache_key=key,
            data_points=len(filtered),
            start=start_date,
            end=end_date,
            stale=stale,
        )
        return TemperatureQueryResult(
            symbol=symbol,
            timeframe=timeframe,
            data=filtered,
            start_date=start_date,
            end_date=end_date,
            last_updated=last_updated,
            stale=stale,
        )

    async def warm(
        self,
        symbol: str | None = None,
        timeframe: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> TemperatureQueryResult:
        """Populate the cache for a key via get(); defaults come from settings."""
        result = await self.get(
            symbol or self._settings.default_symbol,
            timeframe or self._settings.default_timeframe,
            start_date,
            end_date,
        )
        logger.info(
            "temperature_cache_warmed",
            cache_key=cache_key(result.symbol, result.timeframe),
            data_points=result.total_data_points,
        )
        return result

    # ──────────────────────────────────────────────
    # Administration
    # ──────────────────────────────────────────────

    def clear(self, symbol: str, timeframe: str) -> bool:
        """Drop one key. Returns False if it was not cached."""
        key = cache_key(symbol, timeframe)
        deleted = self._entries.pop(key, None) is not None
        logger.info("temperature_cache_cleared", cache_key=key, deleted=deleted)
        return deleted

    def clear_all(self) -> int:
        """Drop every key. Returns how many were cleared."""
        count = len(self._entries)
        self._entries.clear()
        logger.info("temperature_cache_cleared_all", cleared_entries=count)
        return count

    def status(self) -> CacheStatus:
        """Per-entry point counts, date ranges, and serialized-size estimates."""
        entries = []
        for key, entry in self._entries.items():
            size_bytes = len(json.dumps(entry.to_dict()))
            entries.append(
                CacheEntryStatus(
                    cache_key=key,
                    symbol=entry.symbol,
                    timeframe=entry.timeframe,
                    data_points=len(entry.data),
                    first_timestamp=entry.data[0].timestamp if entry.data else None,
                    last_timestamp=entry.data[-1].timestamp if entry.data else None,
                    last_updated=entry.last_updated,
                    memory_size_kb=round(size_bytes / 1024),
                )
            )
        entries.sort(key=lambda e: e.data_points, reverse=True)

        return CacheStatus(
            total_entries=len(entries),
            total_data_points=sum(e.data_points for e in entries),
            total_memory_kb=sum(e.memory_size_kb for e in entries),
            entries=entries,
            checked_at=utc_now_iso(),
        )

    # ──────────────────────────────────────────────
    # Per-key locking
    # ──────────────────────────────────────────────

    @asynccontextmanager
    async def _key_lock(self, key: str) -> AsyncIterator[None]:
        """Hold the per-key lock, dropping it once no caller needs it."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    # ──────────────────────────────────────────────
    # Internal fetch orchestration (caller holds the key lock)
    # ──────────────────────────────────────────────

    async def _fetch(
        self, symbol: str, timeframe: str, start_date: str, end_date: str
    ) -> list[TemperatureDataPoint]:
        """Provider fetch bounded by fetch_timeout_seconds."""
        try:
            return await asyncio.wait_for(
                self._provider.fetch_temperature_series(
                    symbol, timeframe, start_date, end_date
                ),
                timeout=self._settings.fetch_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailable(
                f"Temperature fetch timed out after "
                f"{self._settings.fetch_timeout_seconds}s"
            ) from e

    async def _full_fetch(
        self, symbol: str, timeframe: str, start_date: str, end_date: str
    ) -> CachedTemperatureSeries:
        points = await self._fetch(symbol, timeframe, start_date, end_date)
        entry = CachedTemperatureSeries(
            symbol=symbol,
            timeframe=timeframe,
            data=merge_temperature_data([], points),
            last_updated=utc_now_iso(),
        )
        self._store(cache_key(symbol, timeframe), entry)
        logger.info(
            "temperature_full_fetch",
            cache_key=cache_key(symbol, timeframe),
            data_points=len(entry.data),
        )
        return entry

    async def _extend(
        self,
        entry: CachedTemperatureSeries,
        start_date: str,
        end_date: str,
        end_ms: int,
    ) -> bool:
        """Fetch and merge data past the cached tail. Returns False if it failed."""
        key = cache_key(entry.symbol, entry.timeframe)
        cached_last = entry.data[-1].timestamp if entry.data else start_date

        if end_ms <= to_epoch_ms(cached_last):
            logger.debug("temperature_cache_covers_range", cache_key=key)
            return True

        incremental_start = add_days(cached_last, self._settings.incremental_step_days)
        if to_epoch_ms(incremental_start) > end_ms:
            logger.debug(
                "temperature_incremental_window_empty",
                cache_key=key,
                incremental_start=incremental_start,
                end=end_date,
            )
            return True

        logger.info(
            "temperature_incremental_update",
            cache_key=key,
            start=incremental_start,
            end=end_date,
        )
        try:
            points = await self._fetch(
                entry.symbol, entry.timeframe, incremental_start, end_date
            )
        except UpstreamError as e:
            logger.warning(
                "temperature_incremental_update_failed",
                cache_key=key,
                error=str(e),
                serving_cached_points=len(entry.data),
            )
            return False

        entry.data = merge_temperature_data(entry.data, points)
        entry.last_updated = utc_now_iso()
        logger.info(
            "temperature_incremental_merged",
            cache_key=key,
            new_points=len(points),
            data_points=len(entry.data),
        )
        return True

    def _store(self, key: str, entry: CachedTemperatureSeries) -> None:
        """Insert an entry and evict least-recently-used keys over max_entries."""
        self._entries[key] = entry
        self._entries.move_to_end(key)

        max_entries = self._settings.max_entries
        while max_entries > 0 and len(self._entries) > max_entries:
            evicted_key, _ = self._entries.popitem(last=False)
            logger.info("temperature_cache_evicted", cache_key=evicted_key)
