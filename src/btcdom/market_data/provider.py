"""Abstract market data provider interface.

The strategy core depends only on this interface; the HTTP backend
details live in the concrete implementation.
"""

from abc import ABC, abstractmethod

from btcdom.models import RankingRow, TemperatureDataPoint


class MarketDataProvider(ABC):
    """Source of temperature series and ranking snapshots."""

    @abstractmethod
    async def fetch_temperature_series(
        self,
        symbol: str,
        timeframe: str,
        start_date: str,
        end_date: str,
    ) -> list[TemperatureDataPoint]:
        """Fetch temperature points for [start_date, end_date].

        Raises:
            UpstreamUnavailable: Provider unreachable or non-success status.
            UpstreamDataError: Success status with a malformed payload.
        """
        ...

    @abstractmethod
    async def fetch_ranking_batch(self, timestamp: str) -> list[RankingRow]:
        """Fetch the ranking snapshot closest to timestamp."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
