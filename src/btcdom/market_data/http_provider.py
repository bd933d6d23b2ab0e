"""HTTP market data provider backed by httpx.

Talks to the backend service that serves temperature series and ranking
snapshots. Responses use a {success, data, message} envelope; temperature
points sit under data.data, ranking rows under data.rankings.

Error mapping:
- transport errors, timeouts, non-2xx status -> UpstreamUnavailable
- success=false, missing or malformed payload -> UpstreamDataError
"""

from typing import Any

import httpx

from btcdom.config import ProviderSettings
from btcdom.exceptions import UpstreamDataError, UpstreamUnavailable
from btcdom.logging import get_logger
from btcdom.market_data.provider import MarketDataProvider
from btcdom.models import RankingRow, TemperatureDataPoint

logger = get_logger(__name__)


class HttpMarketDataProvider(MarketDataProvider):
    """MarketDataProvider over a shared httpx.AsyncClient.

    Usage:
        async with HttpMarketDataProvider(settings.provider) as provider:
            points = await provider.fetch_temperature_series(
                "OTHERS", "1D", "2024-01-01", "2024-01-31"
            )

    Args:
        settings: Base URL, endpoint paths, and request timeout.
        client: Optional pre-built client (tests inject one with a MockTransport).
    """

    def __init__(
        self,
        settings: ProviderSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> "HttpMarketDataProvider":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get_envelope(self, path: str, params: dict[str, str]) -> Any:
        """GET path and return the envelope's data field."""
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(f"Request to {path} timed out") from e
        except httpx.HTTPStatusError as e:
            raise UpstreamUnavailable(
                f"Backend request failed: {e.response.status_code} "
                f"{e.response.reason_phrase}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Backend request failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamDataError(f"Non-JSON response from {path}") from e

        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("message") if isinstance(body, dict) else None
            raise UpstreamDataError(message or f"Unsuccessful response from {path}")

        return body.get("data")

    async def fetch_temperature_series(
        self,
        symbol: str,
        timeframe: str,
        start_date: str,
        end_date: str,
    ) -> list[TemperatureDataPoint]:
        data = await self._get_envelope(
            self._settings.temperature_path,
            {
                "symbol": symbol,
                "timeframe": timeframe,
                "startDate": start_date,
                "endDate": end_date,
            },
        )
        raw_points = data.get("data") if isinstance(data, dict) else None
        if not isinstance(raw_points, list):
            raise UpstreamDataError("Temperature payload is missing data.data")

        try:
            points = [TemperatureDataPoint.from_payload(p) for p in raw_points]
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamDataError(f"Malformed temperature point: {e}") from e

        logger.debug(
            "temperature_series_fetched",
            symbol=symbol,
            timeframe=timeframe,
            start=start_date,
            end=end_date,
            points=len(points),
        )
        return points

    async def fetch_ranking_batch(self, timestamp: str) -> list[RankingRow]:
        data = await self._get_envelope(
            self._settings.ranking_path, {"timestamp": timestamp}
        )
        raw_rows = data.get("rankings") if isinstance(data, dict) else None
        if not isinstance(raw_rows, list):
            raise UpstreamDataError("Ranking payload is missing data.rankings")

        try:
            rows = [RankingRow.from_payload(r) for r in raw_rows]
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamDataError(f"Malformed ranking row: {e}") from e

        logger.debug("ranking_batch_fetched", timestamp=timestamp, rows=len(rows))
        return rows
