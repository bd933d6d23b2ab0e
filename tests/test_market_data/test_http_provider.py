"""Tests for HttpMarketDataProvider.

All tests use httpx.MockTransport to avoid real network calls.
"""

import math

import httpx
import pytest

from btcdom.config import ProviderSettings
from btcdom.exceptions import UpstreamDataError, UpstreamUnavailable
from btcdom.market_data.http_provider import HttpMarketDataProvider


TEMPERATURE_RESPONSE = {
    "success": True,
    "data": {
        "symbol": "OTHERS",
        "timeframe": "1D",
        "data": [
            {"timestamp": "2024-01-01T00:00:00.000Z", "value": 42.5},
            {"timestamp": "2024-01-02T00:00:00.000Z", "value": 71.0},
        ],
    },
}

RANKING_RESPONSE = {
    "success": True,
    "data": {
        "rankings": [
            {
                "rank": 1,
                "symbol": "ETHUSDT",
                "priceChange24h": -3.2,
                "volume24h": 1000,
                "quoteVolume24h": 3_000_000,
                "volatility24h": 4.1,
                "marketShare": 12.5,
                "priceAtTime": 3000,
                "fundingRateHistory": [
                    {"fundingTime": "2024-01-01T00:00:00Z", "fundingRate": 0.0001},
                    {"fundingTime": "2024-01-01T08:00:00Z", "fundingRate": -0.0002},
                ],
            },
            {
                "rank": 2,
                "symbol": "SOLUSDT",
                "priceChange24h": 1.1,
                "futureSymbol": "1000SOLUSDT",
                "futurePriceAtTime": 101.5,
            },
        ]
    },
}


def _provider(handler) -> HttpMarketDataProvider:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="http://backend.test"
    )
    return HttpMarketDataProvider(ProviderSettings(base_url="http://backend.test"), client=client)


class TestFetchTemperatureSeries:
    @pytest.mark.asyncio
    async def test_parses_points_and_sends_params(self) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=TEMPERATURE_RESPONSE)

        provider = _provider(handler)
        points = await provider.fetch_temperature_series(
            "OTHERS", "1D", "2024-01-01", "2024-01-02"
        )

        assert [p.value for p in points] == [42.5, 71.0]
        assert points[0].timestamp == "2024-01-01T00:00:00.000Z"
        assert seen["path"] == "/v1/btcdom/temperature-periods"
        assert seen["params"] == {
            "symbol": "OTHERS",
            "timeframe": "1D",
            "startDate": "2024-01-01",
            "endDate": "2024-01-02",
        }

    @pytest.mark.asyncio
    async def test_non_2xx_is_unavailable(self) -> None:
        provider = _provider(lambda request: httpx.Response(503))
        with pytest.raises(UpstreamUnavailable, match="503"):
            await provider.fetch_temperature_series("OTHERS", "1D", "2024-01-01", "2024-01-02")

    @pytest.mark.asyncio
    async def test_connect_error_is_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        provider = _provider(handler)
        with pytest.raises(UpstreamUnavailable):
            await provider.fetch_temperature_series("OTHERS", "1D", "2024-01-01", "2024-01-02")

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        provider = _provider(handler)
        with pytest.raises(UpstreamUnavailable, match="timed out"):
            await provider.fetch_temperature_series("OTHERS", "1D", "2024-01-01", "2024-01-02")

    @pytest.mark.asyncio
    async def test_unsuccessful_envelope_is_data_error(self) -> None:
        provider = _provider(
            lambda request: httpx.Response(200, json={"success": False, "message": "no data"})
        )
        with pytest.raises(UpstreamDataError, match="no data"):
            await provider.fetch_temperature_series("OTHERS", "1D", "2024-01-01", "2024-01-02")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"success": True, "data": None},
            {"success": True, "data": {"data": "oops"}},
            {"success": True, "data": {"data": [{"timestamp": "nope", "value": 1}]}},
            {"success": True, "data": {"data": [{"value": 1}]}},
            ["not", "an", "envelope"],
        ],
    )
    async def test_malformed_payload_is_data_error(self, body) -> None:
        provider = _provider(lambda request: httpx.Response(200, json=body))
        with pytest.raises(UpstreamDataError):
            await provider.fetch_temperature_series("OTHERS", "1D", "2024-01-01", "2024-01-02")

    @pytest.mark.asyncio
    async def test_non_json_is_data_error(self) -> None:
        provider = _provider(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(UpstreamDataError):
            await provider.fetch_temperature_series("OTHERS", "1D", "2024-01-01", "2024-01-02")


class TestFetchRankingBatch:
    @pytest.mark.asyncio
    async def test_parses_rows(self) -> None:
        provider = _provider(lambda request: httpx.Response(200, json=RANKING_RESPONSE))
        rows = await provider.fetch_ranking_batch("2024-01-01T08:00:00Z")

        eth, sol = rows
        assert eth.symbol == "ETHUSDT"
        assert eth.price_change_24h == -3.2
        assert eth.funding_rate_history[-1].rate == -0.0002
        assert sol.future_symbol == "1000SOLUSDT"
        assert sol.future_price_at_time == 101.5
        assert math.isnan(sol.volatility_24h)
        assert sol.funding_rate_history == ()

    @pytest.mark.asyncio
    async def test_missing_rankings_is_data_error(self) -> None:
        provider = _provider(lambda request: httpx.Response(200, json={"success": True, "data": {}}))
        with pytest.raises(UpstreamDataError):
            await provider.fetch_ranking_batch("2024-01-01")

    @pytest.mark.asyncio
    async def test_row_missing_symbol_is_data_error(self) -> None:
        body = {"success": True, "data": {"rankings": [{"rank": 1}]}}
        provider = _provider(lambda request: httpx.Response(200, json=body))
        with pytest.raises(UpstreamDataError):
            await provider.fetch_ranking_batch("2024-01-01")


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_context_manager_closes_owned_client(self) -> None:
        async with HttpMarketDataProvider(ProviderSettings()) as provider:
            client = provider._client
        assert client.is_closed

    @pytest.mark.asyncio
    async def test_injected_client_left_open(self) -> None:
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        provider = HttpMarketDataProvider(ProviderSettings(), client=client)
        await provider.close()
        assert not client.is_closed
        await client.aclose()
