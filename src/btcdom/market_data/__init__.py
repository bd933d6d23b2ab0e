"""Market data layer -- provider interface and the HTTP backend client."""

from btcdom.market_data.http_provider import HttpMarketDataProvider
from btcdom.market_data.provider import MarketDataProvider

__all__ = ["HttpMarketDataProvider", "MarketDataProvider"]
