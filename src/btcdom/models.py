"""Shared data models for the BTCDOM2 strategy core.

Market values arrive as JSON numbers and may be NaN when the upstream
service has gaps, so rows and scores are plain floats. Parsing never
raises on a missing numeric field; the scoring engine defuses NaN locally.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from btcdom.config import SelectionSettings
from btcdom.timeutils import parse_timestamp


class AllocationStrategy(str, Enum):
    """How the short notional is split across selected candidates."""

    BY_VOLUME = "BY_VOLUME"
    BY_COMPOSITE_SCORE = "BY_COMPOSITE_SCORE"
    EQUAL_ALLOCATION = "EQUAL_ALLOCATION"


def _as_float(value: Any, default: float = 0.0) -> float:
    """Coerce a JSON number (or numeric string) to float, falling back to default."""
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class FundingRatePoint:
    """One funding settlement for a perpetual contract."""

    time: str
    rate: float  # raw rate per period, 0.0001 == 0.01%

    @classmethod
    def from_payload(cls, payload: dict) -> "FundingRatePoint":
        time = payload.get("fundingTime", payload.get("time", ""))
        rate = payload.get("fundingRate", payload.get("rate"))
        return cls(time=str(time), rate=_as_float(rate, math.nan))


@dataclass(frozen=True)
class RankingRow:
    """Market snapshot for one symbol at one ranking timestamp.

    rank is 1-based and excludes the benchmark asset. volatility_24h is
    NaN when unavailable. funding_rate_history is ordered most-recent-last.
    """

    symbol: str
    rank: int
    price_change_24h: float  # signed percent
    volume_24h: float = 0.0
    quote_volume_24h: float = 0.0
    volatility_24h: float = math.nan
    market_share: float = 0.0  # percent
    price_at_time: float = 0.0
    future_price_at_time: float | None = None
    future_symbol: str | None = None
    funding_rate_history: tuple[FundingRatePoint, ...] = ()

    @classmethod
    def from_payload(cls, payload: dict) -> "RankingRow":
        """Build a row from an upstream camelCase JSON object."""
        future_price = payload.get("futurePriceAtTime")
        history = payload.get("fundingRateHistory") or []
        return cls(
            symbol=str(payload["symbol"]),
            rank=int(payload["rank"]),
            price_change_24h=_as_float(payload.get("priceChange24h"), math.nan),
            volume_24h=_as_float(payload.get("volume24h")),
            quote_volume_24h=_as_float(payload.get("quoteVolume24h")),
            volatility_24h=_as_float(payload.get("volatility24h"), math.nan),
            market_share=_as_float(payload.get("marketShare")),
            price_at_time=_as_float(payload.get("priceAtTime")),
            future_price_at_time=(
                _as_float(future_price) if future_price is not None else None
            ),
            future_symbol=payload.get("futureSymbol"),
            funding_rate_history=tuple(
                FundingRatePoint.from_payload(item) for item in history
            ),
        )


@dataclass(frozen=True)
class StrategyParams:
    """Scoring and selection parameters for one selection call.

    Weights are taken as given. Callers validate them with
    btcdom.validation before invoking the selector.
    """

    price_change_weight: float
    volume_weight: float
    volatility_weight: float
    funding_rate_weight: float
    max_short_positions: int
    allocation_strategy: AllocationStrategy = AllocationStrategy.BY_VOLUME
    max_single_position_ratio: float = 0.25

    @classmethod
    def from_settings(cls, settings: SelectionSettings) -> "StrategyParams":
        return cls(
            price_change_weight=settings.price_change_weight,
            volume_weight=settings.volume_weight,
            volatility_weight=settings.volatility_weight,
            funding_rate_weight=settings.funding_rate_weight,
            max_short_positions=settings.max_short_positions,
            allocation_strategy=AllocationStrategy(settings.allocation_strategy),
            max_single_position_ratio=settings.max_single_position_ratio,
        )

    @property
    def weights(self) -> dict[str, float]:
        return {
            "price_change": self.price_change_weight,
            "volume": self.volume_weight,
            "volatility": self.volatility_weight,
            "funding_rate": self.funding_rate_weight,
        }


@dataclass(frozen=True)
class TemperatureDataPoint:
    """One temperature reading. Ordered and de-duplicated by timestamp."""

    timestamp: str  # ISO-8601
    value: float

    @classmethod
    def from_payload(cls, payload: dict) -> "TemperatureDataPoint":
        """Parse {timestamp, value}.

        Raises:
            KeyError, TypeError, ValueError: On a missing or unparseable field.
        """
        timestamp = payload["timestamp"]
        parse_timestamp(timestamp)
        return cls(timestamp=timestamp, value=float(payload["value"]))

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp, "value": self.value}


@dataclass
class CachedTemperatureSeries:
    """Cached series for one (symbol, timeframe) key.

    data is strictly ascending by timestamp with unique timestamps.
    Only TemperatureCache mutates instances.
    """

    symbol: str
    timeframe: str
    data: list[TemperatureDataPoint] = field(default_factory=list)
    last_updated: str = ""

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "data": [point.to_dict() for point in self.data],
            "lastUpdated": self.last_updated,
        }
