"""Short-candidate selection data models.

Scores are floats in [0, 1]. Ineligible candidates carry no sub-scores
(None) and a total_score of 0.
"""

from dataclasses import dataclass, field

from btcdom.models import RankingRow


@dataclass(frozen=True)
class VolatilityStats:
    min: float
    max: float
    avg: float
    spread: float  # Gaussian kernel width, floored at 0.01


@dataclass(frozen=True)
class PriceChangeStats:
    min: float
    max: float
    has_declines: bool
    max_absolute_decline: float


@dataclass(frozen=True)
class BatchStats:
    """Aggregates over one batch of rows, computed fresh per selection call."""

    total_candidates: int
    volatility: VolatilityStats
    price_change: PriceChangeStats


@dataclass(frozen=True)
class ShortCandidate:
    """Scored wrapper around a RankingRow."""

    row: RankingRow
    total_score: float
    eligible: bool
    reason: str
    price_change_score: float | None = None
    volume_score: float | None = None
    volatility_score: float | None = None
    funding_rate_score: float | None = None

    @property
    def symbol(self) -> str:
        return self.row.symbol

    @property
    def rank(self) -> int:
        return self.row.rank

    @property
    def market_share(self) -> float:
        return self.row.market_share

    def to_dict(self) -> dict:
        """camelCase representation; ineligible candidates omit score fields."""
        result: dict = {
            "symbol": self.row.symbol,
            "rank": self.row.rank,
            "priceChange24h": self.row.price_change_24h,
            "volume24h": self.row.volume_24h,
            "quoteVolume24h": self.row.quote_volume_24h,
            "volatility24h": self.row.volatility_24h,
            "marketShare": self.row.market_share,
            "priceAtTime": self.row.price_at_time,
            "futurePriceAtTime": self.row.future_price_at_time,
            "futureSymbol": self.row.future_symbol,
        }
        if self.eligible:
            result.update(
                {
                    "priceChangeScore": self.price_change_score,
                    "volumeScore": self.volume_score,
                    "volatilityScore": self.volatility_score,
                    "fundingRateScore": self.funding_rate_score,
                }
            )
        result.update(
            {
                "totalScore": self.total_score,
                "eligible": self.eligible,
                "reason": self.reason,
            }
        )
        return result


@dataclass(frozen=True)
class SelectionResult:
    """Output of one selection call.

    selected_candidates is ordered by total_score descending and never
    longer than the configured max_short_positions.
    """

    selected_candidates: list[ShortCandidate] = field(default_factory=list)
    rejected_candidates: list[ShortCandidate] = field(default_factory=list)
    total_candidates: int = 0
    eligible_count: int = 0
    selection_reason: str = ""

    def to_dict(self) -> dict:
        return {
            "selectedCandidates": [c.to_dict() for c in self.selected_candidates],
            "rejectedCandidates": [c.to_dict() for c in self.rejected_candidates],
            "totalCandidates": self.total_candidates,
            "eligibleCount": self.eligible_count,
            "selectionReason": self.selection_reason,
        }
