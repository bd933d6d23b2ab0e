"""Batch statistics and sub-score functions for short-candidate ranking.

Each sub-score maps one dimension of a candidate into [0, 1]:
- price change: depth of the 24h decline relative to the batch's deepest decline
- volume: inverse upstream rank
- volatility: Gaussian similarity to the batch average volatility
- funding rate: latest funding rate mapped linearly from [-2%, +2%]

Non-finite inputs are substituted with neutral values rather than
propagated, so one bad upstream row cannot poison a whole ranking:
- a non-finite price change counts as 0%
- a non-finite volatility is replaced by the batch average (score 1.0)
- missing or non-finite funding data scores a neutral 0.5
"""

import math

from btcdom.models import FundingRatePoint, RankingRow, StrategyParams
from btcdom.selection.models import BatchStats, PriceChangeStats, VolatilityStats

#: Lower bound on the volatility kernel width when all volatilities are equal.
MIN_VOLATILITY_SPREAD = 0.01

#: Funding score used when a candidate has no usable funding history.
NEUTRAL_FUNDING_SCORE = 0.5

#: Funding rates (in percent) mapped onto [0, 1]: -2% -> 0, +2% -> 1.
_FUNDING_PERCENT_OFFSET = 2.0
_FUNDING_PERCENT_RANGE = 4.0


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def effective_price_change(row: RankingRow) -> float:
    """24h price change with non-finite values treated as 0%."""
    value = row.price_change_24h
    return value if math.isfinite(value) else 0.0


def compute_batch_stats(rows: list[RankingRow]) -> BatchStats:
    """Aggregate volatility and price-change statistics over one batch.

    Rows are expected to already exclude the benchmark asset. Volatility
    statistics use only finite values; with none available all fields are 0
    and the spread takes its floor.
    """
    volatilities = [r.volatility_24h for r in rows if math.isfinite(r.volatility_24h)]
    price_changes = [effective_price_change(r) for r in rows]

    if volatilities:
        vol_min = min(volatilities)
        vol_max = max(volatilities)
        # Divide before summing so values near the float limit cannot overflow
        vol_avg = sum(v / len(volatilities) for v in volatilities)
    else:
        vol_min = vol_max = vol_avg = 0.0

    spread = vol_max / 4 - vol_min / 4
    if not math.isfinite(spread):
        spread = MIN_VOLATILITY_SPREAD

    declines = [abs(p) for p in price_changes if p < 0]

    return BatchStats(
        total_candidates=len(rows),
        volatility=VolatilityStats(
            min=vol_min,
            max=vol_max,
            avg=vol_avg if math.isfinite(vol_avg) else 0.0,
            spread=max(spread, MIN_VOLATILITY_SPREAD),
        ),
        price_change=PriceChangeStats(
            min=min(price_changes) if price_changes else 0.0,
            max=max(price_changes) if price_changes else 0.0,
            has_declines=bool(declines),
            max_absolute_decline=max(declines) if declines else 0.0,
        ),
    )


def price_change_score(price_change: float, stats: PriceChangeStats) -> float:
    """Score the depth of a decline.

    With at least one decline in the batch: |min(x, 0)| / max_absolute_decline,
    so the deepest decline scores 1.0 and non-declining rows score 0. With no
    declines at all, falls back to linear inverse position in [min, max].
    """
    if stats.has_declines:
        return _clamp01(abs(min(price_change, 0.0)) / stats.max_absolute_decline)
    if stats.max > stats.min:
        return _clamp01(1 - (price_change - stats.min) / (stats.max - stats.min))
    return 1.0


def volume_score(rank: int, total_candidates: int) -> float:
    """Rank-based score: rank 1 scores 1.0, rank N scores 1/N.

    Clamped so a rank outside [1, N] cannot leave the unit interval.
    """
    if total_candidates <= 0:
        return 0.0
    return _clamp01((total_candidates - rank + 1) / total_candidates)


def volatility_score(volatility: float, ideal: float, spread: float) -> float:
    """Gaussian kernel similarity of volatility to the batch average.

    exp(-z^2 / 2) with z = (v - ideal) / spread, so extreme finite inputs
    decay to 0.0 instead of overflowing. A non-finite volatility is
    replaced by the ideal value and therefore scores 1.0.
    """
    if not math.isfinite(volatility):
        volatility = ideal
    if not math.isfinite(spread) or spread <= 0:
        return 1.0
    z = (volatility - ideal) / spread
    if not math.isfinite(z):
        return 0.0
    return math.exp(-0.5 * z * z)


def latest_funding_rate(history: tuple[FundingRatePoint, ...]) -> float | None:
    """Most recent finite funding rate, or None without usable data."""
    if not history:
        return None
    rate = history[-1].rate
    return rate if math.isfinite(rate) else None


def funding_rate_score(funding_rate: float | None) -> float:
    """Map a raw funding rate onto [0, 1].

    Formula: clamp01((rate * 100 + 2) / 4), so 0% scores 0.5 and rates
    beyond +/-2% saturate. None scores NEUTRAL_FUNDING_SCORE.
    """
    if funding_rate is None or not math.isfinite(funding_rate):
        return NEUTRAL_FUNDING_SCORE
    funding_rate_percent = funding_rate * 100
    return _clamp01(
        (funding_rate_percent + _FUNDING_PERCENT_OFFSET) / _FUNDING_PERCENT_RANGE
    )


def compute_total_score(
    price_change: float,
    volume: float,
    volatility: float,
    funding_rate: float,
    params: StrategyParams,
) -> float:
    """Weighted sum of the four sub-scores. NaN collapses to 0."""
    total = (
        price_change * params.price_change_weight
        + volume * params.volume_weight
        + volatility * params.volatility_weight
        + funding_rate * params.funding_rate_weight
    )
    return 0.0 if math.isnan(total) else total
