"""Short-candidate selection for the BTCDOM2 rotation strategy.

Given one ranking snapshot, the selector:
1. Drops the benchmark asset
2. Computes batch statistics (volatility spread, deepest decline)
3. Gates each row: eligible only if it fell more than the benchmark
4. Scores eligible rows on price change, volume rank, volatility, funding
5. Sorts eligible rows by total score and keeps the top max_short_positions

Ties on total score are broken by ascending upstream rank, then by input
order. The whole pass is pure and never raises on malformed numbers.
"""

import math

from btcdom.logging import get_logger
from btcdom.models import RankingRow, StrategyParams
from btcdom.selection.models import BatchStats, SelectionResult, ShortCandidate
from btcdom.selection.scoring import (
    compute_batch_stats,
    compute_total_score,
    effective_price_change,
    funding_rate_score,
    latest_funding_rate,
    price_change_score,
    volatility_score,
    volume_score,
)

logger = get_logger(__name__)

DEFAULT_BENCHMARK_SYMBOL = "BTCUSDT"


def _reject(row: RankingRow, reference_price_change: float) -> ShortCandidate:
    price_change = effective_price_change(row)
    return ShortCandidate(
        row=row,
        total_score=0.0,
        eligible=False,
        reason=(
            f"price change {price_change:.2f}% not below "
            f"benchmark {reference_price_change:.2f}%"
        ),
    )


def _score(row: RankingRow, stats: BatchStats, params: StrategyParams) -> ShortCandidate:
    price_change = price_change_score(effective_price_change(row), stats.price_change)
    volume = volume_score(row.rank, stats.total_candidates)
    volatility = volatility_score(
        row.volatility_24h, stats.volatility.avg, stats.volatility.spread
    )
    funding = funding_rate_score(latest_funding_rate(row.funding_rate_history))
    total = compute_total_score(price_change, volume, volatility, funding, params)

    return ShortCandidate(
        row=row,
        total_score=total,
        eligible=True,
        reason=f"composite score: {total:.3f}",
        price_change_score=price_change,
        volume_score=volume,
        volatility_score=volatility,
        funding_rate_score=funding,
    )


def select_short_candidates(
    rows: list[RankingRow],
    reference_price_change: float,
    params: StrategyParams,
    benchmark_symbol: str = DEFAULT_BENCHMARK_SYMBOL,
) -> SelectionResult:
    """Score a ranking snapshot and pick the top short candidates.

    Args:
        rows: Ranking rows for one timestamp (may be empty, may include
            the benchmark asset).
        reference_price_change: Benchmark 24h change in percent. A row is
            eligible only if its own change is strictly below this.
        params: Weights and max_short_positions. Weights are used as given.
        benchmark_symbol: Symbol excluded from the candidate pool.

    Returns:
        SelectionResult with selected (capped, sorted) and rejected candidates.
    """
    candidates_pool = [row for row in rows if row.symbol != benchmark_symbol]
    stats = compute_batch_stats(candidates_pool)

    eligible: list[ShortCandidate] = []
    rejected: list[ShortCandidate] = []

    for row in candidates_pool:
        if effective_price_change(row) < reference_price_change:
            eligible.append(_score(row, stats, params))
        else:
            rejected.append(_reject(row, reference_price_change))

    # sorted() is stable, so equal (score, rank) keeps input order
    eligible = sorted(eligible, key=lambda c: (-c.total_score, c.rank))

    limit = max(0, params.max_short_positions)
    selected = eligible[:limit]

    if selected:
        reason = f"selected {len(selected)} short candidates"
    else:
        reason = "no eligible short candidates"

    return SelectionResult(
        selected_candidates=selected,
        rejected_candidates=rejected,
        total_candidates=len(candidates_pool),
        eligible_count=len(eligible),
        selection_reason=reason,
    )


class ShortCandidateSelector:
    """Selects short candidates with a fixed benchmark and default parameters.

    Args:
        default_params: Parameters used when select() is called without any.
        benchmark_symbol: Symbol excluded from every candidate pool.
    """

    def __init__(
        self,
        default_params: StrategyParams,
        benchmark_symbol: str = DEFAULT_BENCHMARK_SYMBOL,
    ) -> None:
        self._default_params = default_params
        self._benchmark_symbol = benchmark_symbol

    @property
    def benchmark_symbol(self) -> str:
        return self._benchmark_symbol

    def benchmark_price_change(self, rows: list[RankingRow]) -> float | None:
        """Return the benchmark row's 24h change, or None if absent or non-finite."""
        for row in rows:
            if row.symbol == self._benchmark_symbol:
                if math.isfinite(row.price_change_24h):
                    return row.price_change_24h
                return None
        return None

    def select(
        self,
        rows: list[RankingRow],
        reference_price_change: float,
        params: StrategyParams | None = None,
    ) -> SelectionResult:
        """Run select_short_candidates and log the selection summary."""
        result = select_short_candidates(
            rows,
            reference_price_change,
            params or self._default_params,
            benchmark_symbol=self._benchmark_symbol,
        )
        logger.debug(
            "short_candidates_selected",
            total=result.total_candidates,
            eligible=result.eligible_count,
            selected=[c.symbol for c in result.selected_candidates],
            reference_price_change=reference_price_change,
        )
        return result
