"""Position allocation across selected short candidates.

Splits a total short notional (USDT) across the selected candidates:
- BY_VOLUME: proportional to market share
- BY_COMPOSITE_SCORE: proportional to total score, each capped at
  total_amount * max_single_ratio, with freed capital redistributed by headroom
- EQUAL_ALLOCATION: equal split

Every returned amount is finite and non-negative, one per candidate.
"""

import math

from btcdom.models import AllocationStrategy
from btcdom.selection.models import ShortCandidate


def _finite_non_negative(value: float) -> float:
    return value if math.isfinite(value) and value > 0 else 0.0


def _equal_split(count: int, total_amount: float) -> list[float]:
    return [total_amount / max(count, 1)] * count


def _proportional(weights: list[float], total_amount: float) -> list[float]:
    total_weight = sum(weights)
    if total_weight <= 0:
        return _equal_split(len(weights), total_amount)
    return [total_amount * (w / total_weight) for w in weights]


def _by_composite_score(
    candidates: list[ShortCandidate],
    total_amount: float,
    max_single_ratio: float,
) -> list[float]:
    max_single = total_amount * max_single_ratio
    scores = [_finite_non_negative(c.total_score) for c in candidates]

    if sum(scores) > 0:
        allocations = [min(a, max_single) for a in _proportional(scores, total_amount)]
    else:
        allocations = _equal_split(len(candidates), total_amount)

    # Capital freed by the per-candidate cap goes to candidates with headroom
    remaining = total_amount - sum(allocations)
    if remaining > 0:
        headroom = [max(0.0, max_single - a) for a in allocations]
        total_headroom = sum(headroom)
        if total_headroom > 0:
            allocations = [
                a + remaining * (h / total_headroom)
                for a, h in zip(allocations, headroom)
            ]
    return allocations


def allocate_positions(
    candidates: list[ShortCandidate],
    total_amount: float,
    strategy: AllocationStrategy = AllocationStrategy.BY_VOLUME,
    max_single_ratio: float = 0.25,
) -> list[float]:
    """Return the notional allocated to each candidate, in candidate order.

    Args:
        candidates: Selected short candidates.
        total_amount: Total short notional. NaN or non-positive means 0.
        strategy: Allocation strategy.
        max_single_ratio: Per-candidate cap as a share of total_amount
            (BY_COMPOSITE_SCORE only).

    Returns:
        List of allocations, same length as candidates.
    """
    if not candidates:
        return []

    total_amount = _finite_non_negative(total_amount)

    if strategy == AllocationStrategy.BY_COMPOSITE_SCORE:
        allocations = _by_composite_score(candidates, total_amount, max_single_ratio)
    elif strategy == AllocationStrategy.EQUAL_ALLOCATION:
        allocations = _equal_split(len(candidates), total_amount)
    else:
        shares = [_finite_non_negative(c.market_share) for c in candidates]
        allocations = _proportional(shares, total_amount)

    return [_finite_non_negative(a) for a in allocations]
