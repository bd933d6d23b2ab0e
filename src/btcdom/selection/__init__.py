"""Short-candidate selection -- batch stats, sub-scores, ranking, and allocation."""

from btcdom.selection.allocation import allocate_positions
from btcdom.selection.models import BatchStats, SelectionResult, ShortCandidate
from btcdom.selection.scoring import (
    compute_batch_stats,
    compute_total_score,
    funding_rate_score,
    price_change_score,
    volatility_score,
    volume_score,
)
from btcdom.selection.selector import ShortCandidateSelector, select_short_candidates

__all__ = [
    "BatchStats",
    "SelectionResult",
    "ShortCandidate",
    "ShortCandidateSelector",
    "allocate_positions",
    "compute_batch_stats",
    "compute_total_score",
    "funding_rate_score",
    "price_change_score",
    "select_short_candidates",
    "volatility_score",
    "volume_score",
]
