"""Tests for short-candidate selection.

Tests verify:
- Benchmark exclusion and eligibility gate (strictly below reference)
- Selection cap, including max_short_positions=0
- Descending order with rank tie-break
- Sub-score bounds on adversarial batches
- Determinism across repeated runs
- Empty input and ineligible candidates omitting sub-scores
"""

import math

import pytest

from btcdom.models import FundingRatePoint, RankingRow, StrategyParams
from btcdom.selection.selector import ShortCandidateSelector, select_short_candidates


def _row(
    symbol: str,
    rank: int,
    price_change: float,
    volatility: float = 5.0,
    funding: float | None = None,
    market_share: float = 1.0,
) -> RankingRow:
    history = (
        (FundingRatePoint(time="2024-01-01T00:00:00Z", rate=funding),)
        if funding is not None
        else ()
    )
    return RankingRow(
        symbol=symbol,
        rank=rank,
        price_change_24h=price_change,
        volatility_24h=volatility,
        market_share=market_share,
        funding_rate_history=history,
    )


def _params(max_short: int = 2, **weights: float) -> StrategyParams:
    return StrategyParams(
        price_change_weight=weights.get("price", 0.0),
        volume_weight=weights.get("volume", 0.0),
        volatility_weight=weights.get("volatility", 0.0),
        funding_rate_weight=weights.get("funding", 0.0),
        max_short_positions=max_short,
    )


@pytest.fixture
def abc_rows() -> list[RankingRow]:
    return [_row("A", 1, -10), _row("B", 2, -5), _row("C", 3, 2)]


class TestSelectionScenarios:
    """End-to-end selection scenarios."""

    def test_price_weighted_selection(
        self, abc_rows: list[RankingRow], price_only_params: StrategyParams
    ) -> None:
        result = select_short_candidates(abc_rows, 0.0, price_only_params)

        assert [c.symbol for c in result.selected_candidates] == ["A", "B"]
        assert result.selected_candidates[0].price_change_score == 1.0
        assert result.selected_candidates[1].price_change_score == 0.5
        assert [c.symbol for c in result.rejected_candidates] == ["C"]
        assert result.total_candidates == 3
        assert result.eligible_count == 2
        assert result.selection_reason == "selected 2 short candidates"

    def test_cap_of_one(self, abc_rows: list[RankingRow]) -> None:
        result = select_short_candidates(abc_rows, 0.0, _params(1, price=1.0))
        assert [c.symbol for c in result.selected_candidates] == ["A"]
        assert result.eligible_count == 2

    def test_empty_rows(self, price_only_params: StrategyParams) -> None:
        result = select_short_candidates([], 0.0, price_only_params)
        assert result.selected_candidates == []
        assert result.rejected_candidates == []
        assert result.total_candidates == 0
        assert result.eligible_count == 0
        assert result.selection_reason == "no eligible short candidates"


class TestEligibility:
    """Tests for the benchmark exclusion and eligibility gate."""

    def test_benchmark_excluded(self, price_only_params: StrategyParams) -> None:
        rows = [_row("BTCUSDT", 1, -20), _row("A", 1, -10)]
        result = select_short_candidates(rows, 0.0, price_only_params)
        symbols = [c.symbol for c in result.selected_candidates + result.rejected_candidates]
        assert "BTCUSDT" not in symbols
        assert result.total_candidates == 1

    def test_equal_to_reference_is_ineligible(self, price_only_params: StrategyParams) -> None:
        rows = [_row("A", 1, -3), _row("B", 2, -2)]
        result = select_short_candidates(rows, -2.0, price_only_params)
        assert [c.symbol for c in result.selected_candidates] == ["A"]
        assert result.rejected_candidates[0].symbol == "B"

    def test_eligibility_independent_of_weights(self, abc_rows: list[RankingRow]) -> None:
        for params in (_params(5, price=1.0), _params(5, funding=1.0), _params(5)):
            result = select_short_candidates(abc_rows, -6.0, params)
            assert {c.symbol for c in result.selected_candidates} == {"A"}
            assert {c.symbol for c in result.rejected_candidates} == {"B", "C"}

    def test_rejected_candidates_omit_sub_scores(self, abc_rows: list[RankingRow]) -> None:
        result = select_short_candidates(abc_rows, 0.0, _params(2, price=1.0))
        rejected = result.rejected_candidates[0]
        assert rejected.eligible is False
        assert rejected.total_score == 0.0
        assert rejected.price_change_score is None
        assert "2.00%" in rejected.reason
        assert "0.00%" in rejected.reason
        assert "priceChangeScore" not in rejected.to_dict()

    def test_nan_price_change_treated_as_zero(self) -> None:
        rows = [_row("A", 1, math.nan), _row("B", 2, -1)]
        result = select_short_candidates(rows, 0.5, _params(5, price=1.0))
        assert {c.symbol for c in result.selected_candidates} == {"A", "B"}


class TestSelectionCap:
    """len(selected) == min(max_short_positions, eligible_count)."""

    @pytest.mark.parametrize("max_short", [0, 1, 2, 3, 10])
    def test_cap(self, max_short: int) -> None:
        rows = [_row(f"S{i}", i, -float(i)) for i in range(1, 6)]
        result = select_short_candidates(rows, -1.5, _params(max_short, price=1.0))
        assert len(result.selected_candidates) == min(max_short, result.eligible_count)
        assert all(c.eligible for c in result.selected_candidates)

    def test_zero_cap_reason(self, abc_rows: list[RankingRow]) -> None:
        result = select_short_candidates(abc_rows, 0.0, _params(0, price=1.0))
        assert result.selected_candidates == []
        assert result.selection_reason == "no eligible short candidates"


class TestOrdering:
    """Sort order and tie-breaking."""

    def test_descending_total_score(self, default_params: StrategyParams) -> None:
        rows = [
            _row("A", 3, -2, volatility=8, funding=-0.01),
            _row("B", 1, -9, volatility=5, funding=0.01),
            _row("C", 2, -4, volatility=2, funding=0.0),
        ]
        result = select_short_candidates(rows, 0.0, default_params)
        scores = [c.total_score for c in result.selected_candidates]
        assert scores == sorted(scores, reverse=True)

    def test_tie_broken_by_rank(self) -> None:
        # Funding-only weights with no funding data: every score is 0.5
        rows = [_row("C", 3, -1), _row("A", 1, -1), _row("B", 2, -1)]
        result = select_short_candidates(rows, 0.0, _params(3, funding=1.0))
        assert [c.symbol for c in result.selected_candidates] == ["A", "B", "C"]

    def test_deterministic(self, default_params: StrategyParams) -> None:
        rows = [_row(f"S{i}", i, -i * 1.3, volatility=i * 0.7, funding=0.0001 * i) for i in range(1, 9)]
        first = select_short_candidates(rows, 0.0, default_params)
        second = select_short_candidates(rows, 0.0, default_params)
        assert [c.symbol for c in first.selected_candidates] == [
            c.symbol for c in second.selected_candidates
        ]
        assert [c.total_score for c in first.selected_candidates] == [
            c.total_score for c in second.selected_candidates
        ]


class TestScoreBounds:
    """Sub-scores stay in [0, 1] on adversarial batches."""

    @pytest.mark.parametrize(
        "rows",
        [
            [_row("A", 1, -1, 5), _row("B", 2, -1, 5), _row("C", 3, -1, 5)],
            [_row("A", 1, 3, 1), _row("B", 2, 3, 1)],
            [_row("A", 1, -50, 0.1, 0.05), _row("B", 2, -0.01, 300, -0.05)],
            [_row("A", 1, -2, math.nan), _row("B", 2, -3, math.inf)],
            [_row("A", 7, -2), _row("B", 9, -3)],
        ],
    )
    def test_sub_scores_bounded(self, rows: list[RankingRow], default_params: StrategyParams) -> None:
        result = select_short_candidates(rows, 10.0, default_params)
        for candidate in result.selected_candidates:
            for score in (
                candidate.price_change_score,
                candidate.volume_score,
                candidate.volatility_score,
                candidate.funding_rate_score,
            ):
                assert score is not None
                assert 0.0 <= score <= 1.0

    def test_huge_volatility_does_not_raise(self) -> None:
        rows = [_row("A", 1, -5, volatility=1e200), _row("B", 2, -3, volatility=0.0)]
        params = StrategyParams(0.25, 0.25, 0.25, 0.25, max_short_positions=5)

        result = select_short_candidates(rows, 0.0, params)

        assert [c.symbol for c in result.selected_candidates] == ["A", "B"]
        for candidate in result.selected_candidates:
            assert 0.0 <= candidate.volatility_score <= 1.0
            assert math.isfinite(candidate.total_score)

    def test_nan_weight_total_is_zero(self, abc_rows: list[RankingRow]) -> None:
        params = _params(2, price=math.nan)
        result = select_short_candidates(abc_rows, 0.0, params)
        assert all(c.total_score == 0.0 for c in result.selected_candidates)


class TestShortCandidateSelector:
    """Tests for the ShortCandidateSelector wrapper."""

    def test_uses_default_params(
        self, abc_rows: list[RankingRow], price_only_params: StrategyParams
    ) -> None:
        selector = ShortCandidateSelector(price_only_params)
        result = selector.select(abc_rows, 0.0)
        assert [c.symbol for c in result.selected_candidates] == ["A", "B"]

    def test_explicit_params_override(
        self, abc_rows: list[RankingRow], price_only_params: StrategyParams
    ) -> None:
        selector = ShortCandidateSelector(price_only_params)
        result = selector.select(abc_rows, 0.0, _params(1, price=1.0))
        assert len(result.selected_candidates) == 1

    def test_benchmark_price_change(self, price_only_params: StrategyParams) -> None:
        selector = ShortCandidateSelector(price_only_params, benchmark_symbol="BTCUSDT")
        rows = [_row("A", 1, -3), _row("BTCUSDT", 0, 1.5)]
        assert selector.benchmark_price_change(rows) == 1.5
        assert selector.benchmark_price_change([_row("A", 1, -3)]) is None

    def test_custom_benchmark(self, price_only_params: StrategyParams) -> None:
        selector = ShortCandidateSelector(price_only_params, benchmark_symbol="ETHUSDT")
        rows = [_row("ETHUSDT", 1, -30), _row("A", 1, -3)]
        result = selector.select(rows, 0.0)
        assert [c.symbol for c in result.selected_candidates] == ["A"]
