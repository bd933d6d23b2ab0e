"""Caller-side validation for strategy parameters and date ranges.

The scoring engine and cache take their inputs as given; these checks run
at the boundary before either is invoked.
"""

import math

from btcdom.exceptions import InvalidParameter
from btcdom.models import StrategyParams
from btcdom.timeutils import to_epoch_ms


def validate_strategy_params(
    params: StrategyParams, tolerance: float = 0.001
) -> list[str]:
    """Return every validation error for params (empty list when valid)."""
    errors: list[str] = []

    for name, weight in params.weights.items():
        if not math.isfinite(weight) or weight < 0:
            errors.append(f"{name} weight must be a non-negative number, got {weight}")

    total_weight = sum(params.weights.values())
    if math.isfinite(total_weight) and abs(total_weight - 1) > tolerance:
        errors.append(f"weights must sum to 1, got {total_weight:.4f}")

    if params.max_short_positions < 0:
        errors.append(
            f"max_short_positions must be >= 0, got {params.max_short_positions}"
        )

    ratio = params.max_single_position_ratio
    if not math.isfinite(ratio) or not 0 < ratio <= 1:
        errors.append(f"max_single_position_ratio must be in (0, 1], got {ratio}")

    return errors


def ensure_valid_strategy_params(
    params: StrategyParams, tolerance: float = 0.001
) -> StrategyParams:
    """Return params unchanged, or raise InvalidParameter listing all errors."""
    errors = validate_strategy_params(params, tolerance)
    if errors:
        raise InvalidParameter(errors)
    return params


def validate_date_range(start_date: str, end_date: str) -> tuple[int, int]:
    """Parse an ISO date range into Unix milliseconds.

    Raises:
        InvalidParameter: If either date is unparseable or start is after end.
    """
    errors: list[str] = []
    bounds: list[int] = []
    for label, value in (("start_date", start_date), ("end_date", end_date)):
        try:
            bounds.append(to_epoch_ms(value))
        except (TypeError, ValueError):
            errors.append(f"{label} is not a valid ISO-8601 date: {value!r}")

    if errors:
        raise InvalidParameter(errors)

    start_ms, end_ms = bounds
    if start_ms > end_ms:
        raise InvalidParameter(f"start_date {start_date} is after end_date {end_date}")
    return start_ms, end_ms
