"""Entry point for the BTCDOM2 strategy core.

Wires components together once per process and runs a single selection
pass: warm the default temperature series, fetch the latest ranking
snapshot, apply the temperature rule, and log the selected short basket.

Component wiring order (in build_components):
1. AppSettings (configuration)
2. Logging setup
3. HttpMarketDataProvider (backend client)
4. TemperatureCache (shared temperature series cache)
5. ShortCandidateSelector (scoring and selection)
"""

import asyncio
from typing import Any

from btcdom.config import AppSettings
from btcdom.exceptions import UpstreamError
from btcdom.logging import get_logger, setup_logging
from btcdom.market_data.http_provider import HttpMarketDataProvider
from btcdom.models import StrategyParams
from btcdom.selection.allocation import allocate_positions
from btcdom.selection.selector import ShortCandidateSelector
from btcdom.temperature.cache import TemperatureCache
from btcdom.temperature.series import is_hot_at
from btcdom.timeutils import utc_now_iso
from btcdom.validation import ensure_valid_strategy_params


def build_components(settings: AppSettings) -> dict[str, Any]:
    """Build the component graph from settings.

    Strategy parameters are validated here, at the boundary, so the
    selector can take them as given.

    Raises:
        InvalidParameter: If the configured weights or limits are invalid.
    """
    params = ensure_valid_strategy_params(
        StrategyParams.from_settings(settings.selection),
        tolerance=settings.selection.weight_sum_tolerance,
    )

    provider = HttpMarketDataProvider(settings.provider)
    temperature_cache = TemperatureCache(provider, settings.temperature)
    selector = ShortCandidateSelector(
        default_params=params,
        benchmark_symbol=settings.selection.benchmark_symbol,
    )

    return {
        "params": params,
        "provider": provider,
        "temperature_cache": temperature_cache,
        "selector": selector,
    }


async def run_selection(
    settings: AppSettings,
    components: dict[str, Any],
    short_notional: float = 0.0,
) -> dict:
    """Run one selection pass at the current time and return a summary dict."""
    logger = get_logger("btcdom.main")
    provider: HttpMarketDataProvider = components["provider"]
    cache: TemperatureCache = components["temperature_cache"]
    selector: ShortCandidateSelector = components["selector"]
    params: StrategyParams = components["params"]

    now = utc_now_iso()
    temperature = await cache.warm(end_date=now)
    hot = is_hot_at(temperature.data, now, settings.temperature.threshold)

    rows = await provider.fetch_ranking_batch(now)
    reference = selector.benchmark_price_change(rows)
    if reference is None:
        logger.warning("benchmark_missing", benchmark=selector.benchmark_symbol)
        reference = 0.0

    result = selector.select(rows, reference)
    selected = [] if hot else result.selected_candidates
    allocations = allocate_positions(
        selected,
        short_notional,
        params.allocation_strategy,
        params.max_single_position_ratio,
    )

    logger.info(
        "selection_complete",
        temperature_hot=hot,
        temperature_stale=temperature.stale,
        reason=result.selection_reason,
        selected=[c.symbol for c in selected],
        allocations=[round(a, 2) for a in allocations],
    )
    return {
        "timestamp": now,
        "temperatureHot": hot,
        "selection": result.to_dict(),
        "allocations": {c.symbol: a for c, a in zip(selected, allocations)},
    }


async def run() -> None:
    """Load settings, build components, and run one selection pass."""
    settings = AppSettings()
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("btcdom.main")

    components = build_components(settings)
    try:
        await run_selection(settings, components)
    except UpstreamError as e:
        logger.error("selection_failed", error=str(e))
    finally:
        await components["provider"].close()
        logger.info("btcdom_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
