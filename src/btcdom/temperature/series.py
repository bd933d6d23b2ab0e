"""Pure helpers over temperature series: merge, range filter, hot periods.

Timestamps compare as instants (parsed ISO-8601), but de-duplication is by
exact timestamp string, matching how the backend echoes its own keys.
"""

from bisect import bisect_right
from dataclasses import dataclass

from btcdom.models import TemperatureDataPoint
from btcdom.timeutils import to_epoch_ms


def merge_temperature_data(
    existing: list[TemperatureDataPoint],
    new: list[TemperatureDataPoint],
) -> list[TemperatureDataPoint]:
    """Merge two series into one ascending series with unique timestamps.

    New points overwrite existing points with the same timestamp.
    """
    by_timestamp: dict[str, TemperatureDataPoint] = {}
    for point in existing:
        by_timestamp[point.timestamp] = point
    for point in new:
        by_timestamp[point.timestamp] = point
    return sorted(by_timestamp.values(), key=lambda p: to_epoch_ms(p.timestamp))


def filter_by_date_range(
    data: list[TemperatureDataPoint],
    start_ms: int,
    end_ms: int,
) -> list[TemperatureDataPoint]:
    """Return points with start_ms <= timestamp <= end_ms, preserving order."""
    return [p for p in data if start_ms <= to_epoch_ms(p.timestamp) <= end_ms]


@dataclass(frozen=True)
class TemperaturePeriod:
    """A contiguous run of readings above the temperature threshold."""

    start: str
    end: str
    peak: float
    points: int


def find_hot_periods(
    data: list[TemperatureDataPoint],
    threshold: float,
) -> list[TemperaturePeriod]:
    """Group consecutive points with value > threshold into periods.

    data must be ascending by timestamp.
    """
    periods: list[TemperaturePeriod] = []
    run: list[TemperatureDataPoint] = []

    for point in [*data, None]:
        if point is not None and point.value > threshold:
            run.append(point)
            continue
        if run:
            periods.append(
                TemperaturePeriod(
                    start=run[0].timestamp,
                    end=run[-1].timestamp,
                    peak=max(p.value for p in run),
                    points=len(run),
                )
            )
            run = []

    return periods


def is_hot_at(
    data: list[TemperatureDataPoint],
    timestamp: str,
    threshold: float,
) -> bool:
    """Whether the latest reading at or before timestamp exceeds threshold.

    False when no reading precedes timestamp. data must be ascending.
    """
    timestamps = [to_epoch_ms(p.timestamp) for p in data]
    idx = bisect_right(timestamps, to_epoch_ms(timestamp))
    if idx == 0:
        return False  # No reading at or before this time
    return data[idx - 1].value > threshold
