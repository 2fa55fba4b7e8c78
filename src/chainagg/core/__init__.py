"""Core module - entity types, errors, fixed-point math and registry."""

from chainagg.core.errors import (
    AggregationError,
    MissingEntityError,
    RequiredReadError,
    TimeRegressionError,
    UnknownEventError,
)
from chainagg.core.fixed_point import ONE, SECONDS_PER_YEAR, mul_div, tdiv
from chainagg.core.types import (
    Candle,
    CandleSingleton,
    DailyChunk,
    DailySeries,
    Metric,
    ProtocolConfig,
    RollingAverage,
    RollingAverageBucket,
    SeriesKey,
)

__all__ = [
    "AggregationError",
    "Candle",
    "CandleSingleton",
    "DailyChunk",
    "DailySeries",
    "Metric",
    "MissingEntityError",
    "ONE",
    "ProtocolConfig",
    "RequiredReadError",
    "RollingAverage",
    "RollingAverageBucket",
    "SECONDS_PER_YEAR",
    "SeriesKey",
    "TimeRegressionError",
    "UnknownEventError",
    "mul_div",
    "tdiv",
]
