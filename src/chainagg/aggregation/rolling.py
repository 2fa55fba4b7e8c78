"""Chunked rolling averages over a bounded window of hourly buckets."""

import logging

from chainagg.config.schemas import AggregationConfig
from chainagg.core.errors import TimeRegressionError
from chainagg.core.fixed_point import tdiv
from chainagg.core.types import RollingAverage, RollingAverageBucket, SeriesKey
from chainagg.store.base import EntityStore, require

logger = logging.getLogger(__name__)


class RollingAverageLedger:
    """
    Maintains hourly bucket series and their trailing means.

    Each series (a metric of an instrument) owns one ``RollingAverage`` and
    a growing list of ``RollingAverageBucket`` rows indexed from 1. The
    average's ``index`` always names the current, still mutable bucket.

    Events arrive at irregular times. Hours without an observation are
    back-filled lazily with the previous bucket's value the next time the
    series is observed, so every hour boundary ends up with a bucket.

    The mean is updated incrementally:

    - while fewer than ``window`` buckets exist it is a running mean over
      all buckets,
    - afterwards every new bucket adds ``value / window`` and evicts
      ``oldest / window``.

    Each term is divided separately before combining. This truncation order
    produces a small, bounded drift compared to an exact mean and is part
    of the observable output.
    """

    def __init__(self, store: EntityStore, config: AggregationConfig | None = None):
        config = config or AggregationConfig()
        self.store = store
        self.span = config.bucket_span_seconds
        self.window = config.window_buckets

    def create(
        self,
        series: SeriesKey,
        event_time: int,
        baseline: int = 0,
    ) -> RollingAverage:
        """
        Start a series with bucket #1 at ``event_time``.

        Args:
            series: Series identity
            event_time: Start of the first bucket
            baseline: Value of the first bucket (and therefore of the mean)

        Returns:
            The new average
        """
        series = SeriesKey.of(*series)
        average = RollingAverage(
            metric=series.metric,
            instrument=series.instrument,
            value=baseline,
            index=1,
        )
        self.store.save(
            RollingAverageBucket(
                metric=series.metric,
                instrument=series.instrument,
                index=1,
                timestamp=event_time,
                value=baseline,
            )
        )
        self.store.save(average)
        logger.debug(f"Created rolling average {series} at {event_time}")
        return average

    def ensure(self, series: SeriesKey, event_time: int) -> RollingAverage:
        """Return the series, creating it at ``event_time`` if absent."""
        average = self.get(series)
        if average is None:
            average = self.create(series, event_time)
        return average

    def get(self, series: SeriesKey) -> RollingAverage | None:
        """Current state of a series, if it exists."""
        return self.store.load(RollingAverage, SeriesKey.of(*series))

    def observe(
        self,
        series: SeriesKey,
        event_time: int,
        new_value: int,
    ) -> tuple[int, int]:
        """
        Record the latest value of a series.

        The first observation only creates the series (bucket #1 at zero);
        the observed value is taken into account from the next call on.

        Args:
            series: Series identity
            event_time: Event timestamp in seconds
            new_value: Current value of the tracked quantity

        Returns:
            Tuple of (current bucket index, current mean)

        Raises:
            TimeRegressionError: If ``event_time`` precedes the current bucket
        """
        series = SeriesKey.of(*series)
        average = self.store.load(RollingAverage, series)
        if average is None:
            average = self.create(series, event_time)
            return average.index, average.value

        bucket = require(
            self.store,
            RollingAverageBucket,
            (series.metric, series.instrument, average.index),
        )
        if event_time < bucket.timestamp:
            raise TimeRegressionError(series, bucket.timestamp, event_time)

        # Hours without observations hold the previous value
        while event_time - bucket.timestamp >= 2 * self.span:
            bucket = self._append(average, bucket, bucket.value)

        if event_time - bucket.timestamp >= self.span:
            self._append(average, bucket, new_value)
        else:
            divisor = min(average.index, self.window)
            average.value = (
                average.value
                - tdiv(bucket.value, divisor)
                + tdiv(new_value, divisor)
            )
            bucket.value = new_value
            self.store.save(bucket)

        self.store.save(average)
        return average.index, average.value

    def _append(
        self,
        average: RollingAverage,
        previous: RollingAverageBucket,
        value: int,
    ) -> RollingAverageBucket:
        average.index += 1
        bucket = RollingAverageBucket(
            metric=average.metric,
            instrument=average.instrument,
            index=average.index,
            timestamp=previous.timestamp + self.span,
            value=value,
        )
        self.store.save(bucket)

        if average.index <= self.window:
            average.value = tdiv(
                average.value * (average.index - 1) + value, average.index
            )
        else:
            evicted = require(
                self.store,
                RollingAverageBucket,
                (average.metric, average.instrument, average.index - self.window),
            )
            average.value = (
                average.value
                + tdiv(value, self.window)
                - tdiv(evicted.value, self.window)
            )

        logger.debug(
            f"Appended bucket {average.index} to {average.series} "
            f"at {bucket.timestamp}"
        )
        return bucket
