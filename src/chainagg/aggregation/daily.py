"""Daily coarse history ledgers."""

import logging

from chainagg.config.schemas import AggregationConfig
from chainagg.core.errors import TimeRegressionError
from chainagg.core.types import DailyChunk, DailySeries, ProtocolConfig
from chainagg.store.base import EntityStore, require

logger = logging.getLogger(__name__)

PROTOCOL_KEY = "protocol"


class DailyHistoryLedger:
    """
    One chunk per day, holding the highest value seen during that day.

    The index of each series' current chunk lives on the protocol
    configuration singleton, which must exist before the first observation.
    Only one chunk is appended per observation even when several days have
    passed; the new chunk starts exactly one day after the previous one.
    """

    def __init__(self, store: EntityStore, config: AggregationConfig | None = None):
        config = config or AggregationConfig()
        self.store = store
        self.size = config.daily_chunk_seconds

    def current(self, series: DailySeries | str) -> DailyChunk | None:
        series = DailySeries(series)
        protocol = require(self.store, ProtocolConfig, PROTOCOL_KEY)
        return self.store.load(
            DailyChunk, (series.value, protocol.history_index(series))
        )

    def observe_daily(
        self,
        series: DailySeries | str,
        event_time: int,
        new_value: int,
    ) -> DailyChunk:
        """
        Record a value in a daily series.

        Returns:
            The chunk holding the value after the update

        Raises:
            MissingEntityError: If the protocol configuration does not exist
            TimeRegressionError: If ``event_time`` precedes the current chunk
        """
        series = DailySeries(series)
        protocol = require(self.store, ProtocolConfig, PROTOCOL_KEY)
        index = protocol.history_index(series)
        chunk = self.store.load(DailyChunk, (series.value, index))

        if chunk is None:
            chunk = DailyChunk(
                series=series.value,
                index=index,
                timestamp=event_time,
                size=self.size,
                value=new_value,
            )
            self.store.save(chunk)
            logger.debug(f"Started daily series {series} at {event_time}")
            return chunk

        if event_time < chunk.timestamp:
            raise TimeRegressionError(series.value, chunk.timestamp, event_time)

        if event_time - chunk.timestamp >= self.size:
            chunk = DailyChunk(
                series=series.value,
                index=index + 1,
                timestamp=chunk.timestamp + self.size,
                size=self.size,
                value=new_value,
            )
            self.store.save(chunk)
            protocol.set_history_index(series, index + 1)
            self.store.save(protocol)
            logger.debug(f"Appended daily chunk {index + 1} to {series}")
        elif new_value > chunk.value:
            chunk.value = new_value
            self.store.save(chunk)

        return chunk
