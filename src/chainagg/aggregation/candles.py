"""Multi-resolution OHLCV candle ledger."""

import logging

from chainagg.config.schemas import AggregationConfig
from chainagg.core.errors import TimeRegressionError
from chainagg.core.types import CandleSingleton
from chainagg.store.base import EntityStore, require

logger = logging.getLogger(__name__)


class CandleLedger:
    """
    Maintains one in-progress candle per instrument and resolution.

    Two price tracks share each candle: the trade track (DEX price plus
    volume) and the oracle track (oracle price, no volume). Both roll over
    on the same clock. When a candle's span has elapsed it is archived as
    an immutable ``Candle`` and replaced by a flat candle at the previous
    close; spans without activity are filled the same way so the closed
    history has no holes.
    """

    def __init__(self, store: EntityStore, config: AggregationConfig | None = None):
        config = config or AggregationConfig()
        self.store = store
        self.resolutions = list(config.candle_resolutions_minutes)

    def open(
        self,
        instrument: str,
        event_time: int,
        price: int,
        oracle_price: int | None = None,
    ) -> list[CandleSingleton]:
        """
        Start candles for every resolution of an instrument.

        Resolutions that already have an in-progress candle are left as is.

        Returns:
            The in-progress candles, one per resolution
        """
        candles = []
        for resolution in self.resolutions:
            candle = self.store.load(CandleSingleton, (instrument, resolution))
            if candle is None:
                candle = CandleSingleton.flat(
                    instrument, resolution, event_time, price, oracle_price
                )
                self.store.save(candle)
                logger.debug(
                    f"Opened {resolution}m candle for {instrument} at {event_time}"
                )
            candles.append(candle)
        return candles

    def is_open(self, instrument: str) -> bool:
        """Whether candles have been started for an instrument."""
        return (
            self.store.load(CandleSingleton, (instrument, self.resolutions[0]))
            is not None
        )

    def current(self, instrument: str, resolution: int) -> CandleSingleton | None:
        return self.store.load(CandleSingleton, (instrument, resolution))

    def observe_trade(
        self,
        instrument: str,
        event_time: int,
        trade_price: int | None = None,
        oracle_price: int | None = None,
        volume: int | None = None,
    ) -> None:
        """
        Apply a price and/or volume observation to every resolution.

        Any subset of the arguments may be supplied; omitted tracks are left
        untouched apart from rollover.

        Args:
            instrument: Tracked token address
            event_time: Event timestamp in seconds
            trade_price: DEX price in stable coin units
            oracle_price: Oracle price with 18 decimals
            volume: Additional trade volume

        Raises:
            MissingEntityError: If the instrument's candles were never opened
            TimeRegressionError: If ``event_time`` precedes a current candle
        """
        for resolution in self.resolutions:
            candle = require(self.store, CandleSingleton, (instrument, resolution))
            if event_time < candle.timestamp:
                raise TimeRegressionError(
                    (instrument, resolution), candle.timestamp, event_time
                )

            candle = self._roll_over(candle, event_time)
            self._apply(candle, trade_price, oracle_price, volume)
            self.store.save(candle)

    def _roll_over(self, candle: CandleSingleton, event_time: int) -> CandleSingleton:
        span = candle.resolution * 60
        closed = 0
        while event_time - candle.timestamp >= span:
            self.store.save(candle.archive())
            candle = CandleSingleton.flat(
                candle.instrument,
                candle.resolution,
                candle.timestamp + span,
                candle.close,
                candle.close_oracle,
            )
            closed += 1

        if closed:
            logger.debug(
                f"Closed {closed} {candle.resolution}m candle(s) for "
                f"{candle.instrument}, now at {candle.timestamp}"
            )
        return candle

    @staticmethod
    def _apply(
        candle: CandleSingleton,
        trade_price: int | None,
        oracle_price: int | None,
        volume: int | None,
    ) -> None:
        if trade_price is not None:
            # A track still at zero was opened without a price
            if candle.high == 0:
                candle.open = candle.low = trade_price
            candle.low = min(candle.low, trade_price)
            candle.high = max(candle.high, trade_price)
            candle.close = trade_price
        if oracle_price is not None:
            if candle.high_oracle == 0:
                candle.open_oracle = candle.low_oracle = oracle_price
            candle.low_oracle = min(candle.low_oracle, oracle_price)
            candle.high_oracle = max(candle.high_oracle, oracle_price)
            candle.close_oracle = oracle_price
        if volume is not None:
            # A freshly rolled candle starts at zero, so this also covers
            # the volume-only call right after a rollover.
            candle.volume += volume
