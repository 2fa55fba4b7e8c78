"""Trailing 30-day trading volume windows of swap pools."""

import logging

from chainagg.config.schemas import AggregationConfig
from chainagg.core.errors import TimeRegressionError
from chainagg.core.types import PoolVolumeChunk, PoolVolumeWindow, VolumeWindow
from chainagg.store.base import EntityStore, require

logger = logging.getLogger(__name__)


class PoolVolumeLedger:
    """
    Hourly volume chunks summed over a current and a previous window.

    Chunks accumulate every swap within their hour. The current window
    covers chunks ``[last_index, leading_index]`` younger than the window
    length (empty once ``last_index`` passes ``leading_index``); older chunks
    are handed over to the previous window, which covers
    ``[last_index, leading_index)`` up to twice the window length.
    Empty hours get no chunk.
    """

    def __init__(self, store: EntityStore, config: AggregationConfig | None = None):
        config = config or AggregationConfig()
        self.store = store
        self.span = config.bucket_span_seconds
        self.window = config.volume_window_seconds

    def window_of(self, pair: str, window: VolumeWindow) -> PoolVolumeWindow | None:
        return self.store.load(PoolVolumeWindow, (pair, window.value))

    def advance(self, pair: str, event_time: int) -> PoolVolumeWindow | None:
        """
        Move chunks that aged out at ``event_time`` without adding volume.

        Returns:
            The current window, or None for a pool without swaps
        """
        current = self.window_of(pair, VolumeWindow.CURRENT)
        if current is None:
            return None
        self._evict(pair, current, event_time)
        self.store.save(current)
        return current

    def add(
        self,
        pair: str,
        event_time: int,
        volume: int,
        fee_usd: int = 0,
    ) -> PoolVolumeWindow:
        """
        Add traded volume and fees to a pool.

        Args:
            pair: Swap pair address
            event_time: Event timestamp in seconds
            volume: Traded volume in stable coin units
            fee_usd: Swap fee in USD

        Returns:
            The current window after the update
        """
        current = self.window_of(pair, VolumeWindow.CURRENT)
        if current is None:
            return self._start(pair, event_time, volume, fee_usd)

        last = require(self.store, PoolVolumeChunk, (pair, current.leading_index))
        if event_time < last.timestamp:
            raise TimeRegressionError(pair, last.timestamp, event_time)

        elapsed = event_time - last.timestamp
        if elapsed >= self.span:
            chunk = PoolVolumeChunk(
                pair=pair,
                index=current.leading_index + 1,
                # Aligned to the first chunk's hour grid
                timestamp=last.timestamp + self.span * (elapsed // self.span),
                value=volume,
                fee_usd=fee_usd,
            )
            current.leading_index = chunk.index
            self.store.save(chunk)
        else:
            last.value += volume
            last.fee_usd += fee_usd
            self.store.save(last)

        current.value += volume
        current.fee_usd += fee_usd
        self._evict(pair, current, event_time)
        self.store.save(current)
        return current

    def _start(
        self, pair: str, event_time: int, volume: int, fee_usd: int
    ) -> PoolVolumeWindow:
        self.store.save(
            PoolVolumeChunk(
                pair=pair, index=1, timestamp=event_time, value=volume, fee_usd=fee_usd
            )
        )
        current = PoolVolumeWindow(
            pair=pair,
            window=VolumeWindow.CURRENT.value,
            value=volume,
            fee_usd=fee_usd,
        )
        self.store.save(current)
        self.store.save(PoolVolumeWindow(pair=pair, window=VolumeWindow.PREVIOUS.value))
        logger.debug(f"Started volume windows for pool {pair} at {event_time}")
        return current

    def _evict(self, pair: str, current: PoolVolumeWindow, event_time: int) -> None:
        previous = require(
            self.store, PoolVolumeWindow, (pair, VolumeWindow.PREVIOUS.value)
        )

        while current.last_index <= current.leading_index:
            chunk = require(self.store, PoolVolumeChunk, (pair, current.last_index))
            if chunk.timestamp >= event_time - self.window:
                break
            current.value -= chunk.value
            current.fee_usd -= chunk.fee_usd
            previous.value += chunk.value
            previous.fee_usd += chunk.fee_usd
            current.last_index += 1

        previous.leading_index = current.last_index

        while previous.last_index < previous.leading_index:
            chunk = require(self.store, PoolVolumeChunk, (pair, previous.last_index))
            if chunk.timestamp >= event_time - 2 * self.window:
                break
            previous.value -= chunk.value
            previous.fee_usd -= chunk.fee_usd
            previous.last_index += 1

        self.store.save(previous)
