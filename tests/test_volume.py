"""Tests for pool volume windows."""

import pytest

from chainagg.aggregation.volume import PoolVolumeLedger
from chainagg.core.errors import TimeRegressionError
from chainagg.core.types import PoolVolumeChunk, VolumeWindow

T0 = 1_700_000_000
HOUR = 3600
DAY = 24 * HOUR
PAIR = "0x" + "29" * 20


@pytest.fixture
def ledger(store) -> PoolVolumeLedger:
    return PoolVolumeLedger(store)


class TestVolumeWindows:
    """Tests for PoolVolumeLedger."""

    def test_first_swap_starts_windows(self, ledger, store):
        """Test the first swap creates chunk #1 and both windows."""
        current = ledger.add(PAIR, T0, 100, fee_usd=3)

        assert (current.value, current.fee_usd) == (100, 3)
        assert (current.last_index, current.leading_index) == (1, 1)
        previous = ledger.window_of(PAIR, VolumeWindow.PREVIOUS)
        assert previous.value == 0
        assert store.load(PoolVolumeChunk, (PAIR, 1)).timestamp == T0

    def test_same_hour_accumulates(self, ledger, store):
        """Test swaps within an hour share a chunk."""
        ledger.add(PAIR, T0, 100, fee_usd=3)
        current = ledger.add(PAIR, T0 + HOUR - 1, 50, fee_usd=1)

        assert current.leading_index == 1
        assert current.value == 150
        chunk = store.load(PoolVolumeChunk, (PAIR, 1))
        assert (chunk.value, chunk.fee_usd) == (150, 4)

    def test_new_chunk_on_hour_grid(self, ledger, store):
        """Test a later swap opens a chunk aligned to the first chunk's grid."""
        ledger.add(PAIR, T0, 100)
        current = ledger.add(PAIR, T0 + 5 * HOUR + 100, 20)

        assert current.leading_index == 2
        assert store.load(PoolVolumeChunk, (PAIR, 2)).timestamp == T0 + 5 * HOUR
        assert current.value == 120

    def test_eviction_into_previous_window(self, ledger):
        """Test chunks older than 30 days move to the previous window."""
        ledger.add(PAIR, T0, 10, fee_usd=1)

        current = ledger.add(PAIR, T0 + 31 * DAY, 5, fee_usd=2)

        assert (current.value, current.fee_usd) == (5, 2)
        assert current.last_index == 2
        previous = ledger.window_of(PAIR, VolumeWindow.PREVIOUS)
        assert (previous.value, previous.fee_usd) == (10, 1)
        assert (previous.last_index, previous.leading_index) == (1, 2)

    def test_eviction_out_of_previous_window(self, ledger):
        """Test chunks older than 60 days leave the previous window."""
        ledger.add(PAIR, T0, 10)
        ledger.add(PAIR, T0 + 31 * DAY, 5)

        current = ledger.add(PAIR, T0 + 62 * DAY, 1)

        assert current.value == 1
        assert current.last_index == 3
        previous = ledger.window_of(PAIR, VolumeWindow.PREVIOUS)
        assert previous.value == 5
        assert (previous.last_index, previous.leading_index) == (2, 3)

    def test_windows_are_per_pair(self, ledger):
        """Test pairs keep separate windows."""
        other = "0x" + "3a" * 20
        ledger.add(PAIR, T0, 10)
        ledger.add(other, T0, 7)

        assert ledger.window_of(PAIR, VolumeWindow.CURRENT).value == 10
        assert ledger.window_of(other, VolumeWindow.CURRENT).value == 7

    def test_time_regression(self, ledger):
        """Test a swap older than the latest chunk is rejected."""
        ledger.add(PAIR, T0, 10)
        ledger.add(PAIR, T0 + 2 * HOUR, 10)

        with pytest.raises(TimeRegressionError):
            ledger.add(PAIR, T0 + HOUR, 10)

    def test_advance_without_swaps(self, ledger):
        """Test time passing alone moves aged chunks out of the current window."""
        ledger.add(PAIR, T0, 10, fee_usd=1)

        current = ledger.advance(PAIR, T0 + 31 * DAY)

        assert (current.value, current.fee_usd) == (0, 0)
        assert (current.last_index, current.leading_index) == (2, 1)
        previous = ledger.window_of(PAIR, VolumeWindow.PREVIOUS)
        assert (previous.value, previous.fee_usd) == (10, 1)

        current = ledger.add(PAIR, T0 + 31 * DAY + 10, 5)
        assert (current.value, current.last_index, current.leading_index) == (5, 2, 2)

    def test_advance_unknown_pair(self, ledger):
        """Test advancing a pool without swaps is a no-op."""
        assert ledger.advance(PAIR, T0) is None

    def test_advance_is_idempotent(self, ledger):
        """Test advancing twice to the same time changes nothing."""
        ledger.add(PAIR, T0, 10)
        ledger.add(PAIR, T0 + 31 * DAY, 5)

        first = ledger.advance(PAIR, T0 + 40 * DAY)
        assert ledger.advance(PAIR, T0 + 40 * DAY) == first
