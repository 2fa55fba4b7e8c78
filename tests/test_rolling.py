"""Tests for the chunked rolling average."""

import pytest

from chainagg.aggregation.rolling import RollingAverageLedger
from chainagg.config.schemas import AggregationConfig
from chainagg.core.errors import TimeRegressionError
from chainagg.core.fixed_point import ONE
from chainagg.core.types import Metric, RollingAverageBucket, SeriesKey
from chainagg.store.memory import MemoryStore

T0 = 1_700_000_000
SPAN = 3600
WINDOW = 720
SERIES = SeriesKey.of(Metric.TOTAL_RESERVE, "0x" + "18" * 20)


@pytest.fixture
def ledger(store: MemoryStore) -> RollingAverageLedger:
    return RollingAverageLedger(store, AggregationConfig())


def bucket(store: MemoryStore, index: int) -> RollingAverageBucket | None:
    return store.load(RollingAverageBucket, (SERIES.metric, SERIES.instrument, index))


class TestCreation:
    """Tests for starting a series."""

    def test_series_reference(self):
        """Test a series reference names both the metric and the instrument."""
        assert SERIES.ref == "total_reserve:0x" + "18" * 20

    def test_first_observation_creates_series(self, ledger, store):
        """Test the first observation only creates bucket #1 at zero."""
        index, mean = ledger.observe(SERIES, T0, 500)

        assert (index, mean) == (1, 0)
        first = bucket(store, 1)
        assert first.timestamp == T0
        assert first.value == 0

    def test_create_with_baseline(self, ledger, store):
        """Test an explicit baseline seeds both bucket and mean."""
        average = ledger.create(SERIES, T0, baseline=42)

        assert average.value == 42
        assert average.index == 1
        assert bucket(store, 1).value == 42

    def test_ensure_keeps_existing(self, ledger):
        """Test ensure does not reset a series that already exists."""
        ledger.create(SERIES, T0, baseline=42)
        ledger.observe(SERIES, T0 + SPAN, 58)

        average = ledger.ensure(SERIES, T0 + 2 * SPAN)
        assert average.index == 2
        assert average.value == 50

    def test_metric_enum_and_string_keys_match(self, ledger):
        """Test enum and plain string metrics address the same series."""
        ledger.create(SERIES, T0, baseline=7)
        same = ledger.get(("total_reserve", SERIES.instrument))
        assert same is not None
        assert same.value == 7


class TestObserve:
    """Tests for bucket updates and the running mean."""

    def test_single_bucket_update_keeps_latest(self, ledger, store):
        """Test updates within one bucket reflect only the latest value."""
        ledger.create(SERIES, T0)
        ledger.observe(SERIES, T0 + SPAN, 100)

        ledger.observe(SERIES, T0 + SPAN + 10, 300)
        index, mean = ledger.observe(SERIES, T0 + SPAN + 20, 200)

        assert index == 2
        assert mean == 100  # (0 + 200) / 2
        assert bucket(store, 2).value == 200

    def test_two_bucket_accumulation(self, ledger):
        """Test consecutive buckets produce the integer mean of both."""
        ledger.create(SERIES, T0, baseline=100)

        index, mean = ledger.observe(SERIES, T0 + SPAN, 301)

        assert index == 2
        assert mean == (100 + 301) // 2

    def test_bucket_starts_on_span_grid(self, ledger, store):
        """Test a new bucket starts one span after the previous, not at the event."""
        ledger.create(SERIES, T0)
        ledger.observe(SERIES, T0 + SPAN + SPAN // 2, 10)

        assert bucket(store, 2).timestamp == T0 + SPAN

    def test_gap_fill(self, ledger, store):
        """Test a gap of five spans creates four carried buckets plus one new."""
        ledger.create(SERIES, T0, baseline=40)

        index, mean = ledger.observe(SERIES, T0 + 5 * SPAN, 100)

        assert index == 6
        for i in range(2, 6):
            filled = bucket(store, i)
            assert filled.value == 40
            assert filled.timestamp == T0 + (i - 1) * SPAN
        assert bucket(store, 6).value == 100
        assert bucket(store, 6).timestamp == T0 + 5 * SPAN
        assert bucket(store, 7) is None
        assert mean == (40 * 5 + 100) // 6

    def test_truncation_order_is_preserved(self, ledger):
        """Test in-place updates divide each term before combining."""
        ledger.create(SERIES, T0, baseline=1)
        ledger.observe(SERIES, T0 + SPAN, 1)

        _, mean = ledger.observe(SERIES, T0 + SPAN + 1, 2)

        # 1 - 1 // 2 + 2 // 2, where the exact mean would be 1
        assert mean == 2

    def test_time_regression(self, ledger):
        """Test an event older than the current bucket is rejected."""
        ledger.create(SERIES, T0)
        ledger.observe(SERIES, T0 + SPAN, 5)

        with pytest.raises(TimeRegressionError):
            ledger.observe(SERIES, T0 + SPAN - 1, 5)


class TestWindowEviction:
    """Tests for the steady-state window."""

    def test_constant_value_steady_state(self, ledger):
        """Test 721 buckets of a constant value average to that value."""
        value = 3 * ONE + 7
        ledger.create(SERIES, T0, baseline=value)
        for i in range(1, WINDOW + 1):
            index, mean = ledger.observe(SERIES, T0 + i * SPAN, value)

        assert index == WINDOW + 1
        assert mean == value

    def test_eviction_formula(self, ledger):
        """Test the first evicting bucket follows the truncated formula."""
        v0 = 7 * ONE + 123
        v1 = 3 * ONE + 999
        ledger.create(SERIES, T0, baseline=v0)
        for i in range(1, WINDOW):
            ledger.observe(SERIES, T0 + i * SPAN, v0)

        index, mean = ledger.observe(SERIES, T0 + WINDOW * SPAN, v1)

        assert index == WINDOW + 1
        assert mean == v0 - v0 // WINDOW + v1 // WINDOW

    def test_small_window(self, store):
        """Test eviction with a configured short window."""
        ledger = RollingAverageLedger(
            store, AggregationConfig(bucket_span_seconds=60, window_buckets=2)
        )
        ledger.create(SERIES, T0, baseline=10)
        ledger.observe(SERIES, T0 + 60, 20)

        _, mean = ledger.observe(SERIES, T0 + 120, 40)

        # 15 + 40 / 2 - 10 / 2
        assert mean == 30
