"""Tests for SQL persistence and read-side repositories."""

import pandas as pd
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from chainagg.aggregation.candles import CandleLedger
from chainagg.aggregation.rolling import RollingAverageLedger
from chainagg.config.schemas import AggregationConfig
from chainagg.context import IndexerContext
from chainagg.core.fixed_point import ONE
from chainagg.core.types import (
    Candle,
    DailySeries,
    Metric,
    Pool,
    SeriesKey,
    Staking,
    Token,
)
from chainagg.data.models import Base
from chainagg.data.repository import CandleRepository, SeriesRepository
from chainagg.data.store import SqlEntityStore, model_for

T0 = 1_700_000_000
TOKEN = "0x" + "18" * 20


@pytest.fixture
def session():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture
def sql_store(session) -> SqlEntityStore:
    return SqlEntityStore(session)


class TestSqlEntityStore:
    """Tests for SqlEntityStore."""

    def test_save_and_load(self, sql_store):
        """Test an entity survives a round trip unchanged."""
        token = Token(address=TOKEN, symbol="WETH", decimals=18, created_at=T0)
        sql_store.save(token)

        assert sql_store.load(Token, TOKEN) == token

    def test_missing_key(self, sql_store):
        """Test loading an absent key returns None."""
        assert sql_store.load(Token, TOKEN) is None

    def test_large_integers(self, sql_store):
        """Test values beyond 64 bits are stored exactly."""
        pool = Pool(
            stable_coin="0xa1",
            non_stable_coin=TOKEN,
            pair="0x29",
            total_supply=2**200 + 1,
        )
        sql_store.save(pool)

        assert sql_store.load(Pool, ("0xa1", TOKEN)).total_supply == 2**200 + 1

    def test_loaded_entities_are_detached(self, sql_store):
        """Test mutating a loaded entity has no effect until saved."""
        sql_store.save(Staking(pools=["0x29"]))

        staking = sql_store.load(Staking, "staking")
        staking.pools.append("0x3a")
        assert sql_store.load(Staking, "staking").pools == ["0x29"]

        sql_store.save(staking)
        assert sql_store.load(Staking, "staking").pools == ["0x29", "0x3a"]

    def test_transaction_rollback(self, sql_store):
        """Test a failing block discards its writes."""
        with pytest.raises(RuntimeError):
            with sql_store.transaction():
                sql_store.save(
                    Token(address=TOKEN, symbol="WETH", decimals=18, created_at=T0)
                )
                raise RuntimeError("boom")

        assert sql_store.load(Token, TOKEN) is None

    def test_nested_transaction_commits_once(self, sql_store, session):
        """Test nested blocks join the outer transaction."""
        with sql_store.transaction():
            with sql_store.transaction():
                sql_store.save(
                    Token(address=TOKEN, symbol="WETH", decimals=18, created_at=T0)
                )
            assert session.in_transaction()

        assert sql_store.load(Token, TOKEN).symbol == "WETH"

    def test_all_ordered_by_key(self, sql_store):
        """Test entities are listed in key order."""
        for address in ("0x03", "0x01", "0x02"):
            sql_store.save(Token(address=address, symbol="", decimals=18, created_at=0))

        assert [t.address for t in sql_store.all(Token)] == ["0x01", "0x02", "0x03"]
        assert sql_store.count(Token) == 3

    def test_unknown_entity_type(self):
        """Test types without a table are rejected."""
        with pytest.raises(TypeError):
            model_for(dict)

    def test_rolling_average_over_sql(self, sql_store):
        """Test the rolling average ledger runs unchanged on SQL."""
        ledger = RollingAverageLedger(sql_store)
        series = SeriesKey.of(Metric.TOTAL_RESERVE, TOKEN)

        ledger.observe(series, T0, 0)
        assert ledger.observe(series, T0 + 3600, 100) == (2, 50)
        assert ledger.observe(series, T0 + 3700, 200) == (2, 100)


@pytest.fixture
def candle_history(sql_store, session):
    """Three closed one-minute candles of TOKEN."""
    ledger = CandleLedger(sql_store, AggregationConfig(candle_resolutions_minutes=[1]))
    ledger.open(TOKEN, T0, 100 * ONE)
    ledger.observe_trade(TOKEN, T0 + 30, trade_price=110 * ONE, volume=2 * ONE)
    ledger.observe_trade(TOKEN, T0 + 3 * 60, trade_price=120 * ONE)
    sql_store.commit()
    return session


class TestCandleRepository:
    """Tests for CandleRepository."""

    def test_get_candles(self, candle_history):
        """Test closed candles are returned oldest first."""
        candles = CandleRepository().get_candles(TOKEN, 1, session=candle_history)

        assert [c.timestamp for c in candles] == [T0, T0 + 60, T0 + 120]
        assert all(isinstance(c, Candle) for c in candles)
        assert candles[0].close == 110 * ONE

    def test_limit_keeps_latest(self, candle_history):
        """Test the limit selects the most recent candles."""
        candles = CandleRepository().get_candles(
            TOKEN, 1, limit=2, session=candle_history
        )

        assert [c.timestamp for c in candles] == [T0 + 60, T0 + 120]

    def test_time_range(self, candle_history):
        """Test start and end bound the bucket start times."""
        candles = CandleRepository().get_candles(
            TOKEN, 1, start=T0 + 60, end=T0 + 60, session=candle_history
        )

        assert [c.timestamp for c in candles] == [T0 + 60]

    def test_latest_candle(self, candle_history):
        """Test the latest closed candle."""
        repo = CandleRepository()
        assert repo.get_latest_candle(TOKEN, 1, session=candle_history).timestamp == (
            T0 + 120
        )
        assert repo.get_latest_candle(TOKEN, 60, session=candle_history) is None

    def test_candles_df(self, candle_history):
        """Test candles as a time-indexed DataFrame of floats."""
        df = CandleRepository().get_candles_df(TOKEN, 1, session=candle_history)

        assert len(df) == 3
        assert df.index.name == "time"
        assert df.index[0] == pd.Timestamp(T0, unit="s", tz="UTC")
        assert df["close"].tolist() == [110.0, 110.0, 110.0]
        assert df["volume"].iloc[0] == 2.0

    def test_empty_df(self, session):
        """Test an unknown instrument yields an empty frame."""
        df = CandleRepository().get_candles_df(TOKEN, 1, session=session)

        assert df.empty
        assert "close" in df.columns


class TestSeriesRepository:
    """Tests for SeriesRepository."""

    def test_averages_and_buckets(self, sql_store, session):
        """Test rolling averages and their buckets are queryable."""
        ledger = RollingAverageLedger(sql_store)
        series = SeriesKey.of(Metric.TOTAL_RESERVE, TOKEN)
        ledger.observe(series, T0, 0)
        ledger.observe(series, T0 + 3600, 4 * ONE)
        sql_store.commit()

        repo = SeriesRepository()
        (average,) = repo.get_averages(TOKEN, session=session)
        assert (average.metric, average.value) == ("total_reserve", 2 * ONE)

        df = repo.get_buckets_df(Metric.TOTAL_RESERVE, TOKEN, session=session)
        assert df["index"].tolist() == [1, 2]
        assert df["value"].tolist() == [0.0, 4.0]

    def test_daily_history(self, sql_store, session, reader, protocol_defaults):
        """Test daily chunks are returned in index order."""
        ctx = IndexerContext(store=sql_store, reader=reader, defaults=protocol_defaults)
        ctx.protocol()
        ctx.daily.observe_daily(DailySeries.RESERVE_POOL_USD, T0, 5 * ONE)
        ctx.daily.observe_daily(DailySeries.RESERVE_POOL_USD, T0 + 86_400, 7 * ONE)
        sql_store.commit()

        repo = SeriesRepository()
        chunks = repo.get_daily(DailySeries.RESERVE_POOL_USD, session=session)
        assert [c.index for c in chunks] == [0, 1]

        df = repo.get_daily_df(DailySeries.RESERVE_POOL_USD, session=session)
        assert df["value"].tolist() == [5.0, 7.0]
