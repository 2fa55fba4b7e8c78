"""Read-side queries over the aggregated tables."""

import logging
from typing import Callable, TypeVar

import pandas as pd
from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from chainagg.core.fixed_point import to_decimal
from chainagg.core.types import (
    Candle,
    DailyChunk,
    RollingAverage,
    RollingAverageBucket,
)
from chainagg.data.database import get_session
from chainagg.data.models import (
    CandleModel,
    DailyChunkModel,
    RollingAverageBucketModel,
    RollingAverageModel,
)
from chainagg.data.store import to_entity

logger = logging.getLogger(__name__)

T = TypeVar("T")

PRICE_COLUMNS = [
    "open",
    "high",
    "low",
    "close",
    "volume",
    "open_oracle",
    "high_oracle",
    "low_oracle",
    "close_oracle",
]


def _run(query: Callable[[Session], T], session: Session | None) -> T:
    if session:
        return query(session)
    with get_session() as sess:
        return query(sess)


def _to_frame(
    rows: list[dict], columns: list[str], value_columns: list[str]
) -> pd.DataFrame:
    """
    Build a time-indexed DataFrame of fixed-point values scaled to floats.

    Timestamps become a UTC ``DatetimeIndex`` named ``time``.
    """
    if not rows:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(rows)
    df["time"] = pd.to_datetime(df["timestamp"], unit="s", utc=True)
    df.set_index("time", inplace=True)

    for col in value_columns:
        df[col] = df[col].map(lambda v: float(to_decimal(v)))

    return df[columns]


class CandleRepository:
    """Repository for closed candles."""

    def get_candles(
        self,
        instrument: str,
        resolution: int,
        start: int | None = None,
        end: int | None = None,
        limit: int | None = None,
        session: Session | None = None,
    ) -> list[Candle]:
        """
        Get closed candles of an instrument, oldest first.

        Args:
            instrument: Token address
            resolution: Candle resolution in minutes
            start: Optional first bucket start (unix seconds, inclusive)
            end: Optional last bucket start (unix seconds, inclusive)
            limit: Optional maximum number of most recent candles
            session: Optional session to use

        Returns:
            List of Candle objects
        """
        instrument = instrument.lower()

        def _get(sess: Session) -> list[Candle]:
            conditions = [
                CandleModel.instrument == instrument,
                CandleModel.resolution == resolution,
            ]
            if start is not None:
                conditions.append(CandleModel.timestamp >= start)
            if end is not None:
                conditions.append(CandleModel.timestamp <= end)

            stmt = (
                select(CandleModel)
                .where(and_(*conditions))
                .order_by(CandleModel.timestamp.desc())
            )
            if limit is not None:
                stmt = stmt.limit(limit)

            rows = sess.scalars(stmt).all()
            return [to_entity(Candle, row) for row in reversed(rows)]

        return _run(_get, session)

    def get_candles_df(
        self,
        instrument: str,
        resolution: int,
        start: int | None = None,
        end: int | None = None,
        limit: int | None = None,
        session: Session | None = None,
    ) -> pd.DataFrame:
        """
        Get candles as a pandas DataFrame.

        Prices and volume are scaled from 18-decimal fixed point to floats.

        Returns:
            DataFrame with OHLCV and oracle OHLC columns
        """
        candles = self.get_candles(instrument, resolution, start, end, limit, session)
        return _to_frame(
            [c.to_dict() for c in candles], ["timestamp", *PRICE_COLUMNS], PRICE_COLUMNS
        )

    def get_latest_candle(
        self,
        instrument: str,
        resolution: int,
        session: Session | None = None,
    ) -> Candle | None:
        """
        Get the most recently closed candle of an instrument.

        Returns:
            Latest candle or None
        """
        candles = self.get_candles(instrument, resolution, limit=1, session=session)
        return candles[0] if candles else None


class SeriesRepository:
    """Repository for rolling averages and daily history."""

    def get_averages(
        self, instrument: str, session: Session | None = None
    ) -> list[RollingAverage]:
        """Get every rolling average tracked for an instrument."""
        instrument = instrument.lower()

        def _get(sess: Session) -> list[RollingAverage]:
            stmt = (
                select(RollingAverageModel)
                .where(RollingAverageModel.instrument == instrument)
                .order_by(RollingAverageModel.metric)
            )
            return [to_entity(RollingAverage, row) for row in sess.scalars(stmt)]

        return _run(_get, session)

    def get_buckets(
        self,
        metric: str,
        instrument: str,
        session: Session | None = None,
    ) -> list[RollingAverageBucket]:
        """Get the hourly buckets of a rolling-average series in index order."""
        instrument = instrument.lower()

        def _get(sess: Session) -> list[RollingAverageBucket]:
            stmt = (
                select(RollingAverageBucketModel)
                .where(
                    and_(
                        RollingAverageBucketModel.metric == str(metric),
                        RollingAverageBucketModel.instrument == instrument,
                    )
                )
                .order_by(RollingAverageBucketModel.index)
            )
            return [
                to_entity(RollingAverageBucket, row) for row in sess.scalars(stmt)
            ]

        return _run(_get, session)

    def get_buckets_df(
        self,
        metric: str,
        instrument: str,
        session: Session | None = None,
    ) -> pd.DataFrame:
        """Get the buckets of a series as a DataFrame of scaled values."""
        buckets = self.get_buckets(metric, instrument, session)
        return _to_frame(
            [b.to_dict() for b in buckets], ["index", "timestamp", "value"], ["value"]
        )

    def get_daily(
        self, series: str, session: Session | None = None
    ) -> list[DailyChunk]:
        """Get the daily chunks of a history series in index order."""

        def _get(sess: Session) -> list[DailyChunk]:
            stmt = (
                select(DailyChunkModel)
                .where(DailyChunkModel.series == str(series))
                .order_by(DailyChunkModel.index)
            )
            return [to_entity(DailyChunk, row) for row in sess.scalars(stmt)]

        return _run(_get, session)

    def get_daily_df(self, series: str, session: Session | None = None) -> pd.DataFrame:
        """Get a daily history series as a DataFrame of scaled values."""
        chunks = self.get_daily(series, session)
        return _to_frame(
            [c.to_dict() for c in chunks], ["index", "timestamp", "value"], ["value"]
        )
