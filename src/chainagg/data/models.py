"""SQLAlchemy models for the aggregation entities."""

from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, Integer, Numeric, String
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from chainagg.core.types import (
    Candle,
    CandleSingleton,
    CollateralTokenMeta,
    DailyChunk,
    DebtTokenMeta,
    Entity,
    Oracle,
    Pool,
    PoolLiquidity,
    PoolVolumeChunk,
    PoolVolumeWindow,
    ProtocolConfig,
    RollingAverage,
    RollingAverageBucket,
    Staking,
    StakingPool,
    StakingPoolReward,
    SwapRecord,
    Token,
)

ADDRESS = 42
HASH = 66


class FixedPoint(TypeDecorator):
    """
    Unbounded integer column.

    Stored as NUMERIC(80, 0) on PostgreSQL and as decimal text elsewhere,
    always returned as a Python ``int``.
    """

    impl = String(80)
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> Any:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(Numeric(80, 0))
        return dialect.type_descriptor(String(80))

    def process_bind_param(self, value: int | None, dialect: Dialect) -> Any:
        if value is None:
            return None
        if dialect.name == "postgresql":
            return Decimal(value)
        return str(int(value))

    def process_result_value(self, value: Any, dialect: Dialect) -> int | None:
        if value is None:
            return None
        return int(value)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


# =============================================================================
# Rolling averages
# =============================================================================


class RollingAverageModel(Base):
    __tablename__ = "rolling_averages"

    metric: Mapped[str] = mapped_column(String(40), primary_key=True)
    instrument: Mapped[str] = mapped_column(String(HASH), primary_key=True)
    value: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    index: Mapped[int] = mapped_column(Integer, nullable=False)


class RollingAverageBucketModel(Base):
    __tablename__ = "rolling_average_buckets"

    metric: Mapped[str] = mapped_column(String(40), primary_key=True)
    instrument: Mapped[str] = mapped_column(String(HASH), primary_key=True)
    index: Mapped[int] = mapped_column(Integer, primary_key=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    value: Mapped[int] = mapped_column(FixedPoint, nullable=False)


# =============================================================================
# Candles
# =============================================================================


class CandleSingletonModel(Base):
    """In-progress candle, one row per instrument and resolution."""

    __tablename__ = "candle_singletons"

    instrument: Mapped[str] = mapped_column(String(ADDRESS), primary_key=True)
    resolution: Mapped[int] = mapped_column(Integer, primary_key=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    open: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    high: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    low: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    close: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    volume: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    open_oracle: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    high_oracle: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    low_oracle: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    close_oracle: Mapped[int] = mapped_column(FixedPoint, nullable=False)


class CandleModel(Base):
    """
    Closed OHLCV candle.

    Append-only; the primary key doubles as the time-range index.
    """

    __tablename__ = "candles"

    instrument: Mapped[str] = mapped_column(String(ADDRESS), primary_key=True)
    resolution: Mapped[int] = mapped_column(Integer, primary_key=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    open: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    high: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    low: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    close: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    volume: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    open_oracle: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    high_oracle: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    low_oracle: Mapped[int] = mapped_column(FixedPoint, nullable=False)
    close_oracle: Mapped[int] = mapped_column(FixedPoint, nullable=False)


# =============================================================================
# Daily history and protocol configuration
# =============================================================================


class DailyChunkModel(Base):
    __tablename__ = "daily_chunks"

    series: Mapped[str] = mapped_column(String(40), primary_key=True)
    index: Mapped[int] = mapped_column(Integer, primary_key=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    value: Mapped[int] = mapped_column(FixedPoint, nullable=False)


class ProtocolConfigModel(Base):
    __tablename__ = "protocol_config"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    stable_coin: Mapped[str] = mapped_column(String(ADDRESS), nullable=False)
    gov_token: Mapped[str] = mapped_column(String(ADDRESS), nullable=False)
    price_feed: Mapped[str] = mapped_column(String(ADDRESS), nullable=False)
    storage_pool: Mapped[str] = mapped_column(String(ADDRESS), nullable=False)
    reserve_pool: Mapped[str] = mapped_column(String(ADDRESS), nullable=False)
    staking_ops: Mapped[str] = mapped_column(String(ADDRESS), nullable=False)
    token_manager: Mapped[str] = mapped_column(String(ADDRESS), nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_value_locked_usd_history_index: Mapped[int] = mapped_column(Integer)
    total_value_minted_usd_history_index: Mapped[int] = mapped_column(Integer)
    reserve_pool_usd_history_index: Mapped[int] = mapped_column(Integer)


# =============================================================================
# Tokens
# =============================================================================


class TokenModel(Base):
    __tablename__ = "tokens"

    address: Mapped[str] = mapped_column(String(ADDRESS), primary_key=True)
    symbol: Mapped[str] = mapped_column(String(64), nullable=False)
    decimals: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    is_pool_token: Mapped[bool] = mapped_column(Boolean, nullable=False)
    oracle_id: Mapped[str | None] = mapped_column(String(HASH))


class OracleModel(Base):
    __tablename__ = "oracles"

    oracle_id: Mapped[str] = mapped_column(String(HASH), primary_key=True)
    token: Mapped[str] = mapped_column(String(ADDRESS), nullable=False)


class CollateralTokenMetaModel(Base):
    __tablename__ = "collateral_token_meta"

    token: Mapped[str] = mapped_column(String(ADDRESS), primary_key=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    supported_collateral_ratio: Mapped[int] = mapped_column(FixedPoint)
    total_reserve: Mapped[int] = mapped_column(FixedPoint)
    total_value_locked_usd: Mapped[int] = mapped_column(FixedPoint)
    total_reserve_average: Mapped[str | None] = mapped_column(String(80))
    total_value_locked_usd_average: Mapped[str | None] = mapped_column(String(80))


class DebtTokenMetaModel(Base):
    __tablename__ = "debt_token_meta"

    token: Mapped[str] = mapped_column(String(ADDRESS), primary_key=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_supply_usd: Mapped[int] = mapped_column(FixedPoint)
    total_reserve: Mapped[int] = mapped_column(FixedPoint)
    total_supply_usd_average: Mapped[str | None] = mapped_column(String(80))
    total_reserve_average: Mapped[str | None] = mapped_column(String(80))


# =============================================================================
# Pools and swaps
# =============================================================================


class PoolModel(Base):
    __tablename__ = "pools"

    stable_coin: Mapped[str] = mapped_column(String(ADDRESS), primary_key=True)
    non_stable_coin: Mapped[str] = mapped_column(String(ADDRESS), primary_key=True)
    pair: Mapped[str] = mapped_column(String(ADDRESS), nullable=False)
    total_supply: Mapped[int] = mapped_column(FixedPoint)
    liquidity_deposit_apy: Mapped[int] = mapped_column(FixedPoint)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)


class PoolLiquidityModel(Base):
    __tablename__ = "pool_liquidity"

    token: Mapped[str] = mapped_column(String(ADDRESS), primary_key=True)
    other_token: Mapped[str] = mapped_column(String(ADDRESS), primary_key=True)
    total_amount: Mapped[int] = mapped_column(FixedPoint)


class PoolVolumeChunkModel(Base):
    __tablename__ = "pool_volume_chunks"

    pair: Mapped[str] = mapped_column(String(ADDRESS), primary_key=True)
    index: Mapped[int] = mapped_column(Integer, primary_key=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    value: Mapped[int] = mapped_column(FixedPoint)
    fee_usd: Mapped[int] = mapped_column(FixedPoint)


class PoolVolumeWindowModel(Base):
    __tablename__ = "pool_volume_windows"

    pair: Mapped[str] = mapped_column(String(ADDRESS), primary_key=True)
    window: Mapped[str] = mapped_column(String(10), primary_key=True)
    leading_index: Mapped[int] = mapped_column(Integer, nullable=False)
    last_index: Mapped[int] = mapped_column(Integer, nullable=False)
    value: Mapped[int] = mapped_column(FixedPoint)
    fee_usd: Mapped[int] = mapped_column(FixedPoint)


class SwapRecordModel(Base):
    __tablename__ = "swap_records"

    tx_hash: Mapped[str] = mapped_column(String(HASH), primary_key=True)
    log_index: Mapped[int] = mapped_column(Integer, primary_key=True)
    token: Mapped[str] = mapped_column(String(ADDRESS), nullable=False)
    borrower: Mapped[str] = mapped_column(String(ADDRESS), nullable=False)
    direction: Mapped[str] = mapped_column(String(5), nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    size: Mapped[int] = mapped_column(FixedPoint)
    total_price_in_stable: Mapped[int] = mapped_column(FixedPoint)
    swap_fee: Mapped[int] = mapped_column(FixedPoint)


# =============================================================================
# Staking
# =============================================================================


class StakingModel(Base):
    __tablename__ = "staking"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    rewards_per_second: Mapped[int] = mapped_column(FixedPoint)
    rewards_per_year_usd: Mapped[int] = mapped_column(FixedPoint)
    total_alloc_points: Mapped[int] = mapped_column(FixedPoint)
    pools: Mapped[list[str]] = mapped_column(JSON, nullable=False)


class StakingPoolModel(Base):
    __tablename__ = "staking_pools"

    address: Mapped[str] = mapped_column(String(ADDRESS), primary_key=True)
    alloc_points: Mapped[int] = mapped_column(FixedPoint)
    total_deposit: Mapped[int] = mapped_column(FixedPoint)
    total_deposit_usd: Mapped[int] = mapped_column(FixedPoint)
    total_reward_usd: Mapped[int] = mapped_column(FixedPoint)
    additional_rewards_per_year_usd: Mapped[int] = mapped_column(FixedPoint)
    staking_apr: Mapped[int] = mapped_column(FixedPoint)
    rewards: Mapped[list[str]] = mapped_column(JSON, nullable=False)


class StakingPoolRewardModel(Base):
    __tablename__ = "staking_pool_rewards"

    pool: Mapped[str] = mapped_column(String(ADDRESS), primary_key=True)
    token: Mapped[str] = mapped_column(String(ADDRESS), primary_key=True)
    rewards_per_second: Mapped[int] = mapped_column(FixedPoint)
    rewards_per_year_usd: Mapped[int] = mapped_column(FixedPoint)


# Primary key columns of each model are declared in key_fields order
ENTITY_MODELS: dict[type[Entity], type[Base]] = {
    RollingAverage: RollingAverageModel,
    RollingAverageBucket: RollingAverageBucketModel,
    CandleSingleton: CandleSingletonModel,
    Candle: CandleModel,
    DailyChunk: DailyChunkModel,
    ProtocolConfig: ProtocolConfigModel,
    Token: TokenModel,
    Oracle: OracleModel,
    CollateralTokenMeta: CollateralTokenMetaModel,
    DebtTokenMeta: DebtTokenMetaModel,
    Pool: PoolModel,
    PoolLiquidity: PoolLiquidityModel,
    PoolVolumeChunk: PoolVolumeChunkModel,
    PoolVolumeWindow: PoolVolumeWindowModel,
    SwapRecord: SwapRecordModel,
    Staking: StakingModel,
    StakingPool: StakingPoolModel,
    StakingPoolReward: StakingPoolRewardModel,
}
