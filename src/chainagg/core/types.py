"""Domain entities tracked by the aggregation engine.

Every persisted entity is a dataclass carrying a ``key_fields`` tuple that
names its (possibly composite) identity. Stores address entities by
``(type, key)`` instead of concatenated string ids.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, ClassVar, NamedTuple


class Metric(str, Enum):
    """Quantities tracked by a 30-day rolling average."""

    TOTAL_RESERVE = "total_reserve"
    TOTAL_VALUE_LOCKED_USD = "total_value_locked_usd"
    TOTAL_SUPPLY_USD = "total_supply_usd"

    def __str__(self) -> str:
        return self.value


class DailySeries(str, Enum):
    """Protocol-wide daily coarse history ledgers."""

    RESERVE_POOL_USD = "reserve_pool_usd"
    TOTAL_VALUE_MINTED_USD = "total_value_minted_usd"
    TOTAL_VALUE_LOCKED_USD = "total_value_locked_usd"

    def __str__(self) -> str:
        return self.value


class VolumeWindow(str, Enum):
    """The two trailing windows kept per pool."""

    CURRENT = "30d"
    PREVIOUS = "30d_ago"


class SwapDirection(str, Enum):
    """Direction of a swap from the non-stable token's perspective."""

    LONG = "LONG"
    SHORT = "SHORT"


class SeriesKey(NamedTuple):
    """Identity of a rolling-average series: one metric of one instrument."""

    metric: str
    instrument: str

    @classmethod
    def of(cls, metric: "Metric | str", instrument: str) -> "SeriesKey":
        """Build a key with the metric reduced to its plain string value."""
        return cls(str(metric), instrument)

    @property
    def ref(self) -> str:
        """Back-reference form stored on entities, ``metric:instrument``."""
        return f"{self.metric}:{self.instrument}"


class Entity:
    """Mixin giving dataclass entities an explicit key."""

    key_fields: ClassVar[tuple[str, ...]] = ()

    @property
    def key(self) -> tuple:
        return tuple(getattr(self, name) for name in self.key_fields)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


# =============================================================================
# Rolling averages
# =============================================================================


@dataclass
class RollingAverage(Entity):
    """Windowed mean over the most recent hourly buckets of a series."""

    key_fields: ClassVar[tuple[str, ...]] = ("metric", "instrument")

    metric: str
    instrument: str
    value: int = 0
    index: int = 1

    @property
    def series(self) -> SeriesKey:
        return SeriesKey(self.metric, self.instrument)


@dataclass
class RollingAverageBucket(Entity):
    """One hourly bucket of a rolling-average series."""

    key_fields: ClassVar[tuple[str, ...]] = ("metric", "instrument", "index")

    metric: str
    instrument: str
    index: int
    timestamp: int
    value: int = 0


# =============================================================================
# Candles
# =============================================================================


@dataclass
class CandleSingleton(Entity):
    """The in-progress candle of one instrument at one resolution."""

    key_fields: ClassVar[tuple[str, ...]] = ("instrument", "resolution")

    instrument: str
    resolution: int  # minutes
    timestamp: int
    open: int
    high: int
    low: int
    close: int
    volume: int
    open_oracle: int
    high_oracle: int
    low_oracle: int
    close_oracle: int

    @classmethod
    def flat(
        cls,
        instrument: str,
        resolution: int,
        timestamp: int,
        price: int,
        oracle_price: int | None = None,
    ) -> "CandleSingleton":
        """Create a candle with every price equal and no volume."""
        oracle = price if oracle_price is None else oracle_price
        return cls(
            instrument=instrument,
            resolution=resolution,
            timestamp=timestamp,
            open=price,
            high=price,
            low=price,
            close=price,
            volume=0,
            open_oracle=oracle,
            high_oracle=oracle,
            low_oracle=oracle,
            close_oracle=oracle,
        )

    def archive(self) -> "Candle":
        """Snapshot the current state as an immutable closed candle."""
        return Candle(
            instrument=self.instrument,
            resolution=self.resolution,
            timestamp=self.timestamp,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.close,
            volume=self.volume,
            open_oracle=self.open_oracle,
            high_oracle=self.high_oracle,
            low_oracle=self.low_oracle,
            close_oracle=self.close_oracle,
        )


@dataclass(frozen=True)
class Candle(Entity):
    """A closed, immutable OHLCV candle."""

    key_fields: ClassVar[tuple[str, ...]] = ("instrument", "resolution", "timestamp")

    instrument: str
    resolution: int
    timestamp: int
    open: int
    high: int
    low: int
    close: int
    volume: int
    open_oracle: int
    high_oracle: int
    low_oracle: int
    close_oracle: int


# =============================================================================
# Daily coarse history
# =============================================================================


@dataclass
class DailyChunk(Entity):
    """One day of a coarse protocol-wide history series."""

    key_fields: ClassVar[tuple[str, ...]] = ("series", "index")

    series: str
    index: int
    timestamp: int
    size: int
    value: int


# =============================================================================
# Protocol configuration and token registry
# =============================================================================


@dataclass
class ProtocolConfig(Entity):
    """Canonical contract addresses and daily history counters."""

    key_fields: ClassVar[tuple[str, ...]] = ("id",)

    stable_coin: str
    gov_token: str
    price_feed: str
    storage_pool: str
    reserve_pool: str
    staking_ops: str
    token_manager: str
    id: str = "protocol"
    timestamp: int = 0
    total_value_locked_usd_history_index: int = 0
    total_value_minted_usd_history_index: int = 0
    reserve_pool_usd_history_index: int = 0

    def history_index(self, series: DailySeries | str) -> int:
        return getattr(self, f"{DailySeries(series).value}_history_index")

    def set_history_index(self, series: DailySeries | str, index: int) -> None:
        setattr(self, f"{DailySeries(series).value}_history_index", index)


@dataclass
class Token(Entity):
    """A registered collateral or debt token."""

    key_fields: ClassVar[tuple[str, ...]] = ("address",)

    address: str
    symbol: str
    decimals: int
    created_at: int
    is_pool_token: bool = False
    oracle_id: str | None = None


@dataclass
class Oracle(Entity):
    """Maps a price-oracle feed id to the token it prices."""

    key_fields: ClassVar[tuple[str, ...]] = ("oracle_id",)

    oracle_id: str
    token: str


@dataclass
class CollateralTokenMeta(Entity):
    """Current metrics of a collateral token."""

    key_fields: ClassVar[tuple[str, ...]] = ("token",)

    token: str
    timestamp: int = 0
    supported_collateral_ratio: int = 0
    total_reserve: int = 0
    total_value_locked_usd: int = 0
    # Back-references into the rolling-average series of this token.
    total_reserve_average: str | None = None
    total_value_locked_usd_average: str | None = None


@dataclass
class DebtTokenMeta(Entity):
    """Current metrics of a debt token."""

    key_fields: ClassVar[tuple[str, ...]] = ("token",)

    token: str
    timestamp: int = 0
    total_supply_usd: int = 0
    total_reserve: int = 0
    total_supply_usd_average: str | None = None
    total_reserve_average: str | None = None


# =============================================================================
# Pools and swaps
# =============================================================================


@dataclass
class Pool(Entity):
    """A stable-coin trading pair."""

    key_fields: ClassVar[tuple[str, ...]] = ("stable_coin", "non_stable_coin")

    stable_coin: str
    non_stable_coin: str
    pair: str
    total_supply: int = 0
    liquidity_deposit_apy: int = 0
    timestamp: int = 0


@dataclass
class PoolLiquidity(Entity):
    """Reserve amount of one side of a pool."""

    key_fields: ClassVar[tuple[str, ...]] = ("token", "other_token")

    token: str
    other_token: str
    total_amount: int = 0


@dataclass
class PoolVolumeChunk(Entity):
    """Trading volume and fees of a pool over one hourly chunk."""

    key_fields: ClassVar[tuple[str, ...]] = ("pair", "index")

    pair: str
    index: int
    timestamp: int
    value: int = 0
    fee_usd: int = 0


@dataclass
class PoolVolumeWindow(Entity):
    """
    Sum of volume chunks in ``[last_index, leading_index]``.

    The previous window treats ``leading_index`` as exclusive: it shares the
    boundary with the current window's ``last_index``.
    """

    key_fields: ClassVar[tuple[str, ...]] = ("pair", "window")

    pair: str
    window: str
    leading_index: int = 1
    last_index: int = 1
    value: int = 0
    fee_usd: int = 0


@dataclass
class SwapRecord(Entity):
    """A single executed swap."""

    key_fields: ClassVar[tuple[str, ...]] = ("tx_hash", "log_index")

    tx_hash: str
    log_index: int
    token: str
    borrower: str
    direction: str
    timestamp: int
    size: int
    total_price_in_stable: int
    swap_fee: int


# =============================================================================
# Staking
# =============================================================================


@dataclass
class Staking(Entity):
    """Global staking emission state."""

    key_fields: ClassVar[tuple[str, ...]] = ("id",)

    id: str = "staking"
    rewards_per_second: int = 0
    rewards_per_year_usd: int = 0
    total_alloc_points: int = 0
    pools: list[str] = field(default_factory=list)


@dataclass
class StakingPool(Entity):
    """Metrics of a staked liquidity pool."""

    key_fields: ClassVar[tuple[str, ...]] = ("address",)

    address: str
    alloc_points: int = 0
    total_deposit: int = 0
    total_deposit_usd: int = 0
    total_reward_usd: int = 0
    additional_rewards_per_year_usd: int = 0
    staking_apr: int = 0
    rewards: list[str] = field(default_factory=list)


@dataclass
class StakingPoolReward(Entity):
    """An additional reward token emitted to a staking pool."""

    key_fields: ClassVar[tuple[str, ...]] = ("pool", "token")

    pool: str
    token: str
    rewards_per_second: int = 0
    rewards_per_year_usd: int = 0


ENTITY_TYPES: tuple[type[Entity], ...] = (
    RollingAverage,
    RollingAverageBucket,
    CandleSingleton,
    Candle,
    DailyChunk,
    ProtocolConfig,
    Token,
    Oracle,
    CollateralTokenMeta,
    DebtTokenMeta,
    Pool,
    PoolLiquidity,
    PoolVolumeChunk,
    PoolVolumeWindow,
    SwapRecord,
    Staking,
    StakingPool,
    StakingPoolReward,
)
