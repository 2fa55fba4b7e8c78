"""
Typed event payloads.

Events are decoded upstream and arrive as JSON objects discriminated by
``kind``. Every event carries the emitting contract ``address`` and its
position in the chain so handlers can build stable record keys.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter

# Addresses and ids are compared as lowercase hex strings
HexStr = Annotated[str, AfterValidator(str.lower)]


class ChainEvent(BaseModel):
    """Fields shared by every event."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: str
    timestamp: int = Field(ge=0)
    address: HexStr
    block_number: int = Field(default=0, ge=0)
    tx_hash: HexStr = ""
    log_index: int = Field(default=0, ge=0)


# =============================================================================
# Contract initialisation
# =============================================================================


class PriceFeedInitialized(ChainEvent):
    kind: Literal["price_feed_initialized"] = "price_feed_initialized"


class StoragePoolInitialized(ChainEvent):
    kind: Literal["storage_pool_initialized"] = "storage_pool_initialized"


class ReservePoolInitialized(ChainEvent):
    kind: Literal["reserve_pool_initialized"] = "reserve_pool_initialized"


class TokenManagerInitialized(ChainEvent):
    kind: Literal["token_manager_initialized"] = "token_manager_initialized"


class StakingInitialized(ChainEvent):
    kind: Literal["staking_initialized"] = "staking_initialized"


# =============================================================================
# Token manager
# =============================================================================


class CollTokenAdded(ChainEvent):
    kind: Literal["coll_token_added"] = "coll_token_added"
    token: HexStr
    oracle_id: HexStr
    is_gov_token: bool = False
    supported_collateral_ratio: int = Field(ge=0)


class CollTokenRatioSet(ChainEvent):
    kind: Literal["coll_token_ratio_set"] = "coll_token_ratio_set"
    token: HexStr
    supported_collateral_ratio: int = Field(ge=0)


class DebtTokenAdded(ChainEvent):
    kind: Literal["debt_token_added"] = "debt_token_added"
    token: HexStr
    oracle_id: HexStr


# =============================================================================
# Troves, reserves and storage
# =============================================================================


class DebtTokenTransfer(ChainEvent):
    """Transfer of a debt token; ``address`` is the token."""

    kind: Literal["debt_token_transfer"] = "debt_token_transfer"


class TroveCreated(ChainEvent):
    kind: Literal["trove_created"] = "trove_created"
    coll_tokens: list[HexStr] = Field(default_factory=list)


class TroveCollChanged(ChainEvent):
    kind: Literal["trove_coll_changed"] = "trove_coll_changed"
    coll_tokens: list[HexStr] = Field(default_factory=list)


class PaidBorrowingFee(ChainEvent):
    kind: Literal["paid_borrowing_fee"] = "paid_borrowing_fee"


class WithdrewReserves(ChainEvent):
    kind: Literal["withdrew_reserves"] = "withdrew_reserves"


class StoragePoolValueUpdated(ChainEvent):
    kind: Literal["storage_pool_value_updated"] = "storage_pool_value_updated"


# =============================================================================
# Swap pools
# =============================================================================


class PairCreated(ChainEvent):
    kind: Literal["pair_created"] = "pair_created"
    token0: HexStr
    token1: HexStr
    pair: HexStr


class PairSwap(ChainEvent):
    """Swap on a pair; ``address`` is the pair."""

    kind: Literal["pair_swap"] = "pair_swap"
    to: HexStr
    amount0_in: int = Field(default=0, ge=0)
    amount1_in: int = Field(default=0, ge=0)
    amount0_out: int = Field(default=0, ge=0)
    amount1_out: int = Field(default=0, ge=0)
    amount0_in_fee: int = Field(default=0, ge=0)
    amount1_in_fee: int = Field(default=0, ge=0)


class PairSync(ChainEvent):
    kind: Literal["pair_sync"] = "pair_sync"
    reserve0: int = Field(ge=0)
    reserve1: int = Field(ge=0)


class PairMint(ChainEvent):
    kind: Literal["pair_mint"] = "pair_mint"


class PairBurn(ChainEvent):
    kind: Literal["pair_burn"] = "pair_burn"


class PairTransfer(ChainEvent):
    kind: Literal["pair_transfer"] = "pair_transfer"


# =============================================================================
# Oracle
# =============================================================================


class OraclePriceUpdate(ChainEvent):
    """Oracle price ``price * 10**expo`` of the feed ``oracle_id``."""

    kind: Literal["oracle_price_update"] = "oracle_price_update"
    oracle_id: HexStr
    price: int
    expo: int = -8


# =============================================================================
# Staking
# =============================================================================


class StakingPoolAdded(ChainEvent):
    kind: Literal["staking_pool_added"] = "staking_pool_added"
    pool: HexStr


class StakingPoolConfigured(ChainEvent):
    kind: Literal["staking_pool_configured"] = "staking_pool_configured"
    pool: HexStr
    alloc_points: int = Field(ge=0)
    total_alloc_points: int = Field(ge=0)


class StakingRewardsChanged(ChainEvent):
    kind: Literal["staking_rewards_changed"] = "staking_rewards_changed"
    pool: HexStr
    token: HexStr
    rewards_per_second: int = Field(ge=0)


class StakingDeposit(ChainEvent):
    kind: Literal["staking_deposit"] = "staking_deposit"
    pool: HexStr
    amount: int = Field(ge=0)


class StakingWithdraw(ChainEvent):
    kind: Literal["staking_withdraw"] = "staking_withdraw"
    pool: HexStr
    amount: int = Field(ge=0)


Event = Annotated[
    Union[
        PriceFeedInitialized,
        StoragePoolInitialized,
        ReservePoolInitialized,
        TokenManagerInitialized,
        StakingInitialized,
        CollTokenAdded,
        CollTokenRatioSet,
        DebtTokenAdded,
        DebtTokenTransfer,
        TroveCreated,
        TroveCollChanged,
        PaidBorrowingFee,
        WithdrewReserves,
        StoragePoolValueUpdated,
        PairCreated,
        PairSwap,
        PairSync,
        PairMint,
        PairBurn,
        PairTransfer,
        OraclePriceUpdate,
        StakingPoolAdded,
        StakingPoolConfigured,
        StakingRewardsChanged,
        StakingDeposit,
        StakingWithdraw,
    ],
    Field(discriminator="kind"),
]

EVENT_ADAPTER: TypeAdapter[Event] = TypeAdapter(Event)

EVENT_KINDS: frozenset[str] = frozenset(
    cls.model_fields["kind"].default for cls in ChainEvent.__subclasses__()
)


def parse_event(data: dict[str, Any]) -> ChainEvent:
    """
    Validate a raw event object into its typed payload.

    Raises:
        pydantic.ValidationError: If the payload is malformed or its kind unknown
    """
    return EVENT_ADAPTER.validate_python(data)
