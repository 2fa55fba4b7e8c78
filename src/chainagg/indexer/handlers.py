"""
Event handlers.

Each handler decides which snapshots and ledgers an event touches. Handlers
are registered under the event ``kind`` they consume.
"""

import logging
from typing import Any, Callable

from chainagg.context import IndexerContext
from chainagg.core.fixed_point import scale_to_ether
from chainagg.core.registry import Registry
from chainagg.core.types import Oracle, Token
from chainagg.indexer import events as ev
from chainagg.snapshots.collateral import (
    observe_collateral_reserve,
    observe_collateral_tvl,
    update_collateral_meta,
)
from chainagg.snapshots.debt import (
    observe_debt_reserve,
    observe_debt_supply,
    update_debt_meta,
)
from chainagg.snapshots.history import record_reserve_history, record_system_history
from chainagg.snapshots.pools import (
    SwapAmounts,
    create_pool,
    record_swap,
    resolve_pair,
    sides_of,
    trade_price,
    update_liquidity,
    update_pool_apy,
    update_pool_total_supply,
)
from chainagg.snapshots.protocol import update_protocol
from chainagg.snapshots.staking import (
    change_deposit,
    create_staking_pool,
    ensure_staking,
    refresh_additional_rewards,
    set_additional_rewards,
    set_pool_alloc_points,
    set_rewards_per_second,
    set_total_alloc_points,
)
from chainagg.snapshots.tokens import register_token

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

Handler = Callable[[IndexerContext, Any], None]

# Global handler registry, keyed by event kind
handler_registry: Registry[Handler] = Registry("handlers")


# =============================================================================
# Contract initialisation
# =============================================================================


@handler_registry.register("price_feed_initialized", description="Price feed deployed")
def handle_price_feed_initialized(
    ctx: IndexerContext, event: ev.PriceFeedInitialized
) -> None:
    update_protocol(ctx, event.timestamp, price_feed=event.address)


@handler_registry.register(
    "storage_pool_initialized", description="Storage pool deployed"
)
def handle_storage_pool_initialized(
    ctx: IndexerContext, event: ev.StoragePoolInitialized
) -> None:
    update_protocol(ctx, event.timestamp, storage_pool=event.address)


@handler_registry.register(
    "reserve_pool_initialized", description="Reserve pool deployed"
)
def handle_reserve_pool_initialized(
    ctx: IndexerContext, event: ev.ReservePoolInitialized
) -> None:
    update_protocol(ctx, event.timestamp, reserve_pool=event.address)


@handler_registry.register(
    "token_manager_initialized", description="Token manager deployed"
)
def handle_token_manager_initialized(
    ctx: IndexerContext, event: ev.TokenManagerInitialized
) -> None:
    update_protocol(ctx, event.timestamp, token_manager=event.address)


@handler_registry.register(
    "staking_initialized", description="Staking operations deployed"
)
def handle_staking_initialized(
    ctx: IndexerContext, event: ev.StakingInitialized
) -> None:
    update_protocol(ctx, event.timestamp, staking_ops=event.address)
    ensure_staking(ctx)


# =============================================================================
# Token manager
# =============================================================================


@handler_registry.register("coll_token_added", description="Collateral token listed")
def handle_coll_token_added(ctx: IndexerContext, event: ev.CollTokenAdded) -> None:
    if event.is_gov_token:
        update_protocol(ctx, event.timestamp, gov_token=event.token)

    register_token(ctx, event.timestamp, event.token, event.oracle_id)
    update_collateral_meta(
        ctx,
        event.timestamp,
        event.token,
        supported_collateral_ratio=event.supported_collateral_ratio,
    )


@handler_registry.register(
    "coll_token_ratio_set", description="Collateral ratio changed"
)
def handle_coll_token_ratio_set(
    ctx: IndexerContext, event: ev.CollTokenRatioSet
) -> None:
    update_collateral_meta(
        ctx,
        event.timestamp,
        event.token,
        supported_collateral_ratio=event.supported_collateral_ratio,
    )


@handler_registry.register("debt_token_added", description="Debt token listed")
def handle_debt_token_added(ctx: IndexerContext, event: ev.DebtTokenAdded) -> None:
    stable_coin = ctx.reader.stable_coin(event.address).or_default(
        None, "stable coin of token manager"
    )
    if stable_coin is not None and stable_coin.lower() == event.token:
        update_protocol(ctx, event.timestamp, stable_coin=event.token)

    register_token(ctx, event.timestamp, event.token, event.oracle_id)
    update_debt_meta(ctx, event.timestamp, event.token)


# =============================================================================
# Troves, reserves and storage
# =============================================================================


@handler_registry.register(
    "debt_token_transfer", description="Debt token minted, burned or moved"
)
def handle_debt_token_transfer(
    ctx: IndexerContext, event: ev.DebtTokenTransfer
) -> None:
    update_debt_meta(ctx, event.timestamp, event.address)
    observe_debt_supply(ctx, event.timestamp, event.address)


@handler_registry.register("trove_created", description="Trove opened")
def handle_trove_created(ctx: IndexerContext, event: ev.TroveCreated) -> None:
    for token in event.coll_tokens:
        update_collateral_meta(ctx, event.timestamp, token)


@handler_registry.register("trove_coll_changed", description="Trove collateral changed")
def handle_trove_coll_changed(
    ctx: IndexerContext, event: ev.TroveCollChanged
) -> None:
    for token in event.coll_tokens:
        if token == ZERO_ADDRESS:
            continue
        update_collateral_meta(ctx, event.timestamp, token)
        observe_collateral_tvl(ctx, event.timestamp, token)


def _refresh_reserves(
    ctx: IndexerContext, event_time: int, pass_stable_reserve: bool
) -> None:
    protocol = ctx.protocol()
    stable_reserve = ctx.reader.balance_of(
        protocol.stable_coin, protocol.reserve_pool
    ).or_default(0, "stable reserve balance")
    update_debt_meta(
        ctx,
        event_time,
        protocol.stable_coin,
        total_reserve=stable_reserve if pass_stable_reserve else None,
    )
    observe_debt_reserve(ctx, event_time, protocol.stable_coin, stable_reserve)

    gov_reserve = ctx.reader.gov_reserve_cap(protocol.reserve_pool).or_default(
        0, "governance reserve cap"
    )
    update_collateral_meta(ctx, event_time, protocol.gov_token, gov_reserve=gov_reserve)
    observe_collateral_reserve(ctx, event_time, protocol.gov_token, gov_reserve)

    record_reserve_history(ctx, event_time, gov_reserve, stable_reserve)


@handler_registry.register(
    "paid_borrowing_fee", description="Borrowing fee paid into the reserve"
)
def handle_paid_borrowing_fee(
    ctx: IndexerContext, event: ev.PaidBorrowingFee
) -> None:
    _refresh_reserves(ctx, event.timestamp, pass_stable_reserve=False)


@handler_registry.register(
    "withdrew_reserves", description="Reserves withdrawn from the reserve pool"
)
def handle_withdrew_reserves(
    ctx: IndexerContext, event: ev.WithdrewReserves
) -> None:
    _refresh_reserves(ctx, event.timestamp, pass_stable_reserve=True)


@handler_registry.register(
    "storage_pool_value_updated", description="System collateral or debt changed"
)
def handle_storage_pool_value_updated(
    ctx: IndexerContext, event: ev.StoragePoolValueUpdated
) -> None:
    record_system_history(ctx, event.timestamp)


# =============================================================================
# Swap pools
# =============================================================================


@handler_registry.register("pair_created", description="Swap pair created")
def handle_pair_created(ctx: IndexerContext, event: ev.PairCreated) -> None:
    sides = sides_of(
        event.token0, event.token1, event.pair, ctx.protocol().stable_coin
    )
    create_pool(ctx, event.timestamp, sides)


@handler_registry.register("pair_swap", description="Swap executed on a pair")
def handle_pair_swap(ctx: IndexerContext, event: ev.PairSwap) -> None:
    sides = resolve_pair(ctx, event.address)
    record_swap(
        ctx,
        event.timestamp,
        sides,
        tx_hash=event.tx_hash,
        log_index=event.log_index,
        trader=event.to,
        amounts=SwapAmounts(
            amount0_in=event.amount0_in,
            amount1_in=event.amount1_in,
            amount0_out=event.amount0_out,
            amount1_out=event.amount1_out,
            amount0_in_fee=event.amount0_in_fee,
            amount1_in_fee=event.amount1_in_fee,
        ),
    )


@handler_registry.register("pair_sync", description="Pair reserves changed")
def handle_pair_sync(ctx: IndexerContext, event: ev.PairSync) -> None:
    sides = resolve_pair(ctx, event.address)
    update_liquidity(ctx, sides, event.reserve0, event.reserve1)
    update_pool_apy(ctx, event.timestamp, sides)

    oracle_price = ctx.reader.price(
        ctx.protocol().price_feed, sides.non_stable_coin
    ).or_default(None, f"oracle price of {sides.non_stable_coin}")
    ctx.candles.observe_trade(
        sides.non_stable_coin,
        event.timestamp,
        trade_price=trade_price(ctx, sides, event.reserve0, event.reserve1),
        oracle_price=oracle_price,
    )


def _handle_liquidity_change(ctx: IndexerContext, event: ev.ChainEvent) -> None:
    sides = resolve_pair(ctx, event.address)
    update_pool_total_supply(ctx, event.timestamp, sides)


handler_registry.register("pair_mint", description="Liquidity added")(
    _handle_liquidity_change
)
handler_registry.register("pair_burn", description="Liquidity removed")(
    _handle_liquidity_change
)
handler_registry.register("pair_transfer", description="LP tokens moved")(
    _handle_liquidity_change
)


# =============================================================================
# Oracle
# =============================================================================


@handler_registry.register(
    "oracle_price_update", description="Oracle published a price"
)
def handle_oracle_price_update(
    ctx: IndexerContext, event: ev.OraclePriceUpdate
) -> None:
    oracle = ctx.store.load(Oracle, event.oracle_id)
    if oracle is None:
        logger.debug(f"Ignoring price of untracked oracle {event.oracle_id}")
        return
    token = ctx.store.load(Token, oracle.token)
    if token is None:
        return

    if token.is_pool_token:
        ctx.candles.observe_trade(
            token.address,
            event.timestamp,
            oracle_price=scale_to_ether(event.price, event.expo),
        )

    if event.oracle_id in ctx.defaults.reward_oracle_ids:
        refresh_additional_rewards(ctx, token.address)


# =============================================================================
# Staking
# =============================================================================


@handler_registry.register("staking_pool_added", description="Pool added to staking")
def handle_staking_pool_added(
    ctx: IndexerContext, event: ev.StakingPoolAdded
) -> None:
    create_staking_pool(ctx, event.pool)


@handler_registry.register(
    "staking_pool_configured", description="Pool allocation changed"
)
def handle_staking_pool_configured(
    ctx: IndexerContext, event: ev.StakingPoolConfigured
) -> None:
    set_total_alloc_points(ctx, event.total_alloc_points)
    set_pool_alloc_points(ctx, event.pool, event.alloc_points)


@handler_registry.register(
    "staking_rewards_changed", description="Reward emission rate changed"
)
def handle_staking_rewards_changed(
    ctx: IndexerContext, event: ev.StakingRewardsChanged
) -> None:
    if event.token == ctx.protocol().gov_token:
        set_rewards_per_second(ctx, event.rewards_per_second)
    else:
        set_additional_rewards(ctx, event.pool, event.token, event.rewards_per_second)


@handler_registry.register("staking_deposit", description="LP tokens staked")
def handle_staking_deposit(ctx: IndexerContext, event: ev.StakingDeposit) -> None:
    change_deposit(ctx, event.pool, event.amount)


@handler_registry.register("staking_withdraw", description="LP tokens unstaked")
def handle_staking_withdraw(ctx: IndexerContext, event: ev.StakingWithdraw) -> None:
    change_deposit(ctx, event.pool, -event.amount)
