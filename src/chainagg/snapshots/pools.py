"""Swap pools: registry, liquidity, swaps, volume and deposit APY."""

import logging
from typing import NamedTuple

from chainagg.context import IndexerContext
from chainagg.core.errors import RequiredReadError
from chainagg.core.fixed_point import ONE, mul_div, pow10, tdiv
from chainagg.core.types import (
    Pool,
    PoolLiquidity,
    SwapDirection,
    SwapRecord,
)
from chainagg.snapshots.tokens import mark_pool_token, token_decimals
from chainagg.store.base import require

logger = logging.getLogger(__name__)

# 30-day fees extrapolated to a year
PERIODS_PER_YEAR = 12


class PairSides(NamedTuple):
    """A swap pair resolved into its stable and non-stable side."""

    pair: str
    stable_coin: str
    non_stable_coin: str
    stable_is_token0: bool

    @property
    def key(self) -> tuple[str, str]:
        return (self.stable_coin, self.non_stable_coin)

    def split(self, amount0: int, amount1: int) -> tuple[int, int]:
        """Reorder a (token0, token1) pair of amounts to (stable, other)."""
        if self.stable_is_token0:
            return amount0, amount1
        return amount1, amount0


def sides_of(token0: str, token1: str, pair: str, stable_coin: str) -> PairSides:
    """Resolve which token of a pair is the stable coin."""
    stable_is_token0 = token0 == stable_coin
    return PairSides(
        pair=pair,
        stable_coin=token0 if stable_is_token0 else token1,
        non_stable_coin=token1 if stable_is_token0 else token0,
        stable_is_token0=stable_is_token0,
    )


def resolve_pair(ctx: IndexerContext, pair: str) -> PairSides:
    """
    Read the tokens of a swap pair.

    Raises:
        RequiredReadError: If the pair's tokens cannot be read
    """
    tokens = ctx.reader.pair_tokens(pair)
    if tokens.reverted:
        raise RequiredReadError(f"tokens of pair {pair}")
    token0, token1 = tokens.value
    return sides_of(token0, token1, pair, ctx.protocol().stable_coin)


def create_pool(
    ctx: IndexerContext,
    event_time: int,
    sides: PairSides,
) -> Pool:
    """
    Register a pool and open candles for its non-stable token.

    Candles start at the oracle price of the token (both tracks).
    """
    pool = ctx.store.load(Pool, sides.key)
    if pool is None:
        pool = Pool(
            stable_coin=sides.stable_coin,
            non_stable_coin=sides.non_stable_coin,
            pair=sides.pair,
            timestamp=event_time,
        )
        ctx.store.save(pool)
        ctx.store.save(
            PoolLiquidity(token=sides.stable_coin, other_token=sides.non_stable_coin)
        )
        ctx.store.save(
            PoolLiquidity(token=sides.non_stable_coin, other_token=sides.stable_coin)
        )
        logger.info(f"Registered pool {sides.pair} ({sides.non_stable_coin})")

    mark_pool_token(ctx, sides.non_stable_coin)

    price = ctx.reader.price(ctx.protocol().price_feed, sides.non_stable_coin)
    ctx.candles.open(
        sides.non_stable_coin,
        event_time,
        price.or_default(0, f"opening price of {sides.non_stable_coin}"),
    )
    return pool


def update_pool_total_supply(
    ctx: IndexerContext, event_time: int, sides: PairSides
) -> Pool:
    """Refresh the LP token supply of a pool."""
    pool = require(ctx.store, Pool, sides.key)
    pool.total_supply = ctx.reader.pair_total_supply(sides.pair).or_default(
        0, f"total supply of pair {sides.pair}"
    )
    pool.timestamp = event_time
    ctx.store.save(pool)
    return pool


def update_liquidity(
    ctx: IndexerContext,
    sides: PairSides,
    reserve0: int,
    reserve1: int,
) -> None:
    """Store both reserve amounts of a pool."""
    stable_amount, other_amount = sides.split(reserve0, reserve1)

    stable_side = require(
        ctx.store, PoolLiquidity, (sides.stable_coin, sides.non_stable_coin)
    )
    stable_side.total_amount = stable_amount
    ctx.store.save(stable_side)

    other_side = require(
        ctx.store, PoolLiquidity, (sides.non_stable_coin, sides.stable_coin)
    )
    other_side.total_amount = other_amount
    ctx.store.save(other_side)


def pool_value_usd(ctx: IndexerContext, sides: PairSides) -> int:
    """USD value of a pool: stable liquidity at par plus the priced other side."""
    stable_side = require(
        ctx.store, PoolLiquidity, (sides.stable_coin, sides.non_stable_coin)
    )
    other_side = require(
        ctx.store, PoolLiquidity, (sides.non_stable_coin, sides.stable_coin)
    )
    other_usd = ctx.reader.usd_value(
        ctx.protocol().price_feed, sides.non_stable_coin, other_side.total_amount
    ).or_default(0, f"USD value of {sides.non_stable_coin} liquidity")
    return stable_side.total_amount + other_usd


def update_pool_apy(ctx: IndexerContext, event_time: int, sides: PairSides) -> Pool:
    """
    Recompute the liquidity deposit APY from the last 30 days of fees.

    APY is ``fees_30d * 12 / pool value`` with 18 decimals, and 0 for an
    empty pool or a pool without trades.
    """
    pool = require(ctx.store, Pool, sides.key)
    window = ctx.volume.advance(sides.pair, event_time)
    fees = window.fee_usd if window is not None else 0
    value = pool_value_usd(ctx, sides)

    if value == 0:
        pool.liquidity_deposit_apy = 0
    else:
        pool.liquidity_deposit_apy = tdiv(fees * PERIODS_PER_YEAR * ONE, value)
    pool.timestamp = event_time
    ctx.store.save(pool)
    return pool


def trade_price(
    ctx: IndexerContext, sides: PairSides, reserve0: int, reserve1: int
) -> int | None:
    """
    Price of the non-stable token in stable units implied by pool reserves.

    Returns:
        The price, or None for a pool without non-stable liquidity
    """
    stable_amount, other_amount = sides.split(reserve0, reserve1)
    if other_amount == 0:
        return None
    decimals = token_decimals(ctx, sides.non_stable_coin)
    return mul_div(stable_amount, pow10(decimals), other_amount)


class SwapAmounts(NamedTuple):
    amount0_in: int
    amount1_in: int
    amount0_out: int
    amount1_out: int
    amount0_in_fee: int
    amount1_in_fee: int


def record_swap(
    ctx: IndexerContext,
    event_time: int,
    sides: PairSides,
    tx_hash: str,
    log_index: int,
    trader: str,
    amounts: SwapAmounts,
) -> SwapRecord:
    """
    Record a swap and add its volume and fee to the pool and its candles.

    A swap paying stable coin in is LONG on the non-stable token, anything
    else is SHORT. Volume is always measured in stable coin units; fees paid
    in the non-stable token are converted to USD.
    """
    stable_in, other_in = sides.split(amounts.amount0_in, amounts.amount1_in)
    stable_out, other_out = sides.split(amounts.amount0_out, amounts.amount1_out)
    stable_fee, other_fee = sides.split(amounts.amount0_in_fee, amounts.amount1_in_fee)

    direction = SwapDirection.SHORT if stable_in == 0 else SwapDirection.LONG
    if direction is SwapDirection.LONG:
        stable_size, other_size, swap_fee = stable_in, other_out, stable_fee
        fee_usd = stable_fee
    else:
        stable_size, other_size, swap_fee = stable_out, other_in, other_fee
        fee_usd = ctx.reader.usd_value(
            ctx.protocol().price_feed, sides.non_stable_coin, other_fee
        ).or_default(0, f"USD value of swap fee in {sides.non_stable_coin}")

    record = SwapRecord(
        tx_hash=tx_hash,
        log_index=log_index,
        token=sides.non_stable_coin,
        borrower=trader,
        direction=direction.value,
        timestamp=event_time,
        size=other_size,
        total_price_in_stable=stable_size,
        swap_fee=swap_fee,
    )
    ctx.store.save(record)

    ctx.candles.observe_trade(sides.non_stable_coin, event_time, volume=stable_size)
    ctx.volume.add(sides.pair, event_time, stable_size, fee_usd)
    update_pool_apy(ctx, event_time, sides)
    return record
