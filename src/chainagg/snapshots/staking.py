"""Staking emissions and staked pool metrics."""

import logging

from chainagg.context import IndexerContext
from chainagg.core.fixed_point import ONE, SECONDS_PER_YEAR, mul_div, tdiv
from chainagg.core.types import Staking, StakingPool, StakingPoolReward
from chainagg.snapshots.pools import sides_of
from chainagg.store.base import require

logger = logging.getLogger(__name__)

STAKING_KEY = "staking"


def ensure_staking(ctx: IndexerContext) -> Staking:
    staking = ctx.store.load(Staking, STAKING_KEY)
    if staking is None:
        staking = Staking(id=STAKING_KEY)
        ctx.store.save(staking)
        logger.info("Created staking state")
    return staking


def create_staking_pool(ctx: IndexerContext, pool: str) -> StakingPool:
    """Register a staked LP pool with the staking state."""
    staking = require(ctx.store, Staking, STAKING_KEY)
    staking_pool = ctx.store.load(StakingPool, pool)
    if staking_pool is None:
        staking_pool = StakingPool(address=pool)
        ctx.store.save(staking_pool)
        staking.pools.append(pool)
        ctx.store.save(staking)
        logger.info(f"Registered staking pool {pool}")
    return staking_pool


def set_total_alloc_points(ctx: IndexerContext, total_alloc_points: int) -> None:
    staking = require(ctx.store, Staking, STAKING_KEY)
    staking.total_alloc_points = total_alloc_points
    ctx.store.save(staking)
    refresh_staking_rewards(ctx)


def set_rewards_per_second(ctx: IndexerContext, rewards_per_second: int) -> None:
    staking = require(ctx.store, Staking, STAKING_KEY)
    staking.rewards_per_second = rewards_per_second
    ctx.store.save(staking)
    refresh_staking_rewards(ctx)


def refresh_staking_rewards(ctx: IndexerContext) -> Staking:
    """Re-price governance emissions and every pool depending on them."""
    staking = require(ctx.store, Staking, STAKING_KEY)
    protocol = ctx.protocol()
    staking.rewards_per_year_usd = ctx.reader.usd_value(
        protocol.price_feed,
        protocol.gov_token,
        staking.rewards_per_second * SECONDS_PER_YEAR,
    ).or_default(0, "USD value of staking emissions")
    ctx.store.save(staking)

    for pool in staking.pools:
        refresh_staking_pool(ctx, pool)
    return staking


def set_pool_alloc_points(ctx: IndexerContext, pool: str, alloc_points: int) -> None:
    staking_pool = require(ctx.store, StakingPool, pool)
    staking_pool.alloc_points = alloc_points
    ctx.store.save(staking_pool)
    refresh_staking_pool(ctx, pool)


def change_deposit(ctx: IndexerContext, pool: str, amount: int) -> StakingPool:
    """Add (positive) or withdraw (negative) staked LP tokens."""
    staking_pool = require(ctx.store, StakingPool, pool)
    staking_pool.total_deposit += amount
    ctx.store.save(staking_pool)
    return refresh_staking_pool(ctx, pool)


def set_additional_rewards(
    ctx: IndexerContext, pool: str, token: str, rewards_per_second: int
) -> None:
    """Set the emission rate of an additional (non-governance) reward token."""
    reward = ctx.store.load(StakingPoolReward, (pool, token))
    if reward is None:
        staking_pool = require(ctx.store, StakingPool, pool)
        reward = StakingPoolReward(pool=pool, token=token)
        staking_pool.rewards.append(token)
        ctx.store.save(staking_pool)

    reward.rewards_per_second = rewards_per_second
    ctx.store.save(reward)
    refresh_additional_reward(ctx, pool, token)


def refresh_additional_reward(ctx: IndexerContext, pool: str, token: str) -> None:
    """
    Re-price one additional reward of a pool.

    Pools that do not emit the token are left alone.
    """
    reward = ctx.store.load(StakingPoolReward, (pool, token))
    if reward is None:
        return
    staking_pool = require(ctx.store, StakingPool, pool)

    staking_pool.additional_rewards_per_year_usd -= reward.rewards_per_year_usd
    reward.rewards_per_year_usd = ctx.reader.usd_value(
        ctx.protocol().price_feed,
        token,
        reward.rewards_per_second * SECONDS_PER_YEAR,
    ).or_default(0, f"USD value of {token} rewards")
    staking_pool.additional_rewards_per_year_usd += reward.rewards_per_year_usd

    ctx.store.save(reward)
    ctx.store.save(staking_pool)
    refresh_staking_pool(ctx, pool)


def refresh_additional_rewards(ctx: IndexerContext, token: str) -> None:
    """Re-price an additional reward token in every staking pool."""
    staking = ctx.store.load(Staking, STAKING_KEY)
    if staking is None:
        return
    for pool in staking.pools:
        refresh_additional_reward(ctx, pool, token)


def refresh_staking_pool(ctx: IndexerContext, pool: str) -> StakingPool:
    """
    Recompute deposit value, yearly rewards and APR of a staked pool.

    The staked LP token is a swap pair. Its value is the stable reserve at
    par plus the priced other reserve, shared pro rata by the deposit.
    """
    staking = require(ctx.store, Staking, STAKING_KEY)
    staking_pool = require(ctx.store, StakingPool, pool)

    pool_value = _pair_value_usd(ctx, pool)
    supply = ctx.reader.pair_total_supply(pool).or_default(
        0, f"total supply of pair {pool}"
    )

    if supply == 0:
        staking_pool.total_deposit_usd = 0
    else:
        staking_pool.total_deposit_usd = mul_div(
            pool_value, staking_pool.total_deposit, supply
        )

    if staking.total_alloc_points == 0:
        staking_pool.total_reward_usd = 0
    else:
        staking_pool.total_reward_usd = (
            mul_div(
                staking.rewards_per_year_usd,
                staking_pool.alloc_points,
                staking.total_alloc_points,
            )
            + staking_pool.additional_rewards_per_year_usd
        )

    if staking_pool.total_deposit_usd == 0:
        staking_pool.staking_apr = 0
    else:
        staking_pool.staking_apr = tdiv(
            staking_pool.total_reward_usd * ONE, staking_pool.total_deposit_usd
        )

    ctx.store.save(staking_pool)
    return staking_pool


def _pair_value_usd(ctx: IndexerContext, pair: str) -> int:
    tokens = ctx.reader.pair_tokens(pair)
    reserves = ctx.reader.pair_reserves(pair)
    if tokens.reverted or reserves.reverted:
        logger.warning(f"Reverted reads of staked pair {pair}, valuing it at 0")
        return 0

    protocol = ctx.protocol()
    sides = sides_of(*tokens.value, pair, protocol.stable_coin)
    stable_amount, other_amount = sides.split(*reserves.value)
    other_usd = ctx.reader.usd_value(
        protocol.price_feed, sides.non_stable_coin, other_amount
    ).or_default(0, f"USD value of {sides.non_stable_coin} in {pair}")
    return stable_amount + other_usd
