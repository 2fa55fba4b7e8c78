"""Debt token metrics and their rolling averages."""

import logging

from chainagg.context import IndexerContext
from chainagg.core.fixed_point import ONE, mul_div
from chainagg.core.types import DebtTokenMeta, Metric, SeriesKey
from chainagg.store.base import require

logger = logging.getLogger(__name__)


def update_debt_meta(
    ctx: IndexerContext,
    event_time: int,
    token: str,
    total_reserve: int | None = None,
) -> DebtTokenMeta:
    """
    Recompute the snapshot of a debt token.

    Only the stable coin has a reserve; the reserve average is started for
    it alone. Supply and price reads degrade independently, so a reverting
    balance read leaves ``total_supply_usd`` intact and vice versa.

    Args:
        ctx: Processing context
        event_time: Event timestamp
        token: Debt token address
        total_reserve: Stable reserve already read by the caller; read from
            the reserve pool balance when omitted

    Returns:
        The saved snapshot
    """
    protocol = ctx.protocol()
    is_stable = token == protocol.stable_coin

    meta = ctx.store.load(DebtTokenMeta, token)
    if meta is None:
        meta = DebtTokenMeta(token=token)
        if is_stable:
            ctx.averages.ensure(SeriesKey.of(Metric.TOTAL_RESERVE, token), event_time)
        ctx.averages.ensure(SeriesKey.of(Metric.TOTAL_SUPPLY_USD, token), event_time)
        logger.info(f"Tracking debt token {token}")

    meta.timestamp = event_time

    supply = ctx.reader.total_supply(token).or_default(0, f"total supply of {token}")
    price = ctx.reader.price(protocol.price_feed, token).or_default(
        0, f"price of {token}"
    )
    meta.total_supply_usd = mul_div(supply, price, ONE)
    meta.total_supply_usd_average = SeriesKey.of(Metric.TOTAL_SUPPLY_USD, token).ref

    if is_stable:
        if total_reserve is None:
            total_reserve = ctx.reader.balance_of(
                token, protocol.reserve_pool
            ).or_default(0, f"reserve balance of {token}")
        meta.total_reserve = total_reserve
        meta.total_reserve_average = SeriesKey.of(Metric.TOTAL_RESERVE, token).ref
    else:
        meta.total_reserve = 0

    ctx.store.save(meta)
    return meta


def observe_debt_supply(
    ctx: IndexerContext, event_time: int, token: str
) -> tuple[int, int]:
    """Feed the current supply snapshot into the token's rolling average."""
    meta = require(ctx.store, DebtTokenMeta, token)
    return ctx.averages.observe(
        SeriesKey.of(Metric.TOTAL_SUPPLY_USD, token),
        event_time,
        meta.total_supply_usd,
    )


def observe_debt_reserve(
    ctx: IndexerContext, event_time: int, token: str, total_reserve: int
) -> tuple[int, int]:
    """Feed a reserve amount into the token's rolling average."""
    return ctx.averages.observe(
        SeriesKey.of(Metric.TOTAL_RESERVE, token), event_time, total_reserve
    )
