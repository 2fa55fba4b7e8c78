"""Collateral token metrics and their rolling averages."""

import logging

from chainagg.context import IndexerContext
from chainagg.core.fixed_point import mul_div, pow10
from chainagg.core.types import CollateralTokenMeta, Metric, SeriesKey, Token
from chainagg.store.base import require

logger = logging.getLogger(__name__)


def update_collateral_meta(
    ctx: IndexerContext,
    event_time: int,
    token: str,
    gov_reserve: int | None = None,
    supported_collateral_ratio: int | None = None,
) -> CollateralTokenMeta:
    """
    Recompute the snapshot of a collateral token.

    The first call also starts the token's reserve and TVL rolling averages.

    Args:
        ctx: Processing context
        event_time: Event timestamp
        token: Collateral token address
        gov_reserve: Governance reserve already read by the caller; read from
            the reserve pool when omitted
        supported_collateral_ratio: New ratio, kept unchanged when omitted

    Returns:
        The saved snapshot
    """
    meta = ctx.store.load(CollateralTokenMeta, token)
    if meta is None:
        meta = CollateralTokenMeta(token=token)
        ctx.averages.ensure(SeriesKey.of(Metric.TOTAL_RESERVE, token), event_time)
        ctx.averages.ensure(
            SeriesKey.of(Metric.TOTAL_VALUE_LOCKED_USD, token), event_time
        )
        logger.info(f"Tracking collateral token {token}")

    if supported_collateral_ratio is not None:
        meta.supported_collateral_ratio = supported_collateral_ratio
    meta.timestamp = event_time

    protocol = ctx.protocol()
    if token == protocol.gov_token:
        if gov_reserve is None:
            gov_reserve = ctx.reader.gov_reserve_cap(protocol.reserve_pool).or_default(
                0, "governance reserve cap"
            )
        meta.total_reserve = gov_reserve
        meta.total_reserve_average = SeriesKey.of(Metric.TOTAL_RESERVE, token).ref
    else:
        meta.total_reserve = 0

    meta.total_value_locked_usd = _value_locked_usd(ctx, token)
    meta.total_value_locked_usd_average = SeriesKey.of(
        Metric.TOTAL_VALUE_LOCKED_USD, token
    ).ref

    ctx.store.save(meta)
    return meta


def _value_locked_usd(ctx: IndexerContext, token: str) -> int:
    protocol = ctx.protocol()
    # The storage pool only knows a token after the first trove opened with it
    amount = ctx.reader.token_total_amount(protocol.storage_pool, token)
    if amount.reverted:
        logger.debug(f"No storage pool amount for {token} yet")
        return 0

    registered = require(ctx.store, Token, token)
    price = ctx.reader.price(protocol.price_feed, token).or_default(
        0, f"price of {token}"
    )
    return mul_div(price, amount.value, pow10(registered.decimals))


def observe_collateral_tvl(
    ctx: IndexerContext, event_time: int, token: str
) -> tuple[int, int]:
    """Feed the current TVL snapshot into the token's rolling average."""
    meta = require(ctx.store, CollateralTokenMeta, token)
    return ctx.averages.observe(
        SeriesKey.of(Metric.TOTAL_VALUE_LOCKED_USD, token),
        event_time,
        meta.total_value_locked_usd,
    )


def observe_collateral_reserve(
    ctx: IndexerContext, event_time: int, token: str, total_reserve: int
) -> tuple[int, int]:
    """Feed a reserve amount into the token's rolling average."""
    return ctx.averages.observe(
        SeriesKey.of(Metric.TOTAL_RESERVE, token), event_time, total_reserve
    )
