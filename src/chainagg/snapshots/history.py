"""Protocol-wide daily USD history."""

import logging

from chainagg.context import IndexerContext
from chainagg.core.types import DailyChunk, DailySeries

logger = logging.getLogger(__name__)


def record_reserve_history(
    ctx: IndexerContext,
    event_time: int,
    gov_reserve: int,
    stable_reserve: int,
) -> DailyChunk:
    """Record the USD value of both reserve pool holdings."""
    protocol = ctx.protocol()
    gov_usd = ctx.reader.usd_value(
        protocol.price_feed, protocol.gov_token, gov_reserve
    ).or_default(0, "USD value of governance reserve")
    stable_usd = ctx.reader.usd_value(
        protocol.price_feed, protocol.stable_coin, stable_reserve
    ).or_default(0, "USD value of stable reserve")
    return ctx.daily.observe_daily(
        DailySeries.RESERVE_POOL_USD, event_time, gov_usd + stable_usd
    )


def record_system_history(
    ctx: IndexerContext, event_time: int
) -> tuple[DailyChunk, DailyChunk]:
    """
    Record total value minted and total value locked from system totals.

    Returns:
        Tuple of (minted chunk, locked chunk)
    """
    protocol = ctx.protocol()
    totals = ctx.reader.system_totals(protocol.storage_pool)
    coll_usd, debt_usd = totals.or_default((0, 0), "system totals")

    minted = ctx.daily.observe_daily(
        DailySeries.TOTAL_VALUE_MINTED_USD, event_time, debt_usd
    )
    locked = ctx.daily.observe_daily(
        DailySeries.TOTAL_VALUE_LOCKED_USD, event_time, coll_usd
    )
    return minted, locked
