"""Token and oracle registry."""

import logging

from chainagg.context import IndexerContext
from chainagg.core.types import Oracle, Token

logger = logging.getLogger(__name__)

DEFAULT_DECIMALS = 18


def register_token(
    ctx: IndexerContext,
    event_time: int,
    address: str,
    oracle_id: str | None = None,
) -> Token:
    """
    Register a token and its price oracle if not yet known.

    Symbol and decimals are read from the token contract and fall back to
    ``""`` and 18 when the reads revert.
    """
    token = ctx.store.load(Token, address)
    if token is not None:
        return token

    token = Token(
        address=address,
        symbol=ctx.reader.token_symbol(address).or_default(
            "", f"symbol of {address}"
        ),
        decimals=ctx.reader.token_decimals(address).or_default(
            DEFAULT_DECIMALS, f"decimals of {address}"
        ),
        created_at=event_time,
        is_pool_token=False,
        oracle_id=oracle_id,
    )
    ctx.store.save(token)

    if oracle_id is not None:
        ctx.store.save(Oracle(oracle_id=oracle_id, token=address))

    logger.info(f"Registered token {token.symbol or address} ({address})")
    return token


def mark_pool_token(ctx: IndexerContext, address: str) -> None:
    """Flag a token as traded in a swap pool."""
    token = ctx.store.load(Token, address)
    if token is None:
        logger.debug(f"Pool token {address} is not registered")
        return
    if not token.is_pool_token:
        token.is_pool_token = True
        ctx.store.save(token)


def token_decimals(ctx: IndexerContext, address: str) -> int:
    """Decimals of a token, preferring the registry over a contract read."""
    token = ctx.store.load(Token, address)
    if token is not None:
        return token.decimals
    return ctx.reader.token_decimals(address).or_default(
        DEFAULT_DECIMALS, f"decimals of {address}"
    )
