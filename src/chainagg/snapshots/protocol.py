"""Protocol configuration updates."""

import logging

from chainagg.context import IndexerContext
from chainagg.core.types import ProtocolConfig

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = frozenset(
    {
        "stable_coin",
        "gov_token",
        "price_feed",
        "storage_pool",
        "reserve_pool",
        "staking_ops",
        "token_manager",
    }
)


def update_protocol(
    ctx: IndexerContext,
    event_time: int,
    **addresses: str,
) -> ProtocolConfig:
    """
    Set canonical contract addresses on the protocol configuration.

    Args:
        ctx: Processing context
        event_time: Event timestamp, stored as the last update time
        **addresses: Address fields to overwrite, e.g. ``price_feed="0x.."``

    Raises:
        ValueError: If a keyword is not an address field
    """
    unknown = set(addresses) - ADDRESS_FIELDS
    if unknown:
        raise ValueError(f"Unknown protocol address fields: {sorted(unknown)}")

    config = ctx.protocol()
    for name, address in addresses.items():
        setattr(config, name, address.lower())
    config.timestamp = event_time
    ctx.store.save(config)

    logger.info(f"Protocol configuration updated: {addresses}")
    return config
