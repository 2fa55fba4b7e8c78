"""Pytest configuration and fixtures."""

from types import SimpleNamespace

import pytest

from chainagg.chain.reads import StaticChainReader
from chainagg.config.schemas import AggregationConfig, ProtocolDefaults
from chainagg.context import IndexerContext
from chainagg.store.memory import MemoryStore

ADDRESSES = SimpleNamespace(
    stable="0x" + "a1" * 20,
    gov="0x" + "b2" * 20,
    price_feed="0x" + "c3" * 20,
    storage_pool="0x" + "d4" * 20,
    reserve_pool="0x" + "e5" * 20,
    staking_ops="0x" + "f6" * 20,
    token_manager="0x" + "07" * 20,
    weth="0x" + "18" * 20,
    pair="0x" + "29" * 20,
    factory="0x" + "3a" * 20,
    trader="0x" + "4b" * 20,
    reward="0x" + "5c" * 20,
)


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset settings singleton between tests."""
    from chainagg.config.settings import reset_settings

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def addr() -> SimpleNamespace:
    """Contract addresses of the test deployment."""
    return ADDRESSES


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def reader() -> StaticChainReader:
    return StaticChainReader()


@pytest.fixture
def aggregation() -> AggregationConfig:
    return AggregationConfig()


@pytest.fixture
def protocol_defaults() -> ProtocolDefaults:
    return ProtocolDefaults(
        stable_coin=ADDRESSES.stable,
        gov_token=ADDRESSES.gov,
        price_feed=ADDRESSES.price_feed,
        storage_pool=ADDRESSES.storage_pool,
        reserve_pool=ADDRESSES.reserve_pool,
        staking_ops=ADDRESSES.staking_ops,
        token_manager=ADDRESSES.token_manager,
    )


@pytest.fixture
def ctx(store, reader, aggregation, protocol_defaults) -> IndexerContext:
    """Processing context over a memory store and a static reader."""
    return IndexerContext(
        store=store,
        reader=reader,
        aggregation=aggregation,
        defaults=protocol_defaults,
    )
