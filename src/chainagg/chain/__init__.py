"""Contract read interface and an in-memory implementation."""

from chainagg.chain.reads import ChainReader, ReadResult, StaticChainReader

__all__ = [
    "ChainReader",
    "ReadResult",
    "StaticChainReader",
]
