"""
Chain aggregation engine

Turns an ordered stream of protocol events into rolling averages,
multi-resolution candles and daily history.
"""

__version__ = "0.1.0"

# Public API
from chainagg.aggregation import (
    CandleLedger,
    DailyHistoryLedger,
    PoolVolumeLedger,
    RollingAverageLedger,
)
from chainagg.chain.reads import ChainReader, ReadResult, StaticChainReader
from chainagg.config.settings import Settings, get_settings
from chainagg.context import IndexerContext
from chainagg.core.errors import (
    AggregationError,
    MissingEntityError,
    RequiredReadError,
    TimeRegressionError,
    UnknownEventError,
)
from chainagg.indexer import EventProcessor, handler_registry, parse_event
from chainagg.store import EntityStore, MemoryStore

__all__ = [
    # Version
    "__version__",
    # Config
    "get_settings",
    "Settings",
    # Ledgers
    "CandleLedger",
    "DailyHistoryLedger",
    "PoolVolumeLedger",
    "RollingAverageLedger",
    # Chain reads
    "ChainReader",
    "ReadResult",
    "StaticChainReader",
    # Processing
    "EventProcessor",
    "IndexerContext",
    "handler_registry",
    "parse_event",
    # Stores
    "EntityStore",
    "MemoryStore",
    # Errors
    "AggregationError",
    "MissingEntityError",
    "RequiredReadError",
    "TimeRegressionError",
    "UnknownEventError",
]


def main() -> None:
    """Main entry point - runs the CLI."""
    from chainagg.cli import cli

    cli()


if __name__ == "__main__":
    main()
