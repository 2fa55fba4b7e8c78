"""Explicit processing context threaded through every handler."""

import logging
from dataclasses import dataclass, field

from chainagg.aggregation.candles import CandleLedger
from chainagg.aggregation.daily import PROTOCOL_KEY, DailyHistoryLedger
from chainagg.aggregation.rolling import RollingAverageLedger
from chainagg.aggregation.volume import PoolVolumeLedger
from chainagg.chain.reads import ChainReader
from chainagg.config.schemas import AggregationConfig, ProtocolDefaults
from chainagg.config.settings import Settings
from chainagg.core.types import ProtocolConfig
from chainagg.store.base import EntityStore

logger = logging.getLogger(__name__)


@dataclass
class IndexerContext:
    """
    Store, chain reader, configuration and ledgers of one indexing run.

    The protocol configuration singleton is read through this object, never
    cached: handlers may update it between two reads.
    """

    store: EntityStore
    reader: ChainReader
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    defaults: ProtocolDefaults = field(default_factory=ProtocolDefaults)

    def __post_init__(self) -> None:
        self.averages = RollingAverageLedger(self.store, self.aggregation)
        self.candles = CandleLedger(self.store, self.aggregation)
        self.daily = DailyHistoryLedger(self.store, self.aggregation)
        self.volume = PoolVolumeLedger(self.store, self.aggregation)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: EntityStore,
        reader: ChainReader,
    ) -> "IndexerContext":
        """Build a context from loaded settings."""
        return cls(
            store=store,
            reader=reader,
            aggregation=settings.aggregation,
            defaults=settings.protocol,
        )

    def protocol(self) -> ProtocolConfig:
        """Load the protocol configuration, creating it with defaults."""
        config = self.store.load(ProtocolConfig, PROTOCOL_KEY)
        if config is None:
            config = ProtocolConfig(
                id=PROTOCOL_KEY,
                stable_coin=self.defaults.stable_coin,
                gov_token=self.defaults.gov_token,
                price_feed=self.defaults.price_feed,
                storage_pool=self.defaults.storage_pool,
                reserve_pool=self.defaults.reserve_pool,
                staking_ops=self.defaults.staking_ops,
                token_manager=self.defaults.token_manager,
            )
            self.store.save(config)
            logger.info("Created protocol configuration from defaults")
        return config
