"""Time-series ledgers: rolling averages, candles, daily history and pool volume."""

from chainagg.aggregation.candles import CandleLedger
from chainagg.aggregation.daily import DailyHistoryLedger
from chainagg.aggregation.rolling import RollingAverageLedger
from chainagg.aggregation.volume import PoolVolumeLedger

__all__ = [
    "CandleLedger",
    "DailyHistoryLedger",
    "PoolVolumeLedger",
    "RollingAverageLedger",
]
