"""Data layer module - database, SQL entity store and read queries."""

from chainagg.data.database import get_session, init_db
from chainagg.data.repository import CandleRepository, SeriesRepository
from chainagg.data.store import SqlEntityStore

__all__ = [
    "CandleRepository",
    "SeriesRepository",
    "SqlEntityStore",
    "get_session",
    "init_db",
]
