"""Point-in-time snapshots recomputed from contract reads and ledgers."""

from chainagg.snapshots.collateral import (
    observe_collateral_reserve,
    observe_collateral_tvl,
    update_collateral_meta,
)
from chainagg.snapshots.debt import (
    observe_debt_reserve,
    observe_debt_supply,
    update_debt_meta,
)
from chainagg.snapshots.history import record_reserve_history, record_system_history
from chainagg.snapshots.protocol import update_protocol
from chainagg.snapshots.tokens import register_token

__all__ = [
    "observe_collateral_reserve",
    "observe_collateral_tvl",
    "observe_debt_reserve",
    "observe_debt_supply",
    "record_reserve_history",
    "record_system_history",
    "register_token",
    "update_collateral_meta",
    "update_debt_meta",
    "update_protocol",
]
