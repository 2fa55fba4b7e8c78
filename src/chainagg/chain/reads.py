"""
External contract reads.

Every read returns a ``ReadResult`` instead of raising: a reverted call is an
expected condition that degrades the dependent snapshot field to a default.
"""

import logging
from pathlib import Path
from typing import Any, NamedTuple, Protocol, runtime_checkable

from chainagg.config.loader import load_yaml_config
from chainagg.core.fixed_point import mul_div, pow10

logger = logging.getLogger(__name__)


class ReadResult(NamedTuple):
    """Outcome of a contract read: a value or a revert indicator."""

    value: Any = None
    reverted: bool = False

    @classmethod
    def ok(cls, value: Any) -> "ReadResult":
        return cls(value=value, reverted=False)

    @classmethod
    def revert(cls) -> "ReadResult":
        return cls(value=None, reverted=True)

    def or_default(self, default: Any, label: str = "read") -> Any:
        """
        Return the value, or ``default`` when the read reverted.

        Args:
            default: Fallback value for the dependent field
            label: Description used in the warning log
        """
        if self.reverted:
            logger.warning(f"Reverted {label}, falling back to {default!r}")
            return default
        return self.value


@runtime_checkable
class ChainReader(Protocol):
    """
    Synchronous contract read interface.

    Contract addresses are passed explicitly; implementations never read
    the protocol configuration themselves.
    """

    def price(self, price_feed: str, token: str) -> ReadResult:
        """Oracle price of a token with 18 decimals."""
        ...

    def usd_value(self, price_feed: str, token: str, amount: int) -> ReadResult:
        """USD value (18 decimals) of ``amount`` token units."""
        ...

    def token_symbol(self, token: str) -> ReadResult:
        ...

    def token_decimals(self, token: str) -> ReadResult:
        ...

    def total_supply(self, token: str) -> ReadResult:
        ...

    def balance_of(self, token: str, holder: str) -> ReadResult:
        ...

    def gov_reserve_cap(self, reserve_pool: str) -> ReadResult:
        """Governance token amount held by the reserve pool."""
        ...

    def token_total_amount(self, storage_pool: str, token: str) -> ReadResult:
        """Total collateral amount of a token held by the storage pool."""
        ...

    def system_totals(self, storage_pool: str) -> ReadResult:
        """Tuple of (entire system collateral USD, entire system debt USD)."""
        ...

    def pair_reserves(self, pair: str) -> ReadResult:
        """Tuple of (reserve0, reserve1) of a swap pair."""
        ...

    def pair_total_supply(self, pair: str) -> ReadResult:
        ...

    def pair_tokens(self, pair: str) -> ReadResult:
        """Tuple of (token0, token1) of a swap pair."""
        ...

    def stable_coin(self, token_manager: str) -> ReadResult:
        ...


class StaticChainReader:
    """
    In-memory chain state for replays and tests.

    The reader serves a single deployment, so the addresses of protocol
    singletons (price feed, storage pool, reserve pool, token manager) are
    accepted but not part of the lookup keys. Missing data reads as a revert,
    and whole read methods can be forced to revert with ``fail``.
    """

    def __init__(self) -> None:
        self.prices: dict[str, int] = {}
        self.decimals: dict[str, int] = {}
        self.symbols: dict[str, str] = {}
        self.supplies: dict[str, int] = {}
        self.balances: dict[tuple[str, str], int] = {}
        self.token_totals: dict[str, int] = {}
        self.pairs: dict[str, dict[str, Any]] = {}
        self.gov_reserve: int | None = None
        self.totals: tuple[int, int] | None = None
        self.stable: str | None = None
        self.failing: set[str] = set()

    # -------------------------------------------------------------------------
    # State setup
    # -------------------------------------------------------------------------

    def set_token(
        self,
        token: str,
        price: int | None = None,
        decimals: int = 18,
        symbol: str = "",
        total_supply: int | None = None,
    ) -> "StaticChainReader":
        token = token.lower()
        self.decimals[token] = decimals
        self.symbols[token] = symbol
        if price is not None:
            self.prices[token] = price
        if total_supply is not None:
            self.supplies[token] = total_supply
        return self

    def set_price(self, token: str, price: int) -> "StaticChainReader":
        self.prices[token.lower()] = price
        return self

    def set_balance(self, token: str, holder: str, amount: int) -> "StaticChainReader":
        self.balances[(token.lower(), holder.lower())] = amount
        return self

    def set_token_total(self, token: str, amount: int) -> "StaticChainReader":
        self.token_totals[token.lower()] = amount
        return self

    def set_gov_reserve(self, amount: int) -> "StaticChainReader":
        self.gov_reserve = amount
        return self

    def set_system_totals(self, coll_usd: int, debt_usd: int) -> "StaticChainReader":
        self.totals = (coll_usd, debt_usd)
        return self

    def set_stable_coin(self, token: str) -> "StaticChainReader":
        self.stable = token.lower()
        return self

    def set_pair(
        self,
        pair: str,
        token0: str,
        token1: str,
        reserve0: int = 0,
        reserve1: int = 0,
        total_supply: int = 0,
    ) -> "StaticChainReader":
        self.pairs[pair.lower()] = {
            "token0": token0.lower(),
            "token1": token1.lower(),
            "reserve0": reserve0,
            "reserve1": reserve1,
            "total_supply": total_supply,
        }
        return self

    def fail(self, *methods: str) -> "StaticChainReader":
        """Make every call of the named read methods revert."""
        unknown = [m for m in methods if not callable(getattr(self, m, None))]
        if unknown:
            raise ValueError(f"Unknown read methods: {unknown}")
        self.failing.update(methods)
        return self

    def restore(self, *methods: str) -> "StaticChainReader":
        self.failing.difference_update(methods)
        return self

    @classmethod
    def from_yaml(cls, path: Path | str) -> "StaticChainReader":
        """
        Build a reader from a YAML state file.

        Layout::

            stable_coin: "0x..."
            gov_reserve_cap: 0
            system_totals: {coll: 0, debt: 0}
            tokens:
              "0x...": {symbol: JUSD, decimals: 18, price: ..., total_supply: ...}
            balances:
              "0xtoken": {"0xholder": 100}
            token_totals: {"0x...": 100}
            pairs:
              "0xpair": {token0: ..., token1: ..., reserve0: ..., reserve1: ..., total_supply: ...}
            failing: [balance_of]
        """
        data = load_yaml_config(path)
        reader = cls()

        if data.get("stable_coin"):
            reader.set_stable_coin(data["stable_coin"])
        if data.get("gov_reserve_cap") is not None:
            reader.set_gov_reserve(int(data["gov_reserve_cap"]))
        totals = data.get("system_totals")
        if totals:
            reader.set_system_totals(int(totals["coll"]), int(totals["debt"]))

        for token, info in (data.get("tokens") or {}).items():
            info = info or {}
            reader.set_token(
                token,
                price=_optional_int(info.get("price")),
                decimals=int(info.get("decimals", 18)),
                symbol=str(info.get("symbol", "")),
                total_supply=_optional_int(info.get("total_supply")),
            )
        for token, holders in (data.get("balances") or {}).items():
            for holder, amount in holders.items():
                reader.set_balance(token, holder, int(amount))
        for token, amount in (data.get("token_totals") or {}).items():
            reader.set_token_total(token, int(amount))
        for pair, info in (data.get("pairs") or {}).items():
            reader.set_pair(
                pair,
                info["token0"],
                info["token1"],
                reserve0=int(info.get("reserve0", 0)),
                reserve1=int(info.get("reserve1", 0)),
                total_supply=int(info.get("total_supply", 0)),
            )
        reader.fail(*(data.get("failing") or []))

        logger.info(
            f"Loaded chain state from {path}: {len(reader.decimals)} tokens, "
            f"{len(reader.pairs)} pairs"
        )
        return reader

    # -------------------------------------------------------------------------
    # ChainReader implementation
    # -------------------------------------------------------------------------

    def _read(self, method: str, lookup: Any) -> ReadResult:
        if method in self.failing:
            return ReadResult.revert()
        try:
            value = lookup()
        except KeyError:
            return ReadResult.revert()
        if value is None:
            return ReadResult.revert()
        return ReadResult.ok(value)

    def price(self, price_feed: str, token: str) -> ReadResult:
        return self._read("price", lambda: self.prices[token.lower()])

    def usd_value(self, price_feed: str, token: str, amount: int) -> ReadResult:
        token = token.lower()
        return self._read(
            "usd_value",
            lambda: mul_div(
                self.prices[token], amount, pow10(self.decimals.get(token, 18))
            ),
        )

    def token_symbol(self, token: str) -> ReadResult:
        return self._read("token_symbol", lambda: self.symbols[token.lower()])

    def token_decimals(self, token: str) -> ReadResult:
        return self._read("token_decimals", lambda: self.decimals[token.lower()])

    def total_supply(self, token: str) -> ReadResult:
        return self._read("total_supply", lambda: self.supplies[token.lower()])

    def balance_of(self, token: str, holder: str) -> ReadResult:
        return self._read(
            "balance_of",
            lambda: self.balances.get((token.lower(), holder.lower()), 0),
        )

    def gov_reserve_cap(self, reserve_pool: str) -> ReadResult:
        return self._read("gov_reserve_cap", lambda: self.gov_reserve)

    def token_total_amount(self, storage_pool: str, token: str) -> ReadResult:
        return self._read(
            "token_total_amount", lambda: self.token_totals[token.lower()]
        )

    def system_totals(self, storage_pool: str) -> ReadResult:
        return self._read("system_totals", lambda: self.totals)

    def pair_reserves(self, pair: str) -> ReadResult:
        def lookup() -> tuple[int, int]:
            info = self.pairs[pair.lower()]
            return info["reserve0"], info["reserve1"]

        return self._read("pair_reserves", lookup)

    def pair_total_supply(self, pair: str) -> ReadResult:
        return self._read(
            "pair_total_supply", lambda: self.pairs[pair.lower()]["total_supply"]
        )

    def pair_tokens(self, pair: str) -> ReadResult:
        def lookup() -> tuple[str, str]:
            info = self.pairs[pair.lower()]
            return info["token0"], info["token1"]

        return self._read("pair_tokens", lookup)

    def stable_coin(self, token_manager: str) -> ReadResult:
        return self._read("stable_coin", lambda: self.stable)


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)
