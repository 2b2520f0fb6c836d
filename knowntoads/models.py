"""Internal value types shared by providers, router and transaction builder."""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from .config import ZERO_ADDRESS


@dataclass(frozen=True)
class PoolKey:
    """Uniswap V4 pool identifier. currency0 sorts before currency1."""
    currency0: str
    currency1: str
    fee: int
    tick_spacing: int
    hooks: str = ZERO_ADDRESS

    def as_tuple(self) -> tuple:
        return (self.currency0, self.currency1, int(self.fee), int(self.tick_spacing), self.hooks)

    def contains(self, token: str) -> bool:
        t = token.lower()
        return self.currency0.lower() == t or self.currency1.lower() == t

    def zero_for_one(self, sell_token: str) -> bool:
        return sell_token.lower() == self.currency0.lower()


@dataclass(frozen=True)
class PrebuiltTx:
    """Calldata handed back by an HTTP quote API."""
    to: str
    data: str
    value: str = "0"
    gas: Optional[int] = None


@dataclass
class Quote:
    provider: str
    sell_token: str
    buy_token: str
    sell_amount: int
    buy_amount: int
    slippage_bps: int
    min_buy_amount: int
    estimated_gas: int = 0
    price: Optional[str] = None
    fee_tier: Optional[int] = None
    pool_key: Optional[PoolKey] = None
    tx: Optional[PrebuiltTx] = None

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        # uint256 values go over JSON as strings
        for k in ("sell_amount", "buy_amount", "min_buy_amount", "estimated_gas"):
            out[k] = str(out[k])
        return out


@dataclass
class SwapTransaction:
    to: str
    data: str
    value: str
    chain_id: int
    provider: str
    gas: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
