"""ERC-20 metadata lookups (symbol / decimals / name) with a 24h cache."""

import logging
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from web3 import Web3

from .abis import ERC20_ABI
from .cache import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_DECIMALS = 18
DEFAULT_SYMBOL = "TOKEN"


@dataclass
class TokenInfo:
    address: str
    symbol: str
    decimals: int
    name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def to_base_units(amount: Decimal, decimals: int) -> int:
    scale = Decimal(10) ** decimals
    return int((Decimal(amount) * scale).to_integral_value())


def from_base_units(amount: int, decimals: int) -> Decimal:
    return Decimal(amount) / (Decimal(10) ** decimals)


def format_exchange_rate(
    amount_in: int,
    amount_out: int,
    input_symbol: str,
    output_symbol: str,
    input_decimals: int = 6,
    output_decimals: int = 18,
) -> str:
    input_amount = from_base_units(amount_in, input_decimals)
    output_amount = from_base_units(amount_out, output_decimals)
    if input_amount == 0:
        return f"1 {input_symbol} ≈ 0 {output_symbol}"

    rate = output_amount / input_amount
    if rate > 1000:
        formatted = f"{rate:.0f}"
    elif rate > 1:
        formatted = f"{rate:.2f}"
    elif rate > Decimal("0.01"):
        formatted = f"{rate:.4f}"
    else:
        formatted = f"{float(rate):.2e}"
    return f"1 {input_symbol} ≈ {formatted} {output_symbol}"


class TokenInfoService:
    def __init__(self, w3: Web3, cache_ttl: float = 24 * 60 * 60):
        self.w3 = w3
        self.cache = TTLCache(cache_ttl)

    def _read(self, contract, fn: str, default: Any, cast: Callable[[Any], Any]) -> Any:
        try:
            return cast(getattr(contract.functions, fn)().call())
        except Exception as e:
            logger.info("%s() failed for %s: %s", fn, contract.address, e)
            return default

    def info(self, token: str) -> TokenInfo:
        token = Web3.to_checksum_address(token)
        cached: Optional[TokenInfo] = self.cache.get(token)
        if cached is not None:
            return cached

        erc20 = self.w3.eth.contract(address=token, abi=ERC20_ABI)
        info = TokenInfo(
            address=token,
            symbol=self._read(erc20, "symbol", "", str) or DEFAULT_SYMBOL,
            decimals=self._read(erc20, "decimals", DEFAULT_DECIMALS, int),
            name=self._read(erc20, "name", "", str),
        )
        self.cache.put(token, info)
        return info

    def decimals(self, token: str) -> int:
        return self.info(token).decimals

    def symbol(self, token: str) -> str:
        return self.info(token).symbol
