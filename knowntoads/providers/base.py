from abc import ABC, abstractmethod
from typing import Any, Optional

from web3 import Web3

from ..errors import InvalidSwapRequest, ProviderError
from ..models import Quote


def checksum(address: Any, field: str = "address") -> str:
    if not isinstance(address, str) or not Web3.is_address(address):
        raise InvalidSwapRequest(f"Invalid {field}: {address!r}")
    return Web3.to_checksum_address(address)


def positive_amount(amount: Any, field: str = "sell_amount") -> int:
    try:
        value = int(amount)
    except (TypeError, ValueError):
        raise InvalidSwapRequest(f"{field} must be an integer in base units, got {amount!r}")
    if isinstance(amount, float) and amount != value:
        raise InvalidSwapRequest(f"{field} must be an integer in base units, got {amount!r}")
    if value <= 0:
        raise InvalidSwapRequest(f"{field} must be positive, got {value}")
    return value


def to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def amount_field(data: dict, provider: str, field: str = "buyAmount") -> int:
    """Integer amount from an API body; missing or non-integer values are a malformed response."""
    value = data.get(field)
    if value is None or value == "" or isinstance(value, bool):
        raise ProviderError(provider, f"response has no {field}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ProviderError(provider, f"{field} is not an integer: {value!r}")


class QuoteProvider(ABC):
    """
    One upstream quote source. quote() returns a normalized Quote, or None
    when the upstream has no liquidity for the pair. Hard failures raise
    ProviderError so the router can fall through to the next provider.

    slippage_bps, when given, is the caller's fixed tolerance: it replaces
    the progressive tier list, or the default used for min_buy_amount.
    """

    name: str = ""

    @property
    def enabled(self) -> bool:
        return True

    @abstractmethod
    def quote(
        self, sell_token: str, buy_token: str, sell_amount: int, taker: str, slippage_bps: Optional[int] = None
    ) -> Optional[Quote]:
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
