from typing import List, Optional


class SwapError(Exception):
    """Base class for everything the swap backend raises on purpose."""


class InvalidSwapRequest(SwapError, ValueError):
    pass


class ProviderError(SwapError):
    """An upstream failed for a reason other than "no liquidity"."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class NoRouteError(SwapError):
    """Every configured provider was tried and none could quote the pair."""

    def __init__(self, sell_token: str, buy_token: str, errors: Optional[List[str]] = None):
        self.sell_token = sell_token
        self.buy_token = buy_token
        self.errors = list(errors or [])
        detail = "; ".join(self.errors) if self.errors else "no providers configured"
        super().__init__(f"No route from {sell_token} to {buy_token}: {detail}")
