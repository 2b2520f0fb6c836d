from .base import QuoteProvider
from .uniswap_v3 import UniswapV3QuoteProvider
from .uniswap_v4 import UniswapV4QuoteProvider
from .zerox import ZeroExQuoteProvider
from .zora import ZoraQuoteProvider

__all__ = [
    "QuoteProvider",
    "UniswapV3QuoteProvider",
    "UniswapV4QuoteProvider",
    "ZeroExQuoteProvider",
    "ZoraQuoteProvider",
]
