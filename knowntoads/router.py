"""
Multi-provider swap router.

Tries quote providers in a fixed priority order and returns the first quote,
tagged with the provider that produced it. A provider that has no liquidity
(returns None) or fails (raises ProviderError) is skipped; if none succeeds
the caller gets a NoRouteError listing what each provider said.
"""

import logging
from typing import List, Optional, Sequence

import requests
from web3 import Web3

from .config import Settings
from .errors import InvalidSwapRequest, NoRouteError, ProviderError
from .models import Quote
from .pools import PoolDetector
from .providers import (
    QuoteProvider,
    UniswapV3QuoteProvider,
    UniswapV4QuoteProvider,
    ZeroExQuoteProvider,
    ZoraQuoteProvider,
)
from .providers.base import checksum, positive_amount
from .slippage import validate_slippage_bps

logger = logging.getLogger(__name__)

PROVIDER_NAMES = ("zora", "uniswap_v3", "uniswap_v4", "0x")


class SwapRouter:
    def __init__(self, providers: Sequence[QuoteProvider]):
        self._all = list(providers)
        self.providers: List[QuoteProvider] = [p for p in self._all if p.enabled]
        skipped = [p.name for p in self._all if not p.enabled]
        if skipped:
            logger.info("Router skipping disabled providers: %s", ", ".join(skipped))

    @property
    def provider_names(self) -> List[str]:
        return [p.name for p in self.providers]

    def quote(
        self, sell_token: str, buy_token: str, sell_amount, taker: str, slippage_bps: Optional[int] = None
    ) -> Quote:
        sell_token = checksum(sell_token, "sell_token")
        buy_token = checksum(buy_token, "buy_token")
        taker = checksum(taker, "taker")
        sell_amount = positive_amount(sell_amount)
        if sell_token == buy_token:
            raise InvalidSwapRequest("sell_token and buy_token must differ")
        if slippage_bps is not None:
            validate_slippage_bps(slippage_bps)

        errors: List[str] = []
        for provider in self.providers:
            logger.info("Quoting %s -> %s (%s) via %s", sell_token, buy_token, sell_amount, provider.name)
            try:
                quote = provider.quote(sell_token, buy_token, sell_amount, taker, slippage_bps=slippage_bps)
            except ProviderError as e:
                logger.warning("Provider %s failed, falling back: %s", provider.name, e)
                errors.append(str(e))
                continue
            if quote is None:
                logger.info("Provider %s has no liquidity, falling back", provider.name)
                errors.append(f"{provider.name}: no liquidity")
                continue
            quote.provider = provider.name
            logger.info(
                "Route found via %s: buy_amount=%s min=%s slippage_bps=%s",
                provider.name, quote.buy_amount, quote.min_buy_amount, quote.slippage_bps,
            )
            return quote

        raise NoRouteError(sell_token, buy_token, errors)


def build_router(
    settings: Settings,
    w3: Web3,
    session: Optional[requests.Session] = None,
    pools: Optional[PoolDetector] = None,
) -> SwapRouter:
    """Wire the providers named in settings.providers, in that order."""
    session = session or requests.Session()
    providers: List[QuoteProvider] = []
    for name in settings.providers:
        if name == "zora":
            providers.append(ZoraQuoteProvider(
                settings.zora_api_base_url, settings.chain_id, settings.zora_api_key,
                timeout=settings.http_timeout, session=session,
            ))
        elif name == "uniswap_v3":
            providers.append(UniswapV3QuoteProvider(w3, settings.v3_quoter))
        elif name == "uniswap_v4":
            if pools is None:
                pools = build_pool_detector(settings, w3, session)
            providers.append(UniswapV4QuoteProvider(
                w3, settings.v4_quoter,
                settings.v4_pool_manager if settings.v4_enabled else None,
                pools,
            ))
        elif name == "0x":
            providers.append(ZeroExQuoteProvider(
                settings.zerox_api_base_url, settings.chain_id, settings.zerox_api_key,
                timeout=settings.http_timeout, session=session,
            ))
        else:
            raise ValueError(f"Unknown provider {name!r}; expected one of {', '.join(PROVIDER_NAMES)}")
    return SwapRouter(providers)


def build_pool_detector(settings: Settings, w3: Web3, session: Optional[requests.Session] = None) -> PoolDetector:
    return PoolDetector(
        w3,
        settings.v4_pool_manager if settings.v4_enabled else None,
        settings.zora_api_base_url,
        settings.chain_id,
        zora_api_key=settings.zora_api_key,
        scan_blocks=settings.pool_scan_blocks,
        cache_ttl=settings.pool_cache_ttl,
        timeout=settings.http_timeout,
        session=session,
    )
