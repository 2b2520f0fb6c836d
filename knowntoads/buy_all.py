"""
"Buy all": spend one USDC amount equally across every creator coin listed in
the directory. Profiles come in as plain dicts (fid, username,
creator_coin_address, token_ticker); this module never reads the datastore.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping

from .config import ZERO_ADDRESS
from .errors import InvalidSwapRequest, SwapError
from .models import Quote
from .router import SwapRouter

logger = logging.getLogger(__name__)


@dataclass
class CoinAllocation:
    address: str
    username: str
    symbol: str
    amount: int


@dataclass
class BuyAllPlan:
    coins: List[CoinAllocation]
    total_amount: int

    @property
    def number_of_coins(self) -> int:
        return len(self.coins)


@dataclass
class BuyAllQuote:
    quotes: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[Dict[str, str]] = field(default_factory=list)


def valid_coins(profiles: Iterable[Mapping[str, Any]]) -> List[Dict[str, str]]:
    """Profiles with a usable coin address, deduplicated case-insensitively."""
    seen = set()
    coins = []
    for profile in profiles:
        address = (profile.get("creator_coin_address") or "").strip()
        if not address or address.lower() == ZERO_ADDRESS:
            continue
        key = address.lower()
        if key in seen:
            continue
        seen.add(key)
        username = profile.get("username") or ""
        coins.append({
            "address": address,
            "username": username,
            "symbol": profile.get("token_ticker") or username,
        })
    return coins


def plan_buy_all(profiles: Iterable[Mapping[str, Any]], total_amount: int) -> BuyAllPlan:
    if total_amount <= 0:
        raise InvalidSwapRequest("total amount must be positive")
    coins = valid_coins(profiles)
    if not coins:
        raise InvalidSwapRequest("No valid creator coins found")

    per_coin = total_amount // len(coins)
    if per_coin <= 0:
        raise InvalidSwapRequest(f"{total_amount} base units cannot be split across {len(coins)} coins")
    return BuyAllPlan(
        coins=[CoinAllocation(amount=per_coin, **c) for c in coins],
        total_amount=total_amount,
    )


def quote_buy_all(router: SwapRouter, plan: BuyAllPlan, sell_token: str, taker: str) -> BuyAllQuote:
    """Quote each coin in turn; one coin failing never aborts the batch."""
    result = BuyAllQuote()
    for i, coin in enumerate(plan.coins, start=1):
        logger.info("[buy-all] %d/%d quoting %s (%s)", i, plan.number_of_coins, coin.username, coin.address)
        try:
            quote: Quote = router.quote(sell_token, coin.address, coin.amount, taker)
        except SwapError as e:
            logger.warning("[buy-all] %s failed: %s", coin.username, e)
            result.failed.append({"username": coin.username, "address": coin.address, "error": str(e)})
            continue
        result.quotes.append({"username": coin.username, "symbol": coin.symbol, "quote": quote.to_dict()})
    return result
