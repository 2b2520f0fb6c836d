"""
Zora swap API adapter.

POST {ZORA_API_BASE_URL}/quote returns both the quote and ready-to-send
calldata for Zora creator/post coins.
"""

import logging
from typing import Any, Dict, Optional, Sequence

import requests

from ..errors import ProviderError
from ..models import PrebuiltTx, Quote
from ..slippage import SLIPPAGE_TIERS_BPS, calculate_minimum_output, progressive_retry
from .base import QuoteProvider, amount_field, to_int

logger = logging.getLogger(__name__)

# 400/404 from Zora mean "no route", not an outage
NO_LIQUIDITY_STATUSES = (400, 404)


class ZoraQuoteProvider(QuoteProvider):
    name = "zora"

    def __init__(
        self,
        base_url: str,
        chain_id: int,
        api_key: Optional[str] = None,
        timeout: float = 15,
        slippage_tiers: Sequence[int] = SLIPPAGE_TIERS_BPS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.chain_id = chain_id
        self.api_key = api_key
        self.timeout = timeout
        self.slippage_tiers = tuple(slippage_tiers)
        self.session = session or requests.Session()
        if not api_key:
            logger.warning("ZORA_API_KEY not set; Zora quotes may be rate limited")

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["api-key"] = self.api_key
        return headers

    def request_body(self, sell_token: str, buy_token: str, sell_amount: int, taker: str, slippage_bps: int) -> Dict[str, Any]:
        return {
            "tokenIn": {"type": "erc20", "address": sell_token},
            "tokenOut": {"type": "erc20", "address": buy_token},
            "amountIn": str(sell_amount),
            "chainId": self.chain_id,
            "sender": taker,
            "recipient": taker,
            "slippage": slippage_bps / 10_000,
        }

    def _quote_once(self, sell_token: str, buy_token: str, sell_amount: int, taker: str, slippage_bps: int) -> Optional[Quote]:
        body = self.request_body(sell_token, buy_token, sell_amount, taker, slippage_bps)
        try:
            resp = self.session.post(
                f"{self.base_url}/quote", json=body, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ProviderError(self.name, f"request failed: {e}")

        logger.debug("zora quote status=%s slippage_bps=%s", resp.status_code, slippage_bps)
        if resp.status_code in NO_LIQUIDITY_STATUSES:
            logger.info("zora: no route (%s) %s", resp.status_code, resp.text[:200])
            return None
        if not resp.ok:
            raise ProviderError(self.name, f"HTTP {resp.status_code}: {resp.text[:200]}")

        try:
            data = resp.json()
        except ValueError:
            raise ProviderError(self.name, "response is not JSON")
        if not isinstance(data, dict):
            raise ProviderError(self.name, "unexpected response shape")

        buy_amount = amount_field(data, self.name)
        if buy_amount <= 0:
            return None

        tx = None
        if data.get("to") and data.get("data"):
            tx = PrebuiltTx(
                to=data["to"],
                data=data["data"],
                value=str(data.get("value") or "0"),
                gas=to_int(data.get("gas")) or None,
            )

        return Quote(
            provider=self.name,
            sell_token=sell_token,
            buy_token=buy_token,
            sell_amount=sell_amount,
            buy_amount=buy_amount,
            slippage_bps=slippage_bps,
            min_buy_amount=calculate_minimum_output(buy_amount, slippage_bps),
            estimated_gas=to_int(data.get("gas")),
            price=None,
            tx=tx,
        )

    def quote(
        self, sell_token: str, buy_token: str, sell_amount: int, taker: str, slippage_bps: Optional[int] = None
    ) -> Optional[Quote]:
        # a caller-chosen tolerance is tried alone
        tiers = self.slippage_tiers if slippage_bps is None else (slippage_bps,)
        return progressive_retry(
            lambda bps: self._quote_once(sell_token, buy_token, sell_amount, taker, bps),
            tiers,
            label="zora quote",
        )
