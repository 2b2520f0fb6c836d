"""
0x swap API adapter.

GET {ZEROX_API_BASE_URL}/swap/v1/quote, retried over increasing slippage
percentages because most creator coins trade in shallow V4 pools.
"""

import logging
from typing import Any, Dict, Optional, Sequence

import requests

from ..errors import ProviderError
from ..models import PrebuiltTx, Quote
from ..slippage import ZEROX_SLIPPAGE_TIERS_BPS, bps_to_decimal, calculate_minimum_output, progressive_retry
from .base import QuoteProvider, amount_field, to_int

logger = logging.getLogger(__name__)

QUOTE_PATH = "/swap/v1/quote"


class ZeroExQuoteProvider(QuoteProvider):
    name = "0x"

    def __init__(
        self,
        base_url: str,
        chain_id: int,
        api_key: Optional[str] = None,
        timeout: float = 15,
        slippage_tiers: Sequence[int] = ZEROX_SLIPPAGE_TIERS_BPS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.chain_id = chain_id
        self.api_key = api_key
        self.timeout = timeout
        self.slippage_tiers = tuple(slippage_tiers)
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["0x-api-key"] = self.api_key
        return headers

    def query_params(self, sell_token: str, buy_token: str, sell_amount: int, taker: str, slippage_bps: int) -> Dict[str, Any]:
        return {
            "chainId": str(self.chain_id),
            "sellToken": sell_token,
            "buyToken": buy_token,
            "sellAmount": str(sell_amount),
            "takerAddress": taker,
            "slippagePercentage": bps_to_decimal(slippage_bps),
        }

    def _quote_once(self, sell_token: str, buy_token: str, sell_amount: int, taker: str, slippage_bps: int) -> Optional[Quote]:
        params = self.query_params(sell_token, buy_token, sell_amount, taker, slippage_bps)
        try:
            resp = self.session.get(
                f"{self.base_url}{QUOTE_PATH}", params=params, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ProviderError(self.name, f"request failed: {e}")

        if not resp.ok:
            # 404 is "no liquidity at this slippage"; anything else is retried at the next tier too
            logger.info("0x API error at %s bps: %s %s", slippage_bps, resp.status_code, resp.text[:200])
            if resp.status_code == 404:
                return None
            raise ProviderError(self.name, f"HTTP {resp.status_code}")

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
            estimated_gas=to_int(data.get("estimatedGas") or data.get("gas")),
            price=data.get("price"),
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
            label="0x quote",
        )
