"""Direct Uniswap V4 adapter: pool detection + V4 Quoter."""

import logging
from typing import Optional

from web3 import Web3
from web3.exceptions import ContractLogicError

from ..abis import V4_QUOTER_ABI
from ..errors import ProviderError
from ..models import Quote
from ..pools import PoolDetector
from ..slippage import DEFAULT_SLIPPAGE_BPS, calculate_minimum_output
from .base import QuoteProvider

logger = logging.getLogger(__name__)

MAX_UINT128 = 2 ** 128 - 1


class UniswapV4QuoteProvider(QuoteProvider):
    name = "uniswap_v4"

    def __init__(
        self,
        w3: Web3,
        quoter_address: str,
        pool_manager: Optional[str],
        pools: PoolDetector,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
    ):
        self.w3 = w3
        self.quoter = w3.eth.contract(address=Web3.to_checksum_address(quoter_address), abi=V4_QUOTER_ABI)
        self.pool_manager = pool_manager
        self.pools = pools
        self.slippage_bps = slippage_bps

    @property
    def enabled(self) -> bool:
        return bool(self.pool_manager)

    def quote(
        self, sell_token: str, buy_token: str, sell_amount: int, taker: str, slippage_bps: Optional[int] = None
    ) -> Optional[Quote]:
        if not self.enabled:
            raise ProviderError(self.name, "UNIV4_POOL_MANAGER is not configured")
        if sell_amount > MAX_UINT128:
            raise ProviderError(self.name, "sell amount exceeds uint128")

        detection = self.pools.detect(buy_token)
        pool = next((p for p in detection.pools if p.contains(sell_token)), None)
        if pool is None:
            logger.info("v4: no %s/%s pool among %d detected", sell_token, buy_token, len(detection.pools))
            return None

        zero_for_one = pool.zero_for_one(sell_token)
        params = (pool.as_tuple(), zero_for_one, int(sell_amount), b"")
        try:
            amount_out, gas_estimate = self.quoter.functions.quoteExactInputSingle(params).call()
        except ContractLogicError as e:
            logger.info("v4 quoter reverted: %s", e)
            return None
        except Exception as e:
            raise ProviderError(self.name, f"quoter call failed: {e}")

        if int(amount_out) <= 0:
            return None

        bps = self.slippage_bps if slippage_bps is None else slippage_bps
        return Quote(
            provider=self.name,
            sell_token=sell_token,
            buy_token=buy_token,
            sell_amount=int(sell_amount),
            buy_amount=int(amount_out),
            slippage_bps=bps,
            min_buy_amount=calculate_minimum_output(int(amount_out), bps),
            estimated_gas=int(gas_estimate),
            fee_tier=pool.fee,
            pool_key=pool,
        )
