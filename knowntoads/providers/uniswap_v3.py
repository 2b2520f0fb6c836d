"""On-chain Uniswap V3 QuoterV2 adapter with fee-tier fallback."""

import logging
from typing import Optional, Sequence

from web3 import Web3
from web3.exceptions import ContractLogicError

from ..abis import V3_QUOTER_V2_ABI
from ..errors import ProviderError
from ..models import Quote
from ..slippage import DEFAULT_SLIPPAGE_BPS, FEE_TIER_NAMES, FEE_TIERS, calculate_minimum_output, progressive_retry
from .base import QuoteProvider

logger = logging.getLogger(__name__)


class UniswapV3QuoteProvider(QuoteProvider):
    name = "uniswap_v3"

    def __init__(
        self,
        w3: Web3,
        quoter_address: str,
        fee_tiers: Sequence[int] = FEE_TIERS,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
    ):
        self.w3 = w3
        self.quoter = w3.eth.contract(address=Web3.to_checksum_address(quoter_address), abi=V3_QUOTER_V2_ABI)
        self.fee_tiers = tuple(fee_tiers)
        self.slippage_bps = slippage_bps

    def _quote_tier(
        self, sell_token: str, buy_token: str, sell_amount: int, fee: int, slippage_bps: int
    ) -> Optional[Quote]:
        params = (sell_token, buy_token, int(sell_amount), int(fee), 0)
        try:
            # QuoterV2 is nonpayable (it reverts internally), eth_call it
            amount_out, _sqrt_after, _ticks, gas_estimate = self.quoter.functions.quoteExactInputSingle(params).call()
        except ContractLogicError as e:
            logger.debug("v3 quoter reverted for fee %s: %s", fee, e)
            return None
        except Exception as e:
            raise ProviderError(self.name, f"quoter call failed at fee {fee}: {e}")

        if int(amount_out) <= 0:
            return None

        logger.info("v3 pool found at %s fee tier", FEE_TIER_NAMES.get(fee, fee))
        return Quote(
            provider=self.name,
            sell_token=sell_token,
            buy_token=buy_token,
            sell_amount=int(sell_amount),
            buy_amount=int(amount_out),
            slippage_bps=slippage_bps,
            min_buy_amount=calculate_minimum_output(int(amount_out), slippage_bps),
            estimated_gas=int(gas_estimate),
            fee_tier=int(fee),
        )

    def quote(
        self, sell_token: str, buy_token: str, sell_amount: int, taker: str, slippage_bps: Optional[int] = None
    ) -> Optional[Quote]:
        bps = self.slippage_bps if slippage_bps is None else slippage_bps
        return progressive_retry(
            lambda fee: self._quote_tier(sell_token, buy_token, sell_amount, fee, bps),
            self.fee_tiers,
            label="uniswap v3 quote",
        )
