"""
Turn a winning quote into an unsigned transaction request.

Each provider settles through a different contract:

- uniswap_v3: SwapRouter02.multicall(deadline, [exactInputSingle(...)])
- uniswap_v4: PoolManager.swap(key, params, hookData)
- zora / 0x: the calldata the quote API already built

The wallet signs and sends; nothing here touches a private key.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from web3 import Web3

from .abis import ERC20_ABI, V3_SWAP_ROUTER02_ABI, V4_POOL_MANAGER_ABI
from .config import Settings
from .errors import InvalidSwapRequest, ProviderError
from .models import Quote, SwapTransaction

logger = logging.getLogger(__name__)

# TickMath bounds; a swap limit must lie strictly inside them
MIN_SQRT_PRICE = 4295128739
MAX_SQRT_PRICE = 1461446703485210103287273052203988822378723970342

HTTP_PROVIDERS = ("zora", "0x")


def now_plus(seconds: int = 300) -> int:
    return int(time.time()) + seconds


def _abi_entry(abi: List[Dict[str, Any]], name: str) -> List[Dict[str, Any]]:
    return [entry for entry in abi if entry.get("name") == name and entry.get("type") == "function"]


class TransactionBuilder:
    def __init__(self, w3: Web3, settings: Settings):
        self.w3 = w3
        self.settings = settings
        self.chain_id = settings.chain_id
        self.swap_router = w3.eth.contract(
            address=Web3.to_checksum_address(settings.v3_swap_router), abi=V3_SWAP_ROUTER02_ABI
        )
        self.pool_manager = (
            w3.eth.contract(address=Web3.to_checksum_address(settings.v4_pool_manager), abi=V4_POOL_MANAGER_ABI)
            if settings.v4_enabled else None
        )

    # ---------- per-provider encoders ----------
    def _build_v3(self, quote: Quote, recipient: str, deadline: int) -> SwapTransaction:
        if not quote.fee_tier:
            raise ProviderError(quote.provider, "v3 quote has no fee tier")
        params = (
            quote.sell_token,
            quote.buy_token,
            int(quote.fee_tier),
            recipient,
            int(quote.sell_amount),
            int(quote.min_buy_amount),
            0,
        )
        inner = self.swap_router.encodeABI(fn_name="exactInputSingle", args=[params])
        data = self.swap_router.encodeABI(
            fn_name="multicall", args=[int(deadline), [Web3.to_bytes(hexstr=inner)]]
        )
        return SwapTransaction(
            to=self.swap_router.address, data=data, value="0", chain_id=self.chain_id, provider=quote.provider,
        )

    def _build_v4(self, quote: Quote) -> SwapTransaction:
        if self.pool_manager is None:
            raise ProviderError(quote.provider, "UNIV4_POOL_MANAGER is not configured")
        if quote.pool_key is None:
            raise ProviderError(quote.provider, "v4 quote has no pool key")
        zero_for_one = quote.pool_key.zero_for_one(quote.sell_token)
        swap_params = (
            zero_for_one,
            -int(quote.sell_amount),  # negative = exact input
            MIN_SQRT_PRICE + 1 if zero_for_one else MAX_SQRT_PRICE - 1,
        )
        data = self.pool_manager.encodeABI(fn_name="swap", args=[quote.pool_key.as_tuple(), swap_params, b""])
        return SwapTransaction(
            to=self.pool_manager.address, data=data, value="0", chain_id=self.chain_id, provider=quote.provider,
        )

    def _build_prebuilt(self, quote: Quote) -> SwapTransaction:
        if quote.tx is None or not quote.tx.to or not quote.tx.data:
            raise ProviderError(quote.provider, "quote carries no transaction data")
        return SwapTransaction(
            to=Web3.to_checksum_address(quote.tx.to),
            data=quote.tx.data,
            value=str(quote.tx.value or "0"),
            chain_id=self.chain_id,
            provider=quote.provider,
            gas=quote.tx.gas,
        )

    # ---------- public API ----------
    def build(self, quote: Quote, recipient: str, deadline: Optional[int] = None) -> SwapTransaction:
        if not Web3.is_address(recipient):
            raise InvalidSwapRequest(f"Invalid recipient: {recipient!r}")
        recipient = Web3.to_checksum_address(recipient)
        deadline = deadline or now_plus(self.settings.swap_deadline_seconds)

        if quote.provider == "uniswap_v3":
            tx = self._build_v3(quote, recipient, deadline)
        elif quote.provider == "uniswap_v4":
            tx = self._build_v4(quote)
        elif quote.provider in HTTP_PROVIDERS:
            tx = self._build_prebuilt(quote)
        else:
            raise ProviderError(quote.provider, "no transaction encoder for provider")

        logger.info(
            "built swap tx provider=%s to=%s amount_in=%s min_out=%s deadline=%s",
            tx.provider, tx.to, quote.sell_amount, quote.min_buy_amount, deadline,
        )
        return tx

    def spender_for(self, quote: Quote, tx: Optional[SwapTransaction] = None) -> str:
        """Contract that pulls the sell token and therefore needs the allowance."""
        if quote.provider == "uniswap_v3":
            return self.swap_router.address
        if quote.provider == "uniswap_v4":
            if self.pool_manager is None:
                raise ProviderError(quote.provider, "UNIV4_POOL_MANAGER is not configured")
            return self.pool_manager.address
        tx = tx or self._build_prebuilt(quote)
        return tx.to

    def approval(self, token: str, spender: str, amount: int) -> SwapTransaction:
        erc20 = self.w3.eth.contract(address=Web3.to_checksum_address(token), abi=ERC20_ABI)
        data = erc20.encodeABI(fn_name="approve", args=[Web3.to_checksum_address(spender), int(amount)])
        return SwapTransaction(to=erc20.address, data=data, value="0", chain_id=self.chain_id, provider="erc20")

    def estimate_gas(self, tx: SwapTransaction, sender: str) -> SwapTransaction:
        try:
            gas = self.w3.eth.estimate_gas({
                "from": Web3.to_checksum_address(sender),
                "to": tx.to,
                "data": tx.data,
                "value": int(tx.value or 0),
            })
            tx.gas = int(gas * 12 // 10)  # +20% headroom
        except Exception as e:
            logger.warning("Gas estimation failed, returning tx without gas: %s", e)
        return tx

    def frame_response(self, tx: SwapTransaction) -> Dict[str, Any]:
        """Farcaster frame transaction payload (eth_sendTransaction)."""
        if tx.provider == "uniswap_v3":
            abi = _abi_entry(V3_SWAP_ROUTER02_ABI, "multicall")
        elif tx.provider == "uniswap_v4":
            abi = _abi_entry(V4_POOL_MANAGER_ABI, "swap")
        else:
            abi = []
        return {
            "chainId": f"eip155:{tx.chain_id}",
            "method": "eth_sendTransaction",
            "params": {"abi": abi, "to": tx.to, "data": tx.data, "value": tx.value},
        }
