"""Swap constants, request validation and the DefiLlama deep link."""

import re
from urllib.parse import urlencode

from .config import BASE_CHAIN_ID, DEFAULT_USDC
from .errors import InvalidSwapRequest

SWAP_BASE_URL = "https://swap.defillama.com/"
SWAP_AMOUNTS_USDC = (1, 5, 10)
TOKEN_ADDRESS_REGEX = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_valid_token_address(address) -> bool:
    return isinstance(address, str) and bool(TOKEN_ADDRESS_REGEX.match(address))


def is_valid_chain_id(chain_id) -> bool:
    return chain_id == BASE_CHAIN_ID


def is_valid_swap_amount(amount) -> bool:
    return not isinstance(amount, bool) and amount in SWAP_AMOUNTS_USDC


def build_swap_link(token_address, chain_id, amount_usd, usdc: str = DEFAULT_USDC) -> str:
    if not token_address:
        raise InvalidSwapRequest("Token address is required")
    if not chain_id:
        raise InvalidSwapRequest("Chain ID is required")
    if not amount_usd:
        raise InvalidSwapRequest("Amount is required")
    if not is_valid_chain_id(chain_id):
        raise InvalidSwapRequest(f"Only Base chain ({BASE_CHAIN_ID}) is supported")
    if not is_valid_token_address(token_address):
        raise InvalidSwapRequest("Invalid token address format")
    if not is_valid_swap_amount(amount_usd):
        raise InvalidSwapRequest("Amount must be 1, 5, or 10 USDC")

    query = urlencode({"chain": "base", "from": usdc, "to": token_address, "amount": amount_usd})
    return f"{SWAP_BASE_URL}?{query}"
