"""
Service configuration.

Everything is read from the environment (optionally via a local .env file).
See .env.example at the repository root for the full list of variables.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv
from web3 import Web3

# ---------- Base mainnet defaults ----------
BASE_CHAIN_ID = 8453
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DEFAULT_RPC_URL = "https://mainnet.base.org"
DEFAULT_USDC = Web3.to_checksum_address("0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913")
DEFAULT_V3_QUOTER = Web3.to_checksum_address("0x3d4e44Eb1374240CE5F1B871ab261CD16335B76a")        # QuoterV2
DEFAULT_V3_SWAP_ROUTER = Web3.to_checksum_address("0x2626664c2603336E57B271c5C0b26F421741e481")   # SwapRouter02
DEFAULT_V4_QUOTER = Web3.to_checksum_address("0x0d5e0f971ed27fbff6c2837bf31316121532048d")
DEFAULT_ZORA_API_BASE_URL = "https://api-sdk.zora.engineering"
DEFAULT_ZEROX_API_BASE_URL = "https://api.0x.org"
DEFAULT_PROVIDERS = "zora,uniswap_v3,uniswap_v4,0x"

USDC_DECIMALS = 6


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _address_env(name: str, default: Optional[str]) -> Optional[str]:
    raw = os.getenv(name) or default
    if not raw:
        return None
    return Web3.to_checksum_address(raw.strip())


@dataclass
class Settings:
    rpc_url: str = DEFAULT_RPC_URL
    chain_id: int = BASE_CHAIN_ID
    usdc: str = DEFAULT_USDC
    v3_quoter: str = DEFAULT_V3_QUOTER
    v3_swap_router: str = DEFAULT_V3_SWAP_ROUTER
    v4_quoter: str = DEFAULT_V4_QUOTER
    v4_pool_manager: Optional[str] = None
    zora_api_base_url: str = DEFAULT_ZORA_API_BASE_URL
    zora_api_key: Optional[str] = None
    zerox_api_base_url: str = DEFAULT_ZEROX_API_BASE_URL
    zerox_api_key: Optional[str] = None
    providers: List[str] = field(default_factory=lambda: DEFAULT_PROVIDERS.split(","))
    http_timeout: int = 15
    swap_deadline_seconds: int = 1200
    pool_scan_blocks: int = 10_000
    pool_cache_ttl: int = 24 * 60 * 60
    token_cache_ttl: int = 24 * 60 * 60
    api_key: Optional[str] = None
    rate_limit: int = 60
    rate_window: int = 60
    rate_table: Optional[str] = None
    log_level: str = "INFO"

    @property
    def v4_enabled(self) -> bool:
        return bool(self.v4_pool_manager) and self.v4_pool_manager != ZERO_ADDRESS

    @staticmethod
    def from_env() -> "Settings":
        load_dotenv()
        providers = [
            p.strip() for p in os.getenv("ROUTER_PROVIDERS", DEFAULT_PROVIDERS).split(",") if p.strip()
        ]
        return Settings(
            rpc_url=os.getenv("RPC_URL", DEFAULT_RPC_URL),
            chain_id=_int_env("CHAIN_ID", BASE_CHAIN_ID),
            usdc=_address_env("USDC", DEFAULT_USDC),
            v3_quoter=_address_env("UNIV3_QUOTER", DEFAULT_V3_QUOTER),
            v3_swap_router=_address_env("UNIV3_SWAP_ROUTER", DEFAULT_V3_SWAP_ROUTER),
            v4_quoter=_address_env("UNIV4_QUOTER", DEFAULT_V4_QUOTER),
            v4_pool_manager=_address_env("UNIV4_POOL_MANAGER", None),
            zora_api_base_url=os.getenv("ZORA_API_BASE_URL", DEFAULT_ZORA_API_BASE_URL).rstrip("/"),
            zora_api_key=os.getenv("ZORA_API_KEY") or None,
            zerox_api_base_url=os.getenv("ZEROX_API_BASE_URL", DEFAULT_ZEROX_API_BASE_URL).rstrip("/"),
            zerox_api_key=os.getenv("ZEROX_API_KEY") or None,
            providers=providers,
            http_timeout=_int_env("HTTP_TIMEOUT", 15),
            swap_deadline_seconds=_int_env("SWAP_DEADLINE_SECONDS", 1200),
            pool_scan_blocks=_int_env("POOL_SCAN_BLOCKS", 10_000),
            pool_cache_ttl=_int_env("POOL_CACHE_TTL", 24 * 60 * 60),
            token_cache_ttl=_int_env("TOKEN_CACHE_TTL", 24 * 60 * 60),
            api_key=os.getenv("API_KEY") or None,
            rate_limit=_int_env("RATE_LIMIT", 60),
            rate_window=_int_env("RATE_WINDOW", 60),
            rate_table=os.getenv("RATE_TABLE") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
