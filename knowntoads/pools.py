"""
Uniswap V4 pool discovery for creator coins.

Scans recent PoolManager Initialize events for pools containing the token,
then falls back to Zora's pool endpoint. Results (including "no pool") are
cached per token for POOL_CACHE_TTL seconds; an empty result is not cached
when either lookup errored.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import requests
from web3 import Web3

from .abis import V4_POOL_MANAGER_ABI
from .cache import TTLCache
from .config import ZERO_ADDRESS
from .models import PoolKey

logger = logging.getLogger(__name__)


@dataclass
class PoolDetection:
    found: bool
    pools: List[PoolKey] = field(default_factory=list)

    @property
    def primary(self) -> Optional[PoolKey]:
        return self.pools[0] if self.pools else None


def pool_key_from_payload(payload: dict) -> Optional[PoolKey]:
    try:
        return PoolKey(
            currency0=Web3.to_checksum_address(payload["currency0"]),
            currency1=Web3.to_checksum_address(payload["currency1"]),
            fee=int(payload["fee"]),
            tick_spacing=int(payload["tickSpacing"]),
            hooks=Web3.to_checksum_address(payload.get("hooks") or ZERO_ADDRESS),
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Malformed pool key payload %s: %s", payload, e)
        return None


class PoolDetector:
    def __init__(
        self,
        w3: Web3,
        pool_manager: Optional[str],
        zora_api_base_url: str,
        chain_id: int,
        zora_api_key: Optional[str] = None,
        scan_blocks: int = 10_000,
        cache_ttl: float = 24 * 60 * 60,
        timeout: float = 15,
        session: Optional[requests.Session] = None,
    ):
        self.w3 = w3
        self.pool_manager = (
            w3.eth.contract(address=Web3.to_checksum_address(pool_manager), abi=V4_POOL_MANAGER_ABI)
            if pool_manager else None
        )
        self.zora_api_base_url = zora_api_base_url.rstrip("/")
        self.chain_id = chain_id
        self.zora_api_key = zora_api_key
        self.scan_blocks = scan_blocks
        self.timeout = timeout
        self.session = session or requests.Session()
        self.cache = TTLCache(cache_ttl)

    def _scan_initialize_events(self, token: str) -> List[PoolKey]:
        if self.pool_manager is None:
            return []
        latest = self.w3.eth.block_number
        from_block = max(0, latest - self.scan_blocks)
        logs = self.pool_manager.events.Initialize.get_logs(fromBlock=from_block, toBlock="latest")
        logger.info("Found %d Initialize events in blocks %d..%d", len(logs), from_block, latest)

        pools = []
        for log in logs:
            args = log["args"]
            key = PoolKey(
                currency0=args["currency0"],
                currency1=args["currency1"],
                fee=int(args["fee"]),
                tick_spacing=int(args["tickSpacing"]),
                hooks=args["hooks"],
            )
            if key.contains(token):
                pools.append(key)
        return pools

    def _zora_pool(self, token: str) -> List[PoolKey]:
        headers = {"Content-Type": "application/json"}
        if self.zora_api_key:
            headers["api-key"] = self.zora_api_key
        url = f"{self.zora_api_base_url}/pool/{self.chain_id}/{token}"
        resp = self.session.get(url, headers=headers, timeout=self.timeout)
        if not resp.ok:
            logger.info("Zora pool API returned %s for %s", resp.status_code, token)
            return []
        payload = resp.json()
        if not isinstance(payload, dict) or not isinstance(payload.get("poolKey"), dict):
            return []
        key = pool_key_from_payload(payload["poolKey"])
        return [key] if key else []

    def detect(self, token: str) -> PoolDetection:
        token = Web3.to_checksum_address(token)
        cached = self.cache.get(token)
        if cached is not None:
            logger.info("Using cached pools for %s (age %.0fs)", token, self.cache.age(token) or 0)
            return PoolDetection(found=bool(cached), pools=list(cached))

        pools: List[PoolKey] = []
        upstream_failed = False
        try:
            pools = self._scan_initialize_events(token)
        except Exception as e:
            upstream_failed = True
            logger.warning("On-chain pool scan failed for %s: %s", token, e)

        if not pools:
            logger.info("No on-chain pool for %s, trying Zora pool API", token)
            try:
                pools = self._zora_pool(token)
            except (requests.RequestException, ValueError) as e:
                upstream_failed = True
                logger.warning("Zora pool API failed for %s: %s", token, e)

        # an empty answer only counts as "no pool" when both lookups completed
        if pools or not upstream_failed:
            self.cache.put(token, pools)
        else:
            logger.info("Not caching empty pool result for %s after upstream errors", token)
        logger.info("Found %d pools for %s", len(pools), token)
        return PoolDetection(found=bool(pools), pools=pools)

    def clear(self, token: Optional[str] = None) -> None:
        self.cache.clear(token)
