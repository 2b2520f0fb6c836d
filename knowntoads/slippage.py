"""
Slippage math and the progressive retry loop.

Long-tail creator coins often sit in shallow pools, so a quote that fails at
a tight tolerance (or in the most common fee tier) is retried with the next
value from an ordered list until one succeeds.
"""

import logging
from typing import Callable, Iterable, Optional, TypeVar

from .errors import InvalidSwapRequest, ProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")

BPS = 10_000

# Zora trade tiers: 3% -> 5% -> 8%
SLIPPAGE_TIERS_BPS = (300, 500, 800)
# 0x tiers for shallow Uniswap V4 pools: 5% -> 10% -> 15%
ZEROX_SLIPPAGE_TIERS_BPS = (500, 1000, 1500)
# Uniswap V3 fee tiers in order of likelihood (0.3%, 0.05%, 1%, 0.01%)
FEE_TIERS = (3000, 500, 10000, 100)

FEE_TIER_NAMES = {100: "0.01%", 500: "0.05%", 3000: "0.3%", 10000: "1%"}

DEFAULT_SLIPPAGE_BPS = 1000
HIGH_SLIPPAGE_WARNING_BPS = 1000


def validate_slippage_bps(slippage_bps: int) -> int:
    if isinstance(slippage_bps, bool) or not isinstance(slippage_bps, int):
        raise InvalidSwapRequest(f"slippage must be an integer number of bps, got {slippage_bps!r}")
    if slippage_bps < 0 or slippage_bps > BPS:
        raise InvalidSwapRequest(f"slippage must be within [0, {BPS}] bps, got {slippage_bps}")
    return slippage_bps


def calculate_minimum_output(expected_output: int, slippage_bps: int = DEFAULT_SLIPPAGE_BPS) -> int:
    """amountOutMinimum = expected * (1 - slippage), rounded down."""
    validate_slippage_bps(slippage_bps)
    if expected_output < 0:
        raise InvalidSwapRequest("expected output cannot be negative")
    return expected_output * (BPS - slippage_bps) // BPS


def bps_to_decimal(slippage_bps: int) -> str:
    """Render bps the way the quote APIs want it ("0.05" for 500)."""
    whole, rem = divmod(validate_slippage_bps(slippage_bps), BPS)
    if rem == 0:
        return str(whole)
    return f"{whole}.{rem:04d}".rstrip("0")


def format_slippage(slippage_bps: int) -> str:
    return f"{slippage_bps / 100:.1f}%"


def is_high_slippage(slippage_bps: int) -> bool:
    return slippage_bps > HIGH_SLIPPAGE_WARNING_BPS


def progressive_retry(
    attempt: Callable[[int], Optional[T]],
    tiers: Iterable[int],
    label: str = "quote",
) -> Optional[T]:
    """
    Call attempt(tier) for each tier in order and return the first non-None
    result. A ProviderError only ends the current tier; other exceptions
    propagate. Returns None once every tier has been tried.
    """
    tiers = list(tiers)
    for i, tier in enumerate(tiers, start=1):
        logger.info("%s: attempt %d/%d with tier %s", label, i, len(tiers), tier)
        try:
            result = attempt(tier)
        except ProviderError as e:
            logger.warning("%s: tier %s failed: %s", label, tier, e)
            continue
        if result is not None:
            logger.info("%s: succeeded at tier %s", label, tier)
            return result
        logger.info("%s: no liquidity at tier %s", label, tier)
    logger.info("%s: failed at all %d tiers", label, len(tiers))
    return None
