from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class QuoteBody(BaseModel):
    buy_token: str
    taker: str
    sell_token: Optional[str] = Field(default=None, description="defaults to USDC")
    sell_amount: Optional[str] = Field(default=None, description="string integer in sell-token base units")
    amount_usdc: Optional[Decimal] = Field(default=None, gt=0, description="human USDC amount, e.g. 5")
    slippage_bps: Optional[int] = Field(default=None, description="fixed tolerance in bps; omit for progressive tiers")


class SwapTxBody(QuoteBody):
    recipient: Optional[str] = None
    deadline: Optional[int] = None
    estimate_gas: bool = False


class SwapLinkBody(BaseModel):
    tokenAddress: Optional[str] = None
    chainId: Optional[int] = None
    amountUSD: Optional[int] = None


class FrameSwapBody(BaseModel):
    userAddress: Optional[str] = None


class AllowanceQuery(BaseModel):
    token: str
    owner: str
    spender: str


class ProfileIn(BaseModel):
    fid: Optional[int] = None
    username: str = ""
    creator_coin_address: Optional[str] = None
    token_ticker: Optional[str] = None


class BuyAllBody(BaseModel):
    profiles: List[ProfileIn]
    amount_usdc: Decimal = Field(..., gt=0)
    taker: str


class QuoteResponse(BaseModel):
    quote: Dict[str, Any]
    exchange_rate: Optional[str] = None
    high_slippage: bool = False
