"""
KnownToads swap backend (FastAPI).

Run locally:   uvicorn knowntoads.app:app --reload
AWS Lambda:    set the handler to `knowntoads.app.lambda_handler`

Quotes USDC -> creator coin swaps on Base across Zora, Uniswap V3/V4 and 0x
and hands back unsigned transactions for the user's wallet to sign.
"""

import logging
import os
import time
from decimal import Decimal
from functools import lru_cache

import boto3
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum
from web3 import Web3

from . import __version__
from .abis import ERC20_ABI
from .buy_all import plan_buy_all, quote_buy_all
from .config import USDC_DECIMALS, Settings
from .errors import InvalidSwapRequest, NoRouteError, ProviderError, SwapError
from .links import build_swap_link
from .providers.base import checksum
from .router import SwapRouter, build_router
from .schemas import (
    AllowanceQuery,
    BuyAllBody,
    FrameSwapBody,
    QuoteBody,
    QuoteResponse,
    SwapLinkBody,
    SwapTxBody,
)
from .slippage import is_high_slippage
from .tokens import TokenInfoService, format_exchange_rate, to_base_units
from .transactions import TransactionBuilder

# ---------- Logging / Observability ----------
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format='%(asctime)s %(levelname)s %(name)s %(message)s'
)
logger = logging.getLogger("knowntoads")


# ---------- Service wiring ----------
@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache()
def _web3(rpc_url: str, timeout: int) -> Web3:
    return Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))


def get_web3(settings: Settings = Depends(get_settings)) -> Web3:
    return _web3(settings.rpc_url, settings.http_timeout)


_services = {}


def get_router(settings: Settings = Depends(get_settings), w3: Web3 = Depends(get_web3)) -> SwapRouter:
    if "router" not in _services:
        _services["router"] = build_router(settings, w3)
    return _services["router"]


def get_builder(settings: Settings = Depends(get_settings), w3: Web3 = Depends(get_web3)) -> TransactionBuilder:
    if "builder" not in _services:
        _services["builder"] = TransactionBuilder(w3, settings)
    return _services["builder"]


def get_tokens(settings: Settings = Depends(get_settings), w3: Web3 = Depends(get_web3)) -> TokenInfoService:
    if "tokens" not in _services:
        _services["tokens"] = TokenInfoService(w3, settings.token_cache_ttl)
    return _services["tokens"]


@lru_cache()
def _rate_table(name: str):
    return boto3.resource("dynamodb").Table(name)


def _http_error(e: SwapError) -> HTTPException:
    if isinstance(e, InvalidSwapRequest):
        return HTTPException(400, str(e))
    if isinstance(e, NoRouteError):
        return HTTPException(404, {"error": "No liquidity available for this token", "providers": e.errors})
    if isinstance(e, ProviderError):
        return HTTPException(502, str(e))
    return HTTPException(500, str(e))


def _sell_amount(body: QuoteBody, settings: Settings) -> int:
    sell_token = body.sell_token or settings.usdc
    if body.sell_amount is not None:
        try:
            return int(body.sell_amount)
        except ValueError:
            raise InvalidSwapRequest(f"sell_amount must be an integer string, got {body.sell_amount!r}")
    if body.amount_usdc is not None:
        if Web3.is_address(sell_token) and Web3.to_checksum_address(sell_token) != settings.usdc:
            raise InvalidSwapRequest("amount_usdc can only be used when selling USDC; pass sell_amount")
        return to_base_units(body.amount_usdc, USDC_DECIMALS)
    raise InvalidSwapRequest("Either sell_amount or amount_usdc is required")


# ---------- Auth & Rate Limiting ----------
_rate_cache = {}


async def auth_dep(request: Request, settings: Settings = Depends(get_settings)):
    if not settings.api_key:
        return  # open in dev if API_KEY not set
    key = request.headers.get('X-API-Key')
    if key != settings.api_key:
        raise HTTPException(status_code=401, detail='Unauthorized')


def _rate_key(key: str) -> str:
    return f"rate::{key}"


async def rate_limit_dep(request: Request, settings: Settings = Depends(get_settings)):
    # key by API key if present, else by client host
    ident = (request.headers.get('X-API-Key') or (request.client.host if request.client else None) or 'anon')
    now = int(time.time())
    window = now // settings.rate_window

    if settings.rate_table:  # distributed limit
        rk = _rate_key(ident)
        try:
            table = _rate_table(settings.rate_table)
            resp = table.update_item(
                Key={'pk': rk},
                UpdateExpression='SET #w = if_not_exists(#w, :w), #c = if_not_exists(#c, :zero) + :one',
                ExpressionAttributeNames={'#w': 'window', '#c': 'count'},
                ExpressionAttributeValues={':w': window, ':zero': 0, ':one': 1},
                ReturnValues='ALL_NEW'
            )
            item = resp['Attributes']
            # reset if window changed
            if item['window'] != window:
                table.put_item(Item={'pk': rk, 'window': window, 'count': 1})
                count = 1
            else:
                count = item['count']
            if count > settings.rate_limit:
                raise HTTPException(429, f'Rate limit exceeded: {count}/{settings.rate_limit} in {settings.rate_window}s')
            return
        except HTTPException:
            raise
        except Exception as e:
            logger.warning('Rate table error, using local limiter: %s', e)
    # local limiter
    key = (ident, window)
    cnt = _rate_cache.get(key, 0) + 1
    _rate_cache[key] = cnt
    # garbage collect old window
    for (ident_k, win_k) in list(_rate_cache.keys()):
        if win_k != window:
            _rate_cache.pop((ident_k, win_k), None)
    if cnt > settings.rate_limit:
        raise HTTPException(429, f'Rate limit exceeded: {cnt}/{settings.rate_limit} in {settings.rate_window}s')


# ---------- FastAPI ----------
app = FastAPI(title="KnownToads Swap Backend", version=__version__, dependencies=[Depends(auth_dep), Depends(rate_limit_dep)])
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
        return response
    finally:
        duration = (time.time() - start) * 1000
        logger.info("%s %s %s %.2fms", request.method, request.url.path, request.client.host if request.client else '-', duration)


@app.get("/health")
def health(settings: Settings = Depends(get_settings), router: SwapRouter = Depends(get_router)):
    return {
        "ok": True,
        "chain_id": settings.chain_id,
        "providers": router.provider_names,
    }


@app.get("/config")
def config(settings: Settings = Depends(get_settings), router: SwapRouter = Depends(get_router)):
    return {
        "USDC": settings.usdc,
        "UNIV3_QUOTER": settings.v3_quoter,
        "UNIV3_SWAP_ROUTER": settings.v3_swap_router,
        "UNIV4_QUOTER": settings.v4_quoter,
        "UNIV4_POOL_MANAGER": settings.v4_pool_manager,
        "providers": router.provider_names,
    }


def _quote_response(q, tokens: TokenInfoService) -> QuoteResponse:
    sell = tokens.info(q.sell_token)
    buy = tokens.info(q.buy_token)
    return QuoteResponse(
        quote=q.to_dict(),
        exchange_rate=format_exchange_rate(
            q.sell_amount, q.buy_amount, sell.symbol, buy.symbol, sell.decimals, buy.decimals
        ),
        high_slippage=is_high_slippage(q.slippage_bps),
    )


@app.post("/quote", response_model=QuoteResponse)
def quote(
    body: QuoteBody,
    settings: Settings = Depends(get_settings),
    router: SwapRouter = Depends(get_router),
    tokens: TokenInfoService = Depends(get_tokens),
):
    try:
        amount = _sell_amount(body, settings)
        q = router.quote(
            body.sell_token or settings.usdc, body.buy_token, amount, body.taker, slippage_bps=body.slippage_bps
        )
    except SwapError as e:
        raise _http_error(e)
    return _quote_response(q, tokens)


@app.post("/swap/transaction")
def swap_transaction(
    body: SwapTxBody,
    settings: Settings = Depends(get_settings),
    router: SwapRouter = Depends(get_router),
    builder: TransactionBuilder = Depends(get_builder),
):
    try:
        amount = _sell_amount(body, settings)
        q = router.quote(
            body.sell_token or settings.usdc, body.buy_token, amount, body.taker, slippage_bps=body.slippage_bps
        )
        tx = builder.build(q, body.recipient or body.taker, body.deadline)
        if body.estimate_gas:
            tx = builder.estimate_gas(tx, body.taker)
        approval = builder.approval(q.sell_token, builder.spender_for(q, tx), q.sell_amount)
    except SwapError as e:
        raise _http_error(e)
    return {"quote": q.to_dict(), "transaction": tx.to_dict(), "approval": approval.to_dict()}


@app.post("/swap/link")
def swap_link(body: SwapLinkBody, settings: Settings = Depends(get_settings)):
    try:
        url = build_swap_link(body.tokenAddress, body.chainId, body.amountUSD, usdc=settings.usdc)
    except SwapError as e:
        raise _http_error(e)
    return {"swapUrl": url, "tokenAddress": body.tokenAddress, "chainId": body.chainId, "amountUSD": body.amountUSD}


@app.post("/swap/frame/{address}")
def swap_frame(
    address: str,
    body: FrameSwapBody,
    settings: Settings = Depends(get_settings),
    router: SwapRouter = Depends(get_router),
    builder: TransactionBuilder = Depends(get_builder),
):
    if not body.userAddress:
        raise HTTPException(400, "User address is required")
    try:
        q = router.quote(settings.usdc, address, to_base_units(Decimal(1), USDC_DECIMALS), body.userAddress)
        tx = builder.build(q, body.userAddress)
    except SwapError as e:
        raise _http_error(e)
    return builder.frame_response(tx)


@app.post("/erc20/allowance")
def allowance(q: AllowanceQuery, w3: Web3 = Depends(get_web3)):
    if not all(Web3.is_address(a) for a in (q.token, q.owner, q.spender)):
        raise HTTPException(400, "token, owner and spender must be addresses")
    owner = Web3.to_checksum_address(q.owner)
    spender = Web3.to_checksum_address(q.spender)
    token = w3.eth.contract(address=Web3.to_checksum_address(q.token), abi=ERC20_ABI)
    try:
        value = token.functions.allowance(owner, spender).call()
        return {"owner": owner, "spender": spender, "allowance": str(value)}
    except Exception as e:
        raise HTTPException(400, f"allowance failed: {e}")


@app.get("/tokens/{address}")
def token_info(address: str, tokens: TokenInfoService = Depends(get_tokens)):
    if not Web3.is_address(address):
        raise HTTPException(400, "Invalid token address format")
    return tokens.info(address).to_dict()


@app.post("/buy-all/quote")
def buy_all_quote(
    body: BuyAllBody,
    settings: Settings = Depends(get_settings),
    router: SwapRouter = Depends(get_router),
):
    try:
        taker = checksum(body.taker, "taker")
        plan = plan_buy_all([p.model_dump() for p in body.profiles], to_base_units(body.amount_usdc, USDC_DECIMALS))
        result = quote_buy_all(router, plan, settings.usdc, taker)
    except SwapError as e:
        raise _http_error(e)
    return {
        "total_amount": str(plan.total_amount),
        "number_of_coins": plan.number_of_coins,
        "amount_per_coin": str(plan.coins[0].amount),
        "quotes": result.quotes,
        "failed": result.failed,
    }


# ---------- AWS Lambda adapter ----------
lambda_handler = Mangum(app)
