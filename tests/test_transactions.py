from unittest.mock import MagicMock

import pytest
from eth_abi import decode
from web3 import Web3

from knowntoads.config import Settings
from knowntoads.errors import InvalidSwapRequest, ProviderError
from knowntoads.models import PoolKey, PrebuiltTx, Quote, SwapTransaction
from knowntoads.transactions import MAX_SQRT_PRICE, MIN_SQRT_PRICE, TransactionBuilder

from .conftest import TAKER, TOKEN, USDC

EXACT_INPUT_SINGLE = "(address,address,uint24,address,uint256,uint256,uint160)"
POOL_KEY = "(address,address,uint24,int24,address)"


def selector(signature):
    return "0x" + Web3.keccak(text=signature).hex().replace("0x", "")[:8]


def args_of(data, types):
    return decode(types, bytes.fromhex(data[10:]))


def _quote(provider, **kw):
    base = dict(
        provider=provider, sell_token=USDC, buy_token=TOKEN, sell_amount=1_000_000,
        buy_amount=5000, slippage_bps=1000, min_buy_amount=4500,
    )
    base.update(kw)
    return Quote(**base)


@pytest.fixture
def builder(offline_w3, settings):
    return TransactionBuilder(offline_w3, settings)


def test_v3_wraps_exact_input_single_in_deadline_multicall(builder, settings):
    tx = builder.build(_quote("uniswap_v3", fee_tier=10000), TAKER, deadline=1_700_000_000)

    assert tx.to == settings.v3_swap_router
    assert tx.value == "0"
    assert tx.chain_id == 8453
    assert tx.data.startswith(selector("multicall(uint256,bytes[])"))
    deadline, calls = args_of(tx.data, ["uint256", "bytes[]"])
    assert deadline == 1_700_000_000
    assert len(calls) == 1

    inner = "0x" + calls[0].hex()
    assert inner.startswith(selector(f"exactInputSingle({EXACT_INPUT_SINGLE})"))
    (params,) = args_of(inner, [EXACT_INPUT_SINGLE])
    token_in, token_out, fee, recipient, amount_in, min_out, limit = params
    assert token_in.lower() == USDC.lower()
    assert token_out.lower() == TOKEN.lower()
    assert fee == 10000
    assert recipient.lower() == TAKER.lower()
    assert (amount_in, min_out, limit) == (1_000_000, 4500, 0)


def test_v3_default_deadline_is_in_the_future(builder, settings, monkeypatch):
    monkeypatch.setattr("knowntoads.transactions.time.time", lambda: 1_000)

    tx = builder.build(_quote("uniswap_v3", fee_tier=500), TAKER)

    deadline, _ = args_of(tx.data, ["uint256", "bytes[]"])
    assert deadline == 1_000 + settings.swap_deadline_seconds


def test_v3_requires_fee_tier(builder):
    with pytest.raises(ProviderError):
        builder.build(_quote("uniswap_v3"), TAKER)


@pytest.mark.parametrize("sell_is_currency0", [True, False])
def test_v4_swap_is_exact_input_with_price_limit(builder, settings, sell_is_currency0):
    c0, c1 = (USDC, TOKEN) if sell_is_currency0 else (TOKEN, USDC)
    pool = PoolKey(c0, c1, 10000, 200)

    tx = builder.build(_quote("uniswap_v4", pool_key=pool, fee_tier=10000), TAKER)

    assert tx.to == settings.v4_pool_manager
    assert tx.data.startswith(selector(f"swap({POOL_KEY},(bool,int256,uint160),bytes)"))
    key, params, hook_data = args_of(tx.data, [POOL_KEY, "(bool,int256,uint160)", "bytes"])
    assert key[0].lower() == c0.lower()
    assert key[2:4] == (10000, 200)
    zero_for_one, amount_specified, limit = params
    assert zero_for_one is sell_is_currency0
    assert amount_specified == -1_000_000
    assert limit == (MIN_SQRT_PRICE + 1 if sell_is_currency0 else MAX_SQRT_PRICE - 1)
    assert hook_data == b""


def test_v4_needs_pool_manager(offline_w3):
    builder = TransactionBuilder(offline_w3, Settings())
    pool = PoolKey(TOKEN, USDC, 10000, 200)

    with pytest.raises(ProviderError):
        builder.build(_quote("uniswap_v4", pool_key=pool), TAKER)


def test_v4_needs_pool_key(builder):
    with pytest.raises(ProviderError):
        builder.build(_quote("uniswap_v4"), TAKER)


@pytest.mark.parametrize("provider", ["zora", "0x"])
def test_http_provider_calldata_passes_through(builder, provider):
    prebuilt = PrebuiltTx(to="0xdef1c0ded9bec7f1a1670819833240f027b25eff", data="0xabcdef", value="12", gas=210000)

    tx = builder.build(_quote(provider, tx=prebuilt), TAKER)

    assert tx.to == Web3.to_checksum_address(prebuilt.to)
    assert tx.data == "0xabcdef"
    assert tx.value == "12"
    assert tx.gas == 210000
    assert tx.provider == provider
    assert builder.spender_for(_quote(provider, tx=prebuilt), tx) == tx.to


def test_http_provider_without_calldata(builder):
    with pytest.raises(ProviderError):
        builder.build(_quote("zora"), TAKER)


def test_unknown_provider(builder):
    with pytest.raises(ProviderError):
        builder.build(_quote("sushiswap"), TAKER)


def test_invalid_recipient(builder):
    with pytest.raises(InvalidSwapRequest):
        builder.build(_quote("uniswap_v3", fee_tier=3000), "nope")


def test_spender_per_provider(builder, settings):
    assert builder.spender_for(_quote("uniswap_v3")) == settings.v3_swap_router
    assert builder.spender_for(_quote("uniswap_v4")) == settings.v4_pool_manager


def test_approval_encodes_erc20_approve(builder, settings):
    tx = builder.approval(USDC, settings.v3_swap_router, 1_000_000)

    assert tx.to == USDC
    assert tx.provider == "erc20"
    assert tx.data.startswith(selector("approve(address,uint256)"))
    spender, amount = args_of(tx.data, ["address", "uint256"])
    assert spender.lower() == settings.v3_swap_router.lower()
    assert amount == 1_000_000


def test_estimate_gas_adds_headroom(settings):
    w3 = MagicMock()
    w3.eth.estimate_gas.return_value = 100_000
    builder = TransactionBuilder(w3, settings)
    tx = SwapTransaction(to=USDC, data="0x", value="0", chain_id=8453, provider="0x")

    assert builder.estimate_gas(tx, TAKER).gas == 120_000
    assert w3.eth.estimate_gas.call_args.args[0]["from"] == TAKER


def test_estimate_gas_failure_keeps_tx(settings):
    w3 = MagicMock()
    w3.eth.estimate_gas.side_effect = ValueError("execution reverted: STF")
    builder = TransactionBuilder(w3, settings)
    tx = SwapTransaction(to=USDC, data="0x", value="0", chain_id=8453, provider="0x")

    assert builder.estimate_gas(tx, TAKER).gas is None


def test_frame_response(builder):
    tx = builder.build(_quote("uniswap_v3", fee_tier=3000), TAKER)

    frame = builder.frame_response(tx)

    assert frame["chainId"] == "eip155:8453"
    assert frame["method"] == "eth_sendTransaction"
    assert frame["params"]["to"] == tx.to
    assert frame["params"]["data"] == tx.data
    assert frame["params"]["value"] == "0"
    assert [entry["name"] for entry in frame["params"]["abi"]] == ["multicall"]
