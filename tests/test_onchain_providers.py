from unittest.mock import MagicMock

import pytest
from web3.exceptions import ContractLogicError

from knowntoads.errors import ProviderError
from knowntoads.models import PoolKey
from knowntoads.pools import PoolDetection
from knowntoads.providers.uniswap_v3 import UniswapV3QuoteProvider
from knowntoads.providers.uniswap_v4 import MAX_UINT128, UniswapV4QuoteProvider

from .conftest import POOL_MANAGER, TAKER, TOKEN, USDC

QUOTER = "0x3d4e44Eb1374240CE5F1B871ab261CD16335B76a"


def _quoter_fn(w3):
    return w3.eth.contract.return_value.functions.quoteExactInputSingle


class TestUniswapV3:
    def test_falls_back_through_fee_tiers(self):
        w3 = MagicMock()
        fn = _quoter_fn(w3)
        fn.return_value.call.side_effect = [
            ContractLogicError("execution reverted"),
            (0, 0, 0, 0),
            (12345, 2 ** 96, 3, 90000),
        ]

        quote = UniswapV3QuoteProvider(w3, QUOTER).quote(USDC, TOKEN, 1_000_000, TAKER)

        assert quote.provider == "uniswap_v3"
        assert quote.fee_tier == 10000
        assert quote.buy_amount == 12345
        assert quote.min_buy_amount == 12345 * 9000 // 10_000
        assert quote.estimated_gas == 90000
        fees = [c.args[0][3] for c in fn.call_args_list]
        assert fees == [3000, 500, 10000]

    def test_quoter_params(self):
        w3 = MagicMock()
        fn = _quoter_fn(w3)
        fn.return_value.call.return_value = (1, 0, 0, 0)

        UniswapV3QuoteProvider(w3, QUOTER).quote(USDC, TOKEN, 1_000_000, TAKER)

        assert fn.call_args.args[0] == (USDC, TOKEN, 1_000_000, 3000, 0)

    def test_rpc_errors_move_to_next_tier(self):
        w3 = MagicMock()
        fn = _quoter_fn(w3)
        fn.return_value.call.side_effect = [ConnectionError("rpc down"), (777, 0, 0, 50000)]

        quote = UniswapV3QuoteProvider(w3, QUOTER).quote(USDC, TOKEN, 1_000_000, TAKER)

        assert quote.fee_tier == 500

    def test_no_pool_in_any_tier(self):
        w3 = MagicMock()
        _quoter_fn(w3).return_value.call.side_effect = ContractLogicError("no pool")

        provider = UniswapV3QuoteProvider(w3, QUOTER, fee_tiers=(3000, 500))

        assert provider.quote(USDC, TOKEN, 1_000_000, TAKER) is None

    def test_caller_slippage_sets_minimum(self):
        w3 = MagicMock()
        _quoter_fn(w3).return_value.call.return_value = (12345, 0, 0, 90000)

        quote = UniswapV3QuoteProvider(w3, QUOTER).quote(USDC, TOKEN, 1_000_000, TAKER, slippage_bps=300)

        assert quote.slippage_bps == 300
        assert quote.min_buy_amount == 12345 * 9700 // 10_000


class TestUniswapV4:
    def _pool(self, fee=10000):
        c0, c1 = sorted([USDC, TOKEN], key=str.lower)
        return PoolKey(c0, c1, fee, 200)

    def _provider(self, w3, pools, pool_manager=POOL_MANAGER):
        return UniswapV4QuoteProvider(w3, QUOTER, pool_manager, pools)

    def test_quotes_against_detected_pool(self):
        w3 = MagicMock()
        fn = _quoter_fn(w3)
        fn.return_value.call.return_value = (5000, 120000)
        pool = self._pool()
        pools = MagicMock()
        pools.detect.return_value = PoolDetection(True, [pool])

        quote = self._provider(w3, pools).quote(USDC, TOKEN, 1_000_000, TAKER)

        pools.detect.assert_called_once_with(TOKEN)
        key, zero_for_one, amount, hook_data = fn.call_args.args[0]
        assert key == pool.as_tuple()
        assert zero_for_one == (pool.currency0 == USDC)
        assert amount == 1_000_000
        assert hook_data == b""
        assert quote.provider == "uniswap_v4"
        assert quote.pool_key == pool
        assert quote.fee_tier == 10000
        assert quote.min_buy_amount == 4500

    def test_caller_slippage_sets_minimum(self):
        w3 = MagicMock()
        _quoter_fn(w3).return_value.call.return_value = (5000, 120000)
        pools = MagicMock()
        pools.detect.return_value = PoolDetection(True, [self._pool()])

        quote = self._provider(w3, pools).quote(USDC, TOKEN, 1_000_000, TAKER, slippage_bps=50)

        assert quote.slippage_bps == 50
        assert quote.min_buy_amount == 4975

    def test_skips_pools_without_sell_token(self):
        w3 = MagicMock()
        other = PoolKey(TOKEN, "0x4200000000000000000000000000000000000006", 3000, 60)
        pools = MagicMock()
        pools.detect.return_value = PoolDetection(True, [other])

        assert self._provider(w3, pools).quote(USDC, TOKEN, 1_000_000, TAKER) is None
        _quoter_fn(w3).assert_not_called()

    def test_no_pools_detected(self):
        pools = MagicMock()
        pools.detect.return_value = PoolDetection(False, [])

        assert self._provider(MagicMock(), pools).quote(USDC, TOKEN, 1_000_000, TAKER) is None

    def test_revert_means_no_liquidity(self):
        w3 = MagicMock()
        _quoter_fn(w3).return_value.call.side_effect = ContractLogicError("reverted")
        pools = MagicMock()
        pools.detect.return_value = PoolDetection(True, [self._pool()])

        assert self._provider(w3, pools).quote(USDC, TOKEN, 1_000_000, TAKER) is None

    def test_disabled_without_pool_manager(self):
        provider = self._provider(MagicMock(), MagicMock(), pool_manager=None)

        assert not provider.enabled
        with pytest.raises(ProviderError):
            provider.quote(USDC, TOKEN, 1_000_000, TAKER)

    def test_amount_must_fit_uint128(self):
        provider = self._provider(MagicMock(), MagicMock())

        with pytest.raises(ProviderError):
            provider.quote(USDC, TOKEN, MAX_UINT128 + 1, TAKER)
