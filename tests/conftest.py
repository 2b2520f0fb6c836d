from unittest.mock import MagicMock

import pytest
from web3 import Web3

from knowntoads.config import DEFAULT_USDC, Settings

USDC = DEFAULT_USDC
TOKEN = Web3.to_checksum_address("0x1111111111111111111111111111111111111111")
OTHER_TOKEN = Web3.to_checksum_address("0x2222222222222222222222222222222222222222")
TAKER = Web3.to_checksum_address("0x9999999999999999999999999999999999999999")
POOL_MANAGER = Web3.to_checksum_address("0x498581ff718922c3f8e6a244956af099b2652b2b")


def make_response(status_code=200, payload=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = status_code < 400
    resp.text = text or ("" if payload is None else str(payload))
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


@pytest.fixture
def settings():
    return Settings(v4_pool_manager=POOL_MANAGER, rate_limit=10_000)


@pytest.fixture
def offline_w3():
    # No provider calls are made: only ABI encoding/decoding
    return Web3()
