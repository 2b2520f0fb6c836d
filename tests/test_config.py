import pytest

from knowntoads.config import DEFAULT_USDC, Settings

from .conftest import POOL_MANAGER

ENV_VARS = [
    "RPC_URL", "CHAIN_ID", "USDC", "UNIV4_POOL_MANAGER", "ROUTER_PROVIDERS",
    "ZORA_API_KEY", "ZEROX_API_BASE_URL", "RATE_LIMIT", "API_KEY",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # keep a developer's .env out of these tests
    monkeypatch.setattr("knowntoads.config.load_dotenv", lambda: None)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings.from_env()

    assert settings.chain_id == 8453
    assert settings.usdc == DEFAULT_USDC
    assert settings.providers == ["zora", "uniswap_v3", "uniswap_v4", "0x"]
    assert settings.v4_pool_manager is None
    assert not settings.v4_enabled
    assert settings.api_key is None


def test_overrides(monkeypatch):
    monkeypatch.setenv("UNIV4_POOL_MANAGER", POOL_MANAGER.lower())
    monkeypatch.setenv("ROUTER_PROVIDERS", " 0x , zora,")
    monkeypatch.setenv("ZEROX_API_BASE_URL", "https://api.0x.test/")
    monkeypatch.setenv("RATE_LIMIT", "5")
    monkeypatch.setenv("ZORA_API_KEY", "")

    settings = Settings.from_env()

    assert settings.v4_pool_manager == POOL_MANAGER
    assert settings.v4_enabled
    assert settings.providers == ["0x", "zora"]
    assert settings.zerox_api_base_url == "https://api.0x.test"
    assert settings.rate_limit == 5
    assert settings.zora_api_key is None


def test_bad_integer(monkeypatch):
    monkeypatch.setenv("CHAIN_ID", "base")

    with pytest.raises(ValueError, match="CHAIN_ID"):
        Settings.from_env()


def test_zero_pool_manager_disables_v4():
    assert not Settings(v4_pool_manager="0x0000000000000000000000000000000000000000").v4_enabled
