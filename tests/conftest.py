"""
Pytest configuration and shared fakes for wallet-session tests.
"""

import pytest

from session_store import WalletSession
from token_cache import TokenCache
from wallet_cache import WalletCacheManager


class MemoryStore:
    """In-memory stand-in for the persisted key-value store."""

    def __init__(self, data=None):
        self.data = dict(data or {})
        self.fail = False

    async def get(self, key):
        if self.fail:
            raise OSError("storage unavailable")
        return self.data.get(key)

    async def set(self, key, value):
        if self.fail:
            raise OSError("storage unavailable")
        self.data[key] = str(value)

    async def remove(self, key):
        if self.fail:
            raise OSError("storage unavailable")
        self.data.pop(key, None)


class FakeIdentity:
    def __init__(self, device_id="linux_test-device", fail=False):
        self.device_id = device_id
        self.fail = fail
        self.ensure_calls = 0

    async def ensure_id(self):
        self.ensure_calls += 1
        if self.fail:
            raise OSError("identity unavailable")
        return self.device_id

    async def get_id(self):
        if self.fail:
            raise OSError("identity unavailable")
        return self.device_id


class FakeWalletApi:
    """Remote wallet service double; set ``wallets_response`` to a dict or an exception."""

    def __init__(self):
        self.wallets_response = {"status": "success", "data": {"wallets": []}}
        self.tokens_response = {"status": "success", "data": {"tokens": []}}
        self.wallet_calls = []
        self.token_calls = []

    async def get_wallets(self, device_id):
        self.wallet_calls.append(device_id)
        if isinstance(self.wallets_response, Exception):
            raise self.wallets_response
        return self.wallets_response

    async def get_wallet_tokens(self, device_id, wallet_id, chain):
        self.token_calls.append((device_id, wallet_id, chain))
        if isinstance(self.tokens_response, Exception):
            raise self.tokens_response
        return self.tokens_response


def make_wallet(wallet_id, chain="ETH"):
    return {
        "id": wallet_id,
        "name": f"Wallet {wallet_id}",
        "chain": chain,
        "address": f"0x{wallet_id:040x}",
        "avatar": None,
    }


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def api():
    return FakeWalletApi()


@pytest.fixture
def wallet_cache(store):
    return WalletCacheManager(store)


@pytest.fixture
def token_cache(api, identity):
    return TokenCache(api, identity)


@pytest.fixture
def session(api, identity, wallet_cache, token_cache):
    return WalletSession(api, identity, wallet_cache, token_cache=token_cache, select_delay=0)


@pytest.fixture
def sample_wallets():
    return [make_wallet(1), make_wallet(2, chain="SOL"), make_wallet(3)]
