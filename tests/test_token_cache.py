"""
Tests for the per-wallet token cache and visible-token view.
"""

import asyncio

from session_store import WalletSession
from token_cache import TokenCache, visible_tokens
from wallet_api import WalletApiError
from conftest import make_wallet


class FakeClock:
    def __init__(self, now=1_700_000_000_000):
        self.now = now

    def __call__(self):
        return self.now


def tokens_payload():
    return {
        "tokens": [
            {"symbol": "ETH", "balance": "1.5", "is_visible": True},
            {"symbol": "SPAM", "balance": "1000", "is_visible": False},
            {"symbol": "USDC", "balance": "20", "is_visible": True},
        ],
        "total_value_usd": "4210.00",
    }


class TestPutGet:
    def test_missing_entry_is_never_fetched(self, token_cache):
        entry = token_cache.get(5)
        assert entry.data is None
        assert entry.last_update == 0

    def test_put_stamps_time(self, token_cache):
        payload = {"tokens": []}
        token_cache.put(5, payload)
        entry = token_cache.get(5)
        assert entry.data is payload
        assert entry.last_update > 0

    def test_put_overwrites(self, api, identity):
        clock = FakeClock()
        cache = TokenCache(api, identity, clock=clock)
        cache.put(5, {"tokens": [1]})
        clock.now += 10
        cache.put(5, {"tokens": [2]})
        assert cache.get(5).data == {"tokens": [2]}
        assert cache.get(5).last_update == clock.now


class TestFreshness:
    def test_fresh_within_ttl(self, api, identity):
        clock = FakeClock()
        cache = TokenCache(api, identity, clock=clock)
        cache.put(1, tokens_payload())
        clock.now += 29_999
        assert cache.is_fresh(1, ttl_ms=30_000)

    def test_stale_after_ttl(self, api, identity):
        clock = FakeClock()
        cache = TokenCache(api, identity, clock=clock)
        cache.put(1, tokens_payload())
        clock.now += 30_000
        assert not cache.is_fresh(1, ttl_ms=30_000)

    def test_never_fetched_is_not_fresh(self, token_cache):
        assert not token_cache.is_fresh(1)


class TestRefresh:
    async def test_no_wallet_is_noop(self, token_cache, api):
        token_cache.tokens = [{"symbol": "OLD", "is_visible": True}]
        assert await token_cache.refresh(None) is False
        assert api.token_calls == []
        assert token_cache.tokens == [{"symbol": "OLD", "is_visible": True}]
        assert token_cache.get(1).last_update == 0

    async def test_filters_view_but_caches_full_payload(self, token_cache, api, identity):
        payload = tokens_payload()
        api.tokens_response = {"status": "success", "data": payload}
        wallet = make_wallet(1, chain="SOL")

        assert await token_cache.refresh(wallet) is True

        assert api.token_calls == [(identity.device_id, 1, "SOL")]
        assert [t["symbol"] for t in token_cache.tokens] == ["ETH", "USDC"]
        assert token_cache.total_value_usd == "4210.00"
        assert token_cache.get(1).data is payload
        assert len(token_cache.get(1).data["tokens"]) == 3

    async def test_failure_keeps_previous_values(self, token_cache, api):
        wallet = make_wallet(1)
        api.tokens_response = {"status": "success", "data": tokens_payload()}
        await token_cache.refresh(wallet)
        before = token_cache.get(1)

        api.tokens_response = WalletApiError("offline")
        assert await token_cache.refresh(wallet) is False

        assert [t["symbol"] for t in token_cache.tokens] == ["ETH", "USDC"]
        assert token_cache.get(1) == before

    async def test_unsuccessful_envelope_is_failure(self, token_cache, api):
        api.tokens_response = {"status": "error", "message": "nope"}
        assert await token_cache.refresh(make_wallet(1)) is False
        assert token_cache.get(1).last_update == 0

    async def test_missing_tokens_is_failure(self, token_cache, api):
        api.tokens_response = {"status": "success", "data": {"total_value_usd": "1"}}
        assert await token_cache.refresh(make_wallet(1)) is False


class TestLoad:
    async def test_fresh_cache_skips_remote(self, api, identity):
        cache = TokenCache(api, identity, clock=FakeClock())
        cache.put(1, tokens_payload())

        assert await cache.load(make_wallet(1)) is True

        assert api.token_calls == []
        assert [t["symbol"] for t in cache.tokens] == ["ETH", "USDC"]

    async def test_stale_cache_refetches(self, api, identity):
        clock = FakeClock()
        cache = TokenCache(api, identity, clock=clock)
        cache.put(1, tokens_payload())
        clock.now += 60_000
        api.tokens_response = {"status": "success", "data": {"tokens": []}}

        assert await cache.load(make_wallet(1)) is True

        assert len(api.token_calls) == 1
        assert cache.tokens == []
        assert cache.total_value_usd == "0.00"

    async def test_force_bypasses_cache(self, api, identity):
        cache = TokenCache(api, identity, clock=FakeClock())
        cache.put(1, tokens_payload())

        await cache.load(make_wallet(1), force=True)

        assert len(api.token_calls) == 1


class TestSessionBinding:
    async def test_refresh_tokens_uses_selected_wallet(self, session, api):
        api.tokens_response = {"status": "success", "data": tokens_payload()}
        await session.select(make_wallet(9))

        assert await session.refresh_tokens() is True

        assert api.token_calls[0][1] == 9
        assert len(session.tokens) == 2

    async def test_refresh_tokens_without_selection(self, session, api):
        assert await session.refresh_tokens() is False
        assert api.token_calls == []

    async def test_selection_change_clears_view_not_cache(self, session, api, token_cache):
        api.tokens_response = {"status": "success", "data": tokens_payload()}
        await session.select(make_wallet(1))
        await session.refresh_tokens()

        await session.select(make_wallet(2))

        assert session.tokens == []
        assert token_cache.get(1).data is not None


def test_visible_tokens_ignores_non_dicts():
    assert visible_tokens([None, "x", {"is_visible": True}]) == [{"is_visible": True}]
    assert visible_tokens(None) == []


class TestStaleResponses:
    async def test_response_after_switch_is_cached_but_not_shown(self, session, api, token_cache):
        release = asyncio.Event()

        async def held_tokens(device_id, wallet_id, chain):
            api.token_calls.append((device_id, wallet_id, chain))
            await release.wait()
            return {"status": "success", "data": {"tokens": [{"symbol": "W1", "is_visible": True}]}}

        api.get_wallet_tokens = held_tokens
        await session.select(make_wallet(1))

        pending = asyncio.create_task(session.refresh_tokens())
        await asyncio.sleep(0)
        await session.select(make_wallet(2))
        release.set()

        assert await pending is True
        assert session.selected_wallet["id"] == 2
        assert session.tokens == []
        assert token_cache.get(1).data["tokens"][0]["symbol"] == "W1"

    async def test_response_during_select_delay_is_not_shown(self, api, identity, wallet_cache, token_cache):
        release = asyncio.Event()

        async def held_tokens(device_id, wallet_id, chain):
            await release.wait()
            return {"status": "success", "data": {"tokens": [{"symbol": "W1", "is_visible": True}]}}

        async def held_sleep(delay):
            release.set()
            await asyncio.sleep(0.01)

        api.get_wallet_tokens = held_tokens
        session = WalletSession(api, identity, wallet_cache, token_cache=token_cache,
                                select_delay=0.1, sleep=held_sleep)
        session.selected_wallet = make_wallet(1)

        pending = asyncio.create_task(session.refresh_tokens())
        await asyncio.sleep(0)
        await session.select(make_wallet(2))
        await pending

        assert session.selected_wallet["id"] == 2
        assert session.tokens == []

    async def test_response_for_current_wallet_is_shown(self, api, identity):
        cache = TokenCache(api, identity)
        api.tokens_response = {"status": "success", "data": tokens_payload()}

        assert await cache.refresh(make_wallet(1), current=lambda: 1) is True

        assert [t["symbol"] for t in cache.tokens] == ["ETH", "USDC"]
