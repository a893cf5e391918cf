import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from config import settings
from models import Result, WalletsResponse, validate_response
from token_cache import TokenCache
from wallet_cache import WalletCacheManager
from wallet_utils import normalize_list, normalize_wallet, wallet_id_matches

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class WalletSession:
    """The single active-wallet context shared by every consumer.

    Holds the wallet list, the selected wallet and chain, and the token
    cache. Built once at startup and passed around explicitly. Public
    operations never raise: failures are logged and leave the previous
    valid state in place. ``load`` and ``refresh_from_remote`` are not
    locked against each other; callers serialize them.
    """

    def __init__(
        self,
        api,
        identity,
        cache: WalletCacheManager,
        token_cache: Optional[TokenCache] = None,
        select_delay: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.api = api
        self.identity = identity
        self.cache = cache
        self.token_cache = token_cache or TokenCache(api, identity)
        self.select_delay = settings.select_delay if select_delay is None else select_delay
        self.sleep = sleep

        self.wallets: List[Dict[str, Any]] = []
        self.selected_wallet: Optional[Dict[str, Any]] = None
        self.selected_chain: Optional[str] = None
        self._pending_id: Any = None
        self._pending_selects = 0

    @property
    def tokens(self) -> List[Any]:
        return self.token_cache.tokens

    @property
    def total_value_usd(self) -> str:
        return self.token_cache.total_value_usd

    async def initialize(self) -> None:
        try:
            await self.identity.ensure_id()
        except Exception as e:
            logger.error(f"Device identity provisioning failed: {str(e)}")
            self._reset()
            await self._restore_from_cache()
            return

        try:
            await self.load()
        except Exception as e:
            logger.error(f"Wallet session initialization failed: {str(e)}", exc_info=True)
            self._reset()
            await self._restore_from_cache()

    def _reset(self) -> None:
        self.wallets = []
        self.selected_wallet = None
        self.token_cache.clear_view()

    async def _fetch_wallets(self) -> Result:
        try:
            device_id = await self.identity.get_id()
            payload = await self.api.get_wallets(device_id)
        except Exception as e:
            return Result.failure(e)
        validated = validate_response(WalletsResponse, payload)
        if not validated.ok:
            return validated
        return Result.success(normalize_list(payload["data"]["wallets"]))

    async def load(self) -> None:
        result = await self._fetch_wallets()
        if not result.ok:
            logger.error(f"Failed to load wallets, trying local cache: {result.error}")
            if not await self._restore_from_cache():
                logger.error("No cached wallets available, keeping current state")
            return

        wallets = result.value
        self.wallets = wallets
        await self.cache.save_list(wallets)
        logger.info(f"Loaded {len(wallets)} wallets")

        if not wallets:
            await self.cache.clear_selected_id()
            self.selected_wallet = None
            self.token_cache.clear_view()
            return

        saved_id = await self.cache.load_selected_id()
        saved_wallet = self._find(wallets, saved_id)
        if saved_wallet is not None:
            self.selected_wallet = saved_wallet
            return

        first = wallets[0]
        self.selected_wallet = first
        if isinstance(first, dict):
            await self.cache.save_selected_id(first.get("id"))
        else:
            await self.cache.clear_selected_id()

    @staticmethod
    def _find(wallets: List[Dict[str, Any]], wallet_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if wallet_id is None:
            return None
        for wallet in wallets:
            if wallet_id_matches(wallet, wallet_id):
                return wallet
        return None

    async def _restore_from_cache(self) -> bool:
        """Resume from the persisted wallet list.

        Unlike the online path this does not fall back to the first wallet
        when the persisted id has no match; the previous selection stays.
        """
        cached = await self.cache.load_list()
        if not cached:
            return False

        self.wallets = cached
        saved_wallet = self._find(cached, await self.cache.load_selected_id())
        if saved_wallet is not None:
            self.selected_wallet = saved_wallet
        logger.info(f"Restored {len(cached)} wallets from cache")
        return True

    async def select(self, wallet: Optional[Dict[str, Any]]) -> None:
        if not wallet:
            await self.cache.clear_selected_id()
            self._pending_id = None
            self.selected_wallet = None
            self.token_cache.clear_view()
            return

        if not isinstance(wallet, dict):
            logger.error(f"Ignoring selection of non-wallet value: {wallet!r}")
            return

        wallet = normalize_wallet(wallet)
        await self.cache.save_selected_id(wallet.get("id"))
        self.token_cache.clear_view()
        self._pending_id = wallet.get("id")
        self._pending_selects += 1
        try:
            # lets dependent views drop the old wallet's data first; not a lock
            if self.select_delay > 0:
                await self.sleep(self.select_delay)
        finally:
            self._pending_selects -= 1
        self.selected_wallet = wallet
        logger.info(f"Selected wallet {wallet.get('id')}")

    def select_chain(self, chain: Optional[str]) -> None:
        self.selected_chain = chain

    async def refresh_from_remote(self) -> List[Dict[str, Any]]:
        result = await self._fetch_wallets()
        if not result.ok:
            logger.error(f"Failed to refresh wallets: {result.error}")
            return []
        self.wallets = result.value
        return result.value

    def _selected_id(self) -> Any:
        # a select() still inside its delay already owns the token view
        if self._pending_selects:
            return self._pending_id
        if isinstance(self.selected_wallet, dict):
            return self.selected_wallet.get("id")
        return None

    async def refresh_tokens(self) -> bool:
        return await self.token_cache.refresh(self.selected_wallet, current=self._selected_id)

    async def load_tokens(self, force: bool = False) -> bool:
        return await self.token_cache.load(self.selected_wallet, force=force, current=self._selected_id)
