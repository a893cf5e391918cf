import json
import logging
from typing import Any, List, Optional

from storage import KeyValueStore
from wallet_utils import normalize_list

logger = logging.getLogger(__name__)

CACHED_WALLETS_KEY = "cachedWallets"
SELECTED_WALLET_ID_KEY = "selectedWalletId"


class WalletCacheManager:
    """Best-effort persistence of the last wallet list and the selected wallet id.

    The two keys are written independently and may disagree after a crash;
    readers must cope with a selected id that matches no cached wallet.
    Storage failures are logged and reported as misses, never raised.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def save_list(self, wallets: Any) -> bool:
        if not isinstance(wallets, (list, tuple)) or not wallets:
            return False
        try:
            await self.store.set(CACHED_WALLETS_KEY, json.dumps(normalize_list(wallets)))
            logger.debug(f"Cached {len(wallets)} wallets")
            return True
        except Exception as e:
            logger.warning(f"Failed to cache wallet list: {str(e)}")
            return False

    async def load_list(self) -> Optional[List[Any]]:
        try:
            raw = await self.store.get(CACHED_WALLETS_KEY)
            if raw is None:
                return None
            # re-normalize: the cached shape may predate the current one
            return normalize_list(json.loads(raw))
        except Exception as e:
            logger.warning(f"Failed to read cached wallet list: {str(e)}")
            return None

    async def save_selected_id(self, wallet_id: Any) -> bool:
        try:
            await self.store.set(SELECTED_WALLET_ID_KEY, str(wallet_id))
            return True
        except Exception as e:
            logger.warning(f"Failed to persist selected wallet id {wallet_id}: {str(e)}")
            return False

    async def clear_selected_id(self) -> bool:
        try:
            await self.store.remove(SELECTED_WALLET_ID_KEY)
            return True
        except Exception as e:
            logger.warning(f"Failed to clear selected wallet id: {str(e)}")
            return False

    async def load_selected_id(self) -> Optional[str]:
        try:
            return await self.store.get(SELECTED_WALLET_ID_KEY)
        except Exception as e:
            logger.warning(f"Failed to read selected wallet id: {str(e)}")
            return None
