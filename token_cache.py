import logging
from typing import Any, Callable, Dict, List, Optional

from config import settings
from models import Result, TokenCacheEntry, TokensResponse, validate_response
from time_utils import format_time_ago, now_ms

logger = logging.getLogger(__name__)


def visible_tokens(tokens: Any) -> List[Any]:
    if not isinstance(tokens, (list, tuple)):
        return []
    return [token for token in tokens if isinstance(token, dict) and token.get("is_visible")]


class TokenCache:
    """Per-wallet token snapshots plus the visible-token view of the selected wallet.

    Entries hold the unfiltered payload returned by the wallet service; the
    view (``tokens``) only holds tokens flagged ``is_visible``. Entries live
    in memory and are rebuilt every session.
    """

    def __init__(self, api, identity, clock: Callable[[], int] = now_ms):
        self.api = api
        self.identity = identity
        self.clock = clock
        self._entries: Dict[Any, TokenCacheEntry] = {}
        self.tokens: List[Any] = []
        self.total_value_usd: str = "0.00"

    def put(self, wallet_id: Any, data: Any) -> None:
        self._entries[wallet_id] = TokenCacheEntry(data=data, last_update=self.clock())

    def get(self, wallet_id: Any) -> TokenCacheEntry:
        entry = self._entries.get(wallet_id)
        if entry is None:
            return TokenCacheEntry()
        return entry

    def is_fresh(self, wallet_id: Any, ttl_ms: Optional[int] = None) -> bool:
        ttl_ms = settings.token_cache_ttl if ttl_ms is None else ttl_ms
        entry = self.get(wallet_id)
        if entry.data is None or entry.last_update == 0:
            return False
        return self.clock() - entry.last_update < ttl_ms

    def clear_view(self) -> None:
        self.tokens = []
        self.total_value_usd = "0.00"

    def _apply_view(self, data: Dict[str, Any]) -> None:
        self.tokens = visible_tokens(data.get("tokens"))
        self.total_value_usd = data.get("total_value_usd") or "0.00"

    def show_cached(self, wallet: Optional[Dict[str, Any]], ttl_ms: Optional[int] = None) -> bool:
        """Rebuild the view from a fresh cache entry, if there is one."""
        if not wallet or not self.is_fresh(wallet.get("id"), ttl_ms):
            return False
        entry = self.get(wallet.get("id"))
        if not isinstance(entry.data, dict):
            return False
        logger.debug(
            f"Using cached tokens for wallet {wallet.get('id')} "
            f"(updated {format_time_ago(entry.last_update)})"
        )
        self._apply_view(entry.data)
        return True

    async def _fetch(self, wallet: Dict[str, Any]) -> Result:
        try:
            device_id = await self.identity.get_id()
            payload = await self.api.get_wallet_tokens(device_id, wallet.get("id"), wallet.get("chain"))
        except Exception as e:
            return Result.failure(e)
        validated = validate_response(TokensResponse, payload)
        if not validated.ok:
            return validated
        return Result.success(payload["data"])

    async def refresh(self, wallet: Optional[Dict[str, Any]],
                      current: Optional[Callable[[], Any]] = None) -> bool:
        """Fetch tokens for ``wallet``; on failure view and cache keep their values.

        ``current`` returns the id of the wallet selected now. When it no
        longer matches the requested wallet the response is cached but the
        visible view is left alone.
        """
        if not wallet:
            return False

        result = await self._fetch(wallet)
        if not result.ok:
            logger.error(f"Failed to refresh tokens for wallet {wallet.get('id')}: {result.error}")
            return False

        wallet_id = wallet.get("id")
        self.put(wallet_id, result.value)
        if current is not None and current() != wallet_id:
            logger.info(f"Wallet {wallet_id} no longer selected, keeping current token view")
            return True

        self._apply_view(result.value)
        logger.info(f"Loaded {len(self.tokens)} visible tokens for wallet {wallet.get('id')}")
        return True

    async def load(self, wallet: Optional[Dict[str, Any]], force: bool = False,
                   current: Optional[Callable[[], Any]] = None) -> bool:
        if not wallet:
            return False
        if not force and self.show_cached(wallet):
            return True
        return await self.refresh(wallet, current=current)
