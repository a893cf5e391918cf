import asyncio
import logging
from contextlib import asynccontextmanager
from config import settings
from storage import KeyValueStore
from logger import configure_logging
from wallet_api import WalletApiClient
from connection_pool import HTTPSessionManager
from device import DeviceIdentity
from session_store import WalletSession
from time_utils import format_time_ago
from token_cache import TokenCache
from wallet_cache import WalletCacheManager

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan():
    """Build the wallet session context and release its resources on exit"""
    store = KeyValueStore(settings.database_url)
    try:
        await store.connect()
        logger.info("Key-value store opened")
        async with WalletApiClient(settings.api_base_url, HTTPSessionManager()) as api:
            identity = DeviceIdentity(store)
            session = WalletSession(
                api,
                identity,
                WalletCacheManager(store),
                token_cache=TokenCache(api, identity),
            )
            yield session
    finally:
        await store.close()
        logger.info("Key-value store closed")

async def main():
    configure_logging()
    async with lifespan() as session:
        logger.info("Initializing wallet session")
        await session.initialize()

        wallet = session.selected_wallet
        if not wallet:
            logger.info(f"No wallet selected ({len(session.wallets)} wallets known)")
            return

        await session.load_tokens()
        entry = session.token_cache.get(wallet.get("id"))
        logger.info(
            f"Wallet {wallet.get('id')} ({wallet.get('name')}, {wallet.get('chain')}): "
            f"{len(session.tokens)} visible tokens, total ${session.total_value_usd}, "
            f"updated {format_time_ago(entry.last_update)}"
        )

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Application terminated by user")
    except Exception as e:
        logger.critical(f"Fatal error: {str(e)}", exc_info=True)
        raise
